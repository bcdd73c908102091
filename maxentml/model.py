"""
Trained event models and the shared model evaluator.

The form of a maximum entropy (log-linear) event model is::

    p(o | c) = exp(log p_0(o | c) + sum_i v_i * w(c_i, o)) / Z(c)

where c_i are the active predicates of the context c with values v_i,
w(c_i, o) is the weight of predicate c_i for outcome o (zero if o is not
active for c_i), p_0 is the prior and Z(c) normalizes over all outcomes.
"""

from abc import ABCMeta, abstractmethod

import numpy as np

from .context import EvalParameters
from .prior import UniformPrior


def sum_features(contexts, values, out_sums):
    """Add value * weight into out_sums[outcome] for every (outcome, weight)
    pair of each context.  Contexts that are None (unknown predicates) are
    skipped.
    """
    for ci, context in enumerate(contexts):
        if context is None:
            continue
        if values is None:
            out_sums[context.outcomes] += context.parameters
        else:
            out_sums[context.outcomes] += context.parameters * values[ci]
    return out_sums


def _normalize(out_sums):
    # No guard against overflow: large weight sums give inf / nan.
    np.exp(out_sums, out=out_sums)
    out_sums /= out_sums.sum()
    return out_sums


def eval_contexts(contexts, values, out_sums):
    """Like eval_context, but for a sequence of Context objects.
    """
    sum_features(contexts, values, out_sums)
    return _normalize(out_sums)


def sum_context(context, values, out_sums, params):
    """Add the feature weights of a context of predicate ids into out_sums
    without normalizing.
    """
    return sum_features([params.contexts[pi] for pi in context],
                        values, out_sums)


def eval_context(context, values, out_sums, params):
    """Compute the outcome distribution for a context of predicate ids.

    Parameters
    ----------
    context : sequence of int
        Ids of the active predicates.

    values : sequence of float or None
        Values parallel to context; None means 1.0 for every predicate.

    out_sums : 1d float array of length params.num_outcomes
        Holds the log prior on entry (see Prior.log_prior) and the
        normalized distribution on return.

    params : EvalParameters

    Returns
    -------
    out_sums
    """
    return eval_contexts([params.contexts[pi] for pi in context],
                         values, out_sums)


class EventModel(metaclass=ABCMeta):
    """Base class for trained event models.  Cannot be instantiated.

    Parameters
    ----------
    params : sequence of Context
        One context per predicate, in predicate id order.

    pred_labels : sequence of str

    outcome_names : sequence of str
    """

    def __init__(self, params, pred_labels, outcome_names):
        if len(params) != len(pred_labels):
            raise ValueError("need exactly one context per predicate label")
        self.pred_labels = tuple(pred_labels)
        self.outcome_names = tuple(outcome_names)
        self.pmap = {label: i for i, label in enumerate(self.pred_labels)}
        self.eval_params = EvalParameters(tuple(params), len(self.outcome_names))

    @property
    def num_outcomes(self):
        return len(self.outcome_names)

    def index_context(self, context, values=None):
        """Map predicate labels to ids, dropping unknown labels (and their
        values).
        """
        known = [(self.pmap[label], i) for i, label in enumerate(context)
                 if label in self.pmap]
        ids = [pi for pi, _ in known]
        if values is not None:
            values = [values[i] for _, i in known]
        return ids, values

    @abstractmethod
    def eval(self, context, values=None):
        """Return the probability of each outcome given the predicate
        labels in `context` (and optional parallel values).  Labels the
        model has never seen are ignored.
        """

    def get_outcome(self, i):
        return self.outcome_names[i]

    def get_index(self, outcome):
        """The id of the outcome with the given name, or -1."""
        try:
            return self.outcome_names.index(outcome)
        except ValueError:
            return -1

    def get_best_outcome(self, ocs):
        """Name of the most likely outcome in the distribution ocs."""
        return self.outcome_names[int(np.argmax(ocs))]

    def get_all_outcomes(self, ocs):
        """A string listing every outcome with its probability."""
        if len(ocs) != self.num_outcomes:
            raise ValueError("The double array sent as a parameter to "
                             "get_all_outcomes() must have exactly %d elements"
                             % self.num_outcomes)
        return " ".join("%s[%.4f]" % (name, p)
                        for name, p in zip(self.outcome_names, ocs))

    def get_data(self):
        """The parameters, predicate labels and outcome names of the model.
        """
        return (self.eval_params.contexts, self.pred_labels, self.outcome_names)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return (self.pred_labels == other.pred_labels
                and self.outcome_names == other.outcome_names
                and all(a == b for a, b in zip(self.eval_params.contexts,
                                               other.eval_params.contexts)))

    __hash__ = None


class GISModel(EventModel):
    """A maximum entropy model trained with Generalized Iterative Scaling.

    Parameters
    ----------
    params : sequence of Context

    pred_labels : sequence of str

    outcome_names : sequence of str

    prior : Prior or None
        The prior used during training.  Defaults to a UniformPrior.
    """

    def __init__(self, params, pred_labels, outcome_names, prior=None):
        super().__init__(params, pred_labels, outcome_names)
        if prior is None:
            prior = UniformPrior()
        self.prior = prior
        self.prior.set_labels(self.outcome_names, self.pred_labels)

    def eval(self, context, values=None, out_sums=None):
        if out_sums is None:
            out_sums = np.zeros(self.num_outcomes)
        ids, values = self.index_context(context, values)
        self.prior.log_prior(out_sums, ids, values)
        return eval_context(ids, values, out_sums, self.eval_params)

    def __eq__(self, other):
        result = super().__eq__(other)
        if result is NotImplemented or not result:
            return result
        return self.prior == other.prior

    __hash__ = None
