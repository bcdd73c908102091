"""
Naive Bayes event models.

Training is a single counting pass: the parameter of (predicate, outcome)
is the number of times (times the value) the predicate was seen with the
outcome.  Evaluation combines Laplace-smoothed predicate likelihoods with
the outcome prior estimated from the same counts.
"""

import numpy as np
from scipy.special import softmax

from .base import Algorithm, BaseTrainer
from .context import ContextTable
from .model import EventModel
from .monitoring import TrainingState
from .utils import argmax


class NaiveBayesModel(EventModel):
    """A trained naive Bayes model.

    The log score of outcome o for a context with predicates c_i and values
    v_i is::

        log(N_o / N) + sum_i log((v_i * N(c_i, o) + 1) / (N_o + |V|))

    where N(c_i, o) are the counts, N_o their total for outcome o, N the
    grand total and |V| the number of predicates.  eval() normalizes the
    scores to probabilities.
    """

    def __init__(self, params, pred_labels, outcome_names):
        super().__init__(params, pred_labels, outcome_names)
        self.outcome_totals = np.zeros(self.num_outcomes)
        for context in self.eval_params.contexts:
            self.outcome_totals[context.outcomes] += context.parameters
        self.vocabulary = len(self.pred_labels)

    def log_scores(self, context, values=None):
        """The unnormalized log score of every outcome for a context of
        predicate ids.
        """
        scores = np.zeros(self.num_outcomes)
        denominator = self.outcome_totals + self.vocabulary
        with np.errstate(divide="ignore"):
            for ci, pi in enumerate(context):
                pred = self.eval_params.contexts[pi]
                value = 1.0 if values is None else values[ci]
                numerator = np.zeros(self.num_outcomes)
                numerator[pred.outcomes] = pred.parameters * value
                scores += np.log((numerator + 1) / denominator)
            scores += np.log(self.outcome_totals / self.outcome_totals.sum())
        return scores

    def eval(self, context, values=None, out_sums=None):
        if out_sums is None:
            out_sums = np.zeros(self.num_outcomes)
        ids, values = self.index_context(context, values)
        out_sums[:] = softmax(self.log_scores(ids, values))
        return out_sums


class NaiveBayesTrainer(BaseTrainer):
    """Trains a NaiveBayesModel.  Counting needs a single pass, so the
    `iterations` parameter is unused.

    Attributes
    ----------
    training_accuracy_ : float
        Accuracy of the trained model on the training set.
    """

    algorithm = Algorithm.NAIVEBAYES
    sort_and_merge = False

    def _train(self, events, iterations):
        if self.verbose:
            print("Computing model parameters...")
        params = ContextTable.dense(events.num_preds, events.num_outcomes)
        weights = params.contexts
        for ei, context in enumerate(events.contexts):
            target = events.outcome_list[ei]
            values = events.event_values(ei)
            times = int(events.num_times_events_seen[ei])
            for ci, pi in enumerate(context):
                value = 1.0 if values is None else values[ci]
                weights[pi].update_parameter(target, times * value)
        if self.verbose:
            print("...done.")

        model = NaiveBayesModel(params.freeze(), events.pred_labels,
                                events.outcome_labels)
        self.n_iter_ = 1
        self.state_ = TrainingState.EXHAUSTED
        self.training_accuracy_ = self._training_stats(events, model)
        return model

    def _training_stats(self, events, model):
        num_correct = 0
        for ei, context in enumerate(events.contexts):
            scores = model.log_scores(context, events.event_values(ei))
            if argmax(scores) == events.outcome_list[ei]:
                num_correct += int(events.num_times_events_seen[ei])
        accuracy = num_correct / events.num_events
        if self.verbose:
            print("Stats: (%d/%d) %s" % (num_correct, events.num_events, accuracy))
        return accuracy
