"""
Sparse per-predicate parameter vectors.

A Context holds, for one predicate, the sorted ids of the outcomes the
predicate is active for and one parameter per active outcome.  All the
contexts of a training run are stored together in a ContextTable: one flat
array of outcome ids and one flat array of parameters, with every context a
view into them.  The outcome arrays are fixed once the table is built; only
the parameters change.
"""

import numpy as np


class Context(object):
    """The parameters of a single predicate.

    Parameters
    ----------
    outcomes : array of int
        Sorted ids of the outcomes this predicate is active for.

    parameters : array of float
        One parameter per active outcome, in the same order.
    """

    def __init__(self, outcomes, parameters):
        outcomes = np.asarray(outcomes, dtype=np.intp)
        parameters = np.asarray(parameters, dtype=np.float64)
        if outcomes.shape != parameters.shape:
            raise ValueError("outcomes and parameters must have the same length")
        outcomes.flags.writeable = False
        self.outcomes = outcomes
        self.parameters = parameters
        self._freeze_parameters()

    def _freeze_parameters(self):
        self.parameters.flags.writeable = False

    def index_of(self, outcome):
        """Position of the given outcome id in this context, or -1 if the
        outcome is not active.
        """
        i = np.searchsorted(self.outcomes, outcome)
        if i < len(self.outcomes) and self.outcomes[i] == outcome:
            return int(i)
        return -1

    def __len__(self):
        return len(self.outcomes)

    def __eq__(self, other):
        if not isinstance(other, Context):
            return NotImplemented
        return (np.array_equal(self.outcomes, other.outcomes)
                and np.array_equal(self.parameters, other.parameters))

    def __repr__(self):
        return "%s(outcomes=%r, parameters=%r)" % (
            type(self).__name__, self.outcomes.tolist(), self.parameters.tolist())


class MutableContext(Context):
    """A Context whose parameters can be changed in place.
    """

    def _freeze_parameters(self):
        pass

    def set_parameter(self, outcome_index, value):
        self.parameters[outcome_index] = value

    def update_parameter(self, outcome_index, value):
        self.parameters[outcome_index] += value


class ContextTable(object):
    """Arena storage for the contexts of all predicates.

    Parameters
    ----------
    indptr : array of int, length num_preds + 1
        Context pi covers the flat range indptr[pi]:indptr[pi + 1].

    outcomes : array of int
        Flat, per-predicate sorted active outcome ids.

    parameters : array of float or None
        Flat initial parameters.  Zeros if None.
    """

    def __init__(self, indptr, outcomes, parameters=None):
        self.indptr = np.asarray(indptr, dtype=np.intp)
        self.outcomes = np.asarray(outcomes, dtype=np.intp)
        if parameters is None:
            self.parameters = np.zeros(len(self.outcomes), dtype=np.float64)
        else:
            self.parameters = np.array(parameters, dtype=np.float64)
        if self.parameters.shape != self.outcomes.shape:
            raise ValueError("outcomes and parameters must have the same length")
        self.contexts = [
            MutableContext(self.outcomes[start:end], self.parameters[start:end])
            for start, end in zip(self.indptr[:-1], self.indptr[1:])
        ]

    @classmethod
    def dense(cls, num_preds, num_outcomes):
        """A table in which every predicate is active for every outcome.
        """
        indptr = np.arange(num_preds + 1, dtype=np.intp) * num_outcomes
        outcomes = np.tile(np.arange(num_outcomes, dtype=np.intp), num_preds)
        return cls(indptr, outcomes)

    @property
    def num_preds(self):
        return len(self.indptr) - 1

    def zeros_like(self):
        """A new table with the same sparsity pattern and zero parameters.
        """
        return ContextTable(self.indptr, self.outcomes)

    def reset(self):
        self.parameters[:] = 0.0

    def predicate_of(self, flat_index):
        """Predicate id(s) owning the given flat parameter index(es).
        """
        return np.searchsorted(self.indptr, flat_index, side="right") - 1

    def freeze(self):
        """Immutable copies of all contexts, sharing nothing with this table.
        """
        return [Context(c.outcomes.copy(), c.parameters.copy())
                for c in self.contexts]


class EvalParameters(object):
    """Read-only view of the contexts used to evaluate a model.

    Parameters
    ----------
    contexts : sequence of Context
        One context per predicate id.

    num_outcomes : int
    """

    def __init__(self, contexts, num_outcomes):
        self.contexts = contexts
        self.num_outcomes = num_outcomes

    def __getitem__(self, predicate):
        return self.contexts[predicate]

    def __len__(self):
        return len(self.contexts)
