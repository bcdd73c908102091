"""
Priors: initial log-probabilities written into the outcome sums before the
feature weights are added.
"""

from abc import ABCMeta, abstractmethod
import math


class Prior(metaclass=ABCMeta):
    """Base class for priors.  Cannot be instantiated.

    Implementations must be deterministic and free of side effects across
    repeated calls with identical inputs, since the same prior is used
    while training and while evaluating the trained model.
    """

    @abstractmethod
    def set_labels(self, outcome_labels, pred_labels):
        """Called once with the outcome and predicate labels of the model.
        """

    @abstractmethod
    def log_prior(self, out_sums, context, values=None):
        """Write the log prior of each outcome into out_sums.

        Parameters
        ----------
        out_sums : 1d float array of length num_outcomes
            Overwritten in place.

        context : sequence of int
            The ids of the active predicates.

        values : sequence of float or None
            Optional real values, parallel to context.
        """


class UniformPrior(Prior):
    """Assigns the same log probability, log(1 / num_outcomes), to every
    outcome.  The constant cancels when the outcome distribution is
    normalized.
    """

    def __init__(self):
        self.num_outcomes = None
        self.r = None

    def set_labels(self, outcome_labels, pred_labels):
        self.num_outcomes = len(outcome_labels)
        self.r = math.log(1.0 / self.num_outcomes)

    def log_prior(self, out_sums, context, values=None):
        out_sums[:self.num_outcomes] = self.r

    def __eq__(self, other):
        return (isinstance(other, UniformPrior)
                and self.num_outcomes == other.num_outcomes)

    def __hash__(self):
        return hash((UniformPrior, self.num_outcomes))
