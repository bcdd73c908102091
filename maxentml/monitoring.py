"""
Training progress monitors and stop criteria.
"""

from abc import ABCMeta, abstractmethod
import enum


TRAINING_FINISHED_DEFAULT_MSG = (
    "Training Finished after completing %s Iterations successfully.")


class TrainingState(enum.Enum):
    """Terminal states of an iterative training run."""
    CONVERGED = "converged"
    DIVERGED = "diverged"
    EXHAUSTED = "exhausted"


class StopCriterion(metaclass=ABCMeta):
    """Decides, from one or more iteration deltas, whether training should
    stop.  Call the instance with the deltas.
    """

    @abstractmethod
    def __call__(self, *deltas):
        pass

    @property
    @abstractmethod
    def message(self):
        """Message logged when the criterion is satisfied."""


class LogLikelihoodThresholdBreached(StopCriterion):
    """Satisfied when the log-likelihood improved by less than `threshold`
    between two iterations.
    """

    def __init__(self, threshold=1e-4):
        self.threshold = threshold

    def __call__(self, *deltas):
        return all(delta < self.threshold for delta in deltas)

    @property
    def message(self):
        return ("Stopping: Difference between log likelihood of current"
                " and previous iteration is less than threshold %s."
                % self.threshold)


class IterDeltaAccuracyUnderTolerance(StopCriterion):
    """Satisfied when every given change in training accuracy is smaller in
    magnitude than `tolerance`.
    """

    def __init__(self, tolerance=1e-5):
        self.tolerance = tolerance

    def __call__(self, *deltas):
        return all(abs(delta) < self.tolerance for delta in deltas)

    @property
    def message(self):
        return ("Stopping: change in training set accuracy less than %s"
                % self.tolerance)


class TrainingProgressMonitor(object):
    """Collects one line per reported iteration plus a final line, and
    prints them on display() if verbose.
    """

    def __init__(self, verbose=0):
        self.verbose = verbose
        self.reset()

    def reset(self):
        """Forget the progress of a previous run."""
        self.progress = []
        self.is_training_finished = False

    def finished_iteration(self, iteration, num_correct, num_events,
                           measure=None, value=None):
        line = "%d: (%d/%d) %s" % (iteration, num_correct, num_events,
                                   num_correct / num_events)
        if measure is not None:
            line += "  %s: %s" % (measure, value)
        self.progress.append(line)

    def finished_training(self, iterations, stop_criterion=None):
        if stop_criterion is not None:
            self.progress.append(stop_criterion.message)
        else:
            self.progress.append(TRAINING_FINISHED_DEFAULT_MSG % iterations)
        self.is_training_finished = True

    def display(self):
        if self.verbose:
            for line in self.progress:
                print(line)
