"""
Functionality shared by all event trainers.
"""

from abc import ABCMeta, abstractmethod
import enum

from .events import IndexedEvents, index_events
from .monitoring import TrainingProgressMonitor


class Algorithm(enum.Enum):
    """The supported training algorithms."""
    MAXENT = "MAXENT"
    PERCEPTRON = "PERCEPTRON"
    NAIVEBAYES = "NAIVEBAYES"

    @classmethod
    def parse(cls, name):
        """Return the Algorithm called `name` (case-insensitive), accepting
        members as well as strings.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).upper())
        except ValueError:
            raise ValueError("unknown algorithm %r.  Options are %s"
                             % (name, ", ".join(repr(a.value) for a in cls)))


def _check_iterations(iterations):
    if iterations < 1:
        raise ValueError("iterations must be at least 1 but is %d" % iterations)


class BaseTrainer(metaclass=ABCMeta):
    """A base class for trainers that fit an event model to an
    IndexedEvents instance.  Cannot be instantiated.

    Parameters
    ----------
    iterations : int (default 100)
        The maximum number of training iterations.

    cutoff : int (default 5)
        Predicates seen fewer than `cutoff` times are dropped when indexing
        raw events passed to train().  Ignored for pre-built indexes.

    monitor : TrainingProgressMonitor or None
        Receives per-iteration progress.  If None, each run creates a new
        monitor that prints only if `verbose`.  A given monitor is reset at
        the start of every run.

    stop_criterion : StopCriterion or None
        Replaces the default stop criterion of the trainer.

    verbose : int (default 0)
        Enable verbose output.
    """

    #: The Algorithm implemented by the subclass
    algorithm = None

    #: Whether identical events are merged when indexing raw events
    sort_and_merge = True

    def __init__(self, *, iterations=100, cutoff=5, monitor=None,
                 stop_criterion=None, verbose=0):
        _check_iterations(iterations)
        if cutoff < 0:
            raise ValueError("cutoff must not be negative but is %d" % cutoff)
        self.iterations = iterations
        self.cutoff = cutoff
        self.monitor = monitor
        self.stop_criterion = stop_criterion
        self.verbose = verbose
        self.report_ = {}

    def index(self, events, cutoff=None):
        """Index raw events the way this trainer expects them.
        """
        if cutoff is None:
            cutoff = self.cutoff
        return index_events(events, cutoff=cutoff,
                            sort_and_merge=self.sort_and_merge,
                            verbose=self.verbose)

    def train(self, data, *, iterations=None):
        """Train a model.

        Parameters
        ----------
        data : IndexedEvents or iterable of Event
            Raw events are indexed first, using self.cutoff.

        iterations : int or None
            Overrides self.iterations for this run.

        Returns
        -------
        the trained model
        """
        if iterations is None:
            iterations = self.iterations
        _check_iterations(iterations)
        if not isinstance(data, IndexedEvents):
            data = self.index(data)
        if data.num_unique_events == 0:
            raise ValueError("there are no events to train on")

        self.report_ = {"Algorithm": self.algorithm.value,
                        "Iterations": str(iterations),
                        "Cutoff": str(self.cutoff)}
        if self.verbose:
            print("Incorporating indexed data for training...")
            print("\tNumber of Event Tokens: %d" % data.num_unique_events)
            print("\t    Number of Outcomes: %d" % data.num_outcomes)
            print("\t  Number of Predicates: %d" % data.num_preds)
        return self._train(data, iterations)

    @abstractmethod
    def _train(self, events, iterations):
        """Subclasses must implement this."""

    def _get_monitor(self):
        if self.monitor is not None:
            self.monitor.reset()
            return self.monitor
        return TrainingProgressMonitor(verbose=self.verbose)
