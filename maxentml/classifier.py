"""
A scikit-learn compatible classifier over sparse predicate contexts.
"""

from collections.abc import Mapping

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.utils.validation import check_is_fitted, column_or_1d
from sklearn.utils.multiclass import check_classification_targets

from .base import Algorithm
from .events import Event
from .trainer import get_trainer, parameter_names


def _split_row(row):
    """Split an observation into predicate labels and values (or None).
    """
    if isinstance(row, Mapping):
        return list(row.keys()), [float(v) for v in row.values()]
    if isinstance(row, str):
        raise ValueError("each observation must be a sequence of predicate "
                         "labels or a mapping of labels to values, not a string")
    return list(row), None


class MaxentClassifier(ClassifierMixin, BaseEstimator):
    """
    Classifier trained with GIS (maximum entropy), the perceptron or naive
    Bayes on observations described by their active predicates.

    Parameters
    ----------
        algorithm: str or Algorithm (default 'MAXENT')
            One of 'MAXENT', 'PERCEPTRON' or 'NAIVEBAYES'.

        iterations, cutoff, threads, ll_threshold, smoothing,
        smoothing_observation, gaussian_smoothing, sigma, use_average,
        use_skipped_averaging, step_size_decrease, tolerance:
            Passed on to the trainer of the chosen algorithm where it
            accepts them; see GISTrainer and PerceptronTrainer.

        verbose: int (default 0)

    Each observation in X is either a sequence of predicate labels, e.g.
    ["dog", "cat"], or a mapping of predicate labels to real values, e.g.
    {"length": 5.5, "width": 1.8}.

    Example usage:
    --------------
    >>> X = [["dog", "cat", "mouse"], ["text", "print", "mouse"]]
    >>> y = ["A", "B"]
    >>> clf = MaxentClassifier(cutoff=1).fit(X, y)
    >>> clf.predict([["dog", "cat"]])
    """

    def __init__(
        self,
        algorithm="MAXENT",
        *,
        iterations=100,
        cutoff=0,
        threads=1,
        ll_threshold=1e-4,
        smoothing=False,
        smoothing_observation=0.1,
        gaussian_smoothing=False,
        sigma=2.0,
        use_average=True,
        use_skipped_averaging=False,
        step_size_decrease=0.0,
        tolerance=1e-5,
        verbose=0,
    ):
        self.algorithm = algorithm
        self.iterations = iterations
        self.cutoff = cutoff
        self.threads = threads
        self.ll_threshold = ll_threshold
        self.smoothing = smoothing
        self.smoothing_observation = smoothing_observation
        self.gaussian_smoothing = gaussian_smoothing
        self.sigma = sigma
        self.use_average = use_average
        self.use_skipped_averaging = use_skipped_averaging
        self.step_size_decrease = step_size_decrease
        self.tolerance = tolerance
        self.verbose = verbose

    def _make_trainer(self):
        algorithm = Algorithm.parse(self.algorithm)
        params = self.get_params()
        kwargs = {name: params[name] for name in parameter_names(algorithm)
                  if name in params}
        return get_trainer(algorithm, **kwargs)

    def fit(self, X, y):
        """Fit the classifier.

        Parameters
        ----------
        X : sequence of length n_samples
            Observations: sequences of predicate labels or mappings of
            predicate labels to values.

        y : array-like of shape (n_samples,)
            Target values.

        Returns
        -------
        self : object
            Returns the instance itself.
        """
        y = column_or_1d(np.asarray(y), warn=True)
        check_classification_targets(y)
        if len(X) != len(y):
            raise ValueError("X and y have inconsistent numbers of samples: "
                             "%d != %d" % (len(X), len(y)))

        events = []
        for row, target in zip(X, y):
            context, values = _split_row(row)
            events.append(Event(target, context, values))

        self.trainer_ = self._make_trainer()
        self.model_ = self.trainer_.train(events)

        # Outcome ids follow the first appearance of each class in y
        self.classes_ = np.asarray(self.model_.outcome_names)
        return self

    def predict_proba(self, X):
        """
        The probability of each class (in the order of self.classes_) for
        each observation in X.
        """
        check_is_fitted(self)
        proba = np.empty((len(X), len(self.classes_)))
        for i, row in enumerate(X):
            context, values = _split_row(row)
            proba[i] = self.model_.eval(context, values)
        return proba

    def predict_log_proba(self, X):
        """
        The log probability of each class for each observation in X.
        """
        with np.errstate(divide="ignore"):
            return np.log(self.predict_proba(X))

    def predict(self, X):
        proba = self.predict_proba(X)
        return self.classes_[np.argmax(proba, axis=1)]
