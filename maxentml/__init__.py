"""
# maxentml: Training maximum entropy and perceptron event models.

Copyright: the maxentml developers.  License: BSD-style.

Routines for fitting classifiers from labeled events (an outcome plus the
predicates active in its context, optionally with real values) to
probability distributions over outcomes:

- maximum entropy (log-linear) models, trained with Generalized Iterative
  Scaling (GIS), optionally with simple or Gaussian smoothing and with
  model expectations computed in parallel threads;
- perceptrons, with optional (skipped) averaging;
- naive Bayes.


## Usage:

Build Event objects, index them and train:

>>> from maxentml import Event, index_events, GISTrainer
>>> events = [Event("A", ["dog", "cat", "mouse"]),
...           Event("B", ["text", "print", "mouse"]),
...           Event("A", ["dog", "pig", "cat", "mouse"])]
>>> model = GISTrainer(iterations=100).train(index_events(events, cutoff=1))
>>> model.get_best_outcome(model.eval(["dog", "cat", "mouse"]))
'A'

Or choose the algorithm by name with `train(data, algorithm, **params)`, or
use the scikit-learn compatible `MaxentClassifier`.


## Algorithms:

GIS ('MAXENT') moves the weight of every active (predicate, outcome) pair
by the log ratio of its observed and expected counts, divided by the
largest total feature mass of any event.  It stops when the log-likelihood
improves by less than `ll_threshold`, when it decreases (divergence, a
warning is issued and the latest weights are kept), or after `iterations`
iterations.

The perceptron ('PERCEPTRON') makes mistake-driven additive updates and
stops when the training accuracy no longer changes by more than
`tolerance`.

Naive Bayes ('NAIVEBAYES') counts predicate/outcome co-occurrences in a
single pass.

"""

import warnings
import re

from .utils import DivergenceWarning, ModelExpectationWarning

# Make sure that warnings about the fitting process always get printed
for _category in (DivergenceWarning, ModelExpectationWarning):
    warnings.filterwarnings('always', category=_category,
                            module='^{0}\\.'.format(re.escape(__name__)))


from .base import Algorithm, BaseTrainer
from .context import Context, MutableContext, ContextTable, EvalParameters
from .events import Event, IndexedEvents, index_events
from .prior import Prior, UniformPrior
from .model import EventModel, GISModel, eval_context
from .gis import GISTrainer, gaussian_update
from .perceptron import PerceptronModel, PerceptronTrainer
from .naivebayes import NaiveBayesModel, NaiveBayesTrainer
from .monitoring import (TrainingProgressMonitor,
                         TrainingState,
                         LogLikelihoodThresholdBreached,
                         IterDeltaAccuracyUnderTolerance)
from .trainer import get_trainer, train, trainer_from_parameters
from .classifier import MaxentClassifier
from .utils import TrainingError


__all__ = ['Algorithm',
           'BaseTrainer',
           'Context',
           'MutableContext',
           'ContextTable',
           'EvalParameters',
           'Event',
           'IndexedEvents',
           'index_events',
           'Prior',
           'UniformPrior',
           'EventModel',
           'GISModel',
           'eval_context',
           'GISTrainer',
           'gaussian_update',
           'PerceptronModel',
           'PerceptronTrainer',
           'NaiveBayesModel',
           'NaiveBayesTrainer',
           'TrainingProgressMonitor',
           'TrainingState',
           'LogLikelihoodThresholdBreached',
           'IterDeltaAccuracyUnderTolerance',
           'get_trainer',
           'train',
           'trainer_from_parameters',
           'MaxentClassifier',
           'TrainingError',
           'DivergenceWarning',
           'ModelExpectationWarning',
           'utils']

# PEP0440 compatible formatted version, see:
# https://www.python.org/dev/peps/pep-0440/
#
# Dev branch marker is: 'X.Y.dev' or 'X.Y.devN' where N is an integer.
#
__version__ = '0.1.dev0'
