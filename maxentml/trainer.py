"""
Selecting and configuring trainers.

Trainers are looked up through the closed Algorithm enumeration rather than
by class name.  Configuration can be given as keyword arguments or as a
mapping of string parameter names, e.g. as read from a properties file:

>>> trainer = trainer_from_parameters({'Algorithm': 'MAXENT',
...                                    'Iterations': '50',
...                                    'Threads': '4'})
"""

import inspect

from .base import Algorithm
from .gis import GISTrainer
from .naivebayes import NaiveBayesTrainer
from .perceptron import PerceptronTrainer


TRAINERS = {
    Algorithm.MAXENT: GISTrainer,
    Algorithm.PERCEPTRON: PerceptronTrainer,
    Algorithm.NAIVEBAYES: NaiveBayesTrainer,
}

# String parameter names and the trainer keyword arguments they set
PARAMETER_NAMES = {
    "Iterations": ("iterations", int),
    "Cutoff": ("cutoff", int),
    "Threads": ("threads", int),
    "LLThreshold": ("ll_threshold", float),
    "Smoothing": ("smoothing", "bool"),
    "SmoothingObservation": ("smoothing_observation", float),
    "GaussianSmoothing": ("gaussian_smoothing", "bool"),
    "GaussianSmoothingSigma": ("sigma", float),
    "UseAverage": ("use_average", "bool"),
    "UseSkippedAveraging": ("use_skipped_averaging", "bool"),
    "StepSizeDecrease": ("step_size_decrease", float),
    "Tolerance": ("tolerance", float),
}


def parameter_names(algorithm):
    """The keyword arguments accepted by the trainer of `algorithm`.
    """
    cls = TRAINERS[Algorithm.parse(algorithm)]
    names = set()
    for klass in cls.__mro__:
        if "__init__" not in vars(klass):
            continue
        signature = inspect.signature(klass.__init__)
        names.update(p.name for p in signature.parameters.values()
                     if p.kind == p.KEYWORD_ONLY)
    return sorted(names)


def get_trainer(algorithm="MAXENT", **params):
    """Create the trainer for `algorithm` (an Algorithm or its name) with
    the given keyword parameters.
    """
    return TRAINERS[Algorithm.parse(algorithm)](**params)


def train(data, algorithm="MAXENT", **params):
    """Train a model on `data` (an IndexedEvents instance or an iterable of
    Events) with the given algorithm and parameters.

    Returns
    -------
    (model, report) : the trained model and the trainer's report mapping
    """
    trainer = get_trainer(algorithm, **params)
    model = trainer.train(data)
    return model, trainer.report_


def _to_bool(value):
    if isinstance(value, str):
        if value.lower() in ("true", "yes", "1"):
            return True
        if value.lower() in ("false", "no", "0"):
            return False
        raise ValueError("not a boolean value: %r" % value)
    return bool(value)


def trainer_from_parameters(parameters):
    """Create a trainer from a mapping of string parameter names to values.

    The 'Algorithm' entry selects the trainer (default 'MAXENT').  The
    other recognized names are the keys of PARAMETER_NAMES; any other name
    raises ValueError, as does a name the selected trainer does not accept.
    """
    parameters = dict(parameters)
    algorithm = Algorithm.parse(parameters.pop("Algorithm", "MAXENT"))
    accepted = parameter_names(algorithm)
    kwargs = {}
    for name, value in parameters.items():
        try:
            keyword, convert = PARAMETER_NAMES[name]
        except KeyError:
            raise ValueError("unknown training parameter %r" % name)
        if keyword not in accepted:
            raise ValueError("parameter %r is not supported by the %s trainer"
                             % (name, algorithm.value))
        kwargs[keyword] = _to_bool(value) if convert == "bool" else convert(value)
    return get_trainer(algorithm, **kwargs)
