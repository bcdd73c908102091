"""Tests for choosing and configuring trainers."""

import pytest

from maxentml import (Algorithm, Event, GISTrainer, PerceptronTrainer,
                      NaiveBayesTrainer, get_trainer, train,
                      trainer_from_parameters)
from maxentml.trainer import parameter_names


def toy_events():
    return [Event("A", ["dog", "cat", "mouse"]),
            Event("B", ["text", "print", "mouse"]),
            Event("A", ["dog", "pig", "cat", "mouse"])]


def test_parse_algorithm():
    assert Algorithm.parse("maxent") is Algorithm.MAXENT
    assert Algorithm.parse("Perceptron") is Algorithm.PERCEPTRON
    assert Algorithm.parse(Algorithm.NAIVEBAYES) is Algorithm.NAIVEBAYES
    with pytest.raises(ValueError, match="Options are"):
        Algorithm.parse("QN")


def test_get_trainer():
    assert isinstance(get_trainer(), GISTrainer)
    trainer = get_trainer("PERCEPTRON", iterations=7)
    assert isinstance(trainer, PerceptronTrainer)
    assert trainer.iterations == 7
    assert isinstance(get_trainer(Algorithm.NAIVEBAYES), NaiveBayesTrainer)


def test_train_returns_report():
    model, report = train(toy_events(), "MAXENT", iterations=10, cutoff=1)
    assert report == {"Algorithm": "MAXENT", "Iterations": "10", "Cutoff": "1"}
    assert model.get_best_outcome(model.eval(["dog"])) == "A"


def test_parameter_names():
    assert parameter_names("NAIVEBAYES") == ["cutoff", "iterations", "monitor",
                                             "stop_criterion", "verbose"]
    gis = parameter_names("MAXENT")
    assert "threads" in gis and "prior" in gis
    assert "use_average" not in gis
    assert "use_average" in parameter_names("PERCEPTRON")


def test_trainer_from_parameters():
    trainer = trainer_from_parameters({"Algorithm": "MAXENT",
                                       "Iterations": "50",
                                       "Threads": "4",
                                       "Smoothing": "true",
                                       "SmoothingObservation": "0.5"})
    assert isinstance(trainer, GISTrainer)
    assert trainer.iterations == 50
    assert trainer.threads == 4
    assert trainer.smoothing is True
    assert trainer.smoothing_observation == 0.5

    trainer = trainer_from_parameters({"Algorithm": "PERCEPTRON",
                                       "UseSkippedAveraging": "yes",
                                       "StepSizeDecrease": "0.05"})
    assert trainer.use_skipped_averaging and trainer.use_average
    assert trainer.step_size_decrease == 0.05

    assert isinstance(trainer_from_parameters({}), GISTrainer)


@pytest.mark.parametrize("parameters", [
    {"Iterashuns": "10"},
    {"Algorithm": "PERCEPTRON", "Threads": "2"},
    {"Smoothing": "maybe"},
    {"Threads": "0"},
    {"Algorithm": "BOOSTING"},
])
def test_invalid_parameters(parameters):
    with pytest.raises(ValueError):
        trainer_from_parameters(parameters)
