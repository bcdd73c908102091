"""Tests for Generalized Iterative Scaling."""

import math

import numpy as np
from numpy.testing import assert_allclose
import pytest

from maxentml import (Event, GISTrainer, TrainingError, TrainingState,
                      UniformPrior, LogLikelihoodThresholdBreached,
                      index_events, gaussian_update)
from maxentml.utils import DivergenceWarning, ModelExpectationWarning


def toy_events():
    return [Event("A", ["dog", "cat", "mouse"]),
            Event("B", ["text", "print", "mouse"]),
            Event("A", ["dog", "pig", "cat", "mouse"])]


def random_events(seed=0, n=80, num_preds=12, outcomes="XYZ"):
    rng = np.random.default_rng(seed)
    events = []
    for _ in range(n):
        preds = rng.choice(num_preds, size=rng.integers(1, 5), replace=False)
        if rng.random() < 0.3:
            outcome = outcomes[rng.integers(len(outcomes))]
        else:
            outcome = outcomes[preds[0] % len(outcomes)]
        events.append(Event(outcome, ["p%d" % p for p in preds]))
    return events


def parameters_of(model):
    return np.concatenate([c.parameters for c in model.eval_params.contexts])


def test_toy_dataset():
    model = GISTrainer(iterations=100).train(index_events(toy_events(), cutoff=1))
    dist = model.eval(["dog", "cat", "mouse"])
    assert abs(dist.sum() - 1.0) < 1e-9
    assert dist[model.get_index("A")] > dist[model.get_index("B")]
    assert model.get_best_outcome(model.eval(["text", "print"])) == "B"


def test_first_iteration():
    trainer = GISTrainer(iterations=1)
    model = trainer.train(index_events(toy_events(), cutoff=1))
    assert trainer.n_iter_ == 1
    assert trainer.state_ is TrainingState.EXHAUSTED
    # uniform model: log-likelihood of 3 events over 2 outcomes
    assert_allclose(trainer.log_likelihoods_, [3 * math.log(0.5)])

    # C = 4 (the largest event); model expects 0.5 per event containing
    # the predicate
    contexts = model.eval_params.contexts
    dog = contexts[model.pmap["dog"]]
    mouse = contexts[model.pmap["mouse"]]
    assert_allclose(dog.parameters, [math.log(2 / 1.0) / 4])
    assert_allclose(mouse.parameters,
                    [math.log(2 / 1.5) / 4, math.log(1 / 1.5) / 4])


def test_active_outcomes_without_smoothing():
    model = GISTrainer(iterations=5).train(index_events(toy_events(), cutoff=1))
    contexts = model.eval_params.contexts
    a, b = model.get_index("A"), model.get_index("B")
    assert contexts[model.pmap["dog"]].outcomes.tolist() == [a]
    assert contexts[model.pmap["text"]].outcomes.tolist() == [b]
    assert contexts[model.pmap["mouse"]].outcomes.tolist() == sorted([a, b])


def test_active_outcomes_with_smoothing():
    model = GISTrainer(iterations=5, smoothing=True).train(
        index_events(toy_events(), cutoff=1))
    for context in model.eval_params.contexts:
        assert context.outcomes.tolist() == [0, 1]
    assert np.isfinite(parameters_of(model)).all()


def test_smoothing_observation_for_unseen_pairs():
    trainer = GISTrainer(iterations=1, smoothing=True, smoothing_observation=0.1)
    model = trainer.train(index_events(toy_events(), cutoff=1))
    a, b = model.get_index("A"), model.get_index("B")
    dog = model.eval_params.contexts[model.pmap["dog"]]
    # dog is seen twice with A and never with B; the model expects 1.0 of
    # each under the uniform start
    weights = dog.parameters[[dog.index_of(a), dog.index_of(b)]]
    assert_allclose(weights, [math.log(2 / 1.0) / 4, math.log(0.1 / 1.0) / 4])


def test_gaussian_smoothing():
    trainer = GISTrainer(iterations=20, gaussian_smoothing=True, sigma=1.0)
    model = trainer.train(index_events(toy_events(), cutoff=1))
    assert np.isfinite(parameters_of(model)).all()
    dist = model.eval(["dog", "cat", "mouse"])
    assert abs(dist.sum() - 1.0) < 1e-9
    assert model.get_best_outcome(dist) == "A"


def test_loglikelihood_does_not_decrease_at_first():
    trainer = GISTrainer(iterations=5, ll_threshold=-np.inf)
    trainer.train(index_events(random_events(), cutoff=0))
    lls = trainer.log_likelihoods_
    assert len(lls) >= 2
    assert lls[1] >= lls[0]


def test_threads_give_the_same_model():
    events = index_events(random_events(seed=1), cutoff=0)
    single = GISTrainer(iterations=10, threads=1)
    parallel = GISTrainer(iterations=10, threads=4)
    model1 = single.train(events)
    model4 = parallel.train(events)
    assert single.n_iter_ == parallel.n_iter_
    assert_allclose(parameters_of(model1), parameters_of(model4), atol=1e-4)
    assert_allclose(single.log_likelihoods_, parallel.log_likelihoods_)


def test_more_threads_than_events():
    events = index_events(toy_events(), cutoff=1)
    model = GISTrainer(iterations=10, threads=8).train(events)
    reference = GISTrainer(iterations=10).train(events)
    assert_allclose(parameters_of(model), parameters_of(reference), atol=1e-10)


def test_unit_values_match_no_values():
    plain = random_events(seed=2)
    valued = [Event(ev.outcome, ev.context, [1.0] * len(ev.context))
              for ev in plain]
    model = GISTrainer(iterations=10).train(index_events(plain, cutoff=0))
    model_v = GISTrainer(iterations=10).train(index_events(valued, cutoff=0))
    assert_allclose(parameters_of(model), parameters_of(model_v), atol=1e-10)


class ScriptedGISTrainer(GISTrainer):
    """Runs the real updates but reports a given log-likelihood sequence."""

    def __init__(self, loglikelihoods, **kwargs):
        super().__init__(**kwargs)
        self.loglikelihoods = loglikelihoods

    def _next_iteration(self, state, executor, iteration, monitor):
        super()._next_iteration(state, executor, iteration, monitor)
        return self.loglikelihoods[iteration - 1]


def test_divergence_stops_with_a_valid_model():
    trainer = ScriptedGISTrainer([-10.0, -5.0, -7.0, -1.0], iterations=4)
    with pytest.warns(DivergenceWarning):
        model = trainer.train(index_events(toy_events(), cutoff=1))
    assert trainer.state_ is TrainingState.DIVERGED
    assert trainer.n_iter_ == 3
    dist = model.eval(["dog"])
    assert abs(dist.sum() - 1.0) < 1e-9


def test_stop_criterion():
    trainer = GISTrainer(iterations=50,
                         stop_criterion=LogLikelihoodThresholdBreached(np.inf))
    trainer.train(index_events(toy_events(), cutoff=1))
    assert trainer.n_iter_ == 2
    assert trainer.state_ is TrainingState.CONVERGED


class FailingPrior(UniformPrior):
    def log_prior(self, out_sums, context, values=None):
        raise RuntimeError("no prior today")


def test_worker_failure_aborts_training():
    trainer = GISTrainer(iterations=5, threads=2, prior=FailingPrior())
    with pytest.raises(TrainingError) as excinfo:
        trainer.train(index_events(toy_events(), cutoff=1))
    assert isinstance(excinfo.value.__cause__, RuntimeError)


class ExcludingPrior(UniformPrior):
    """Gives the second outcome zero probability."""

    def log_prior(self, out_sums, context, values=None):
        out_sums[:] = 0.0
        out_sums[1] = -np.inf


def test_zero_model_expectation_warns():
    trainer = GISTrainer(iterations=1, prior=ExcludingPrior())
    with pytest.warns(ModelExpectationWarning, match="mouse B"):
        trainer.train(index_events(toy_events(), cutoff=1))


def test_no_events_left():
    with pytest.raises(ValueError):
        GISTrainer(cutoff=10).train(toy_events())


def test_train_events():
    trainer = GISTrainer()
    model = trainer.train_events(toy_events(), iterations=10, cutoff=1)
    assert trainer.report_["Iterations"] == "10"
    assert model.get_best_outcome(model.eval(["pig"])) == "A"


@pytest.mark.parametrize("kwargs", [
    dict(threads=0),
    dict(iterations=0),
    dict(cutoff=-1),
    dict(smoothing=True, gaussian_smoothing=True),
    dict(smoothing=True, smoothing_observation=0.0),
    dict(gaussian_smoothing=True, sigma=0.0),
])
def test_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        GISTrainer(**kwargs)


def test_gaussian_update_converges():
    rng = np.random.default_rng(0)
    n = 1000
    observed = rng.uniform(0.5, 5.0, size=n)
    ratio = np.exp(rng.uniform(np.log(0.01), np.log(100.0), size=n))
    model = observed / ratio
    param = rng.uniform(-1.0, 1.0, size=n)
    constant = rng.uniform(1.0, 3.0, size=n)
    sigma = 2.0

    x, converged = gaussian_update(param, model, observed, constant, sigma)
    assert converged.all()
    lhs = model * np.exp(constant * x) + (param + x) / sigma
    assert_allclose(lhs, observed, rtol=1e-6)


def interrupted(futures):
    raise KeyboardInterrupt


def test_interruption_aborts_training(monkeypatch):
    monkeypatch.setattr("maxentml.gis.as_completed", interrupted)
    trainer = GISTrainer(iterations=5, threads=2)
    with pytest.raises(TrainingError, match="Interruption is not supported") as excinfo:
        trainer.train(index_events(toy_events(), cutoff=1))
    assert isinstance(excinfo.value.__cause__, KeyboardInterrupt)


class FavouritePrior(UniformPrior):
    """Adds one to the log prior of outcome "A"."""

    def set_labels(self, outcome_labels, pred_labels):
        super().set_labels(outcome_labels, pred_labels)
        self.favourite = list(outcome_labels).index("A")

    def log_prior(self, out_sums, context, values=None):
        super().log_prior(out_sums, context, values)
        out_sums[self.favourite] += 1.0


def test_trained_model_keeps_its_own_prior():
    trainer = GISTrainer(iterations=5, prior=FavouritePrior())
    first = trainer.train(index_events(toy_events(), cutoff=1))
    before = first.eval(["mouse"]).copy()

    others = [Event("C", ["mouse", "cheese"]),
              Event("B", ["print", "mouse"]),
              Event("A", ["dog", "mouse"])]
    second = trainer.train(index_events(others, cutoff=1))

    assert first.prior is not second.prior
    assert first.prior is not trainer.prior
    assert first.prior.num_outcomes == 2
    assert first.prior.favourite == 0
    assert second.prior.favourite == 2
    assert_allclose(first.eval(["mouse"]), before)
