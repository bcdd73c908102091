"""
Training of maximum entropy models with Generalized Iterative Scaling.

Each iteration compares, for every active (predicate, outcome) pair, the
observed feature count in the training data with the count expected under
the current model, and moves the weight by

    delta = (log(observed) - log(expected)) / C

where the correction constant C is the largest total feature mass of any
training event.  Model expectations are computed in parallel: the unique
events are split into one contiguous chunk per worker thread, each worker
accumulating into its own table, and the tables are summed once all
workers have finished.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
import copy
import warnings

import numpy as np
import scipy.sparse

from .base import Algorithm, BaseTrainer
from .context import ContextTable, EvalParameters
from .events import index_events
from .model import GISModel, eval_context
from .monitoring import LogLikelihoodThresholdBreached, TrainingState
from .prior import UniformPrior
from .utils import (TrainingError, DivergenceWarning, ModelExpectationWarning,
                    argmax, correction_constant, partition_bounds)


def gaussian_update(param, model, observed, correction_constant, sigma,
                    max_iter=50, tol=1e-6):
    """Solve, elementwise by Newton's method, for the parameter change x in

        model * exp(correction_constant * x) + (param + x) / sigma = observed

    starting from x = 0.  Each element stops as soon as its Newton step is
    smaller than `tol`, or when the derivative vanishes, or after
    `max_iter` steps.

    Returns
    -------
    (x, converged) : arrays
        The parameter changes and a boolean mask of the elements whose
        step fell below `tol`.
    """
    param, model, observed = np.broadcast_arrays(
        np.asarray(param, dtype=np.float64),
        np.asarray(model, dtype=np.float64),
        np.asarray(observed, dtype=np.float64))
    x0 = np.zeros(param.shape)
    active = np.ones(param.shape, dtype=bool)
    converged = np.zeros(param.shape, dtype=bool)
    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        for _ in range(max_iter):
            if not active.any():
                break
            tmp = model * np.exp(correction_constant * x0)
            f = tmp + (param + x0) / sigma - observed
            fp = tmp * correction_constant + 1.0 / sigma
            active &= fp != 0
            x = np.where(active, x0 - f / fp, x0)
            done = active & (np.abs(x - x0) < tol)
            x0 = x
            converged |= done
            active &= ~done
    return x0, converged


class GISState(object):
    """Everything a GIS run works on.  Owned by a single call to
    GISTrainer.train(); nothing in here is shared with the returned model.
    """

    def __init__(self, events, params, observed, model_expects,
                 correction_constant, prior):
        self.events = events
        self.params = params
        self.observed = observed
        self.model_expects = model_expects
        self.correction_constant = correction_constant
        self.prior = prior
        self.eval_params = EvalParameters(params.contexts, events.num_outcomes)


class ModelExpectationTask(object):
    """Computes the model expectations, log-likelihood and accuracy over
    the unique events start, ..., start + length - 1 into the scratch table
    of worker `thread_index`.
    """

    def __init__(self, state, thread_index, start, length):
        self.state = state
        self.thread_index = thread_index
        self.start = start
        self.length = length
        self.loglikelihood = 0.0
        self.num_events = 0
        self.num_correct = 0

    def __call__(self):
        state = self.state
        events = state.events
        expects = state.model_expects[self.thread_index].contexts
        model_distribution = np.zeros(events.num_outcomes)

        with np.errstate(divide="ignore"):
            for ei in range(self.start, self.start + self.length):
                context = events.contexts[ei]
                values = events.event_values(ei)
                times = int(events.num_times_events_seen[ei])
                state.prior.log_prior(model_distribution, context, values)
                eval_context(context, values, model_distribution,
                             state.eval_params)

                for j, pi in enumerate(context):
                    pred_expects = expects[pi]
                    if values is None:
                        pred_expects.parameters += (
                            model_distribution[pred_expects.outcomes] * times)
                    else:
                        pred_expects.parameters += (
                            model_distribution[pred_expects.outcomes]
                            * values[j] * times)

                outcome = events.outcome_list[ei]
                self.loglikelihood += float(np.log(model_distribution[outcome])) * times
                self.num_events += times
                if argmax(model_distribution) == outcome:
                    self.num_correct += times
        return self


class GISTrainer(BaseTrainer):
    """Trains a GISModel with Generalized Iterative Scaling.

    Parameters
    ----------
    iterations : int (default 100)

    cutoff : int (default 5)

    threads : int (default 1)
        Number of worker threads computing the model expectations.

    ll_threshold : float (default 1e-4)
        Training stops once the log-likelihood improves by less than this.

    smoothing : bool (default False)
        Simple smoothing: make every outcome active for every predicate and
        pretend each unseen pair was observed `smoothing_observation`
        times.

    smoothing_observation : float (default 0.1)

    gaussian_smoothing : bool (default False)
        Update the parameters under a Gaussian prior with width `sigma`.
        Cannot be combined with simple smoothing.

    sigma : float (default 2.0)

    prior : Prior or None
        Defaults to a UniformPrior.  Each run works on a copy, which the
        trained model keeps.

    For the remaining parameters see BaseTrainer.

    Attributes
    ----------
    n_iter_ : int
        Number of iterations performed by the last run.

    log_likelihoods_ : list of float
        Training log-likelihood after each iteration.

    accuracies_ : list of float
        Training accuracy after each iteration.

    state_ : TrainingState
        How the last run ended.
    """

    algorithm = Algorithm.MAXENT

    def __init__(self, *, iterations=100, cutoff=5, threads=1,
                 ll_threshold=1e-4, smoothing=False, smoothing_observation=0.1,
                 gaussian_smoothing=False, sigma=2.0, prior=None,
                 monitor=None, stop_criterion=None, verbose=0):
        super().__init__(iterations=iterations, cutoff=cutoff, monitor=monitor,
                         stop_criterion=stop_criterion, verbose=verbose)
        if threads < 1:
            raise ValueError("threads must be at least one or greater but is %d!"
                             % threads)
        if smoothing and gaussian_smoothing:
            raise ValueError("Cannot set both Gaussian smoothing and Simple smoothing")
        if smoothing and not smoothing_observation > 0:
            raise ValueError("smoothing_observation must be positive but is %s"
                             % smoothing_observation)
        if gaussian_smoothing and not sigma > 0:
            raise ValueError("sigma must be positive but is %s" % sigma)
        self.threads = threads
        self.ll_threshold = ll_threshold
        self.smoothing = smoothing
        self.smoothing_observation = smoothing_observation
        self.gaussian_smoothing = gaussian_smoothing
        self.sigma = sigma
        self.prior = prior

    def train_events(self, events, iterations=100, cutoff=0):
        """Train on raw events, indexing them in one pass with the given
        cutoff, for the given number of iterations.
        """
        indexed = index_events(events, cutoff=cutoff, verbose=self.verbose)
        return self.train(indexed, iterations=iterations)

    def _train(self, events, iterations):
        state = self._initialize(events)

        if self.threads == 1:
            if self.verbose:
                print("Computing model parameters ...")
        elif self.verbose:
            print("Computing model parameters in %d threads..." % self.threads)

        self._find_parameters(state, iterations)

        return GISModel(state.params.freeze(), events.pred_labels,
                        events.outcome_labels, prior=state.prior)

    def _initialize(self, events):
        prior = copy.deepcopy(self.prior) if self.prior is not None else UniformPrior()
        prior.set_labels(events.outcome_labels, events.pred_labels)

        constant = correction_constant(events.contexts, events.values)

        # Observed feature counts: times seen (times value) for every
        # (predicate, outcome) pair.  Dividing by the number of events is
        # unnecessary since it cancels in the update.
        rows, cols, data = [], [], []
        for ei, context in enumerate(events.contexts):
            times = float(events.num_times_events_seen[ei])
            values = events.event_values(ei)
            rows.append(context)
            cols.append(np.full(len(context), events.outcome_list[ei]))
            if values is None:
                data.append(np.full(len(context), times))
            else:
                data.append(times * values)
        counts = scipy.sparse.coo_array(
            (np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))),
            shape=(events.num_preds, events.num_outcomes)).tocsr()
        counts.sum_duplicates()
        counts.sort_indices()

        if self.smoothing:
            dense = counts.toarray()
            params = ContextTable.dense(events.num_preds, events.num_outcomes)
            observed = np.where(dense > 0, dense, self.smoothing_observation)
            observed = observed.ravel()
        else:
            counts.data[counts.data <= 0] = 0.0
            counts.eliminate_zeros()
            params = ContextTable(counts.indptr, counts.indices)
            observed = counts.data

        return GISState(events,
                        params,
                        ContextTable(params.indptr, params.outcomes, observed),
                        [params.zeros_like() for _ in range(self.threads)],
                        constant,
                        prior)

    def _find_parameters(self, state, iterations):
        monitor = self._get_monitor()
        stop_criterion = self.stop_criterion
        if stop_criterion is None:
            stop_criterion = LogLikelihoodThresholdBreached(self.ll_threshold)

        self.n_iter_ = 0
        self.log_likelihoods_ = []
        self.accuracies_ = []
        self.state_ = TrainingState.EXHAUSTED

        if self.verbose:
            print("Performing %d iterations." % iterations)
        prev_ll = 0.0
        with ThreadPoolExecutor(max_workers=self.threads,
                                thread_name_prefix="ModelExpectationComputeTask") as executor:
            for i in range(1, iterations + 1):
                curr_ll = self._next_iteration(state, executor, i, monitor)
                self.n_iter_ = i
                if i > 1:
                    if prev_ll > curr_ll:
                        warnings.warn("Model Diverging: loglikelihood decreased",
                                      DivergenceWarning)
                        self.state_ = TrainingState.DIVERGED
                        break
                    if stop_criterion(curr_ll - prev_ll):
                        monitor.finished_training(iterations, stop_criterion)
                        self.state_ = TrainingState.CONVERGED
                        break
                prev_ll = curr_ll

        if not monitor.is_training_finished:
            monitor.finished_training(iterations)
        monitor.display()

    def _next_iteration(self, state, executor, iteration, monitor):
        """Compute one iteration of GIS and return the log-likelihood."""
        events = state.events
        tasks = [ModelExpectationTask(state, ti, start, length)
                 for ti, (start, length)
                 in enumerate(partition_bounds(events.num_unique_events,
                                               self.threads))]
        futures = [executor.submit(task) for task in tasks]
        try:
            for future in as_completed(futures):
                try:
                    future.result()
                except Exception as e:
                    for f in futures:
                        f.cancel()
                    raise TrainingError("Exception during training: %s" % e) from e
        except KeyboardInterrupt as e:
            for f in futures:
                f.cancel()
            raise TrainingError("Interruption is not supported!") from e

        loglikelihood = sum(task.loglikelihood for task in tasks)
        num_events = sum(task.num_events for task in tasks)
        num_correct = sum(task.num_correct for task in tasks)

        # Merge the per-worker expectations into the first table
        model = state.model_expects[0].parameters
        for other in state.model_expects[1:]:
            model += other.parameters

        observed = state.observed.parameters
        params = state.params.parameters
        if self.gaussian_smoothing:
            delta, _ = gaussian_update(params, model, observed,
                                       state.correction_constant, self.sigma)
            params += delta
        else:
            for idx in np.flatnonzero(model == 0):
                pi = state.params.predicate_of(idx)
                warnings.warn("Model expects == 0 for %s %s"
                              % (events.pred_labels[pi],
                                 events.outcome_labels[state.params.outcomes[idx]]),
                              ModelExpectationWarning)
            with np.errstate(divide="ignore", invalid="ignore"):
                params += ((np.log(observed) - np.log(model))
                           / state.correction_constant)

        for table in state.model_expects:
            table.reset()

        self.log_likelihoods_.append(loglikelihood)
        self.accuracies_.append(num_correct / num_events)
        monitor.finished_iteration(iteration, num_correct, num_events,
                                   "loglikelihood", loglikelihood)
        return loglikelihood
