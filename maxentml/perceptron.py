"""
Training of perceptron event models.

The perceptron visits every event in turn (each unique event as many times
as it was seen), predicts the highest scoring outcome with the current
weights and, on a mistake, moves the weights of the event's predicates
towards the correct outcome and away from the predicted one.  The returned
weights are optionally averaged over the iterations.
"""

from collections import deque

import numpy as np
from scipy.special import softmax

from .base import Algorithm, BaseTrainer
from .context import ContextTable, EvalParameters
from .model import EventModel, sum_context
from .monitoring import IterDeltaAccuracyUnderTolerance, TrainingState
from .utils import argmax, is_perfect_square


class PerceptronModel(EventModel):
    """A trained perceptron.

    eval() scales the outcome scores by the largest absolute score (if that
    exceeds 1) before normalizing them with a softmax.
    """

    def eval(self, context, values=None, out_sums=None):
        if out_sums is None:
            out_sums = np.zeros(self.num_outcomes)
        ids, values = self.index_context(context, values)
        return self.eval_ids(ids, values, out_sums, self.eval_params)

    @staticmethod
    def eval_ids(context, values, out_sums, params, normalize=True):
        """Score (and optionally normalize) a context of predicate ids.
        """
        sum_context(context, values, out_sums, params)
        if normalize:
            max_prior = max(1.0, float(np.max(np.abs(out_sums))))
            out_sums[:] = softmax(out_sums / max_prior)
        return out_sums


class PerceptronTrainer(BaseTrainer):
    """Trains a PerceptronModel.

    Parameters
    ----------
    iterations : int (default 100)

    cutoff : int (default 5)

    use_average : bool (default True)
        Return the average of the weights after each iteration instead of
        the final weights.

    use_skipped_averaging : bool (default False)
        Only average over the iterations before the 20th and those whose
        number is a perfect square.  The weights change less towards the
        end of training, and would otherwise drown out the early
        iterations.  Implies use_average.

    step_size_decrease : float (default 0)
        Multiply the step size by (1 - step_size_decrease) at the start of
        every iteration.  Must be in [0, 1].

    tolerance : float (default 1e-5)
        Stop once the training accuracy differs by less than this from
        each of the three previous iterations.

    For the remaining parameters see BaseTrainer.

    Attributes
    ----------
    n_iter_ : int

    accuracies_ : list of float
        Training accuracy after each iteration.

    training_accuracy_ : float
        Accuracy of the final (non-averaged) weights on the training set.

    state_ : TrainingState
    """

    algorithm = Algorithm.PERCEPTRON
    sort_and_merge = False

    def __init__(self, *, iterations=100, cutoff=5, use_average=True,
                 use_skipped_averaging=False, step_size_decrease=0.0,
                 tolerance=1e-5, monitor=None, stop_criterion=None, verbose=0):
        super().__init__(iterations=iterations, cutoff=cutoff, monitor=monitor,
                         stop_criterion=stop_criterion, verbose=verbose)
        if tolerance < 0:
            raise ValueError("tolerance must be a positive number but is %s!"
                             % tolerance)
        if not 0 <= step_size_decrease <= 1:
            raise ValueError("step_size_decrease must be between 0 and 1 but is %s!"
                             % step_size_decrease)
        self.use_average = use_average or use_skipped_averaging
        self.use_skipped_averaging = use_skipped_averaging
        self.step_size_decrease = step_size_decrease
        self.tolerance = tolerance

    def _train(self, events, iterations):
        if self.verbose:
            print("Computing model parameters...")
        params = self._find_parameters(events, iterations)
        if self.verbose:
            print("...done.")
        return PerceptronModel(params.freeze(), events.pred_labels,
                               events.outcome_labels)

    def _include_in_average(self, iteration):
        if not self.use_average:
            return False
        if self.use_skipped_averaging:
            return iteration < 20 or is_perfect_square(iteration)
        return True

    def _find_parameters(self, events, iterations):
        if self.verbose:
            print("Performing %d iterations." % iterations)
        monitor = self._get_monitor()
        stop_criterion = self.stop_criterion
        if stop_criterion is None:
            stop_criterion = IterDeltaAccuracyUnderTolerance(self.tolerance)

        num_outcomes = events.num_outcomes
        params = ContextTable.dense(events.num_preds, num_outcomes)
        eval_params = EvalParameters(params.contexts, num_outcomes)
        summed = params.zeros_like()
        num_times_summed = 0

        # The three most recent training accuracies
        prev_accuracies = deque(maxlen=3)

        self.n_iter_ = 0
        self.accuracies_ = []
        self.state_ = TrainingState.EXHAUSTED

        step_size = 1.0
        for i in range(1, iterations + 1):
            step_size *= 1 - self.step_size_decrease

            num_correct = self._iterate(events, params, eval_params, step_size)
            self.n_iter_ = i

            accuracy = num_correct / events.num_events
            self.accuracies_.append(accuracy)
            if i < 10 or i % 10 == 0:
                monitor.finished_iteration(i, num_correct, events.num_events,
                                           "accuracy", accuracy)

            if self._include_in_average(i):
                num_times_summed += 1
                summed.parameters += params.parameters

            if len(prev_accuracies) == 3 and stop_criterion(
                    *[prev - accuracy for prev in prev_accuracies]):
                monitor.finished_training(iterations, stop_criterion)
                self.state_ = TrainingState.CONVERGED
                break
            prev_accuracies.append(accuracy)

        if not monitor.is_training_finished:
            monitor.finished_training(iterations)
        monitor.display()

        self.training_accuracy_ = self._training_stats(events, eval_params)

        if self.use_average:
            summed.parameters /= num_times_summed
            return summed
        return params

    def _iterate(self, events, params, eval_params, step_size):
        """One pass over the training events.  Returns the number of
        correct predictions.
        """
        num_correct = 0
        weights = params.contexts
        for ei, context in enumerate(events.contexts):
            target = events.outcome_list[ei]
            values = events.event_values(ei)
            for _ in range(events.num_times_events_seen[ei]):
                scores = PerceptronModel.eval_ids(
                    context, values, np.zeros(events.num_outcomes), eval_params,
                    normalize=False)
                predicted = argmax(scores)
                if predicted != target:
                    for ci, pi in enumerate(context):
                        value = 1.0 if values is None else values[ci]
                        weights[pi].update_parameter(target, step_size * value)
                        weights[pi].update_parameter(predicted, -step_size * value)
                else:
                    num_correct += 1
        return num_correct

    def _training_stats(self, events, eval_params):
        num_correct = 0
        for ei, context in enumerate(events.contexts):
            scores = PerceptronModel.eval_ids(
                context, events.event_values(ei), np.zeros(events.num_outcomes),
                eval_params, normalize=False)
            if argmax(scores) == events.outcome_list[ei]:
                num_correct += int(events.num_times_events_seen[ei])
        accuracy = num_correct / events.num_events
        if self.verbose:
            print("Stats: (%d/%d) %s" % (num_correct, events.num_events, accuracy))
        return accuracy
