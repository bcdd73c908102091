"""
Utility routines for the maxentml package.

License: BSD-style.
"""

import math

import numpy as np


__all__ = ["TrainingError",
           "DivergenceWarning",
           "ModelExpectationWarning",
           "argmax",
           "is_perfect_square",
           "partition_bounds",
           "correction_constant"]


class TrainingError(Exception):
    """Exception raised if a training run has to be aborted, e.g. because
    one of the parallel expectation tasks failed.
    """

    def __init__(self, message):
        self.message = message
        Exception.__init__(self)

    def __str__(self):
        return repr(self.message)


class DivergenceWarning(UserWarning):
    """Warning issued when the log-likelihood decreased between two
    iterations and training stopped early.
    """


class ModelExpectationWarning(RuntimeWarning):
    """Warning issued when the model expectation of an active
    (predicate, outcome) pair is zero.
    """


def argmax(x):
    """Index of the first maximum of x.
    """
    return int(np.argmax(x))


def is_perfect_square(n):
    """Return True if the non-negative integer n is a perfect square.
    """
    root = math.isqrt(n)
    return root * root == n


def partition_bounds(num_items, num_parts):
    """Split range(num_items) into num_parts contiguous chunks.

    Each chunk gets num_items // num_parts items; the first
    num_items % num_parts chunks get one extra item.

    Returns
    -------
    list of (start, length) tuples, one per chunk.
    """
    if num_parts < 1:
        raise ValueError("num_parts must be at least 1, got %d" % num_parts)
    task_size, left_over = divmod(num_items, num_parts)
    bounds = []
    for i in range(num_parts):
        if i < left_over:
            bounds.append((i * task_size + i, task_size + 1))
        else:
            bounds.append((i * task_size + left_over, task_size))
    return bounds


def correction_constant(contexts, values=None):
    """The maximum total feature mass over all events: the sum of the
    values of an event, or the number of its predicates if it carries no
    values.
    """
    constant = 0.0
    for ci, context in enumerate(contexts):
        if values is None or values[ci] is None:
            mass = len(context)
        else:
            mass = float(np.sum(values[ci]))
        if mass > constant:
            constant = mass
    return constant
