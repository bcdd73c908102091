"""
Training events and the compact event index consumed by the trainers.

An Event is one labeled training example: an outcome, the labels of the
predicates active in its context and, optionally, one real value per
predicate.  The trainers never see events directly; they work on an
IndexedEvents instance, in which labels are replaced by dense integer ids
and identical events are merged and counted.
"""

import numpy as np
import toolz as tz


class Event(object):
    """A single training event.

    Parameters
    ----------
    outcome : str
        The outcome label.

    context : sequence of str
        Labels of the predicates active in this event.

    values : sequence of float or None
        Real values parallel to `context`.  If None, each predicate has an
        implicit value of 1.0.
    """

    def __init__(self, outcome, context, values=None):
        self.outcome = outcome
        self.context = list(context)
        if values is not None:
            values = [float(v) for v in values]
            if len(values) != len(self.context):
                raise ValueError("values must be parallel to the context: "
                                 "got %d values for %d predicates"
                                 % (len(values), len(self.context)))
        self.values = values

    def __eq__(self, other):
        if not isinstance(other, Event):
            return NotImplemented
        return (self.outcome == other.outcome
                and self.context == other.context
                and self.values == other.values)

    def __repr__(self):
        if self.values is None:
            return "%s [%s]" % (self.outcome, " ".join(self.context))
        return "%s [%s]" % (self.outcome, " ".join(
            "%s=%s" % (p, v) for p, v in zip(self.context, self.values)))


class IndexedEvents(object):
    """The compacted event index: parallel arrays over unique events.

    Parameters
    ----------
    contexts : sequence of int arrays
        contexts[i] holds the predicate ids of unique event i.

    outcome_list : sequence of int
        The outcome id of each unique event.

    num_times_events_seen : sequence of int
        The multiplicity of each unique event.

    pred_labels : sequence of str
        Predicate labels, indexed by predicate id.

    outcome_labels : sequence of str
        Outcome labels, indexed by outcome id.

    values : None or sequence of (float array or None)
        Real values parallel to each context.  None (for the whole index or
        for a single event) means every predicate has value 1.0.

    pred_counts : sequence of int or None
        Number of times each predicate occurred before merging.  Computed
        from the index if None.
    """

    def __init__(self, contexts, outcome_list, num_times_events_seen,
                 pred_labels, outcome_labels, values=None, pred_counts=None):
        self.contexts = [np.asarray(c, dtype=np.intp) for c in contexts]
        self.outcome_list = np.asarray(outcome_list, dtype=np.intp)
        self.num_times_events_seen = np.asarray(num_times_events_seen,
                                                dtype=np.int64)
        self.pred_labels = list(pred_labels)
        self.outcome_labels = list(outcome_labels)
        if values is not None:
            values = [None if v is None else np.asarray(v, dtype=np.float64)
                      for v in values]
        self.values = values

        n = len(self.contexts)
        if len(self.outcome_list) != n or len(self.num_times_events_seen) != n:
            raise ValueError("contexts, outcome_list and num_times_events_seen "
                             "must all have one entry per unique event")
        if self.values is not None:
            if len(self.values) != n:
                raise ValueError("values must have one entry per unique event")
            for context, v in zip(self.contexts, self.values):
                if v is not None and v.shape != context.shape:
                    raise ValueError("values must be parallel to the contexts")
        num_preds = len(self.pred_labels)
        for context in self.contexts:
            if len(context) and (context.min() < 0 or context.max() >= num_preds):
                raise ValueError("predicate id out of range")
        if n and (self.outcome_list.min() < 0
                  or self.outcome_list.max() >= len(self.outcome_labels)):
            raise ValueError("outcome id out of range")

        if pred_counts is None:
            pred_counts = np.zeros(num_preds, dtype=np.int64)
            for context, times in zip(self.contexts, self.num_times_events_seen):
                np.add.at(pred_counts, context, times)
        self.pred_counts = np.asarray(pred_counts, dtype=np.int64)

    @property
    def num_unique_events(self):
        return len(self.contexts)

    @property
    def num_events(self):
        """The number of events before merging."""
        return int(self.num_times_events_seen.sum())

    @property
    def num_preds(self):
        return len(self.pred_labels)

    @property
    def num_outcomes(self):
        return len(self.outcome_labels)

    def event_values(self, i):
        """The values of unique event i, or None if it has none.
        """
        if self.values is None:
            return None
        return self.values[i]


def index_events(events, cutoff=0, sort_and_merge=True, verbose=0):
    """Build an IndexedEvents instance from a stream of events in one pass
    over the data.

    Predicates occurring fewer than `cutoff` times are dropped; events left
    without any predicate are dropped too.  Predicate ids follow the sorted
    order of the retained labels and outcome ids the order in which outcomes
    are first seen.

    Parameters
    ----------
    events : iterable of Event

    cutoff : int
        Minimum number of occurrences for a predicate to be kept.

    sort_and_merge : bool
        If True, identical events (same outcome, predicates and values) are
        merged into one unique event whose multiplicity counts them.  If
        False, every event is kept with multiplicity 1, in stream order.

    verbose : int

    Returns
    -------
    IndexedEvents
    """
    events = list(events)
    if verbose:
        print("Indexing events with OnePass using cutoff of %d" % cutoff)
        print("\tComputing event counts...  done. %d events" % len(events))

    counter = tz.frequencies(tz.concat(ev.context for ev in events))
    pred_labels = sorted(p for p, count in counter.items() if count >= cutoff)
    pred_index = {p: i for i, p in enumerate(pred_labels)}
    pred_counts = [counter[p] for p in pred_labels]

    outcome_index = {}
    indexed = []
    has_values = False
    for ev in events:
        kept = [(pred_index[p], j) for j, p in enumerate(ev.context)
                if p in pred_index]
        if not kept:
            if verbose:
                print("Dropped event %s" % (ev,))
            continue
        oid = outcome_index.setdefault(ev.outcome, len(outcome_index))
        pids = tuple(pi for pi, _ in kept)
        if ev.values is None:
            vals = None
        else:
            has_values = True
            vals = tuple(ev.values[j] for _, j in kept)
        indexed.append((oid, pids, vals))

    if sort_and_merge:
        if verbose:
            print("Sorting and merging events... ")
        counts = tz.frequencies(indexed)
        unique = sorted(counts, key=lambda e: (e[0], e[1], e[2] or ()))
        times = [counts[e] for e in unique]
    else:
        if verbose:
            print("Collecting events... ")
        unique = indexed
        times = [1] * len(indexed)

    if verbose:
        print("Done indexing.  %d unique events." % len(unique))

    outcome_labels = sorted(outcome_index, key=outcome_index.get)
    values = None
    if has_values:
        values = [None if vals is None else list(vals) for _, _, vals in unique]
    return IndexedEvents([list(pids) for _, pids, _ in unique],
                         [oid for oid, _, _ in unique],
                         times,
                         pred_labels,
                         outcome_labels,
                         values=values,
                         pred_counts=pred_counts)
