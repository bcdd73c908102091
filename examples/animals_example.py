#!/usr/bin/env python

""" Example use of the maxentml package:

    Two kinds of documents, A about animals and B about printing, described
    by the words they contain.  Train a maximum entropy model with GIS, a
    perceptron and naive Bayes on the same events and compare the outcome
    distributions they assign to a new document.

"""
import maxentml


events = [maxentml.Event("A", ["dog", "cat", "mouse"]),
          maxentml.Event("B", ["text", "print", "mouse"]),
          maxentml.Event("A", ["dog", "pig", "cat", "mouse"]),
          maxentml.Event("B", ["print", "paper"]),
          maxentml.Event("A", ["cat", "pig"])]

indexed = maxentml.index_events(events, cutoff=1, verbose=True)

context = ["dog", "cat", "mouse"]

for algorithm in ("MAXENT", "PERCEPTRON", "NAIVEBAYES"):
    model, report = maxentml.train(indexed, algorithm, iterations=100,
                                   cutoff=1, verbose=True)
    dist = model.eval(context)
    print("\n%s: %s" % (report["Algorithm"], model.get_all_outcomes(dist)))
    print("Best outcome for %s is %s" % (context, model.get_best_outcome(dist)))

# The same data with four worker threads computing the GIS expectations
trainer = maxentml.GISTrainer(iterations=100, threads=4, gaussian_smoothing=True)
model = trainer.train(indexed)
print("\nGIS with Gaussian smoothing stopped after %d iterations (%s)"
      % (trainer.n_iter_, trainer.state_.value))
print(model.get_all_outcomes(model.eval(context)))
