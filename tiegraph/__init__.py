"""
tiegraph package
----------------

Build weighted social networks from communication events: who acted, in
which context (a thread, a meeting, a document) and, optionally, at which
position within that context.

Two ways to draw ties:

* feature similarity, where units are compared through the features or
  contexts they produced (cosine, correlation, conditional probability,
  coincidence count, overlap coefficient);
* windowed lookback, where a tie is drawn from an author to every author
  who acted up to ``window_size`` positions earlier in the same context.

Typical usage
-------------
>>> import tiegraph
>>> g = tiegraph.pipeline.previous_authors_graph(
...     context=[1, 1, 1, 1, 1, 1],
...     author=["Alice", "Bob", "Alice", "Bob", "Bob", "Alice"],
...     order=[1, 2, 3, 4, 5, 6],
...     window_size=1,
... )
>>> g["Alice"]["Bob"]["weight"]  # times Alice acted directly after Bob
2.0
>>> tiegraph.graph.edge_frame(g)  # source, target, weight, average
"""
from . import aggregate, config, errors, graph, i_o, metrics, pipeline, sparse, ties, transform_data
from .errors import EmptyResultWarning, InvalidInputError
from .metrics import Measure
from .sparse import LabeledMatrix
from .ties import Direction

__all__ = [
    "aggregate",
    "config",
    "errors",
    "graph",
    "i_o",
    "metrics",
    "pipeline",
    "sparse",
    "ties",
    "transform_data",
    "EmptyResultWarning",
    "InvalidInputError",
    "Measure",
    "LabeledMatrix",
    "Direction",
]
