# ---------------------------------------------------------------------
# High‑level orchestration: from raw event sequences → networkx graphs.
# ---------------------------------------------------------------------
from __future__ import annotations
from collections.abc import Iterable, Sequence
import logging
import warnings

import networkx as nx
import numpy as np
import pandas as pd

from .aggregate import matrix_aggregate
from .config import ALPHA, COUNT_ONCE, DIRECTION, FIRST_AUTHOR_COUNT_ONCE, MEASURE, MIN_SIMILARITY, WINDOW_SIZE
from .errors import EmptyResultWarning, InvalidInputError
from .graph import filter_graph, graph_from_adjacency, participation_table, set_vertex_attributes
from .i_o import events_frame
from .metrics import row_similarities
from .sparse import LabeledMatrix, as_labeled_matrix, cast_sparse_matrix
from .ties import Direction, first_author_matrix, orient_ties, previous_authors_matrix

logger = logging.getLogger(__name__)


def _finish(graph: nx.Graph, kind: str) -> nx.Graph:
    if graph.number_of_nodes() == 0:
        warnings.warn(f"{kind} graph has no vertices", EmptyResultWarning, stacklevel=3)
    logger.info("%s graph complete: %d vertices, %d edges", kind, graph.number_of_nodes(), graph.number_of_edges())
    return graph


def _participation_meta(graph: nx.Graph, events: pd.DataFrame) -> pd.DataFrame:
    meta = participation_table(events["context"], events["unit"], labels=list(graph.nodes))
    return meta.rename(columns={"unit": "author"})


# --------------------------------------------------  feature similarity
def _feature_columns(mat: LabeledMatrix, selection) -> pd.DataFrame:
    if isinstance(selection, str):
        if selection != "all":
            raise InvalidInputError("features_as_vertex_meta", f"must be 'all' or column positions, got {selection!r}")
        positions = list(range(mat.shape[1]))
    else:
        positions = [int(k) for k in selection]
        if any(k < 0 or k >= mat.shape[1] for k in positions):
            raise InvalidInputError("features_as_vertex_meta", f"column positions must be in [0, {mat.shape[1]})")
    values = mat.matrix[:, positions].toarray() if positions else np.zeros((mat.shape[0], 0))
    return pd.DataFrame(values, columns=[f"Feature: {mat.columns[k]}" for k in positions])


def content_similarity_graph(
    m,
    vertex_grouping_vars,
    measure: str = MEASURE,
    features_as_vertex_meta: str | Sequence[int] | None = None,
    min_similarity: float | None = MIN_SIMILARITY,
    alpha: float = ALPHA,
) -> nx.Graph:
    """
    Similarity graph between vertices, from a documents × features matrix.

    Each unique combination of ``vertex_grouping_vars`` is a vertex; the
    feature rows of its documents are summed before similarities are
    computed.

    Args:
        m: documents × features matrix (LabeledMatrix, DataFrame, array or
           scipy sparse matrix), e.g. term or topic scores per message.
        vertex_grouping_vars: one value per document (e.g. author), or a
           mapping / DataFrame of several; stored as node attributes.
        measure: see metrics.Measure.
        features_as_vertex_meta: 'all' or 0-based column positions whose
           aggregated values are added as node attributes. They are named
           ``"Feature: <column label>"``; arrays and scipy matrices have
           their positions as column labels.
        min_similarity: edges with a lower weight are dropped.
        alpha: saturation base for 'conditional_probability'.

    Returns:
        nx.Graph (nx.DiGraph for asymmetric measures) with edge attributes
        ``weight`` and ``similarity`` and node attributes from the grouping
        vars plus ``n`` (documents) and ``values_sum``.
    """
    mat = as_labeled_matrix(m)
    agg = matrix_aggregate(mat, vertex_grouping_vars)
    logger.debug("Aggregated %d documents into %d vertices", mat.shape[0], agg.matrix.shape[0])

    graph = row_similarities(agg.matrix, measure, output="graph", alpha=alpha, min_similarity=min_similarity)
    nx.set_edge_attributes(graph, nx.get_edge_attributes(graph, "weight"), "similarity")

    meta = agg.vars.copy()
    meta["values_sum"] = agg.matrix.row_sums()
    if features_as_vertex_meta is not None:
        meta = pd.concat([meta, _feature_columns(agg.matrix, features_as_vertex_meta)], axis=1)
    return _finish(set_vertex_attributes(graph, meta), "Content similarity")


def author_coincidence_graph(
    context: Iterable,
    author: Iterable,
    value: Iterable | None = None,
    measure: str = "coincidence_count",
    min_similarity: float | None = MIN_SIMILARITY,
    alpha: float = ALPHA,
) -> nx.Graph:
    """
    Graph of authors who took part in the same contexts.

    With 'coincidence_count' the weight is the number of shared contexts;
    'overlap_jacard' divides that by the contexts of the target author
    (directed); 'cosine' also accounts for how much each author contributed
    per context, i.e. the summed ``value`` of their events (1 per event if
    not given).
    """
    events = events_frame(author, context, value=value, require=("context",))
    m = cast_sparse_matrix(events["unit"], events["context"], events["value"])
    graph = row_similarities(m, measure, output="graph", alpha=alpha, min_similarity=min_similarity)
    graph = set_vertex_attributes(graph, _participation_meta(graph, events))
    return _finish(graph, "Author coincidence")


# --------------------------------------------------  windowed ties
def _tie_graph(
    m: LabeledMatrix, direction: Direction, events: pd.DataFrame, min_similarity: float | None
) -> nx.Graph:
    m = orient_ties(m, direction)
    graph = graph_from_adjacency(m, directed=direction.directed)
    meta = _participation_meta(graph, events)
    graph = set_vertex_attributes(graph, meta)

    n_messages = dict(zip(graph.nodes, meta["n_messages"]))
    for source, _, attrs in graph.edges(data=True):
        attrs["average"] = attrs["weight"] / n_messages[source] if n_messages[source] else 0.0

    if min_similarity is not None:
        graph = filter_graph(graph, min_edge=min_similarity)
    return graph


def previous_authors_graph(
    context: Iterable,
    author: Iterable,
    order: Iterable,
    window_size: int = WINDOW_SIZE,
    direction: str = DIRECTION,
    count_once: bool = COUNT_ONCE,
    min_similarity: float | None = MIN_SIMILARITY,
) -> nx.Graph:
    """
    Graph of authors and the authors who acted up to ``window_size``
    positions before them in the same context.

    Args:
        context: conversation (thread, meeting, ...) per event.
        author: author per event.
        order: position of the event within its conversation.
        window_size: how many previous positions count as a tie.
        direction: 'directed.up' (author → previous authors),
            'directed.down' (previous authors → author) or 'undirected'.
        count_once: count a tie between two authors at most once per
            conversation, however often it occurs there.
        min_similarity: edges with a lower weight are dropped.

    Returns:
        nx.DiGraph (nx.Graph if undirected) with edge attributes ``weight``
        and ``average`` (weight per event of the source author) and node
        attributes ``author``, ``n_documents``, ``n_messages``.
    """
    direction = Direction.parse(direction)
    events = events_frame(author, context, order, require=("context", "order"))
    m = previous_authors_matrix(events["context"], events["unit"], events["order"], window_size, count_once)
    return _finish(_tie_graph(m, direction, events, min_similarity), "Previous authors")


def first_author_graph(
    context: Iterable,
    author: Iterable,
    order: Iterable,
    direction: str = DIRECTION,
    count_once: bool = FIRST_AUTHOR_COUNT_ONCE,
    min_similarity: float | None = MIN_SIMILARITY,
) -> nx.Graph:
    """
    Graph of ties between every author in a conversation and the author
    who opened it (the author at order 1).

    With ``count_once`` (default) the weight is the number of conversations
    opened by the target in which the source took part; without it, the
    number of the source's messages in such conversations.
    """
    direction = Direction.parse(direction)
    events = events_frame(author, context, order, require=("context", "order"))
    m = first_author_matrix(events["context"], events["unit"], events["order"], count_once)
    return _finish(_tie_graph(m, direction, events, min_similarity), "First author")
