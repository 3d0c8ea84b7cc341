# ---------------------------------------------------------------------
# Graph assembly: adjacency matrix + per-unit metadata → networkx graph.
# Rendering, layout and colours are left to the consumer.
# ---------------------------------------------------------------------
from __future__ import annotations
from collections.abc import Iterable, Sequence
import logging

import networkx as nx
import numpy as np
import pandas as pd
import scipy.sparse as sp

from .errors import InvalidInputError
from .sparse import LabeledMatrix, factorize

logger = logging.getLogger(__name__)


def _meta_records(meta: pd.DataFrame | None, n_vertices: int) -> list[dict]:
    if meta is None:
        return [{} for _ in range(n_vertices)]
    if len(meta) != n_vertices:
        raise InvalidInputError("meta", f"expected {n_vertices} rows (one per vertex), got {len(meta)}")
    return meta.reset_index(drop=True).to_dict("records")


def set_vertex_attributes(graph: nx.Graph, meta: pd.DataFrame) -> nx.Graph:
    """Merge the columns of ``meta`` into the node attributes, row k → k-th node."""
    records = _meta_records(meta, graph.number_of_nodes())
    nx.set_node_attributes(graph, dict(zip(graph.nodes, records)))
    return graph


def graph_from_adjacency(
    adj: LabeledMatrix, directed: bool, meta: pd.DataFrame | None = None
) -> nx.Graph:
    """
    Build a networkx graph from a square adjacency matrix.

    Every label becomes a node (carrying the matching row of ``meta``,
    which is aligned by position). Every non-zero off-diagonal entry becomes
    an edge row→column with a ``weight`` attribute; for undirected graphs
    only the upper triangle is read, so the matrix is expected to be
    symmetric.

    Returns:
        nx.DiGraph if ``directed`` else nx.Graph. Nodes keep label order,
        edges are added sorted by (row, column).
    """
    n_rows, n_cols = adj.shape
    if n_rows != n_cols:
        raise InvalidInputError("adj", f"adjacency matrix must be square, got {adj.shape}")

    graph = nx.DiGraph() if directed else nx.Graph()
    graph.add_nodes_from(zip(adj.rows, _meta_records(meta, n_rows)))

    m = adj.matrix if directed else sp.triu(adj.matrix, k=1)
    coo = sp.coo_matrix(m)
    keep = (coo.row != coo.col) & (coo.data != 0)
    rows, cols, data = coo.row[keep], coo.col[keep], coo.data[keep]
    order = np.lexsort((cols, rows))
    graph.add_weighted_edges_from(
        (adj.rows[i], adj.columns[j], float(w)) for i, j, w in zip(rows[order], cols[order], data[order])
    )

    logger.debug("Assembled graph with %d nodes and %d edges", graph.number_of_nodes(), graph.number_of_edges())
    return graph


def vertex_frame(graph: nx.Graph) -> pd.DataFrame:
    """One row per node: ``name`` plus its attributes."""
    rows = [{"name": name, **attrs} for name, attrs in graph.nodes(data=True)]
    return pd.DataFrame(rows, columns=None if rows else ["name"])


def edge_frame(graph: nx.Graph) -> pd.DataFrame:
    """One row per edge: ``source``, ``target``, ``weight`` and the other edge attributes."""
    return nx.to_pandas_edgelist(graph)


def participation_table(context: Iterable, unit: Iterable, labels: Sequence | None = None) -> pd.DataFrame:
    """
    Per-unit participation: distinct contexts (``n_documents``) and raw event
    count (``n_messages``).

    Rows follow ``labels`` if given (units that never occur get zeros),
    otherwise first appearance of each unit.
    """
    unit_codes, unit_labels = factorize(unit, "unit")
    context_codes, _ = factorize(context, "context")
    if len(context_codes) != len(unit_codes):
        raise InvalidInputError(
            "context", f"expected {len(unit_codes)} values (one per unit), got {len(context_codes)}"
        )

    n_messages = np.bincount(unit_codes, minlength=len(unit_labels))
    pairs = pd.DataFrame({"u": unit_codes, "c": context_codes}).drop_duplicates()
    n_documents = np.bincount(pairs["u"].to_numpy(), minlength=len(unit_labels))

    if labels is None:
        labels = unit_labels
    position = {label: i for i, label in enumerate(unit_labels)}
    idx = [position.get(label, -1) for label in labels]

    return pd.DataFrame(
        {
            "unit": pd.Series(list(labels), dtype=object),
            "n_documents": [int(n_documents[i]) if i >= 0 else 0 for i in idx],
            "n_messages": [int(n_messages[i]) if i >= 0 else 0 for i in idx],
        }
    )


def _selected_nodes(graph: nx.Graph, selection, name: str) -> list:
    nodes = list(graph.nodes)
    selection = list(selection)
    if selection and all(isinstance(s, (bool, np.bool_)) for s in selection):
        if len(selection) != len(nodes):
            raise InvalidInputError(name, f"boolean mask needs {len(nodes)} values, got {len(selection)}")
        return [node for node, flag in zip(nodes, selection) if flag]
    positions = {int(i) for i in selection}
    if any(i < 0 or i >= len(nodes) for i in positions):
        raise InvalidInputError(name, f"vertex positions must be in [0, {len(nodes)})")
    return [nodes[i] for i in sorted(positions)]


def filter_graph(
    graph: nx.Graph,
    min_edge: float | None = None,
    max_edge: float | None = None,
    delete_vertices=None,
    select_vertices=None,
    min_degree: int | None = None,
) -> nx.Graph:
    """
    Drop edges and nodes from a graph; returns a filtered copy.

    Args:
        min_edge: edges with a lower weight are deleted.
        max_edge: edges with a higher weight are deleted.
        delete_vertices: boolean mask or positions (in node order) of nodes
            to delete.
        select_vertices: like delete_vertices, but lists the nodes to keep.
        min_degree: nodes with fewer incident edges (after the steps above)
            are deleted. 1 removes isolates.
    """
    graph = graph.copy()
    if min_edge is not None:
        graph.remove_edges_from([(u, v) for u, v, w in graph.edges(data="weight") if w < min_edge])
    if max_edge is not None:
        graph.remove_edges_from([(u, v) for u, v, w in graph.edges(data="weight") if w > max_edge])

    if delete_vertices is not None:
        graph.remove_nodes_from(_selected_nodes(graph, delete_vertices, "delete_vertices"))
    if select_vertices is not None:
        keep = set(_selected_nodes(graph, select_vertices, "select_vertices"))
        graph.remove_nodes_from([node for node in list(graph.nodes) if node not in keep])
    if min_degree is not None:
        graph.remove_nodes_from([node for node, d in graph.degree() if d < min_degree])
    return graph
