import networkx as nx
import numpy as np
import pandas as pd
import pytest

from tiegraph.errors import InvalidInputError
from tiegraph.graph import (
    edge_frame,
    filter_graph,
    graph_from_adjacency,
    participation_table,
    set_vertex_attributes,
    vertex_frame,
)
from tiegraph.sparse import as_labeled_matrix


def _adjacency():
    frame = pd.DataFrame(
        [[3.0, 1.0, 0.0, 0.0], [2.0, 1.0, 0.5, 0.0], [0.0, 0.5, 0.0, 0.0], [0.0, 0.0, 0.0, 0.0]],
        index=["a", "b", "c", "d"],
        columns=["a", "b", "c", "d"],
    )
    return as_labeled_matrix(frame)


def test_directed_edges_skip_diagonal():
    g = graph_from_adjacency(_adjacency(), directed=True)
    assert isinstance(g, nx.DiGraph)
    assert list(g.nodes) == ["a", "b", "c", "d"]
    assert list(g.edges(data="weight")) == [
        ("a", "b", 1.0),
        ("b", "a", 2.0),
        ("b", "c", 0.5),
        ("c", "b", 0.5),
    ]
    assert nx.number_of_selfloops(g) == 0


def test_undirected_reads_upper_triangle():
    g = graph_from_adjacency(_adjacency(), directed=False)
    assert not g.is_directed()
    assert nx.get_edge_attributes(g, "weight") == {("a", "b"): 1.0, ("b", "c"): 0.5}
    assert g["c"]["b"]["weight"] == 0.5
    assert not g.has_edge("a", "d")


def test_metadata_is_attached_by_position():
    meta = pd.DataFrame({"size": [1, 2, 3, 4]}, index=[9, 8, 7, 6])
    g = graph_from_adjacency(_adjacency(), directed=True, meta=meta)
    assert g.nodes["c"] == {"size": 3}
    frame = vertex_frame(g)
    assert frame.columns.tolist() == ["name", "size"]

    with pytest.raises(InvalidInputError, match="meta"):
        graph_from_adjacency(_adjacency(), directed=True, meta=meta.iloc[:2])


def test_set_vertex_attributes_merges():
    g = graph_from_adjacency(_adjacency(), directed=True, meta=pd.DataFrame({"size": [1, 2, 3, 4]}))
    set_vertex_attributes(g, pd.DataFrame({"group": ["x", "x", "y", "y"]}))
    assert g.nodes["d"] == {"size": 4, "group": "y"}


def test_non_square_matrix_raises():
    with pytest.raises(InvalidInputError, match="adj"):
        graph_from_adjacency(as_labeled_matrix(np.ones((2, 3))), directed=True)


def test_edge_frame():
    g = graph_from_adjacency(_adjacency(), directed=True)
    nx.set_edge_attributes(g, {(u, v): w * 2 for u, v, w in g.edges(data="weight")}, "double")
    edges = edge_frame(g)
    assert set(edges.columns) == {"source", "target", "weight", "double"}
    assert edges["double"].tolist() == [2.0, 4.0, 1.0, 1.0]

    empty = edge_frame(nx.DiGraph())
    assert len(empty) == 0
    assert len(vertex_frame(nx.DiGraph())) == 0


def test_participation_table():
    table = participation_table([1, 1, 2, 2, 2], ["x", "y", "x", "x", "z"])
    assert table["unit"].tolist() == ["x", "y", "z"]
    assert table["n_documents"].tolist() == [2, 1, 1]
    assert table["n_messages"].tolist() == [3, 1, 1]

    aligned = participation_table([1, 1], ["x", "y"], labels=["y", "w", "x"])
    assert aligned["n_messages"].tolist() == [1, 0, 1]


def test_filter_edges_and_degree():
    g = graph_from_adjacency(_adjacency(), directed=True)
    strong = filter_graph(g, min_edge=1.0)
    assert nx.get_edge_attributes(strong, "weight") == {("a", "b"): 1.0, ("b", "a"): 2.0}
    assert g.number_of_edges() == 4

    connected = filter_graph(g, min_edge=1.0, min_degree=1)
    assert list(connected.nodes) == ["a", "b"]

    weak = filter_graph(g, max_edge=0.5)
    assert weak.number_of_edges() == 2


def test_filter_vertices():
    g = graph_from_adjacency(_adjacency(), directed=True)
    dropped = filter_graph(g, delete_vertices=[False, True, False, False])
    assert list(dropped.nodes) == ["a", "c", "d"]
    assert dropped.number_of_edges() == 0

    selected = filter_graph(g, select_vertices=[0, 1])
    assert list(selected.nodes) == ["a", "b"]
    assert selected.number_of_edges() == 2

    with pytest.raises(InvalidInputError, match="delete_vertices"):
        filter_graph(g, delete_vertices=[True])
