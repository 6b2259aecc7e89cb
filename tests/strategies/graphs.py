# tests/strategies/graphs.py
"""Strategies for graph snapshots.

Node ids are n0..n{k-1}; edge ids are e0..e{m-1}. Edges may repeat a
node pair and may be self-loops unless the strategy says otherwise.
"""

from __future__ import annotations

from hypothesis import strategies as st

from etlguard.contracts.graph import GraphState
from tests.fixtures.factories import make_edge, make_graph, make_node

SOURCE_TYPES: tuple[str, ...] = ("excel", "database", "csv", "delimited", "xml", "json", "tMysqlInput")

# Built-in catalogue types plus one unclassified type
CATALOGUE_TYPES: tuple[str, ...] = (
    "csv",
    "excel",
    "tSortRow",
    "tFilterRow",
    "tAggregateRow",
    "tMap",
    "tJoin",
    "tUnite",
    "tMatchGroup",
    "tReplicate",
    "tFileOutputDelimited",
    "output",
    "custom",
)


@st.composite
def graph_states(
    draw: st.DrawFn,
    *,
    min_nodes: int = 0,
    max_nodes: int = 8,
    max_edges: int = 12,
    node_types: tuple[str, ...] = CATALOGUE_TYPES,
) -> GraphState:
    count = draw(st.integers(min_value=min_nodes, max_value=max_nodes))
    types = draw(st.lists(st.sampled_from(node_types), min_size=count, max_size=count))
    nodes = [make_node(f"n{i}", node_type) for i, node_type in enumerate(types)]
    if count == 0 or max_edges == 0:
        return make_graph(nodes)

    index = st.integers(min_value=0, max_value=count - 1)
    pairs = draw(st.lists(st.tuples(index, index), max_size=max_edges))
    edges = [make_edge(f"n{s}", f"n{t}", edge_id=f"e{i}") for i, (s, t) in enumerate(pairs)]
    return make_graph(nodes, edges)


@st.composite
def acyclic_graph_states(
    draw: st.DrawFn,
    *,
    max_nodes: int = 8,
    max_edges: int = 12,
    node_types: tuple[str, ...] = CATALOGUE_TYPES,
) -> GraphState:
    """Graphs whose edges only run from lower to higher node index."""
    count = draw(st.integers(min_value=2, max_value=max_nodes))
    types = draw(st.lists(st.sampled_from(node_types), min_size=count, max_size=count))
    nodes = [make_node(f"n{i}", node_type) for i, node_type in enumerate(types)]
    pairs = draw(
        st.lists(
            st.integers(min_value=0, max_value=count - 2).flatmap(
                lambda s: st.tuples(st.just(s), st.integers(min_value=s + 1, max_value=count - 1))
            ),
            max_size=max_edges,
        )
    )
    edges = [make_edge(f"n{s}", f"n{t}", edge_id=f"e{i}") for i, (s, t) in enumerate(pairs)]
    return make_graph(nodes, edges)


@st.composite
def permuted(draw: st.DrawFn, graph: GraphState) -> GraphState:
    """Same snapshot with nodes and edges in another order."""
    nodes = draw(st.permutations(list(graph.nodes)))
    edges = draw(st.permutations(list(graph.edges)))
    return make_graph(nodes, edges)
