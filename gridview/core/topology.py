"""
Topology Engine
===============

Structural queries over the network graph, used by the interaction
layer to highlight everything related to a selection.

ALLOWED:
- Incident connections and adjacent nodes
- Connected sections through closed (non-open) switching devices
- Component counts

NOT HERE:
- Power flow or any electrical calculation
- Geometry (positions live in the composer)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Set, Tuple
import networkx as nx

from ..contracts.base import ElementKind, ElementRef
from ..contracts.graph import ConnectionStatus, GraphSnapshot


@dataclass(frozen=True)
class TopologyMetrics:
    """Immutable structural summary of a snapshot."""
    node_count: int
    connection_count: int
    component_count: int
    energizable_section_count: int


class GridTopology:
    """
    Wraps a networkx MultiGraph built from one GraphSnapshot.

    Parallel connections between the same two nodes are kept as separate
    edges keyed by connection id. Connections with unresolvable endpoints
    or self-loops are left out, matching what the composer draws.
    """

    def __init__(self):
        self._graph = nx.MultiGraph()
        self._snapshot = GraphSnapshot()

    @classmethod
    def from_snapshot(cls, snapshot: GraphSnapshot) -> GridTopology:
        topology = cls()
        topology.build(snapshot)
        return topology

    def build(self, snapshot: GraphSnapshot) -> None:
        """Replace the internal graph."""
        graph = nx.MultiGraph()
        for node_id in snapshot.node_index():
            graph.add_node(node_id)
        resolved, _ = snapshot.resolve_connections()
        for rc in resolved:
            connection = rc.connection
            graph.add_edge(
                connection.source_node_id,
                connection.target_node_id,
                key=connection.connection_id,
                is_open=connection.status is ConnectionStatus.OPEN,
            )
        self._graph = graph
        self._snapshot = snapshot

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def incident_connections(self, node_id: str) -> Tuple[str, ...]:
        if node_id not in self._graph:
            return ()
        return tuple(sorted(key for _, _, key in self._graph.edges(node_id, keys=True)))

    def adjacent_nodes(self, node_id: str) -> Tuple[str, ...]:
        if node_id not in self._graph:
            return ()
        return tuple(sorted(self._graph.neighbors(node_id)))

    def endpoints(self, connection_id: str) -> Optional[Tuple[str, str]]:
        for source, target, key in self._graph.edges(keys=True):
            if key == connection_id:
                return source, target
        return None

    def connected_section(self, node_id: str) -> FrozenSet[str]:
        """
        Nodes reachable from `node_id` without crossing an open connection.
        """
        if node_id not in self._graph:
            return frozenset()
        closed = nx.MultiGraph()
        closed.add_nodes_from(self._graph.nodes)
        closed.add_edges_from(
            (u, v, k) for u, v, k, is_open in self._graph.edges(keys=True, data="is_open")
            if not is_open
        )
        return frozenset(nx.node_connected_component(closed, node_id))

    def section_connections(self, nodes: FrozenSet[str]) -> Tuple[str, ...]:
        """Closed connections with both endpoints inside `nodes`."""
        return tuple(sorted(
            k for u, v, k, is_open in self._graph.edges(keys=True, data="is_open")
            if not is_open and u in nodes and v in nodes
        ))

    def related_elements(self, element: ElementRef) -> FrozenSet[ElementRef]:
        """
        Elements to highlight alongside `element`.

        Node: its incident connections and their far ends.
        Connection: its two endpoints.
        Meter: the node it measures.
        """
        related: Set[ElementRef] = set()
        if element.kind is ElementKind.NODE:
            for connection_id in self.incident_connections(element.element_id):
                related.add(ElementRef(ElementKind.CONNECTION, connection_id))
            for node_id in self.adjacent_nodes(element.element_id):
                related.add(ElementRef(ElementKind.NODE, node_id))
        elif element.kind is ElementKind.CONNECTION:
            ends = self.endpoints(element.element_id)
            if ends is not None:
                related.update(ElementRef(ElementKind.NODE, node_id) for node_id in ends)
        elif element.kind is ElementKind.METER:
            meter = self._snapshot.meter(element.element_id)
            if meter is not None and meter.node_id in self._graph:
                related.add(ElementRef(ElementKind.NODE, meter.node_id))
        related.discard(element)
        return frozenset(related)

    def section_elements(self, node_id: str) -> FrozenSet[ElementRef]:
        """Every node and closed connection in the section containing `node_id`."""
        nodes = self.connected_section(node_id)
        refs: List[ElementRef] = [ElementRef(ElementKind.NODE, n) for n in nodes]
        refs.extend(ElementRef(ElementKind.CONNECTION, c) for c in self.section_connections(nodes))
        return frozenset(refs)

    def compute_metrics(self) -> TopologyMetrics:
        if not self._graph:
            return TopologyMetrics(0, 0, 0, 0)
        closed = nx.Graph()
        closed.add_nodes_from(self._graph.nodes)
        closed.add_edges_from(
            (u, v) for u, v, is_open in self._graph.edges(data="is_open") if not is_open
        )
        return TopologyMetrics(
            node_count=self._graph.number_of_nodes(),
            connection_count=self._graph.number_of_edges(),
            component_count=nx.number_connected_components(self._graph),
            energizable_section_count=nx.number_connected_components(closed),
        )
