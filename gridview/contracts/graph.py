"""
Network Graph Contracts

Immutable records for the electrical network as fetched from the
dashboard backend: nodes (buses, junctions, ...), typed connections
(lines, transformers, breakers, disconnectors) and metering points.

GUARANTEES:
===========
1. One typed enum per status/type axis; raw strings are parsed once, here
2. Parsing is tolerant: unknown values map to an explicit fallback member
3. A GraphSnapshot is replaced as a whole, never patched in place
4. Integrity problems are reported as Diagnostics, never silently fixed
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar
import re

from .base import (
    Diagnostic, DiagnosticKind, ElementKind, ElementRef, GraphIntegrityError, Point,
)


# =============================================================================
# ENUM PARSING
# =============================================================================

E = TypeVar("E", bound=Enum)

_SEPARATORS = re.compile(r"[\s_\-]+")


def _normalize(value: str) -> str:
    return _SEPARATORS.sub("", str(value).strip().lower())


def _parse_enum(enum_cls: Type[E], value: Any, aliases: Mapping[str, E], default: E) -> E:
    if isinstance(value, enum_cls):
        return value
    if value is None:
        return default
    key = _normalize(value)
    for member in enum_cls:
        if _normalize(member.value) == key:
            return member
    return aliases.get(key, default)


# =============================================================================
# TYPE AND STATUS ENUMS
# =============================================================================

class NodeType(Enum):
    BUS = "bus"
    JUNCTION = "junction"
    CONNECTION_POINT = "connection_point"
    SUBSTATION = "substation"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> NodeType:
        return _parse_enum(cls, value, {"busbar": cls.BUS, "point": cls.CONNECTION_POINT}, cls.OTHER)


class NodeStatus(Enum):
    ENERGIZED = "energized"
    DE_ENERGIZED = "de-energized"
    FAULT = "fault"
    MAINTENANCE = "maintenance"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> NodeStatus:
        return _parse_enum(cls, value, {"operational": cls.ENERGIZED, "live": cls.ENERGIZED}, cls.UNKNOWN)


class ConnectionType(Enum):
    LINE = "line"
    TRANSFORMER = "transformer"
    CIRCUIT_BREAKER = "circuit breaker"
    DISCONNECTOR = "disconnector"

    @classmethod
    def parse(cls, value: Any) -> ConnectionType:
        # Unknown connection types are drawn as plain lines
        return _parse_enum(
            cls, value,
            {"breaker": cls.CIRCUIT_BREAKER, "cb": cls.CIRCUIT_BREAKER, "isolator": cls.DISCONNECTOR},
            cls.LINE,
        )


class ConnectionStatus(Enum):
    CLOSED = "closed"
    OPEN = "open"
    FAULT = "fault"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> ConnectionStatus:
        return _parse_enum(cls, value, {"operational": cls.CLOSED}, cls.UNKNOWN)


class MeterType(Enum):
    POWER = "power"
    CURRENT = "current"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> MeterType:
        return _parse_enum(cls, value, {}, cls.OTHER)


class MeterStatus(Enum):
    OPERATIONAL = "operational"
    OFFLINE = "offline"
    FAULT = "fault"
    MAINTENANCE = "maintenance"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> MeterStatus:
        return _parse_enum(cls, value, {"online": cls.OPERATIONAL}, cls.UNKNOWN)


class MeterDirection(Enum):
    IN = "in"
    OUT = "out"

    @classmethod
    def parse(cls, value: Any) -> MeterDirection:
        return _parse_enum(cls, value, {"incoming": cls.IN, "outgoing": cls.OUT}, cls.IN)


class Orientation(Enum):
    """Local axis of a bus bar."""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @classmethod
    def parse(cls, value: Any) -> Orientation:
        return _parse_enum(cls, value, {"h": cls.HORIZONTAL, "v": cls.VERTICAL}, cls.HORIZONTAL)


# =============================================================================
# RECORD DECODING HELPERS
# =============================================================================

def _pick(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


def _require(record: Mapping[str, Any], *keys: str) -> Any:
    value = _pick(record, *keys)
    if value is None:
        raise ValueError(f"missing required field {keys[0]!r}")
    return value


def _position(record: Mapping[str, Any]) -> Point:
    raw = record.get("position")
    if isinstance(raw, Mapping):
        return Point(float(raw["x"]), float(raw["y"]))
    if isinstance(raw, (list, tuple)) and len(raw) == 2:
        return Point(float(raw[0]), float(raw[1]))
    return Point(float(_require(record, "x")), float(_require(record, "y")))


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


# =============================================================================
# GRAPH RECORDS
# =============================================================================

@dataclass(frozen=True)
class NetworkNode:
    """A graph vertex: bus, junction, connection point or substation."""
    node_id: str
    type: NodeType
    position: Point
    status: NodeStatus
    label: Optional[str] = None
    voltage_level: Optional[str] = None
    region: Optional[str] = None
    orientation: Orientation = Orientation.HORIZONTAL
    load: Optional[float] = None

    @property
    def ref(self) -> ElementRef:
        return ElementRef(ElementKind.NODE, self.node_id)

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> NetworkNode:
        return cls(
            node_id=str(_require(record, "nodeId", "node_id")),
            type=NodeType.parse(record.get("type")),
            position=_position(record),
            status=NodeStatus.parse(record.get("status")),
            label=_optional_str(record.get("label")),
            voltage_level=_optional_str(_pick(record, "voltageLevel", "voltage_level")),
            region=_optional_str(record.get("region")),
            orientation=Orientation.parse(record.get("orientation")),
            load=_optional_float(record.get("load")),
        )


@dataclass(frozen=True)
class NetworkConnection:
    """A graph edge between two nodes."""
    connection_id: str
    source_node_id: str
    target_node_id: str
    type: ConnectionType
    status: ConnectionStatus
    equipment_id: Optional[str] = None
    region: Optional[str] = None
    load: Optional[float] = None

    @property
    def ref(self) -> ElementRef:
        return ElementRef(ElementKind.CONNECTION, self.connection_id)

    @property
    def is_self_loop(self) -> bool:
        return self.source_node_id == self.target_node_id

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> NetworkConnection:
        return cls(
            connection_id=str(_require(record, "id", "connection_id")),
            source_node_id=str(_require(record, "sourceNodeId", "source_node_id")),
            target_node_id=str(_require(record, "targetNodeId", "target_node_id")),
            type=ConnectionType.parse(record.get("type")),
            status=ConnectionStatus.parse(record.get("status")),
            equipment_id=_optional_str(_pick(record, "equipmentId", "equipment_id")),
            region=_optional_str(record.get("region")),
            load=_optional_float(record.get("load")),
        )


@dataclass(frozen=True)
class NetworkMeter:
    """A metering point attached to a node (and optionally a connection)."""
    meter_id: str
    node_id: str
    position: Point
    direction: MeterDirection
    type: MeterType
    status: MeterStatus
    name: str = ""
    unit: str = ""
    value: Optional[float] = None
    connection_id: Optional[str] = None
    region: Optional[str] = None

    @property
    def ref(self) -> ElementRef:
        return ElementRef(ElementKind.METER, self.meter_id)

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> NetworkMeter:
        return cls(
            meter_id=str(_require(record, "meterId", "meter_id", "id")),
            node_id=str(_require(record, "nodeId", "node_id")),
            position=_position(record),
            direction=MeterDirection.parse(record.get("direction")),
            type=MeterType.parse(record.get("type")),
            status=MeterStatus.parse(record.get("status")),
            name=str(record.get("name") or ""),
            unit=str(record.get("unit") or ""),
            value=_optional_float(record.get("value")),
            connection_id=_optional_str(_pick(record, "connectionId", "connection_id")),
            region=_optional_str(record.get("region")),
        )


@dataclass(frozen=True)
class ResolvedConnection:
    """
    A connection joined against the node set.
    Derived at composition time; never cached across snapshots.
    """
    connection: NetworkConnection
    source: Point
    target: Point

    @property
    def midpoint(self) -> Point:
        return Point((self.source.x + self.target.x) / 2, (self.source.y + self.target.y) / 2)


@dataclass(frozen=True)
class StatusUpdate:
    """One entry of the optional live status/value feed."""
    element: ElementRef
    status: Optional[str] = None
    value: Optional[float] = None

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> StatusUpdate:
        kind = ElementKind(str(_require(record, "kind", "elementKind")).lower())
        return cls(
            element=ElementRef(kind, str(_require(record, "id", "elementId"))),
            status=_optional_str(record.get("status")),
            value=_optional_float(record.get("value")),
        )


# =============================================================================
# SNAPSHOT
# =============================================================================

@dataclass(frozen=True)
class GraphSnapshot:
    """
    Immutable full snapshot of the network graph.

    Every refresh produces a new snapshot; there are no partial updates.
    """
    nodes: Tuple[NetworkNode, ...] = field(default_factory=tuple)
    connections: Tuple[NetworkConnection, ...] = field(default_factory=tuple)
    meters: Tuple[NetworkMeter, ...] = field(default_factory=tuple)
    fetched_at: Optional[datetime] = None

    @classmethod
    def from_payload(
        cls,
        graph: Mapping[str, Any],
        meters: Optional[Iterable[Mapping[str, Any]]] = None,
        fetched_at: Optional[datetime] = None,
    ) -> GraphSnapshot:
        """Decode the `{nodes, connections}` payload (and optional meter list)."""
        return cls(
            nodes=tuple(NetworkNode.from_dict(n) for n in graph.get("nodes") or ()),
            connections=tuple(NetworkConnection.from_dict(c) for c in graph.get("connections") or ()),
            meters=tuple(NetworkMeter.from_dict(m) for m in meters or ()),
            fetched_at=fetched_at,
        )

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def node_index(self) -> Dict[str, NetworkNode]:
        """Renderable nodes by id. First occurrence wins on duplicates."""
        index: Dict[str, NetworkNode] = {}
        for node in self.nodes:
            if node.node_id not in index and node.position.is_finite:
                index[node.node_id] = node
        return index

    def node(self, node_id: str) -> Optional[NetworkNode]:
        return self.node_index().get(node_id)

    def connection(self, connection_id: str) -> Optional[NetworkConnection]:
        for connection in self.connections:
            if connection.connection_id == connection_id:
                return connection
        return None

    def meter(self, meter_id: str) -> Optional[NetworkMeter]:
        for meter in self.meters:
            if meter.meter_id == meter_id:
                return meter
        return None

    # -------------------------------------------------------------------------
    # Integrity
    # -------------------------------------------------------------------------

    def node_diagnostics(self) -> Tuple[Diagnostic, ...]:
        seen = set()
        diagnostics: List[Diagnostic] = []
        for node in self.nodes:
            if node.node_id in seen:
                diagnostics.append(Diagnostic(
                    kind=DiagnosticKind.DUPLICATE_NODE_ID,
                    element=node.ref,
                    message=f"Duplicate node id {node.node_id!r}; first occurrence kept",
                ))
                continue
            seen.add(node.node_id)
            if not node.position.is_finite:
                diagnostics.append(Diagnostic(
                    kind=DiagnosticKind.NON_FINITE_POSITION,
                    element=node.ref,
                    message=f"Node {node.node_id!r} has a non-finite position",
                ))
        return tuple(diagnostics)

    def resolve_connections(self) -> Tuple[Tuple[ResolvedConnection, ...], Tuple[Diagnostic, ...]]:
        """
        Join every connection against the renderable node set.

        Returns (resolved, diagnostics). A connection is either resolved
        exactly once or reported exactly once.
        """
        index = self.node_index()
        resolved: List[ResolvedConnection] = []
        diagnostics: List[Diagnostic] = []

        for connection in self.connections:
            if connection.is_self_loop:
                diagnostics.append(Diagnostic(
                    kind=DiagnosticKind.SELF_LOOP,
                    element=connection.ref,
                    message=(
                        f"Connection {connection.connection_id!r} starts and ends "
                        f"at node {connection.source_node_id!r}"
                    ),
                ))
                continue

            missing = tuple(
                node_id
                for node_id in (connection.source_node_id, connection.target_node_id)
                if node_id not in index
            )
            if missing:
                diagnostics.append(Diagnostic(
                    kind=DiagnosticKind.MISSING_ENDPOINT,
                    element=connection.ref,
                    message=(
                        f"Connection {connection.connection_id!r} references "
                        f"unresolvable node(s): {', '.join(missing)}"
                    ),
                    missing_node_ids=missing,
                ))
                continue

            resolved.append(ResolvedConnection(
                connection=connection,
                source=index[connection.source_node_id].position,
                target=index[connection.target_node_id].position,
            ))

        return tuple(resolved), tuple(diagnostics)

    def meter_diagnostics(self) -> Tuple[Diagnostic, ...]:
        index = self.node_index()
        diagnostics: List[Diagnostic] = []
        for meter in self.meters:
            if meter.node_id not in index:
                diagnostics.append(Diagnostic(
                    kind=DiagnosticKind.DANGLING_METER,
                    element=meter.ref,
                    message=f"Meter {meter.meter_id!r} references unknown node {meter.node_id!r}",
                    missing_node_ids=(meter.node_id,),
                ))
            elif not meter.position.is_finite:
                diagnostics.append(Diagnostic(
                    kind=DiagnosticKind.NON_FINITE_POSITION,
                    element=meter.ref,
                    message=f"Meter {meter.meter_id!r} has a non-finite position",
                ))
        return tuple(diagnostics)

    def integrity_report(self) -> Tuple[Diagnostic, ...]:
        """All integrity problems of this snapshot, nodes first."""
        _, connection_diagnostics = self.resolve_connections()
        return self.node_diagnostics() + connection_diagnostics + self.meter_diagnostics()

    def validate(self) -> GraphSnapshot:
        """Raise GraphIntegrityError if the snapshot has any integrity problem."""
        diagnostics = self.integrity_report()
        if diagnostics:
            raise GraphIntegrityError(diagnostics)
        return self

    # -------------------------------------------------------------------------
    # Live feed
    # -------------------------------------------------------------------------

    def with_updates(self, updates: Iterable[StatusUpdate]) -> GraphSnapshot:
        """
        Merge live status/value updates into a new snapshot.

        Updates for unknown elements are ignored; the feed may lag behind
        the topology.
        """
        by_ref: Dict[ElementRef, StatusUpdate] = {}
        for update in updates:
            by_ref[update.element] = update
        if not by_ref:
            return self

        def merge_node(node: NetworkNode) -> NetworkNode:
            update = by_ref.get(node.ref)
            if update is None:
                return node
            return replace(
                node,
                status=NodeStatus.parse(update.status) if update.status is not None else node.status,
                load=update.value if update.value is not None else node.load,
            )

        def merge_connection(connection: NetworkConnection) -> NetworkConnection:
            update = by_ref.get(connection.ref)
            if update is None:
                return connection
            return replace(
                connection,
                status=(
                    ConnectionStatus.parse(update.status)
                    if update.status is not None else connection.status
                ),
                load=update.value if update.value is not None else connection.load,
            )

        def merge_meter(meter: NetworkMeter) -> NetworkMeter:
            update = by_ref.get(meter.ref)
            if update is None:
                return meter
            return replace(
                meter,
                status=MeterStatus.parse(update.status) if update.status is not None else meter.status,
                value=update.value if update.value is not None else meter.value,
            )

        return replace(
            self,
            nodes=tuple(merge_node(n) for n in self.nodes),
            connections=tuple(merge_connection(c) for c in self.connections),
            meters=tuple(merge_meter(m) for m in self.meters),
        )
