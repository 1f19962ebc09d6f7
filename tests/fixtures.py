"""
Test Fixtures

Small, explicit networks for deterministic testing.
No random generation.

BASE NETWORK:
=============
    A (bus, 100,100) --L1 line, closed-- B (junction, 300,100)
    B --CB1 breaker, open-- C (connection point, 300,300)
    Meter M1 measures B, direction out (drawn right of B)
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from gridview.contracts import GraphSnapshot, ElementKind, ElementRef


FETCHED_AT = datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def node_record(node_id: str, x: float, y: float, **extra: Any) -> Dict[str, Any]:
    record = {"nodeId": node_id, "type": "Bus", "x": x, "y": y, "status": "energized"}
    record.update(extra)
    return record


def connection_record(connection_id: str, source: str, target: str, **extra: Any) -> Dict[str, Any]:
    record = {
        "id": connection_id, "sourceNodeId": source, "targetNodeId": target,
        "type": "Line", "status": "closed",
    }
    record.update(extra)
    return record


def base_graph_payload() -> Dict[str, List[Dict[str, Any]]]:
    return {
        "nodes": [
            node_record("A", 100, 100, label="Bus A", voltageLevel="110kV"),
            node_record("B", 300, 100, type="Junction", label="Junction B"),
            node_record("C", 300, 300, type="Connection_Point", label="Point C"),
        ],
        "connections": [
            connection_record("L1", "A", "B"),
            connection_record("CB1", "B", "C", type="Circuit Breaker", status="open"),
        ],
    }


def base_meter_payload() -> List[Dict[str, Any]]:
    return [{
        "meterId": "M1", "nodeId": "B", "direction": "out", "type": "power",
        "status": "operational", "name": "Feeder", "unit": "MW", "value": 12.5,
        "x": 300, "y": 100,
    }]


def make_base_snapshot() -> GraphSnapshot:
    return GraphSnapshot.from_payload(base_graph_payload(), base_meter_payload(), FETCHED_AT)


def make_regional_snapshot() -> GraphSnapshot:
    """
    N1, N2 in North; S1 in South; X untagged (network-wide).
    N1-N2 internal, N2-S1 crosses regions, S1-X and N1-X reach the untagged node.
    """
    payload = {
        "nodes": [
            node_record("N1", 0, 0, region="North"),
            node_record("N2", 100, 0, region="North"),
            node_record("S1", 100, 200, region="South"),
            node_record("X", 0, 200),
        ],
        "connections": [
            connection_record("NN", "N1", "N2", region="North"),
            connection_record("NS", "N2", "S1"),
            connection_record("SX", "S1", "X"),
            connection_record("NX", "N1", "X"),
        ],
    }
    meters = [{
        "meterId": "MS", "nodeId": "S1", "direction": "in", "type": "current",
        "status": "operational", "x": 100, "y": 200,
    }]
    return GraphSnapshot.from_payload(payload, meters, FETCHED_AT)


def make_broken_snapshot() -> GraphSnapshot:
    """A valid edge, one dangling endpoint, one self-loop, a dangling meter."""
    payload = {
        "nodes": [
            node_record("A", 0, 0),
            node_record("B", 200, 0),
        ],
        "connections": [
            connection_record("OK", "A", "B"),
            connection_record("DANGLING", "A", "GHOST"),
            connection_record("LOOP", "B", "B"),
        ],
    }
    meters = [{"meterId": "LOST", "nodeId": "NOWHERE", "x": 0, "y": 0}]
    return GraphSnapshot.from_payload(payload, meters, FETCHED_AT)


def node_ref(node_id: str) -> ElementRef:
    return ElementRef(ElementKind.NODE, node_id)


def connection_ref(connection_id: str) -> ElementRef:
    return ElementRef(ElementKind.CONNECTION, connection_id)


def meter_ref(meter_id: str) -> ElementRef:
    return ElementRef(ElementKind.METER, meter_id)
