"""
Sample Network

A small fixed network used when no backend URL is configured, and by the
demo server. Three voltage levels joined by two transformers, plus a
feeder with a breaker and an open disconnector.
"""

from __future__ import annotations
from typing import Any, Dict, List

from ..contracts.graph import GraphSnapshot


SAMPLE_GRAPH: Dict[str, List[Dict[str, Any]]] = {
    "nodes": [
        {"nodeId": "BUS-110-1", "type": "Bus", "x": 100, "y": 100, "label": "110kV Bus 1",
         "voltageLevel": "110kV", "status": "energized", "region": "North"},
        {"nodeId": "BUS-35-1", "type": "Bus", "x": 100, "y": 300, "label": "35kV Bus 1",
         "voltageLevel": "35kV", "status": "energized", "region": "North", "load": 0.55},
        {"nodeId": "BUS-10-1", "type": "Bus", "x": 300, "y": 500, "label": "10kV Bus 1",
         "voltageLevel": "10kV", "status": "energized", "region": "East", "load": 0.82},
        {"nodeId": "J-10-1", "type": "Junction", "x": 500, "y": 500, "label": "Feeder J1",
         "voltageLevel": "10kV", "status": "energized", "region": "East"},
        {"nodeId": "CP-10-1", "type": "Connection_Point", "x": 700, "y": 500, "label": "Feeder End",
         "voltageLevel": "10kV", "status": "de-energized", "region": "East"},
    ],
    "connections": [
        {"id": "1", "sourceNodeId": "BUS-110-1", "targetNodeId": "BUS-35-1",
         "type": "Transformer", "equipmentId": "EQ-1023", "status": "closed", "load": 0.35},
        {"id": "2", "sourceNodeId": "BUS-35-1", "targetNodeId": "BUS-10-1",
         "type": "Transformer", "equipmentId": "EQ-1027", "status": "fault"},
        {"id": "3", "sourceNodeId": "BUS-10-1", "targetNodeId": "J-10-1",
         "type": "Circuit Breaker", "equipmentId": "EQ-1024", "status": "closed", "load": 0.6},
        {"id": "4", "sourceNodeId": "J-10-1", "targetNodeId": "CP-10-1",
         "type": "Disconnector", "equipmentId": "EQ-1026", "status": "open"},
    ],
}

SAMPLE_METERS: List[Dict[str, Any]] = [
    {"meterId": "NM-0001", "connectionId": "1", "nodeId": "BUS-35-1", "direction": "in",
     "name": "Main Incoming Meter", "type": "power", "unit": "MW", "value": 48.5,
     "status": "operational", "x": 120, "y": 320},
    {"meterId": "NM-0002", "connectionId": "2", "nodeId": "BUS-10-1", "direction": "out",
     "name": "Feeder Outgoing Meter", "type": "power", "unit": "MW", "value": 4.8,
     "status": "operational", "x": 320, "y": 520},
]


def sample_snapshot() -> GraphSnapshot:
    return GraphSnapshot.from_payload(SAMPLE_GRAPH, SAMPLE_METERS)
