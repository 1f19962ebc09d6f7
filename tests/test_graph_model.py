"""
Graph Data Model Tests
======================

Decoding, tolerant enum parsing, endpoint resolution and integrity
reporting for GraphSnapshot.
"""

import math

import pytest

from gridview.contracts import (
    ConnectionStatus, ConnectionType, DiagnosticKind, ElementKind, ElementRef,
    GraphIntegrityError, GraphSnapshot, MeterDirection, NetworkNode, NodeStatus, NodeType,
    Orientation, Point, StatusUpdate,
)
from tests.fixtures import (
    base_graph_payload, connection_record, make_base_snapshot, make_broken_snapshot,
    node_record, node_ref, connection_ref, meter_ref,
)


class TestEnumParsing:

    def test_node_status_case_and_separator_insensitive(self):
        assert NodeStatus.parse("Energized") is NodeStatus.ENERGIZED
        assert NodeStatus.parse("de_energized") is NodeStatus.DE_ENERGIZED
        assert NodeStatus.parse("De-Energized") is NodeStatus.DE_ENERGIZED

    def test_unknown_status_maps_to_unknown(self):
        assert NodeStatus.parse("sparkling") is NodeStatus.UNKNOWN
        assert ConnectionStatus.parse(None) is ConnectionStatus.UNKNOWN

    def test_connection_types(self):
        assert ConnectionType.parse("Circuit Breaker") is ConnectionType.CIRCUIT_BREAKER
        assert ConnectionType.parse("Transformer") is ConnectionType.TRANSFORMER
        assert ConnectionType.parse("isolator") is ConnectionType.DISCONNECTOR

    def test_unknown_connection_type_draws_as_line(self):
        assert ConnectionType.parse("HVDC link") is ConnectionType.LINE

    def test_unknown_node_type_is_other(self):
        assert NodeType.parse("Connection_Point") is NodeType.CONNECTION_POINT
        assert NodeType.parse("windmill") is NodeType.OTHER

    def test_orientation_defaults_horizontal(self):
        assert Orientation.parse(None) is Orientation.HORIZONTAL
        assert Orientation.parse("Vertical") is Orientation.VERTICAL


class TestDecoding:

    def test_from_payload_reads_camel_case(self):
        snapshot = make_base_snapshot()
        assert [n.node_id for n in snapshot.nodes] == ["A", "B", "C"]
        a = snapshot.node("A")
        assert a.type is NodeType.BUS
        assert a.position == Point(100.0, 100.0)
        assert a.voltage_level == "110kV"
        assert snapshot.connection("CB1").status is ConnectionStatus.OPEN
        assert snapshot.meter("M1").direction is MeterDirection.OUT

    def test_position_may_be_nested(self):
        node = NetworkNode.from_dict({"node_id": "P", "position": {"x": 5, "y": 7}})
        assert node.position == Point(5.0, 7.0)
        assert node.status is NodeStatus.UNKNOWN

    def test_missing_required_field_raises(self):
        with pytest.raises(ValueError):
            NetworkNode.from_dict({"x": 1, "y": 2})

    def test_element_refs_are_namespaced(self):
        payload = {
            "nodes": [node_record("7", 0, 0), node_record("8", 10, 0)],
            "connections": [connection_record("7", "7", "8")],
        }
        snapshot = GraphSnapshot.from_payload(payload)
        assert snapshot.nodes[0].ref != snapshot.connections[0].ref


class TestResolution:

    def test_valid_connections_resolve_to_node_positions(self):
        snapshot = make_base_snapshot()
        resolved, diagnostics = snapshot.resolve_connections()
        assert diagnostics == ()
        by_id = {rc.connection.connection_id: rc for rc in resolved}
        assert by_id["L1"].source == Point(100.0, 100.0)
        assert by_id["L1"].target == Point(300.0, 100.0)
        assert by_id["L1"].midpoint == Point(200.0, 100.0)

    def test_each_connection_resolved_or_reported_once(self):
        snapshot = make_broken_snapshot()
        resolved, diagnostics = snapshot.resolve_connections()
        resolved_ids = {rc.connection.connection_id for rc in resolved}
        reported_ids = [d.element.element_id for d in diagnostics]
        assert resolved_ids == {"OK"}
        assert sorted(reported_ids) == ["DANGLING", "LOOP"]

    def test_missing_endpoint_names_missing_node(self):
        _, diagnostics = make_broken_snapshot().resolve_connections()
        dangling = next(d for d in diagnostics if d.element == connection_ref("DANGLING"))
        assert dangling.kind is DiagnosticKind.MISSING_ENDPOINT
        assert dangling.missing_node_ids == ("GHOST",)
        assert "GHOST" in dangling.message

    def test_self_loop_reported(self):
        _, diagnostics = make_broken_snapshot().resolve_connections()
        loop = next(d for d in diagnostics if d.element == connection_ref("LOOP"))
        assert loop.kind is DiagnosticKind.SELF_LOOP

    def test_duplicate_node_first_occurrence_wins(self):
        payload = {
            "nodes": [node_record("A", 0, 0), node_record("A", 999, 999), node_record("B", 10, 0)],
            "connections": [connection_record("AB", "A", "B")],
        }
        snapshot = GraphSnapshot.from_payload(payload)
        assert snapshot.node("A").position == Point(0.0, 0.0)
        kinds = [d.kind for d in snapshot.node_diagnostics()]
        assert kinds == [DiagnosticKind.DUPLICATE_NODE_ID]

    def test_non_finite_node_is_unresolvable(self):
        payload = {
            "nodes": [node_record("A", 0, 0), node_record("B", math.nan, 0)],
            "connections": [connection_record("AB", "A", "B")],
        }
        snapshot = GraphSnapshot.from_payload(payload)
        resolved, diagnostics = snapshot.resolve_connections()
        assert resolved == ()
        assert diagnostics[0].missing_node_ids == ("B",)
        assert snapshot.node_diagnostics()[0].kind is DiagnosticKind.NON_FINITE_POSITION

    def test_dangling_meter(self):
        diagnostics = make_broken_snapshot().meter_diagnostics()
        assert len(diagnostics) == 1
        assert diagnostics[0].kind is DiagnosticKind.DANGLING_METER
        assert diagnostics[0].element == meter_ref("LOST")


class TestValidation:

    def test_valid_snapshot_passes(self):
        snapshot = make_base_snapshot()
        assert snapshot.validate() is snapshot

    def test_integrity_error_carries_all_diagnostics(self):
        with pytest.raises(GraphIntegrityError) as exc_info:
            make_broken_snapshot().validate()
        kinds = {d.kind for d in exc_info.value.diagnostics}
        assert kinds == {
            DiagnosticKind.MISSING_ENDPOINT, DiagnosticKind.SELF_LOOP, DiagnosticKind.DANGLING_METER,
        }


class TestStatusUpdates:

    def test_updates_produce_new_snapshot(self):
        snapshot = make_base_snapshot()
        updated = snapshot.with_updates([
            StatusUpdate(node_ref("A"), status="fault"),
            StatusUpdate(connection_ref("CB1"), status="closed", value=0.5),
            StatusUpdate(meter_ref("M1"), value=20.0),
        ])
        assert updated is not snapshot
        assert snapshot.node("A").status is NodeStatus.ENERGIZED
        assert updated.node("A").status is NodeStatus.FAULT
        assert updated.connection("CB1").status is ConnectionStatus.CLOSED
        assert updated.connection("CB1").load == 0.5
        assert updated.meter("M1").value == 20.0

    def test_unknown_elements_are_ignored(self):
        snapshot = make_base_snapshot()
        updated = snapshot.with_updates([StatusUpdate(node_ref("ZZZ"), status="fault")])
        assert updated.nodes == snapshot.nodes

    def test_status_update_from_dict(self):
        update = StatusUpdate.from_dict({"elementKind": "Connection", "elementId": "L1", "value": 0.9})
        assert update.element == ElementRef(ElementKind.CONNECTION, "L1")
        assert update.value == 0.9
        assert update.status is None

    def test_payload_round_trip_keeps_order(self):
        snapshot = GraphSnapshot.from_payload(base_graph_payload())
        assert [c.connection_id for c in snapshot.connections] == ["L1", "CB1"]
