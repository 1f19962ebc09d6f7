"""
Diagram Composer Tests
======================

Endpoint resolution, layer order, view modes, region filtering and
interaction overlays. Every scenario is built from fixtures.
"""

import pytest

from gridview.contracts import DiagnosticKind, ElementKind, GraphSnapshot, Point, Rect
from gridview.ingestion import sample_snapshot
from gridview.visualization import (
    ComposerConfig, DiagramComposer, Highlights, LayerKind, LoadBand, RegionFilter, ViewMode,
    WorkZone, compose, legend,
)
from gridview.visualization import style
from gridview.visualization.glyphs import LineShape, ShapeKind
from gridview.visualization.style import ColorClass
from tests.fixtures import (
    connection_record, connection_ref, make_base_snapshot, make_broken_snapshot,
    make_regional_snapshot, meter_ref, node_record, node_ref,
)


def ids_of(scene, kind):
    return {item.element.element_id for item in scene.interactive_items() if item.element.kind is kind}


class TestLayers:

    def test_layer_order(self):
        scene = compose(make_base_snapshot())
        assert [layer.kind for layer in scene.layers] == [
            LayerKind.CONNECTIONS, LayerKind.NODES, LayerKind.LABELS, LayerKind.OVERLAYS,
        ]

    def test_elements_land_in_their_layers(self):
        scene = compose(make_base_snapshot())
        assert {i.element.element_id for i in scene.layer(LayerKind.CONNECTIONS).items} == {"L1", "CB1"}
        assert {i.element.element_id for i in scene.layer(LayerKind.NODES).items} == {"A", "B", "C"}
        meters = [i for i in scene.layer(LayerKind.OVERLAYS).items if i.element is not None]
        assert [m.element for m in meters] == [meter_ref("M1")]

    def test_labels_are_optional(self):
        with_labels = compose(make_base_snapshot(), show_labels=True)
        without = compose(make_base_snapshot(), show_labels=False)
        assert len(with_labels.layer(LayerKind.LABELS)) == 4  # three nodes, one meter
        assert len(without.layer(LayerKind.LABELS)) == 0

    def test_glyphs_of_kind(self):
        scene = compose(make_base_snapshot())
        shapes = sorted(g.shape.value for g in scene.glyphs_of(ElementKind.CONNECTION))
        assert shapes == ["circuit_breaker", "line"]
        assert len(scene.glyphs_of(ElementKind.METER)) == 1

    def test_meter_caption_uses_name_colour(self):
        scene = compose(make_base_snapshot())
        meter_label = next(
            item for item in scene.layer(LayerKind.LABELS).items
            if item.glyph.primitives[0].text == "12.5 MW"
        )
        reading, caption = meter_label.glyph.primitives
        assert reading.color is None
        assert caption.color == style.METER_NAME_COLOR

    def test_empty_graph(self):
        scene = compose(GraphSnapshot())
        assert list(scene.items()) == []
        assert scene.diagnostics == ()


class TestEndpointResolution:

    def test_connections_drawn_at_node_positions(self):
        snapshot = make_base_snapshot()
        scene = compose(snapshot)
        positions = {n.node_id: n.position for n in snapshot.nodes}
        assert len(scene.resolved_connections) == len(snapshot.connections)
        for rc in scene.resolved_connections:
            assert rc.source == positions[rc.connection.source_node_id]
            assert rc.target == positions[rc.connection.target_node_id]

    def test_line_glyph_spans_endpoints(self):
        scene = compose(make_base_snapshot())
        line = scene.find(connection_ref("L1")).glyph
        assert line.primitives == (LineShape(Point(100.0, 100.0), Point(300.0, 100.0)),)

    def test_broken_connections_reported_not_drawn(self):
        scene = compose(make_broken_snapshot())
        assert ids_of(scene, ElementKind.CONNECTION) == {"OK"}
        by_element = {d.element: d for d in scene.diagnostics}
        assert by_element[connection_ref("DANGLING")].kind is DiagnosticKind.MISSING_ENDPOINT
        assert by_element[connection_ref("DANGLING")].missing_node_ids == ("GHOST",)
        assert by_element[connection_ref("LOOP")].kind is DiagnosticKind.SELF_LOOP
        assert by_element[meter_ref("LOST")].kind is DiagnosticKind.DANGLING_METER

    def test_dangling_meter_reported_once(self):
        scene = compose(make_broken_snapshot())
        dangling = [d for d in scene.diagnostics if d.kind is DiagnosticKind.DANGLING_METER]
        assert [d.element for d in dangling] == [meter_ref("LOST")]
        assert scene.find(meter_ref("LOST")) is None

    def test_unresolved_connections_have_no_glyph(self):
        scene = compose(make_broken_snapshot())
        assert len(scene.layer(LayerKind.CONNECTIONS)) == 1
        assert scene.find(connection_ref("DANGLING")) is None
        assert [rc.connection.connection_id for rc in scene.resolved_connections] == ["OK"]

    def test_recomposition_is_deterministic(self):
        snapshot = make_base_snapshot()
        assert compose(snapshot) == compose(snapshot)


class TestViewModes:

    def load_snapshot(self):
        payload = {
            "nodes": [
                node_record("HI", 0, 0, load=0.8),
                node_record("MID", 100, 0, load=0.5),
                node_record("LO", 200, 0, load=0.2),
                node_record("NONE", 300, 0, status="fault"),
            ],
            "connections": [connection_record("E", "HI", "MID", load=0.71)],
        }
        return GraphSnapshot.from_payload(payload)

    def test_status_mode_ignores_load(self):
        scene = compose(self.load_snapshot(), ViewMode.STATUS)
        assert scene.find(node_ref("HI")).glyph.color_class is ColorClass.NORMAL

    def test_load_mode_bands(self):
        scene = compose(self.load_snapshot(), ViewMode.LOAD)
        assert scene.find(node_ref("HI")).glyph.color_class is ColorClass.LOAD_HIGH
        assert scene.find(node_ref("MID")).glyph.color_class is ColorClass.LOAD_MEDIUM
        assert scene.find(node_ref("LO")).glyph.color_class is ColorClass.LOAD_LOW
        assert scene.find(connection_ref("E")).glyph.color_class is ColorClass.LOAD_HIGH

    def test_load_mode_without_metric_uses_status(self):
        scene = compose(self.load_snapshot(), ViewMode.LOAD)
        assert scene.find(node_ref("NONE")).glyph.color_class is ColorClass.FAULT

    def test_explicit_metrics_override_snapshot_load(self):
        composer = DiagramComposer()
        scene = composer.compose(
            self.load_snapshot(), ViewMode.LOAD, load_metrics={node_ref("HI"): 0.1},
        )
        assert scene.find(node_ref("HI")).glyph.color_class is ColorClass.LOAD_LOW

    def test_view_mode_never_changes_geometry(self):
        snapshot = self.load_snapshot()
        status = compose(snapshot, ViewMode.STATUS, show_labels=False)
        load = compose(snapshot, ViewMode.LOAD, show_labels=False)
        for a, b in zip(status.items(), load.items()):
            assert a.glyph.primitives == b.glyph.primitives

    def test_voltage_mode_adds_voltage_label(self):
        scene = compose(make_base_snapshot(), ViewMode.VOLTAGE)
        texts = [p.text for item in scene.layer(LayerKind.LABELS).items for p in item.glyph.primitives]
        assert "110kV" in texts

    def test_band_thresholds(self):
        config = ComposerConfig()
        assert config.band_for(0.7) is LoadBand.MEDIUM
        assert config.band_for(0.4) is LoadBand.LOW
        with pytest.raises(ValueError):
            ComposerConfig(medium_load_threshold=0.8, high_load_threshold=0.5)

    def test_view_mode_parse(self):
        assert ViewMode.parse("Load") is ViewMode.LOAD
        with pytest.raises(ValueError):
            ViewMode.parse("thermal")


class TestRegionFilter:

    def test_all_regions(self):
        scene = compose(make_regional_snapshot(), region_filter=RegionFilter.all())
        assert ids_of(scene, ElementKind.NODE) == {"N1", "N2", "S1", "X"}
        assert not [d for d in scene.diagnostics if d.kind is DiagnosticKind.EXCLUDED_BY_FILTER]

    def test_only_north(self):
        scene = compose(make_regional_snapshot(), region_filter=RegionFilter.only("North"))
        assert ids_of(scene, ElementKind.NODE) == {"N1", "N2", "X"}
        assert ids_of(scene, ElementKind.CONNECTION) == {"NN", "NX"}
        assert ids_of(scene, ElementKind.METER) == set()

    def test_excluded_elements_are_reported(self):
        scene = compose(make_regional_snapshot(), region_filter=RegionFilter.only("North"))
        excluded = {d.element for d in scene.diagnostics if d.kind is DiagnosticKind.EXCLUDED_BY_FILTER}
        assert excluded == {
            node_ref("S1"), connection_ref("NS"), connection_ref("SX"), meter_ref("MS"),
        }
        assert scene.integrity_errors == ()

    def test_filtered_connections_name_hidden_endpoint(self):
        scene = compose(make_regional_snapshot(), region_filter=RegionFilter.only("North"))
        ns = next(d for d in scene.diagnostics if d.element == connection_ref("NS"))
        assert ns.missing_node_ids == ("S1",)

    def test_parse(self):
        assert RegionFilter.parse(None).is_all
        assert RegionFilter.parse("all").is_all
        assert RegionFilter.parse("North, South").regions == frozenset({"North", "South"})


class TestHighlights:

    def test_hover_emphasises_stroke(self):
        scene = compose(
            make_base_snapshot(), highlights=Highlights(hovered=connection_ref("L1")),
        )
        item = scene.find(connection_ref("L1"))
        assert item.is_hovered
        assert item.glyph.stroke_width == 3.0
        assert scene.find(connection_ref("CB1")).glyph.stroke_width == 2.0

    def test_selected_node_gets_ring(self):
        scene = compose(make_base_snapshot(), highlights=Highlights(selected=node_ref("A")))
        rings = [
            i for i in scene.layer(LayerKind.OVERLAYS).items
            if i.glyph.shape is ShapeKind.SELECTION_RING
        ]
        assert len(rings) == 1
        assert rings[0].centroid == Point(100.0, 100.0)
        assert scene.find(node_ref("A")).is_selected

    def test_selected_connection_gets_highlight_segment(self):
        scene = compose(make_base_snapshot(), highlights=Highlights(selected=connection_ref("L1")))
        shapes = [i.glyph.shape for i in scene.layer(LayerKind.OVERLAYS).items]
        assert ShapeKind.HIGHLIGHT in shapes

    def test_connected_elements_flagged(self):
        scene = compose(
            make_base_snapshot(),
            highlights=Highlights(selected=node_ref("B"), connected=frozenset({connection_ref("L1")})),
        )
        assert scene.find(connection_ref("L1")).is_highlighted
        assert not scene.find(connection_ref("CB1")).is_highlighted

    def test_selection_of_missing_element_draws_nothing(self):
        scene = compose(make_base_snapshot(), highlights=Highlights(selected=node_ref("ZZZ")))
        assert all(i.element is not None for i in scene.layer(LayerKind.OVERLAYS).items)

    def test_work_zone_overlay(self):
        zone = WorkZone("WP-1", "Permit WP-1", Rect(50.0, 50.0, 300.0, 100.0))
        scene = compose(make_base_snapshot(), work_zone=zone)
        shapes = [i.glyph.shape for i in scene.layer(LayerKind.OVERLAYS).items]
        assert ShapeKind.WORK_ZONE in shapes


class TestSampleAndLegend:

    def test_sample_network_is_clean(self):
        scene = compose(sample_snapshot())
        assert scene.integrity_errors == ()
        assert len(scene.resolved_connections) == 4

    def test_legend_default_lists_status_and_load(self):
        labels = [entry.label for entry in legend()]
        assert labels[:4] == ["Energized", "De-energized", "Fault", "Maintenance"]
        assert "High load" in labels

    def test_legend_for_load_mode(self):
        assert [e.color_class for e in legend(ViewMode.LOAD)] == [
            ColorClass.LOAD_LOW, ColorClass.LOAD_MEDIUM, ColorClass.LOAD_HIGH,
        ]
