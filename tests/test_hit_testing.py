"""
Hit-Testing Tests
=================

Uses the base network:
    A bus (100,100), B junction r=6 (300,100), C point (300,300)
    L1 line A-B, CB1 open breaker B-C, M1 meter drawn at (320,100)
"""

import math

from gridview.contracts import ElementKind, ElementRef, Point
from gridview.interaction import ViewTransform, hit_test, hit_test_items
from gridview.interaction.hit_testing import distance_to_segment
from gridview.visualization import compose
from gridview.visualization.glyphs import CircleShape, Glyph, LineShape, ShapeKind
from gridview.visualization.scene import SceneItem
from gridview.visualization.style import ColorClass
from tests.fixtures import connection_ref, make_base_snapshot, meter_ref, node_ref

IDENTITY = ViewTransform()


def base_scene():
    return compose(make_base_snapshot())


def _glyph(*primitives) -> Glyph:
    return Glyph(ShapeKind.JUNCTION, ColorClass.NORMAL, "#000", "#fff", 1.0, tuple(primitives))


class TestGeometry:

    def test_distance_to_segment_clamps_to_ends(self):
        start, end = Point(0.0, 0.0), Point(10.0, 0.0)
        assert distance_to_segment(Point(5.0, 3.0), start, end) == 3.0
        assert distance_to_segment(Point(13.0, 4.0), start, end) == 5.0

    def test_degenerate_segment(self):
        p = Point(3.0, 4.0)
        assert distance_to_segment(p, Point(0.0, 0.0), Point(0.0, 0.0)) == 5.0


class TestSceneHits:

    def test_node_centre_hits_node(self):
        assert hit_test(base_scene(), Point(100.0, 100.0), IDENTITY) == node_ref("A")

    def test_connection_within_tolerance(self):
        assert hit_test(base_scene(), Point(200.0, 103.0), IDENTITY) == connection_ref("L1")

    def test_connection_outside_tolerance(self):
        assert hit_test(base_scene(), Point(200.0, 110.0), IDENTITY) is None

    def test_tolerance_is_in_screen_pixels(self):
        zoomed = ViewTransform(scale=2.0)
        scene = base_scene()
        # 2 model units = 4 px from the line: inside 5 px
        assert hit_test(scene, Point(400.0, 204.0), zoomed) == connection_ref("L1")
        # 5 model units = 10 px: outside
        assert hit_test(scene, Point(400.0, 210.0), zoomed) is None

    def test_nodes_need_exact_hit(self):
        scene = base_scene()
        assert hit_test(scene, Point(305.5, 100.0), IDENTITY) == node_ref("B")
        # 0.5 past the junction edge; a connection tolerance would still match
        assert hit_test(scene, Point(306.5, 100.0), IDENTITY) is None

    def test_meter_hit(self):
        assert hit_test(base_scene(), Point(320.0, 100.0), IDENTITY) == meter_ref("M1")

    def test_labels_are_not_hittable(self):
        # under bus A: only its label is there
        assert hit_test(base_scene(), Point(100.0, 115.0), IDENTITY) is None

    def test_hit_respects_offset(self):
        panned = ViewTransform(offset=Point(50.0, 0.0))
        assert hit_test(base_scene(), Point(150.0, 100.0), panned) == node_ref("A")

    def test_non_finite_point_misses(self):
        assert hit_test(base_scene(), Point(math.nan, 100.0), IDENTITY) is None


class TestTieBreaking:

    def test_closest_centroid_wins(self):
        near = SceneItem(_glyph(CircleShape(Point(0.0, 0.0), 10.0)), Point(0.0, 0.0), node_ref("near"))
        far = SceneItem(_glyph(CircleShape(Point(8.0, 0.0), 10.0)), Point(8.0, 0.0), node_ref("far"))
        assert hit_test_items([far, near], Point(1.0, 0.0), IDENTITY) == node_ref("near")

    def test_equal_distance_prefers_node_over_connection(self):
        centre = Point(0.0, 0.0)
        line = SceneItem(_glyph(LineShape(Point(-10.0, 0.0), Point(10.0, 0.0))), centre, connection_ref("L"))
        node = SceneItem(_glyph(CircleShape(centre, 5.0)), centre, node_ref("N"))
        assert hit_test_items([node, line], centre, IDENTITY) == node_ref("N")
        assert hit_test_items([line, node], centre, IDENTITY) == node_ref("N")

    def test_equal_distance_prefers_meter_over_node(self):
        centre = Point(0.0, 0.0)
        node = SceneItem(_glyph(CircleShape(centre, 5.0)), centre, node_ref("N"))
        meter = SceneItem(_glyph(CircleShape(centre, 12.0)), centre, ElementRef(ElementKind.METER, "M"))
        assert hit_test_items([meter, node], centre, IDENTITY) == meter_ref("M")
