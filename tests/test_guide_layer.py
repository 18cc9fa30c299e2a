"""Tests for GuideLayer collection management, interactive creation and dragging."""
from __future__ import annotations

import pytest
from PyQt6.QtCore import QPoint, QPointF, QRectF
from PyQt6.QtGui import QColor

from guides.layer import GuideLayer, get_default_snap_tolerance, set_default_snap_tolerance
from models import Guide, Orientation


def _vguide(pos, color=None):
    return Guide(pos, Orientation.VERTICAL, color)


def _hguide(pos, color=None):
    return Guide(pos, Orientation.HORIZONTAL, color)


# ---------------------------------------------------------------------------
# Collection management
# ---------------------------------------------------------------------------

class TestAddRemove:
    def test_add_routes_by_orientation(self, layer):
        v, h = _vguide(100), _hguide(200)
        layer.add_guide(v)
        layer.add_guide(h)
        assert layer.vertical_guides == [v]
        assert layer.horizontal_guides == [h]
        assert set(map(id, layer.guides)) == {id(v), id(h)}

    def test_add_gives_uncoloured_guide_layer_colour(self, layer):
        layer.guide_color = QColor(10, 20, 30)
        g = _vguide(5)
        layer.add_guide(g)
        assert g.color == QColor(10, 20, 30)

    def test_add_keeps_guide_own_colour(self, layer):
        g = _vguide(5, QColor(255, 0, 0))
        layer.add_guide(g)
        assert g.color == QColor(255, 0, 0)

    def test_changing_layer_colour_leaves_existing_guides(self, layer):
        g = _vguide(5)
        layer.add_guide(g)
        before = QColor(g.color)
        layer.guide_color = QColor(1, 2, 3)
        assert g.color == before

    def test_re_adding_same_instance_is_harmless(self, layer, recorder):
        g = _vguide(100)
        layer.add_guide(g)
        recorder.reset()
        layer.add_guide(g)
        assert layer.vertical_guides == [g]
        assert recorder.rects == []

    def test_equal_position_guides_are_both_kept(self, layer):
        a, b = _vguide(100), _vguide(100)
        layer.add_guide(a)
        layer.add_guide(b)
        assert len(layer.vertical_guides) == 2

    def test_add_refreshes_guide_rect(self, layer, recorder):
        g = _vguide(100)
        layer.add_guide(g)
        assert recorder.rects == [layer.guide_rect(g)]
        assert recorder.full == 0

    def test_remove_by_identity(self, layer, recorder):
        a, b = _vguide(100), _vguide(100)
        layer.add_guide(a)
        layer.add_guide(b)
        recorder.reset()
        layer.remove_guide(a)
        assert layer.vertical_guides == [b]
        assert recorder.rects == [layer.guide_rect(a)]

    def test_remove_absent_guide_is_noop(self, layer, recorder):
        layer.add_guide(_vguide(100))
        recorder.reset()
        layer.remove_guide(_vguide(100))
        assert len(layer.vertical_guides) == 1
        assert recorder.rects == []

    def test_guides_stay_until_removed(self, layer):
        added = [_vguide(i * 10) for i in range(5)] + [_hguide(i * 10) for i in range(3)]
        for g in added:
            layer.add_guide(g)
        assert len(layer.guides) == 8
        for g in added:
            assert any(x is g for x in layer.guides)

    def test_returned_lists_are_copies(self, layer):
        layer.add_guide(_vguide(1))
        layer.vertical_guides.clear()
        assert len(layer.vertical_guides) == 1


class TestBulkOperations:
    def test_remove_all_clears_both_and_refreshes_once(self, layer, recorder):
        for g in (_vguide(1), _vguide(2), _hguide(3)):
            layer.add_guide(g)
        recorder.reset()
        layer.remove_all_guides()
        assert layer.guides == []
        assert layer.horizontal_guides == []
        assert layer.vertical_guides == []
        assert recorder.full == 1
        assert recorder.rects == []

    def test_set_guides_replaces_existing(self, layer, recorder):
        old = _vguide(1)
        layer.add_guide(old)
        v, h = _vguide(10), _hguide(20)
        recorder.reset()
        layer.set_guides([h, v])
        assert layer.vertical_guides == [v]
        assert layer.horizontal_guides == [h]
        assert not layer.contains_guide(old)
        assert recorder.full == 1

    def test_set_guides_applies_default_colour(self, layer):
        layer.guide_color = QColor(0, 0, 255)
        g = _hguide(20)
        layer.set_guides([g])
        assert g.color == QColor(0, 0, 255)

    def test_set_guides_ignores_duplicates_by_identity(self, layer):
        g = _vguide(5)
        layer.set_guides([g, g])
        assert layer.vertical_guides == [g]


class TestOrientationChange:
    def test_set_guide_orientation_reroutes(self, layer):
        g = _vguide(50)
        layer.add_guide(g)
        layer.set_guide_orientation(g, Orientation.HORIZONTAL)
        assert layer.vertical_guides == []
        assert layer.horizontal_guides == [g]
        assert g.orientation is Orientation.HORIZONTAL

    def test_set_guide_orientation_on_foreign_guide(self, layer):
        g = _vguide(50)
        layer.set_guide_orientation(g, Orientation.HORIZONTAL)
        assert g.orientation is Orientation.HORIZONTAL
        assert layer.guides == []

    def test_re_adding_after_external_change_reroutes(self, layer):
        g = _vguide(50)
        layer.add_guide(g)
        g.orientation = Orientation.HORIZONTAL
        layer.add_guide(g)
        assert layer.vertical_guides == []
        assert layer.horizontal_guides == [g]

    def test_external_change_during_drag_reroutes(self, layer, recorder):
        g = layer.create_vertical_guide_and_begin_dragging(QPointF(100, 50))
        g.orientation = Orientation.HORIZONTAL
        recorder.reset()
        assert layer.drag_guide_to((700, 120)) == 120
        assert layer.vertical_guides == []
        assert layer.horizontal_guides == [g]
        assert recorder.full == 1
        assert layer.end_dragging_guide() is g

    def test_external_change_before_drag_end_checks_new_axis(self, layer):
        # 450 is inside the zone's x range but past its bottom edge
        g = layer.create_vertical_guide_and_begin_dragging(QPointF(100, 50))
        g.orientation = Orientation.HORIZONTAL
        g.position = 450
        assert layer.end_dragging_guide() is None
        assert layer.guides == []


# ---------------------------------------------------------------------------
# Interactive creation and dragging
# ---------------------------------------------------------------------------

class TestCreateAndDrag:
    def test_create_vertical(self, layer):
        g = layer.create_vertical_guide_and_begin_dragging(QPointF(120, 80))
        assert g is not None
        assert g.orientation is Orientation.VERTICAL
        assert g.position == 120
        assert layer.vertical_guides == [g]
        assert layer.active_drag_guide is g

    def test_create_horizontal_from_pair(self, layer):
        g = layer.create_horizontal_guide_and_begin_dragging((120, 80))
        assert g.orientation is Orientation.HORIZONTAL
        assert g.position == 80
        assert layer.horizontal_guides == [g]

    def test_create_and_drag_with_integer_points(self, layer):
        g = layer.create_vertical_guide_and_begin_dragging(QPoint(30, 40))
        assert g.position == 30
        assert layer.drag_guide_to(QPoint(60, 10)) == 60

    def test_create_gets_layer_colour(self, layer):
        layer.guide_color = QColor(9, 9, 9)
        g = layer.create_vertical_guide_and_begin_dragging(QPointF(1, 1))
        assert g.color == QColor(9, 9, 9)

    def test_create_when_locked_returns_none(self, layer, recorder):
        layer.set_lock_query(lambda: True)
        assert layer.create_vertical_guide_and_begin_dragging(QPointF(10, 10)) is None
        assert layer.create_horizontal_guide_and_begin_dragging(QPointF(10, 10)) is None
        assert layer.guides == []
        assert layer.active_drag_guide is None
        assert recorder.rects == []

    def test_lock_query_is_asked_each_time(self, layer):
        locked = {"value": True}
        layer.set_lock_query(lambda: locked["value"])
        assert layer.create_vertical_guide_and_begin_dragging(QPointF(10, 10)) is None
        locked["value"] = False
        assert layer.create_vertical_guide_and_begin_dragging(QPointF(10, 10)) is not None

    def test_drag_moves_position_along_axis(self, layer, recorder):
        g = layer.create_vertical_guide_and_begin_dragging(QPointF(100, 50))
        old_rect = layer.guide_rect(g)
        recorder.reset()
        assert layer.drag_guide_to(QPointF(140, 300)) == 140
        assert g.position == 140
        assert recorder.rects == [old_rect, layer.guide_rect(g)]

    def test_drag_without_active_guide(self, layer):
        assert layer.drag_guide_to(QPointF(1, 1)) is None

    def test_drag_uses_grid_when_enabled(self, layer):
        layer.set_grid_snapper(lambda p: QPointF(round(p.x() / 10) * 10, round(p.y() / 10) * 10))
        g = layer.create_horizontal_guide_and_begin_dragging(QPointF(0, 100))
        layer.drag_guide_to(QPointF(0, 123))
        assert g.position == 123
        layer.guides_snap_to_grid = True
        layer.drag_guide_to(QPointF(0, 123))
        assert g.position == 120

    def test_force_grid_overrides_default(self, layer):
        layer.set_grid_snapper(lambda p: QPointF(round(p.x() / 10) * 10, p.y()))
        g = layer.create_vertical_guide_and_begin_dragging(QPointF(100, 0))
        assert not layer.guides_snap_to_grid
        layer.drag_guide_to(QPointF(147, 0), force_grid=True)
        assert g.position == 150

    def test_end_drag_inside_zone_keeps_guide(self, layer):
        layer.deletion_zone = QRectF(0, 0, 500, 400)
        g = layer.create_vertical_guide_and_begin_dragging(QPointF(100, 50))
        layer.drag_guide_to(QPointF(250, 999))
        assert layer.end_dragging_guide() is g
        assert layer.contains_guide(g)
        assert layer.active_drag_guide is None

    def test_end_drag_outside_zone_removes_guide(self, layer, recorder):
        layer.deletion_zone = QRectF(0, 0, 500, 400)
        g = layer.create_horizontal_guide_and_begin_dragging(QPointF(100, 50))
        layer.drag_guide_to(QPointF(100, -20))
        rect = layer.guide_rect(g)
        recorder.reset()
        assert layer.end_dragging_guide() is None
        assert not layer.contains_guide(g)
        assert layer.active_drag_guide is None
        assert recorder.rects == [rect]

    @pytest.mark.parametrize("pos, kept", [(0, True), (500, True), (-0.5, False), (500.5, False)])
    def test_zone_edges_are_inside(self, layer, pos, kept):
        layer.deletion_zone = QRectF(0, 0, 500, 400)
        g = layer.create_vertical_guide_and_begin_dragging(QPointF(10, 10))
        layer.drag_guide_to(QPointF(pos, 10))
        layer.end_dragging_guide()
        assert layer.contains_guide(g) is kept

    def test_only_relevant_axis_is_checked(self, layer):
        layer.deletion_zone = QRectF(0, 0, 500, 400)
        g = layer.create_vertical_guide_and_begin_dragging(QPointF(10, 10))
        # y far outside the zone, x inside: a vertical guide only cares about x
        layer.drag_guide_to(QPointF(450, 5000))
        assert layer.end_dragging_guide() is g

    def test_empty_zone_never_deletes(self, layer):
        layer.deletion_zone = QRectF()
        g = layer.create_vertical_guide_and_begin_dragging(QPointF(10, 10))
        layer.drag_guide_to(QPointF(-1000, 0))
        assert layer.end_dragging_guide() is g

    def test_end_drag_without_active_guide(self, layer):
        assert layer.end_dragging_guide() is None

    def test_cancel_keeps_guide(self, layer):
        layer.deletion_zone = QRectF(0, 0, 500, 400)
        g = layer.create_vertical_guide_and_begin_dragging(QPointF(10, 10))
        layer.drag_guide_to(QPointF(-100, 10))
        layer.cancel_dragging_guide()
        assert layer.active_drag_guide is None
        assert layer.contains_guide(g)

    def test_removing_active_guide_clears_reference(self, layer):
        g = layer.create_vertical_guide_and_begin_dragging(QPointF(10, 10))
        layer.remove_guide(g)
        assert layer.active_drag_guide is None
        assert layer.drag_guide_to(QPointF(20, 20)) is None

    def test_remove_all_clears_reference(self, layer):
        layer.create_vertical_guide_and_begin_dragging(QPointF(10, 10))
        layer.remove_all_guides()
        assert layer.active_drag_guide is None

    def test_begin_dragging_existing_guide(self, layer):
        g = _hguide(40)
        layer.add_guide(g)
        assert layer.begin_dragging_guide(g)
        assert layer.active_drag_guide is g

    def test_begin_dragging_refused(self, layer):
        assert not layer.begin_dragging_guide(_hguide(40))
        g = _hguide(40)
        layer.add_guide(g)
        layer.set_lock_query(lambda: True)
        assert not layer.begin_dragging_guide(g)
        assert layer.active_drag_guide is None

    def test_drag_info_text(self, layer):
        assert layer.drag_info_text() is None
        layer.create_vertical_guide_and_begin_dragging(QPointF(12.34, 0))
        assert layer.drag_info_text() == "x: 12.3"
        layer.show_drag_info = False
        assert layer.drag_info_text() is None

    def test_drag_info_text_horizontal(self, layer):
        layer.create_horizontal_guide_and_begin_dragging(QPointF(0, 200))
        assert layer.drag_info_text() == "y: 200.0"


class TestClearGuidesAction:
    def test_clear_guides(self, layer, recorder):
        layer.add_guide(_vguide(1))
        layer.add_guide(_hguide(2))
        recorder.reset()
        assert layer.clear_guides() is True
        assert layer.guides == []
        assert recorder.full == 1

    def test_clear_guides_locked(self, layer, recorder):
        g = _vguide(1)
        layer.add_guide(g)
        layer.set_lock_query(lambda: True)
        recorder.reset()
        assert layer.clear_guides() is False
        assert layer.vertical_guides == [g]
        assert recorder.full == 0


# ---------------------------------------------------------------------------
# Configuration and redraw rects
# ---------------------------------------------------------------------------

class TestConfiguration:
    def test_default_tolerance_is_six(self):
        assert get_default_snap_tolerance() == 6.0
        assert GuideLayer().snap_tolerance == 6.0

    def test_default_tolerance_from_settings(self, isolated_settings):
        isolated_settings.settings.guides.snap.default_tolerance = 9.0
        assert GuideLayer().snap_tolerance == 9.0

    def test_bad_settings_tolerance_uses_builtin_default(self, isolated_settings):
        isolated_settings.settings.guides.snap.default_tolerance = -3
        assert get_default_snap_tolerance() == 6.0

    def test_default_read_once_at_construction(self):
        first = GuideLayer()
        set_default_snap_tolerance(12.0)
        second = GuideLayer()
        assert first.snap_tolerance == 6.0
        assert second.snap_tolerance == 12.0
        assert GuideLayer.default_snap_tolerance() == 12.0

    def test_class_level_setter(self):
        GuideLayer.set_default_snap_tolerance(4.0)
        assert GuideLayer().snap_tolerance == 4.0

    @pytest.mark.parametrize("bad", [0, -1, float("nan"), float("inf"), True, "6"])
    def test_invalid_tolerance_ignored(self, layer, bad):
        layer.snap_tolerance = 8
        layer.snap_tolerance = bad
        assert layer.snap_tolerance == 8.0

    def test_invalid_default_ignored(self):
        set_default_snap_tolerance(0)
        assert get_default_snap_tolerance() == 6.0

    def test_defaults_from_settings(self):
        lyr = GuideLayer()
        assert lyr.drawing_bounds == QRectF(0, 0, 595, 842)
        assert lyr.deletion_zone == lyr.drawing_bounds
        assert lyr.guides_snap_to_grid is False
        assert lyr.show_drag_info is True
        assert lyr.extend_into_margin is False
        assert lyr.guide_color == QColor(0x4A, 0x90, 0xE2)
        assert lyr.active_drag_guide is None
        assert not lyr.is_locked()

    def test_deletion_zone_is_copied(self, layer):
        zone = QRectF(0, 0, 10, 10)
        layer.deletion_zone = zone
        zone.setWidth(99)
        assert layer.deletion_zone.width() == 10


class TestGuideRect:
    def test_vertical_rect(self, layer):
        assert layer.guide_rect(_vguide(100)) == QRectF(98, 0, 4, 400)

    def test_horizontal_rect(self, layer):
        assert layer.guide_rect(_hguide(100)) == QRectF(0, 98, 500, 4)

    def test_extend_into_margin(self, layer, recorder):
        layer.extend_into_margin = True
        assert recorder.full == 1
        assert layer.guide_rect(_vguide(100)) == QRectF(98, -100, 4, 600)
        assert layer.guide_rect(_hguide(100)) == QRectF(-100, 98, 700, 4)

    def test_margin_from_settings(self, isolated_settings):
        isolated_settings.settings.guides.appearance.rect_margin = 5.0
        lyr = GuideLayer(QRectF(0, 0, 100, 100))
        assert lyr.guide_rect(_vguide(50)) == QRectF(45, 0, 10, 100)

    def test_refresh_guide(self, layer, recorder):
        g = _hguide(30)
        layer.refresh_guide(g)
        assert recorder.rects == [layer.guide_rect(g)]

    def test_no_callbacks_installed(self):
        lyr = GuideLayer()
        g = _vguide(10)
        lyr.add_guide(g)
        lyr.remove_guide(g)
        lyr.remove_all_guides()
