"""
guides/layer.py

Guide layer: owns any number of horizontal and vertical guides and snaps
points, rects and point sets to them.

The layer draws nothing. Structural changes are reported through a refresh
callback (a guide's rect, or the whole layer), and locking is answered by a
lock query installed by the enclosing layer stack.

By default guides don't snap to the grid while being dragged. The caller can
force it for a single drag (for example while shift is held) with
``drag_guide_to(p, force_grid=True)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence

from PyQt6.QtCore import QPointF, QRectF
from PyQt6.QtGui import QColor

from debug_trace import trace
from models import Guide, Orientation
from settings import get_settings
from utils import hex_to_qcolor, to_qpointf

DEFAULT_SNAP_TOLERANCE = 6.0
DEFAULT_GUIDE_COLOR = QColor(74, 144, 226)

# Process-wide default tolerance, read once by each new layer
_default_snap_tolerance: Optional[float] = None


def get_default_snap_tolerance() -> float:
    """Get the tolerance new layers start with.

    Taken from settings (guides.snap.default_tolerance) on first use.
    Default: 6.0 drawing units.
    """
    global _default_snap_tolerance
    if _default_snap_tolerance is None:
        value = get_settings().settings.guides.snap.default_tolerance
        _default_snap_tolerance = float(value) if is_valid_tolerance(value) else DEFAULT_SNAP_TOLERANCE
    return _default_snap_tolerance


def set_default_snap_tolerance(value: float) -> None:
    """Set the tolerance new layers start with. Existing layers keep theirs."""
    global _default_snap_tolerance
    if not is_valid_tolerance(value):
        trace(f"Ignoring default snap tolerance {value!r}", "GUIDE")
        return
    _default_snap_tolerance = float(value)


def is_valid_tolerance(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


@dataclass
class SnapOffset:
    """Offset found by snapping a set of points, and the guides it came from.

    dx and dy are independent: each comes from the first point that snapped
    on that axis, and the two need not come from the same point.
    """
    dx: float = 0.0
    dy: float = 0.0
    vertical_guide: Optional[Guide] = None
    horizontal_guide: Optional[Guide] = None

    def as_point(self) -> QPointF:
        return QPointF(self.dx, self.dy)


class GuideLayer:
    """
    Horizontal and vertical guides with point/rect snapping.

    Guides are owned by the layer; the active drag guide is only a reference
    into its collections and is cleared when that guide is removed.

    Args:
        drawing_bounds: Bounds of the drawing. Defaults to the size in
            settings (guides.layer). Also the initial deletion zone.
    """

    def __init__(self, drawing_bounds: Optional[QRectF] = None):
        cfg = get_settings().settings.guides
        if drawing_bounds is None:
            drawing_bounds = QRectF(0, 0, cfg.layer.drawing_width, cfg.layer.drawing_height)

        self._drawing_bounds = QRectF(drawing_bounds)
        self._h_guides: List[Guide] = []
        self._v_guides: List[Guide] = []
        self._drag_guide: Optional[Guide] = None

        self._snap_tolerance = get_default_snap_tolerance()
        self._snap_to_grid = bool(cfg.snap.snap_to_grid)
        self._show_drag_info = bool(cfg.snap.show_drag_info)
        self._deletion_zone = QRectF(self._drawing_bounds)
        self._extend_into_margin = bool(cfg.appearance.extend_into_margin)
        self._guide_color = hex_to_qcolor(cfg.appearance.color, DEFAULT_GUIDE_COLOR)
        self._rect_margin = float(cfg.appearance.rect_margin)
        self._margin_extension = float(cfg.appearance.margin_extension)

        # Collaborators, installed by the owning layer stack / view controller
        self._on_refresh_rect: Optional[Callable[[QRectF], None]] = None
        self._on_refresh_all: Optional[Callable[[], None]] = None
        self._lock_query: Optional[Callable[[], bool]] = None
        self._grid_snapper: Optional[Callable[[QPointF], QPointF]] = None

    # ---- class-level default ----

    @staticmethod
    def default_snap_tolerance() -> float:
        return get_default_snap_tolerance()

    @staticmethod
    def set_default_snap_tolerance(value: float) -> None:
        set_default_snap_tolerance(value)

    # ---- collaborators ----

    def set_refresh_callbacks(
        self,
        on_refresh_rect: Optional[Callable[[QRectF], None]],
        on_refresh_all: Optional[Callable[[], None]],
    ):
        """
        Configure the redraw callbacks.

        Args:
            on_refresh_rect: Called with a guide's rect when that guide changes
            on_refresh_all: Called when the whole layer needs redrawing
        """
        self._on_refresh_rect = on_refresh_rect
        self._on_refresh_all = on_refresh_all

    def set_lock_query(self, callback: Optional[Callable[[], bool]]):
        """Set the predicate answering whether the layer is locked."""
        self._lock_query = callback

    def set_grid_snapper(self, callback: Optional[Callable[[QPointF], QPointF]]):
        """Set the grid collaborator used while dragging a guide with grid snap on."""
        self._grid_snapper = callback

    def is_locked(self) -> bool:
        return bool(self._lock_query()) if self._lock_query else False

    # ---- configuration ----

    @property
    def drawing_bounds(self) -> QRectF:
        return QRectF(self._drawing_bounds)

    @drawing_bounds.setter
    def drawing_bounds(self, bounds: QRectF) -> None:
        self._drawing_bounds = QRectF(bounds)
        self.refresh_all()

    @property
    def snap_tolerance(self) -> float:
        """Distance within which a coordinate is pulled onto a guide."""
        return self._snap_tolerance

    @snap_tolerance.setter
    def snap_tolerance(self, value: float) -> None:
        if not is_valid_tolerance(value):
            trace(f"Ignoring snap tolerance {value!r}", "GUIDE")
            return
        self._snap_tolerance = float(value)

    @property
    def guides_snap_to_grid(self) -> bool:
        """Whether dragged guides snap to the grid by default."""
        return self._snap_to_grid

    @guides_snap_to_grid.setter
    def guides_snap_to_grid(self, value: bool) -> None:
        self._snap_to_grid = bool(value)

    @property
    def show_drag_info(self) -> bool:
        """Whether the host should show the floating info window while dragging."""
        return self._show_drag_info

    @show_drag_info.setter
    def show_drag_info(self, value: bool) -> None:
        self._show_drag_info = bool(value)

    @property
    def deletion_zone(self) -> QRectF:
        """Guides dragged outside this rect are deleted. An empty rect disables deletion."""
        return QRectF(self._deletion_zone)

    @deletion_zone.setter
    def deletion_zone(self, rect: QRectF) -> None:
        self._deletion_zone = QRectF(rect)

    @property
    def extend_into_margin(self) -> bool:
        """Whether guide rects run past the drawing bounds into the surrounding margin."""
        return self._extend_into_margin

    @extend_into_margin.setter
    def extend_into_margin(self, value: bool) -> None:
        if bool(value) != self._extend_into_margin:
            self._extend_into_margin = bool(value)
            self.refresh_all()

    @property
    def guide_color(self) -> QColor:
        """Colour given to guides added without one.

        Changing it does not recolour or refresh existing guides.
        """
        return QColor(self._guide_color)

    @guide_color.setter
    def guide_color(self, color: QColor) -> None:
        self._guide_color = QColor(color)

    @property
    def active_drag_guide(self) -> Optional[Guide]:
        return self._drag_guide

    # ---- collections ----

    @property
    def guides(self) -> List[Guide]:
        """All guides, horizontal then vertical."""
        return self._h_guides + self._v_guides

    @property
    def horizontal_guides(self) -> List[Guide]:
        return list(self._h_guides)

    @property
    def vertical_guides(self) -> List[Guide]:
        return list(self._v_guides)

    def _collection(self, orientation: Orientation) -> List[Guide]:
        return self._v_guides if orientation is Orientation.VERTICAL else self._h_guides

    def _owning_collection(self, guide: Guide) -> Optional[List[Guide]]:
        for coll in (self._v_guides, self._h_guides):
            if guide in coll:
                return coll
        return None

    def contains_guide(self, guide: Guide) -> bool:
        return self._owning_collection(guide) is not None

    def _insert(self, guide: Guide) -> bool:
        """Route guide into the collection for its axis. Returns False if already there."""
        owner = self._owning_collection(guide)
        target = self._collection(guide.orientation)
        if owner is target:
            return False
        if owner is not None:
            # orientation was changed behind the layer's back
            owner.remove(guide)
        if guide.color is None:
            guide.color = QColor(self._guide_color)
        target.append(guide)
        return True

    def add_guide(self, guide: Guide) -> None:
        """Add a guide to the layer.

        A guide without its own colour gets the layer's guide colour; after
        adding, the colour can be set individually. Adding a guide that is
        already in the layer does nothing.
        """
        if self._insert(guide):
            trace(f"Added {guide!r}", "GUIDE")
            self.refresh_guide(guide)

    def remove_guide(self, guide: Guide) -> None:
        """Remove a guide. Does nothing if the guide is not in the layer."""
        owner = self._owning_collection(guide)
        if owner is None:
            return
        rect = self.guide_rect(guide)
        owner.remove(guide)
        if self._drag_guide is guide:
            self._drag_guide = None
        trace(f"Removed {guide!r}", "GUIDE")
        self._refresh_rect(rect)

    def remove_all_guides(self) -> None:
        """Remove every guide from the layer."""
        self._clear_collections()
        trace("Removed all guides", "GUIDE")
        self.refresh_all()

    def set_guides(self, guides: Iterable[Guide]) -> None:
        """Replace all guides with the given ones, routed by their own orientation."""
        self._clear_collections()
        for guide in guides:
            self._insert(guide)
        trace(f"Set {len(self._h_guides)} horizontal, {len(self._v_guides)} vertical guides", "GUIDE")
        self.refresh_all()

    def _sync_collection(self, guide: Guide) -> None:
        """Move guide to the collection for its current orientation, if it drifted."""
        owner = self._owning_collection(guide)
        if owner is None or owner is self._collection(guide.orientation):
            return
        trace(f"{guide!r} changed orientation outside the layer", "GUIDE")
        self._insert(guide)
        self.refresh_all()

    def _clear_collections(self) -> None:
        self._h_guides.clear()
        self._v_guides.clear()
        self._drag_guide = None

    def set_guide_orientation(self, guide: Guide, orientation: Orientation) -> None:
        """Change a guide's orientation, moving it to the matching collection."""
        if guide.orientation is orientation:
            return
        if not self.contains_guide(guide):
            guide.orientation = orientation
            return
        old_rect = self.guide_rect(guide)
        guide.orientation = orientation
        self._insert(guide)
        self._refresh_rect(old_rect)
        self.refresh_guide(guide)

    # ---- interactive creation and dragging ----

    def create_vertical_guide_and_begin_dragging(self, p) -> Optional[Guide]:
        """
        Create a vertical guide at p's x, add it, and make it the drag guide.

        Convenient for dragging a guide off a ruler. Returns None and does
        nothing if the layer is locked.
        """
        return self._create_guide_and_begin_dragging(p, Orientation.VERTICAL)

    def create_horizontal_guide_and_begin_dragging(self, p) -> Optional[Guide]:
        """
        Create a horizontal guide at p's y, add it, and make it the drag guide.

        Returns None and does nothing if the layer is locked.
        """
        return self._create_guide_and_begin_dragging(p, Orientation.HORIZONTAL)

    def _create_guide_and_begin_dragging(self, p, orientation: Orientation) -> Optional[Guide]:
        if self.is_locked():
            trace(f"Layer locked, not creating {orientation.value} guide", "DRAG")
            return None
        guide = Guide(orientation=orientation)
        guide.position = guide.coordinate_of(to_qpointf(p))
        self.add_guide(guide)
        self._drag_guide = guide
        trace(f"Begin dragging new {guide!r}", "DRAG")
        return guide

    def begin_dragging_guide(self, guide: Guide) -> bool:
        """Start dragging an existing guide. False if locked or not in this layer."""
        if self.is_locked() or not self.contains_guide(guide):
            return False
        self._drag_guide = guide
        trace(f"Begin dragging {guide!r}", "DRAG")
        return True

    def drag_guide_to(self, p, force_grid: bool = False) -> Optional[float]:
        """
        Move the active drag guide to p.

        Args:
            p: Pointer position in drawing coordinates
            force_grid: Snap to the grid even if guides_snap_to_grid is off

        Returns:
            The guide's new position, or None if no guide is being dragged
        """
        guide = self._drag_guide
        if guide is None:
            return None
        self._sync_collection(guide)
        p = to_qpointf(p)
        if (self._snap_to_grid or force_grid) and self._grid_snapper is not None:
            p = self._grid_snapper(p)
        old_rect = self.guide_rect(guide)
        guide.position = guide.coordinate_of(p)
        self._refresh_rect(old_rect)
        self.refresh_guide(guide)
        return guide.position

    def end_dragging_guide(self) -> Optional[Guide]:
        """
        Finish the current drag.

        The guide is deleted if its position lies outside the deletion zone.

        Returns:
            The guide if it was kept, None if it was deleted or nothing was dragged
        """
        guide = self._drag_guide
        if guide is None:
            return None
        self._drag_guide = None
        self._sync_collection(guide)
        if self.guide_in_deletion_zone(guide):
            trace(f"End dragging {guide!r}", "DRAG")
            return guide
        trace(f"{guide!r} dragged outside deletion zone", "DRAG")
        self.remove_guide(guide)
        return None

    def cancel_dragging_guide(self) -> None:
        """Forget the active drag guide without deleting it."""
        self._drag_guide = None

    def guide_in_deletion_zone(self, guide: Guide) -> bool:
        """Whether the guide's position lies within the deletion zone on its axis.

        Zone edges count as inside. An empty zone keeps every guide.
        """
        zone = self._deletion_zone
        if zone.isEmpty():
            return True
        if guide.is_vertical:
            return zone.left() <= guide.position <= zone.right()
        return zone.top() <= guide.position <= zone.bottom()

    def drag_info_text(self) -> Optional[str]:
        """Text for the floating info window, or None when it shouldn't show."""
        guide = self._drag_guide
        if guide is None or not self._show_drag_info:
            return None
        axis = "x" if guide.is_vertical else "y"
        return f"{axis}: {guide.position:.1f}"

    # ---- nearest guide ----

    def nearest_guide_to_position(self, pos: float, orientation: Orientation) -> Optional[Guide]:
        """
        Find the guide closest to pos, if it lies within the snap tolerance.

        Of equally close guides the first one in the collection wins.

        Args:
            pos: x for vertical guides, y for horizontal guides
            orientation: Which collection to search

        Returns:
            The nearest guide within tolerance, or None
        """
        best: Optional[Guide] = None
        best_dist = math.inf
        for guide in self._collection(orientation):
            d = abs(guide.position - pos)
            if d < best_dist:
                best, best_dist = guide, d
        if best is not None and best_dist <= self._snap_tolerance:
            return best
        return None

    def nearest_vertical_guide_to_position(self, pos: float) -> Optional[Guide]:
        return self.nearest_guide_to_position(pos, Orientation.VERTICAL)

    def nearest_horizontal_guide_to_position(self, pos: float) -> Optional[Guide]:
        return self.nearest_guide_to_position(pos, Orientation.HORIZONTAL)

    # ---- snapping ----

    def snap_point(self, p) -> QPointF:
        """
        Snap a point to the nearest guides within the snap tolerance.

        x and y are snapped individually, so none, one or both may change.
        """
        p = to_qpointf(p)
        x, y = p.x(), p.y()
        gv = self.nearest_vertical_guide_to_position(x)
        if gv is not None:
            x = gv.position
        gh = self.nearest_horizontal_guide_to_position(y)
        if gh is not None:
            y = gh.position
        trace(f"snap_point ({p.x():g}, {p.y():g}) -> ({x:g}, {y:g})", "SNAP")
        return QPointF(x, y)

    def snap_rect(self, r: QRectF, include_centres: bool = False) -> QRectF:
        """
        Snap a rect's corners (and optionally its mid points) to the guides.

        The size never changes; only the origin may move.

        Args:
            r: Rect in drawing coordinates
            include_centres: Also try the edge mid points and the centre

        Returns:
            The rect, moved by the snap offset
        """
        offset = self.snap_points_to_guides(_rect_snap_points(r, include_centres))
        return r.translated(offset.dx, offset.dy)

    def snap_rect_to_guide(self, r: QRectF) -> QRectF:
        """Snap a rect by its corners only."""
        return self.snap_rect(r, include_centres=False)

    def snap_points_to_guides(self, points: Sequence) -> SnapOffset:
        """
        Snap any of a list of points to the guides.

        For each axis the first point in the list that lies within tolerance
        of a guide decides the offset for that axis; later points are not
        considered even if they are closer. The offset is meant to be applied
        to the whole shape the points belong to.

        Args:
            points: QPointF or (x, y) pairs

        Returns:
            SnapOffset with dx/dy and the guides snapped to
        """
        result = SnapOffset()
        for raw in points:
            p = to_qpointf(raw)
            if result.vertical_guide is None:
                gv = self.nearest_vertical_guide_to_position(p.x())
                if gv is not None:
                    result.dx = gv.position - p.x()
                    result.vertical_guide = gv
            if result.horizontal_guide is None:
                gh = self.nearest_horizontal_guide_to_position(p.y())
                if gh is not None:
                    result.dy = gh.position - p.y()
                    result.horizontal_guide = gh
            if result.vertical_guide is not None and result.horizontal_guide is not None:
                break
        return result

    def snap_points(self, points: Sequence) -> QPointF:
        """Offset-only form of snap_points_to_guides."""
        return self.snap_points_to_guides(points).as_point()

    # ---- redraw ----

    def guide_rect(self, guide: Guide) -> QRectF:
        """
        Rect occupied by a guide: a small margin either side of the line,
        running the full length of the drawing (and past it, into the
        margin, when extend_into_margin is on).
        """
        r = guide.rect_in(self._drawing_bounds, self._rect_margin)
        if self._extend_into_margin:
            ext = self._margin_extension
            if guide.is_vertical:
                r = r.adjusted(0, -ext, 0, ext)
            else:
                r = r.adjusted(-ext, 0, ext, 0)
        return r

    def refresh_guide(self, guide: Guide) -> None:
        """Mark a guide as needing to be redrawn."""
        self._refresh_rect(self.guide_rect(guide))

    def refresh_all(self) -> None:
        if self._on_refresh_all:
            self._on_refresh_all()

    def _refresh_rect(self, rect: QRectF) -> None:
        if self._on_refresh_rect:
            self._on_refresh_rect(rect)

    # ---- user actions ----

    def clear_guides(self) -> bool:
        """
        Remove all guides, for hooking to a "Clear Guides" menu item.

        Does nothing and returns False if the layer is locked.
        """
        if self.is_locked():
            trace("Layer locked, not clearing guides", "GUIDE")
            return False
        self.remove_all_guides()
        return True


def _rect_snap_points(r: QRectF, include_centres: bool) -> List[QPointF]:
    """Candidate points of a rect, in the order snapping tries them."""
    points = [r.topLeft(), r.topRight(), r.bottomLeft(), r.bottomRight()]
    if include_centres:
        c = r.center()
        points += [
            QPointF(c.x(), r.top()),
            QPointF(c.x(), r.bottom()),
            QPointF(r.left(), c.y()),
            QPointF(r.right(), c.y()),
            c,
        ]
    return points
