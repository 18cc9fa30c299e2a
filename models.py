"""
models.py

Data models for guides: orientation constants and the Guide value entity.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from PyQt6.QtCore import QPointF, QRectF
from PyQt6.QtGui import QColor

from utils import hex_to_qcolor, qcolor_to_hex, to_float


# ----------------------------
# Orientation
# ----------------------------

class Orientation(Enum):
    """Axis a guide lies along.

    A vertical guide constrains x, a horizontal guide constrains y.
    """
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


# ----------------------------
# Guide model
# ----------------------------

@dataclass(eq=False)
class Guide:
    """One alignment line at a fixed position along one axis.

    Guides compare and hash by identity: two guides at the same position
    are still two guides, and a layer removes exactly the instance it is
    given.

    Change the orientation of a guide that is in a layer through
    GuideLayer.set_guide_orientation. A direct assignment is picked up on
    the layer's next drag step, but snapping queries made before then still
    see the guide on its old axis.
    """
    position: float = 0.0
    orientation: Orientation = Orientation.VERTICAL
    color: Optional[QColor] = None   # None = use the layer's guide colour

    @property
    def is_vertical(self) -> bool:
        return self.orientation is Orientation.VERTICAL

    @is_vertical.setter
    def is_vertical(self, vertical: bool) -> None:
        self.orientation = Orientation.VERTICAL if vertical else Orientation.HORIZONTAL

    def coordinate_of(self, p: QPointF) -> float:
        """Return the coordinate of p that this guide constrains."""
        return p.x() if self.is_vertical else p.y()

    def rect_in(self, bounds: QRectF, margin: float) -> QRectF:
        """Return the rect this guide occupies within bounds.

        The rect is 2 * margin wide, centred on the line, and runs the full
        extent of bounds along the line.

        Args:
            bounds: Drawing bounds.
            margin: Distance either side of the line.

        Returns:
            A QRectF in drawing coordinates.
        """
        if self.is_vertical:
            return QRectF(self.position - margin, bounds.top(), 2 * margin, bounds.height())
        return QRectF(bounds.left(), self.position - margin, bounds.width(), 2 * margin)

    def to_record(self) -> Dict[str, Any]:
        """Serialize to a plain dict. Orientation is implied by the list holding it."""
        return {
            "position": self.position,
            "color": qcolor_to_hex(self.color, include_alpha=True) if self.color is not None else None,
        }

    @classmethod
    def from_record(cls, rec: Dict[str, Any], orientation: Orientation) -> "Guide":
        """Create a guide from a record dict, falling back to defaults per field.

        Args:
            rec: Dict with optional ``position`` and ``color`` keys.
            orientation: Axis of the list the record came from.

        Returns:
            A new Guide.
        """
        return cls(
            position=to_float(rec.get("position"), 0.0),
            orientation=orientation,
            color=hex_to_qcolor(rec.get("color"), None),
        )

    def __repr__(self) -> str:
        axis = "x" if self.is_vertical else "y"
        return f"Guide({self.orientation.value}, {axis}={self.position:g})"
