"""
utils.py

Colour, geometry and value-coercion helpers shared by the guide layer and its archive.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Optional

from PyQt6.QtCore import QPoint, QPointF, QRectF
from PyQt6.QtGui import QColor


def qcolor_to_hex(c: QColor, include_alpha: bool = False) -> str:
    """
    Convert a QColor to a hex string.

    Args:
        c: The QColor to convert
        include_alpha: If True, include alpha channel as 4th byte

    Returns:
        Hex string like "#RRGGBB" or "#RRGGBBAA"
    """
    if include_alpha:
        return "#{:02X}{:02X}{:02X}{:02X}".format(c.red(), c.green(), c.blue(), c.alpha())
    return "#{:02X}{:02X}{:02X}".format(c.red(), c.green(), c.blue())


def hex_to_qcolor(s: Any, fallback: Optional[QColor]) -> Optional[QColor]:
    """
    Parse a hex string to a QColor.

    Args:
        s: Hex string like "#RRGGBB" or "#RRGGBBAA"
        fallback: Color to return if parsing fails (may be None)

    Returns:
        Parsed QColor, or a copy of fallback (None stays None)
    """
    if isinstance(s, str):
        h = s.strip().lstrip("#")
        if len(h) in (6, 8):
            try:
                r = int(h[0:2], 16)
                g = int(h[2:4], 16)
                b = int(h[4:6], 16)
                a = int(h[6:8], 16) if len(h) == 8 else 255
            except ValueError:
                pass
            else:
                return QColor(r, g, b, a)
    return QColor(fallback) if fallback is not None else None


def to_float(value: Any, fallback: float) -> float:
    """Coerce a record value to a finite float, or return fallback."""
    # bool is an int subclass; a stray true/false is not a coordinate
    if isinstance(value, bool):
        return fallback
    try:
        f = float(value)
    except (TypeError, ValueError):
        return fallback
    return f if math.isfinite(f) else fallback


def to_bool(value: Any, fallback: bool) -> bool:
    """Return value if it is a real bool, else fallback."""
    return value if isinstance(value, bool) else fallback


def rect_to_record(r: QRectF) -> Dict[str, float]:
    """Convert a QRectF to an x/y/w/h dict."""
    return {"x": r.x(), "y": r.y(), "w": r.width(), "h": r.height()}


def rect_from_record(rec: Any, fallback: QRectF) -> QRectF:
    """
    Build a QRectF from an x/y/w/h dict.

    Missing or non-numeric members make the whole record fall back,
    since a partially read rect is worse than the default one.
    """
    if not isinstance(rec, dict):
        return QRectF(fallback)
    values = [to_float(rec.get(k), math.nan) for k in ("x", "y", "w", "h")]
    if any(math.isnan(v) for v in values):
        return QRectF(fallback)
    return QRectF(*values)


def to_qpointf(p: Any) -> QPointF:
    """Accept a QPointF, a QPoint or an (x, y) pair."""
    if isinstance(p, QPointF):
        return p
    if isinstance(p, QPoint):
        return QPointF(p)
    x, y = p
    return QPointF(float(x), float(y))
