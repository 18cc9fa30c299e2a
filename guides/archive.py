"""
guides/archive.py

Reading and writing guide layer state as plain dicts and JSON files.

Every layer field and every guide is written. On reading, a missing or
malformed field falls back to its default instead of failing the load:

    snap_tolerance      -> process-wide default tolerance
    snap_to_grid        -> False
    show_drag_info      -> True
    extend_into_margin  -> False
    guide_color         -> guide colour from settings
    deletion_zone       -> the layer's drawing bounds
    guide position      -> 0.0
    guide color         -> the layer's guide colour
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from PyQt6.QtCore import QRectF

from debug_trace import trace
from guides.layer import (
    DEFAULT_GUIDE_COLOR,
    GuideLayer,
    is_valid_tolerance,
    get_default_snap_tolerance,
)
from models import Guide, Orientation
from schemas import validate_archive
from settings import get_settings
from utils import hex_to_qcolor, qcolor_to_hex, rect_from_record, rect_to_record, to_bool

log = logging.getLogger(__name__)

ARCHIVE_VERSION = 1

# Archive list key -> orientation of the guides stored in it
GUIDE_LIST_KEYS = {
    "horizontal_guides": Orientation.HORIZONTAL,
    "vertical_guides": Orientation.VERTICAL,
}


def layer_to_record(layer: GuideLayer) -> Dict[str, Any]:
    """
    Serialize a guide layer to a JSON-compatible dict.

    The active drag guide is transient and not written.
    """
    return {
        "version": ARCHIVE_VERSION,
        "snap_tolerance": layer.snap_tolerance,
        "snap_to_grid": layer.guides_snap_to_grid,
        "show_drag_info": layer.show_drag_info,
        "extend_into_margin": layer.extend_into_margin,
        "guide_color": qcolor_to_hex(layer.guide_color, include_alpha=True),
        "deletion_zone": rect_to_record(layer.deletion_zone),
        "horizontal_guides": [g.to_record() for g in layer.horizontal_guides],
        "vertical_guides": [g.to_record() for g in layer.vertical_guides],
    }


def _guides_from_record(rec: Dict[str, Any]) -> List[Guide]:
    guides: List[Guide] = []
    for key, orientation in GUIDE_LIST_KEYS.items():
        entries = rec.get(key, [])
        if not isinstance(entries, list):
            log.warning("Guide archive: %s is not a list, ignoring it", key)
            continue
        for idx, entry in enumerate(entries):
            if not isinstance(entry, dict):
                log.warning("Guide archive: skipping %s[%d], not an object", key, idx)
                continue
            guides.append(Guide.from_record(entry, orientation))
    return guides


def apply_layer_record(layer: GuideLayer, rec: Any) -> GuideLayer:
    """
    Restore a layer's fields and guides from a dict written by layer_to_record.

    Schema problems are logged; each bad field falls back to its default.

    Args:
        layer: Layer to restore into. Its existing guides are replaced.
        rec: Archive dict.

    Returns:
        The same layer.
    """
    if not isinstance(rec, dict):
        log.warning("Guide archive is not an object, restoring defaults")
        rec = {}

    is_valid, messages = validate_archive(rec)
    if not is_valid:
        for msg in messages:
            log.warning("Guide archive: %s", msg)

    version = rec.get("version", ARCHIVE_VERSION)
    if isinstance(version, int) and version > ARCHIVE_VERSION:
        log.warning("Guide archive version %s is newer than %s, reading known fields only",
                    version, ARCHIVE_VERSION)

    tolerance = rec.get("snap_tolerance")
    layer.snap_tolerance = tolerance if is_valid_tolerance(tolerance) else get_default_snap_tolerance()

    layer.guides_snap_to_grid = to_bool(rec.get("snap_to_grid"), False)
    layer.show_drag_info = to_bool(rec.get("show_drag_info"), True)
    layer.extend_into_margin = to_bool(rec.get("extend_into_margin"), False)

    default_color = hex_to_qcolor(get_settings().settings.guides.appearance.color, DEFAULT_GUIDE_COLOR)
    layer.guide_color = hex_to_qcolor(rec.get("guide_color"), default_color)

    layer.deletion_zone = rect_from_record(rec.get("deletion_zone"), layer.drawing_bounds)

    # guide_color must be in place first so uncoloured guides pick it up
    layer.set_guides(_guides_from_record(rec))
    trace(f"Restored {len(layer.horizontal_guides)} horizontal, "
          f"{len(layer.vertical_guides)} vertical guides", "ARCHIVE")
    return layer


def layer_from_record(rec: Any, drawing_bounds: Optional[QRectF] = None) -> GuideLayer:
    """Create a new layer from an archive dict."""
    return apply_layer_record(GuideLayer(drawing_bounds), rec)


def save_layer(layer: GuideLayer, path: Union[str, Path]) -> None:
    """
    Write a layer's guides and settings to a JSON file.

    Raises:
        OSError: If the file can't be written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(layer_to_record(layer), f, indent=2)
    trace(f"Saved guides to {path}", "ARCHIVE")


def load_layer(path: Union[str, Path], layer: Optional[GuideLayer] = None) -> GuideLayer:
    """
    Read a JSON guide archive.

    Args:
        path: Archive file.
        layer: Layer to restore into; a new one is created if None.

    Returns:
        The restored layer.

    Raises:
        OSError: If the file can't be read.
        json.JSONDecodeError: If the file is not JSON at all.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    trace(f"Loaded guides from {path}", "ARCHIVE")
    if layer is None:
        layer = GuideLayer()
    return apply_layer_record(layer, data)
