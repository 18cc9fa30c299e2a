"""
guides package

Guide layer, snapping, and guide archive persistence.
"""

from guides.layer import (
    GuideLayer,
    SnapOffset,
    get_default_snap_tolerance,
    set_default_snap_tolerance,
)
from guides.archive import (
    layer_to_record,
    apply_layer_record,
    layer_from_record,
    save_layer,
    load_layer,
)

__all__ = [
    "GuideLayer",
    "SnapOffset",
    "get_default_snap_tolerance",
    "set_default_snap_tolerance",
    "layer_to_record",
    "apply_layer_record",
    "layer_from_record",
    "save_layer",
    "load_layer",
]
