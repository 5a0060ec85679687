"""
XVIZ Metadata Builder — fluent declaration of streams and session info.

Usage:
    builder = XVIZMetadataBuilder()
    builder.start_time(1000.0).end_time(1030.0)
    builder.stream("/vehicle_pose").category("pose")
    builder.stream("/lidar/points") \\
        .category("primitive").type("point") \\
        .coordinate("VEHICLE_RELATIVE") \\
        .pose({"x": 1.2, "y": 0, "z": 1.8}, {"roll": 0, "pitch": 0, "yaw": 0}) \\
        .stream_style({"radius_pixels": 2})
    metadata = builder.get_metadata()
"""

import copy
from typing import Any, Dict, Optional

from core.constants import XVIZ_VERSION

CATEGORIES = {"annotation", "future_instance", "pose", "primitive", "time_series", "ui_primitive", "variable"}
PRIMITIVE_TYPES = {"circle", "image", "point", "polygon", "polyline", "stadium", "text"}
SCALAR_TYPES = {"float", "int32", "string", "bool"}
COORDINATE_TYPES = {"GEOGRAPHIC", "IDENTITY", "DYNAMIC", "VEHICLE_RELATIVE"}


class XVIZMetadataBuilder:
    """Accumulates stream declarations; one open stream at a time."""

    def __init__(self):
        self._data: Dict[str, Any] = {"version": XVIZ_VERSION, "streams": {}}
        self._stream_id: Optional[str] = None
        self._temp_stream: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Session info
    # ------------------------------------------------------------------
    def start_time(self, t: float) -> "XVIZMetadataBuilder":
        self._data.setdefault("log_info", {})["start_time"] = t
        return self

    def end_time(self, t: float) -> "XVIZMetadataBuilder":
        self._data.setdefault("log_info", {})["end_time"] = t
        return self

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------
    def stream(self, stream_id: str) -> "XVIZMetadataBuilder":
        self._flush()
        self._stream_id = stream_id
        return self

    def _require_stream(self, what: str):
        if self._stream_id is None:
            raise ValueError(f"{what}() called before stream()")

    def category(self, category: str) -> "XVIZMetadataBuilder":
        self._require_stream("category")
        category = category.lower()
        if category not in CATEGORIES:
            raise ValueError(f"Unknown XVIZ category: {category}")
        self._temp_stream["category"] = category.upper()
        return self

    def type(self, type_: str) -> "XVIZMetadataBuilder":
        """Primitive type for primitive streams, scalar type otherwise."""
        self._require_stream("type")
        type_ = type_.lower()
        if self._temp_stream.get("category") == "PRIMITIVE":
            if type_ not in PRIMITIVE_TYPES:
                raise ValueError(f"Unknown primitive type: {type_}")
            self._temp_stream["primitive_type"] = type_.upper()
        else:
            if type_ not in SCALAR_TYPES:
                raise ValueError(f"Unknown scalar type: {type_}")
            self._temp_stream["scalar_type"] = type_.upper()
        return self

    def source(self, source: str) -> "XVIZMetadataBuilder":
        self._require_stream("source")
        self._temp_stream["source"] = source
        return self

    def coordinate(self, coordinate: str) -> "XVIZMetadataBuilder":
        self._require_stream("coordinate")
        if coordinate not in COORDINATE_TYPES:
            raise ValueError(f"Unknown coordinate type: {coordinate}")
        self._temp_stream["coordinate"] = coordinate
        return self

    def pose(self, position: Dict[str, float], orientation: Dict[str, float]) -> "XVIZMetadataBuilder":
        """Static pose of the stream's frame relative to the vehicle."""
        self._require_stream("pose")
        self._temp_stream["transform"] = {
            "position": [position.get("x", 0.0), position.get("y", 0.0), position.get("z", 0.0)],
            "orientation": [
                orientation.get("roll", 0.0),
                orientation.get("pitch", 0.0),
                orientation.get("yaw", 0.0),
            ],
        }
        return self

    def stream_style(self, style: Dict[str, Any]) -> "XVIZMetadataBuilder":
        self._require_stream("stream_style")
        self._temp_stream.setdefault("stream_style", {}).update(style)
        return self

    def _flush(self):
        if self._stream_id is not None:
            self._data["streams"][self._stream_id] = self._temp_stream
        self._stream_id = None
        self._temp_stream = {}

    def get_metadata(self) -> Dict[str, Any]:
        """Return the accumulated metadata document (without envelope)."""
        self._flush()
        return copy.deepcopy(self._data)
