"""
Frame sync defaults — the single source of truth.

Privileged topics, default origin and the static UI layout that every
session's metadata carries. Override per deployment through the YAML
config (see core/config.py) rather than editing these.
"""

# ---------------------------------------------------------------------------
# Privileged topics
# ---------------------------------------------------------------------------
# Always read during the context pass, regardless of the topic filter.

CONFIGURATION_TOPIC = "/commander/configuration"
TF_TOPIC = "/tf"

# Keys inside a configuration record that carry the map origin
ORIGIN_LATITUDE_KEY = "map_lat"
ORIGIN_LONGITUDE_KEY = "map_lng"
ORIGIN_ALTITUDE_KEY = "map_alt"

DEFAULT_ORIGIN = {"latitude": 0.0, "longitude": 0.0, "altitude": 0.0}


# ---------------------------------------------------------------------------
# XVIZ metadata
# ---------------------------------------------------------------------------

XVIZ_VERSION = "2.0.0"
METADATA_ENVELOPE_TYPE = "xviz/metadata"

FORWARD_CENTER = "/vehicle/camera/center_front"
CENTER_FRONT = "/vehicle/camera/forward_center/image_raw/compressed"

# Static camera panel appended to every metadata document
DEFAULT_UI_CONFIG = {
    "Camera": {
        "type": "panel",
        "children": [
            {
                "type": "video",
                "cameras": [FORWARD_CENTER, CENTER_FRONT],
            }
        ],
        "name": "Camera",
    }
}


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------

NS_PER_SEC = 1_000_000_000
