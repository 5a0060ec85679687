"""
Metadata emitter -- scan results to an XVIZ metadata envelope.
"""

import copy
from typing import Any, Dict, Optional

from core.constants import DEFAULT_UI_CONFIG, METADATA_ENVELOPE_TYPE
from core.models import SessionContext
from xviz.builder import XVIZMetadataBuilder


def build_metadata(
    converters,
    context: SessionContext,
    *,
    ui_config: Optional[Dict[str, Any]] = None,
    builder: Optional[XVIZMetadataBuilder] = None,
) -> Dict[str, Any]:
    """
    Build the metadata envelope for one session.

    Stream declarations come from ``converters``; session bounds from
    ``context``; ``ui_config`` is copied in as-is (defaults to the camera
    panel in core/constants.py).
    """
    builder = builder if builder is not None else XVIZMetadataBuilder()
    converters.build_metadata(builder, context)
    builder.start_time(context.start_time).end_time(context.end_time)
    metadata = builder.get_metadata()

    metadata["ui_config"] = copy.deepcopy(ui_config if ui_config is not None else DEFAULT_UI_CONFIG)

    return {
        "type": METADATA_ENVELOPE_TYPE,
        "data": metadata,
    }
