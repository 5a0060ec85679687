"""
Core package — shared constants, errors, utilities, and data models.

This is the foundation layer with no local dependencies.
"""

from core.utils import format_absolute_time, ns_to_sec, sec_to_ns
from core.constants import (
    CONFIGURATION_TOPIC,
    DEFAULT_ORIGIN,
    DEFAULT_UI_CONFIG,
    TF_TOPIC,
)
from core.errors import (
    FrameSyncError,
    MalformedConfigurationError,
    SchemaInconsistencyError,
    SourceUnavailableError,
)
from core.models import (
    BagMessage,
    Frame,
    Origin,
    Pose,
    SessionContext,
    TopicConfig,
    TopicMessageType,
)
