"""
Schema & context scanner -- what the bag contains before any frame is built.

Two independent pieces:
  1. read_session_context  - time bounds, map origin and the /tf tree, read
                             from the privileged topics regardless of the
                             caller's topic filter
  2. collect_topic_types   - (topic -> message type) registry over the
                             declared connections, with type consistency
                             enforcement
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from core.constants import (
    CONFIGURATION_TOPIC,
    ORIGIN_ALTITUDE_KEY,
    ORIGIN_LATITUDE_KEY,
    ORIGIN_LONGITUDE_KEY,
    TF_TOPIC,
)
from core.errors import MalformedConfigurationError, SchemaInconsistencyError
from core.geometry import quaternion_to_euler
from core.models import Origin, Pose, SessionContext, TopicConfig, TopicMessageType
from core.utils import ns_to_sec


@dataclass
class ScanResult:
    """Output of a full scan: context plus the topic type registry."""
    context: SessionContext
    topic_types: Dict[str, str]
    # Deduplicated, first-seen order
    topic_message_types: List[TopicMessageType] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Privileged topic handlers
# ---------------------------------------------------------------------------

def origin_from_configuration(message, default: Origin) -> Origin:
    """
    Read the map origin out of a configuration record's ``keyvalues``.

    Returns ``default`` when the record carries no latitude key.
    """
    config = {kv.key: kv.value for kv in message.keyvalues}
    if ORIGIN_LATITUDE_KEY not in config:
        return default

    try:
        return Origin(
            latitude=float(config[ORIGIN_LATITUDE_KEY]),
            longitude=float(config[ORIGIN_LONGITUDE_KEY]),
            altitude=float(config[ORIGIN_ALTITUDE_KEY]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedConfigurationError(f"Cannot parse map origin from configuration: {e!r}") from e


def poses_from_transforms(message) -> Dict[str, Pose]:
    """Map child_frame_id -> Pose for every transform in a tf message."""
    poses = {}
    for t in message.transforms:
        translation = t.transform.translation
        poses[t.child_frame_id] = Pose(
            x=float(translation.x),
            y=float(translation.y),
            z=float(translation.z),
            **quaternion_to_euler(t.transform.rotation),
        )
    return poses


def read_session_context(
    source,
    *,
    configuration_topic: str = CONFIGURATION_TOPIC,
    tf_topic: str = TF_TOPIC,
    default_origin: Optional[Origin] = None,
) -> SessionContext:
    """
    Single pass over the configuration and tf topics.

    Time bounds come from the bag itself, not from message content.
    """
    origin = replace(default_origin) if default_origin is not None else Origin()
    frame_id_to_pose: Dict[str, Pose] = {}

    for record in source.read_messages(topics=[configuration_topic, tf_topic]):
        if record.topic == configuration_topic:
            origin = origin_from_configuration(record.message, origin)
        elif record.topic == tf_topic:
            frame_id_to_pose.update(poses_from_transforms(record.message))

    return SessionContext(
        start_time=ns_to_sec(source.start_time),
        end_time=ns_to_sec(source.end_time),
        origin=origin,
        frame_id_to_pose=frame_id_to_pose,
        start_time_ns=source.start_time,
        end_time_ns=source.end_time,
    )


# ---------------------------------------------------------------------------
# Topic type registry
# ---------------------------------------------------------------------------

def collect_topic_types(
    connections: Iterable,
    topic_config: Optional[TopicConfig] = None,
) -> Tuple[Dict[str, str], List[TopicMessageType]]:
    """
    Register (topic -> msgtype) for every connection passing the topic filter.

    Raises SchemaInconsistencyError if a topic shows up with a second type.
    """
    topic_config = topic_config or TopicConfig()
    topic_types: Dict[str, str] = {}
    topic_message_types: List[TopicMessageType] = []

    for conn in connections:
        topic, msgtype = conn.topic, conn.msgtype
        if not topic_config.includes(topic):
            continue
        if topic in topic_types:
            if topic_types[topic] != msgtype:
                raise SchemaInconsistencyError(topic, topic_types[topic], msgtype)
            continue
        topic_types[topic] = msgtype
        topic_message_types.append(TopicMessageType(topic=topic, type=msgtype))

    return topic_types, topic_message_types


def scan_bag(
    source,
    topic_config: Optional[TopicConfig] = None,
    *,
    configuration_topic: str = CONFIGURATION_TOPIC,
    tf_topic: str = TF_TOPIC,
    default_origin: Optional[Origin] = None,
    context_reader: Optional[Callable[..., SessionContext]] = None,
) -> ScanResult:
    """
    Context pass followed by the registry scan over one opened source.

    ``context_reader(source)`` replaces the default context pass when given.
    """
    if context_reader is not None:
        context = context_reader(source)
    else:
        context = read_session_context(
            source,
            configuration_topic=configuration_topic,
            tf_topic=tf_topic,
            default_origin=default_origin,
        )
    topic_types, topic_message_types = collect_topic_types(source.connections, topic_config)
    return ScanResult(
        context=context,
        topic_types=topic_types,
        topic_message_types=topic_message_types,
    )
