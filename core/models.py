"""
Shared data models — dataclasses used across the bag and xviz packages.

All frame sync data structures live here to avoid circular imports.
"""

from dataclasses import dataclass, field as dataclass_field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Union


# ---------------------------------------------------------------------------
# Topic configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TopicConfig:
    """Key topic and topic filter for one session. Immutable."""
    key_topic: Optional[str] = None
    topics: Optional[FrozenSet[str]] = None   # None = every topic in the bag

    def __post_init__(self):
        if self.topics is not None and not isinstance(self.topics, frozenset):
            object.__setattr__(self, "topics", frozenset(self.topics))

    def includes(self, topic: str) -> bool:
        return self.topics is None or topic in self.topics

    @classmethod
    def from_value(cls, value: Union["TopicConfig", Mapping, None]) -> "TopicConfig":
        """Accept a TopicConfig, a mapping (``keyTopic``/``key_topic``, ``topics``) or None."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        key_topic = value.get("key_topic", value.get("keyTopic"))
        topics = value.get("topics")
        return cls(key_topic=key_topic, topics=frozenset(topics) if topics is not None else None)


# ---------------------------------------------------------------------------
# Session context
# ---------------------------------------------------------------------------

@dataclass
class Origin:
    """Geographic reference point for the session's map coordinates."""
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0

    def to_dict(self) -> dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
        }


@dataclass
class Pose:
    """Pose of a coordinate frame: translation plus Euler orientation (radians)."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0

    def to_dict(self) -> dict:
        return {
            "x": self.x, "y": self.y, "z": self.z,
            "roll": self.roll, "pitch": self.pitch, "yaw": self.yaw,
        }


@dataclass
class SessionContext:
    """Everything the context pass learns about a bag."""
    start_time: float                   # seconds
    end_time: float                     # seconds, >= start_time
    origin: Origin = dataclass_field(default_factory=Origin)
    # child_frame_id -> pose, last write wins
    frame_id_to_pose: Dict[str, Pose] = dataclass_field(default_factory=dict)
    # Bag-native nanosecond bounds, exact
    start_time_ns: Optional[int] = None
    end_time_ns: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "origin": self.origin.to_dict(),
            "frame_id_to_pose": {k: v.to_dict() for k, v in self.frame_id_to_pose.items()},
        }


@dataclass(frozen=True)
class TopicMessageType:
    """A (topic, message type) pair declared by a bag connection."""
    topic: str
    type: str


# ---------------------------------------------------------------------------
# Messages and frames
# ---------------------------------------------------------------------------

@dataclass
class BagMessage:
    """A single deserialized message delivered by a BagSource."""
    topic: str
    timestamp: float          # seconds (bag receive time)
    message: Any              # deserialized rosbags message object


@dataclass
class Frame:
    """
    A bundle of per-topic message sequences.

    ``key_topic`` holds the message anchoring the frame in key-topic mode,
    or the last key-topic message seen in time-window mode.
    """
    messages: Dict[str, List[BagMessage]] = dataclass_field(default_factory=dict)
    key_topic: Optional[BagMessage] = None

    def add(self, record: BagMessage):
        self.messages.setdefault(record.topic, []).append(record)

    def __getitem__(self, topic: str) -> List[BagMessage]:
        return self.messages[topic]

    def __contains__(self, topic: str) -> bool:
        return topic in self.messages

    def get(self, topic: str, default: Optional[Iterable] = None):
        return self.messages.get(topic, default)

    @property
    def topics(self) -> List[str]:
        return list(self.messages)

    @property
    def message_count(self) -> int:
        return sum(len(v) for v in self.messages.values())

    @property
    def start_time(self) -> Optional[float]:
        times = [m.timestamp for msgs in self.messages.values() for m in msgs]
        return min(times) if times else None

    @property
    def end_time(self) -> Optional[float]:
        times = [m.timestamp for msgs in self.messages.values() for m in msgs]
        return max(times) if times else None

    def summary(self) -> dict:
        return {
            "key_time": self.key_topic.timestamp if self.key_topic else None,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "topics": {topic: len(msgs) for topic, msgs in sorted(self.messages.items())},
        }
