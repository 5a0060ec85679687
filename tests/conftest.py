"""
Shared fixtures -- an in-memory bag source with the BagSource surface.
"""
import os
import sys
from dataclasses import dataclass, field
from typing import List

import numpy as np
import pytest
from rosbags.interfaces import MessageDefinition, MessageDefinitionFormat

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from core.models import BagMessage  # noqa: E402
from core.utils import ns_to_sec, sec_to_ns  # noqa: E402


# ---------------------------------------------------------------------------
# Message stand-ins (same attribute shapes as the rosbags classes)
# ---------------------------------------------------------------------------

@dataclass
class KeyValue:
    key: str
    value: str


@dataclass
class Configuration:
    keyvalues: List[KeyValue] = field(default_factory=list)


@dataclass
class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class Quaternion:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0


@dataclass
class Transform:
    translation: Vector3 = field(default_factory=Vector3)
    rotation: Quaternion = field(default_factory=Quaternion)


@dataclass
class TransformStamped:
    child_frame_id: str
    transform: Transform = field(default_factory=Transform)


@dataclass
class TFMessage:
    transforms: List[TransformStamped] = field(default_factory=list)


@dataclass
class Blob:
    data: np.ndarray


@dataclass
class Conn:
    id: int
    topic: str
    msgtype: str
    msgdef: MessageDefinition = MessageDefinition(MessageDefinitionFormat.NONE, "")


class FakeBagSource:
    """
    In-memory BagSource.  ``messages`` is a list of (topic, t_sec, message).

    With ``shared_buffer=True`` every Blob payload handed out is a view over
    one buffer that is overwritten on each delivery, like a reader reusing
    its chunk buffer.
    """

    def __init__(self, connections, messages, start_time=None, end_time=None, shared_buffer=False):
        self.connections = list(connections)
        self._messages = sorted(messages, key=lambda m: m[1])
        times = [m[1] for m in self._messages] or [0.0]
        self.start_time = sec_to_ns(start_time if start_time is not None else min(times))
        self.end_time = sec_to_ns(end_time if end_time is not None else max(times))
        self.shared_buffer = shared_buffer
        self._buffer = np.zeros(64, dtype=np.uint8)
        self.opened = 0
        self.closed = 0
        self.reads = []

    def read_messages(self, topics=None, start=None, end=None):
        self.reads.append({"topics": None if topics is None else set(topics), "start": start, "end": end})
        for topic, t_sec, message in self._messages:
            if topics is not None and topic not in topics:
                continue
            ts = sec_to_ns(t_sec)
            if start is not None and ts < start:
                continue
            if end is not None and ts > end:
                continue
            if self.shared_buffer and isinstance(message, Blob):
                n = len(message.data)
                self._buffer[:n] = message.data
                message = Blob(data=self._buffer[:n])
            yield BagMessage(topic=topic, timestamp=ns_to_sec(ts), message=message)

    def close(self):
        self.closed += 1

    def __enter__(self):
        self.opened += 1
        return self

    def __exit__(self, *args):
        self.close()


def blob(*values) -> Blob:
    return Blob(data=np.array(values, dtype=np.uint8))


def tf(child_frame_id, x=0.0, y=0.0, z=0.0, qz=0.0, qw=1.0) -> TFMessage:
    return TFMessage(transforms=[
        TransformStamped(
            child_frame_id=child_frame_id,
            transform=Transform(translation=Vector3(x, y, z), rotation=Quaternion(0.0, 0.0, qz, qw)),
        )
    ])


def configuration(**kwargs) -> Configuration:
    return Configuration(keyvalues=[KeyValue(k, v) for k, v in kwargs.items()])


@pytest.fixture
def make_source():
    def _make(connections=None, messages=None, **kwargs):
        return FakeBagSource(connections or [], messages or [], **kwargs)
    return _make


def opener_for(source):
    """An ``open_bag`` replacement that always hands back ``source``."""
    def _open(path):
        return source
    return _open
