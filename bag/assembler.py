"""
Frame assembler -- groups replayed messages into frames.

Two modes share one payload-copy primitive:
  - assemble_by_time       one Frame spanning the whole requested window
  - assemble_by_key_topic  one Frame per key-topic message, streamed

The bag reader may hand out payloads that alias a shared buffer (numpy
views over the chunk bytes), so every message is passed through
copy_payload() before it is buffered.

Bounds are seconds.  Callers holding exact bag-native bounds (e.g. the
session bounds from the context pass) pass them as ``start_ns``/``end_ns``
instead; float seconds cannot represent every nanosecond stamp.
"""

import dataclasses
from typing import Iterable, Iterator, Optional

import numpy as np

from core.models import BagMessage, Frame
from core.utils import sec_to_ns


def _copy_data(data):
    if isinstance(data, np.ndarray):
        return data.copy()
    if isinstance(data, (bytearray, memoryview)):
        return bytearray(data)
    return data


def copy_payload(record: BagMessage) -> BagMessage:
    """
    Return ``record`` with its message's ``data`` payload deep-copied.

    Messages without a mutable binary ``data`` field are returned as-is.
    """
    message = record.message
    data = getattr(message, "data", None)
    if data is None:
        return record

    copied = _copy_data(data)
    if copied is data:
        return record

    if dataclasses.is_dataclass(message):
        message = dataclasses.replace(message, data=copied)
    else:
        message.data = copied
    return BagMessage(topic=record.topic, timestamp=record.timestamp, message=message)


def _replay(source, start, end, start_ns, end_ns, topics) -> Iterator[BagMessage]:
    start_ns = start_ns if start_ns is not None else sec_to_ns(start)
    end_ns = end_ns if end_ns is not None else sec_to_ns(end)
    for record in source.read_messages(topics=topics, start=start_ns, end=end_ns):
        yield copy_payload(record)


def assemble_by_time(
    source,
    start: Optional[float] = None,
    end: Optional[float] = None,
    *,
    topics: Optional[Iterable[str]] = None,
    key_topic: Optional[str] = None,
    start_ns: Optional[int] = None,
    end_ns: Optional[int] = None,
) -> Frame:
    """
    Collect every message in [start, end] (seconds, both optional) into one Frame.

    The frame's key slot keeps the last key-topic message in the window.
    """
    frame = Frame()

    for record in _replay(source, start, end, start_ns, end_ns, topics):
        if record.topic == key_topic:
            frame.key_topic = record
        frame.add(record)

    return frame


def assemble_by_key_topic(
    source,
    start: Optional[float],
    end: Optional[float],
    *,
    topics: Optional[Iterable[str]] = None,
    key_topic: Optional[str] = None,
    start_ns: Optional[int] = None,
    end_ns: Optional[int] = None,
) -> Iterator[Frame]:
    """
    Yield one Frame per key-topic message in [start, end] (seconds).

    A frame runs from its key message up to, not including, the next one.
    Messages seen before the first key message join the first frame; an
    accumulator that never saw a key message is dropped.
    """
    frame = Frame()

    for record in _replay(source, start, end, start_ns, end_ns, topics):
        if record.topic == key_topic:
            if frame.key_topic is not None:
                yield frame
                frame = Frame()
            frame.key_topic = record
        frame.add(record)

    # Flush the final frame
    if frame.key_topic is not None:
        yield frame
