"""
Bag source -- opens a ROS1 bag and replays deserialized messages.

Wraps either a ``rosbags.rosbag1.Reader`` or, for bags whose index is
missing, a ``TruncatedBagReader``.  Message types declared in the bag but
unknown to the typestore (custom messages) are registered from the
connection's embedded definition on first sight.
"""

import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from rosbags.rosbag1 import Reader, ReaderError
from rosbags.typesys import Stores, get_types_from_msg, get_typestore

from bag.truncated_reader import TruncatedBagReader, is_bag_truncated
from core.errors import SourceUnavailableError
from core.models import BagMessage
from core.utils import ns_to_sec


class BagSource:
    """
    An opened bag.  Use as a context manager; closing releases the file.

    Times on this interface are bag-native nanoseconds.
    """

    def __init__(self, reader, path: str, typestore=None):
        self.reader = reader
        self.path = path
        self.typestore = typestore or get_typestore(Stores.ROS1_NOETIC)

    @property
    def connections(self) -> List:
        return list(self.reader.connections)

    @property
    def start_time(self) -> int:
        return self.reader.start_time

    @property
    def end_time(self) -> int:
        return self.reader.end_time

    def _ensure_type(self, connection):
        if connection.msgtype in self.typestore.fielddefs:
            return
        # msgdef is a MessageDefinition(format, data); data holds the ROS1 text
        self.typestore.register(get_types_from_msg(connection.msgdef.data, connection.msgtype))

    def deserialize(self, rawdata: bytes, connection):
        self._ensure_type(connection)
        return self.typestore.deserialize_ros1(rawdata, connection.msgtype)

    def read_messages(
        self,
        topics: Optional[Iterable[str]] = None,
        start: Optional[int] = None,
        end: Optional[int] = None,
    ) -> Iterator[BagMessage]:
        """
        Yield BagMessage records oldest to newest.

        ``topics`` restricts the read (None = all topics); ``start`` and ``end``
        are inclusive nanosecond bounds.
        """
        connections = self.connections
        if topics is not None:
            wanted = set(topics)
            connections = [c for c in connections if c.topic in wanted]
            if not connections:
                return

        stop = end + 1 if end is not None else None
        for conn, timestamp, rawdata in self.reader.messages(
            connections=connections, start=start, stop=stop
        ):
            yield BagMessage(
                topic=conn.topic,
                timestamp=ns_to_sec(timestamp),
                message=self.deserialize(rawdata, conn),
            )

    def close(self):
        self.reader.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def open_bag(bag_path: str) -> BagSource:
    """
    Open a ROS1 bag, falling back to sequential reading for truncated bags.

    Raises SourceUnavailableError when the file is missing or unreadable.
    """
    if not os.path.exists(bag_path):
        raise SourceUnavailableError(bag_path, "file not found")

    try:
        reader = Reader(Path(bag_path))
        reader.open()
        return BagSource(reader, bag_path)
    except ReaderError as e:
        try:
            truncated = is_bag_truncated(bag_path)
        except OSError as os_err:
            raise SourceUnavailableError(bag_path, str(os_err)) from os_err
        if not truncated:
            raise SourceUnavailableError(bag_path, str(e)) from e

    print(f"  [INFO] Bag index damaged/missing, using sequential reader for: {os.path.basename(bag_path)}")
    try:
        reader = TruncatedBagReader(bag_path).open()
    except (ReaderError, OSError) as e:
        raise SourceUnavailableError(bag_path, str(e)) from e
    return BagSource(reader, bag_path)
