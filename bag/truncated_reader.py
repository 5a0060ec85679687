"""
Truncated Bag Support — sequential reader for ROS1 bags with missing indices.

When a bag's recording is interrupted (e.g., robot power-off), the index section
at the end is missing or incomplete and rosbags refuses to open it.  This module
provides `TruncatedBagReader` which scans the file sequentially and exposes the
same surface as ``rosbags.rosbag1.Reader`` (connections, start/end time,
``messages()``).
"""

import bz2
import struct
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

import lz4.frame
from rosbags.interfaces import MessageDefinition, MessageDefinitionFormat
from rosbags.rosbag1 import ReaderError

BAG_MAGIC = b'#ROSBAG V2.0'

# ROS1 bag record op codes
OP_MSG_DATA = 0x02
OP_BAG_HEADER = 0x03
OP_CHUNK = 0x05
OP_CONNECTION = 0x07


@dataclass
class TruncatedConnection:
    """Connection recovered from a chunk payload (same attribute names as rosbags)."""
    id: int
    topic: str
    msgtype: str
    msgdef: MessageDefinition
    md5sum: str
    msgcount: int = 0


def _parse_fields(data: bytes) -> Dict[bytes, bytes]:
    """Parse a ``len|key=value`` field list (record headers, connection data)."""
    fields = {}
    offset = 0
    while offset + 4 <= len(data):
        field_len = struct.unpack_from('<I', data, offset)[0]
        offset += 4
        if offset + field_len > len(data):
            break
        field_data = data[offset:offset + field_len]
        offset += field_len
        if b'=' in field_data:
            key, val = field_data.split(b'=', 1)
            fields[key] = val
    return fields


def _iter_records(buf: bytes) -> Iterator[Tuple[Dict[bytes, bytes], bytes]]:
    """Yield (header_fields, data) for each complete record in an in-memory buffer."""
    offset = 0
    while offset + 4 <= len(buf):
        header_len = struct.unpack_from('<I', buf, offset)[0]
        offset += 4
        if offset + header_len + 4 > len(buf):
            return
        header = buf[offset:offset + header_len]
        offset += header_len
        data_len = struct.unpack_from('<I', buf, offset)[0]
        offset += 4
        if offset + data_len > len(buf):
            return
        yield _parse_fields(header), buf[offset:offset + data_len]
        offset += data_len


def _iter_file_records(bio) -> Iterator[Tuple[Dict[bytes, bytes], bytes]]:
    """Yield (header_fields, data) for each top-level record until the file ends or tears."""
    while True:
        header_len_data = bio.read(4)
        if len(header_len_data) < 4:
            return
        header_len = struct.unpack('<I', header_len_data)[0]
        header = bio.read(header_len)
        if len(header) < header_len:
            return
        data_len_data = bio.read(4)
        if len(data_len_data) < 4:
            return
        data_len = struct.unpack('<I', data_len_data)[0]
        data = bio.read(data_len)
        if len(data) < data_len:
            return
        yield _parse_fields(header), data


def _op(fields: Dict[bytes, bytes]) -> Optional[int]:
    op = fields.get(b'op')
    return op[0] if op else None


def _decompress(fields: Dict[bytes, bytes], data: bytes) -> Optional[bytes]:
    compression = fields.get(b'compression', b'none').decode()
    try:
        if compression == 'lz4':
            return lz4.frame.decompress(data)
        if compression == 'bz2':
            return bz2.decompress(data)
    except (RuntimeError, OSError, ValueError):
        # Torn chunk at the end of an interrupted recording
        return None
    return data


def _timestamp_ns(fields: Dict[bytes, bytes]) -> int:
    secs, nsecs = struct.unpack('<II', fields[b'time'])
    return secs * 1_000_000_000 + nsecs


def normalize_msgtype(msgtype: str) -> str:
    """``pkg/Type`` -> ``pkg/msg/Type`` (rosbags naming)."""
    return msgtype if '/msg/' in msgtype else msgtype.replace('/', '/msg/', 1)


def _connection_from_record(fields: Dict[bytes, bytes], data: bytes) -> Optional[TruncatedConnection]:
    # Topic lives in the record header; type/md5/definition in the data section
    info = _parse_fields(data)
    if b'conn' not in fields or b'topic' not in fields or b'type' not in info:
        return None
    return TruncatedConnection(
        id=struct.unpack('<I', fields[b'conn'])[0],
        topic=fields[b'topic'].decode(),
        msgtype=normalize_msgtype(info[b'type'].decode()),
        msgdef=MessageDefinition(
            MessageDefinitionFormat.MSG, info.get(b'message_definition', b'').decode()
        ),
        md5sum=info.get(b'md5sum', b'').decode(),
    )


def is_bag_truncated(bag_path: str) -> bool:
    """Check if a ROS1 bag file is truncated (index missing or beyond file end)."""
    with open(bag_path, 'rb') as f:
        if BAG_MAGIC not in f.readline():
            return False
        for fields, _ in _iter_file_records(f):
            if _op(fields) != OP_BAG_HEADER or b'index_pos' not in fields:
                return False
            index_pos = struct.unpack('<Q', fields[b'index_pos'])[0]
            f.seek(0, 2)
            file_size = f.tell()
            return index_pos == 0 or index_pos >= file_size
    return True


class TruncatedBagReader:
    """
    Sequential reader for truncated ROS1 bags.

    Scans the file chunk by chunk, extracting connections and messages from
    the chunk payloads without needing the index.
    """

    def __init__(self, path: str):
        self.path = path
        self.connections: List[TruncatedConnection] = []
        self.start_time: int = 0
        self.end_time: int = 0
        self.duration: int = 0
        self.message_count: int = 0
        self._conn_map: Dict[int, TruncatedConnection] = {}

    def _chunks(self) -> Iterator[bytes]:
        with open(self.path, 'rb') as bio:
            if BAG_MAGIC not in bio.readline():
                raise ReaderError('Not a ROS1 bag v2.0 file')
            for fields, data in _iter_file_records(bio):
                if _op(fields) != OP_CHUNK:
                    continue
                chunk = _decompress(fields, data)
                if chunk is not None:
                    yield chunk

    def open(self) -> 'TruncatedBagReader':
        """Scan the bag sequentially to build connection list and time range."""
        conn_map: Dict[int, TruncatedConnection] = {}
        msg_counts: Dict[int, int] = defaultdict(int)
        min_ts = None
        max_ts = 0

        for chunk in self._chunks():
            for fields, data in _iter_records(chunk):
                op = _op(fields)
                if op == OP_CONNECTION:
                    conn = _connection_from_record(fields, data)
                    if conn is not None and conn.id not in conn_map:
                        conn_map[conn.id] = conn
                elif op == OP_MSG_DATA and b'conn' in fields and b'time' in fields:
                    ts_ns = _timestamp_ns(fields)
                    min_ts = ts_ns if min_ts is None else min(min_ts, ts_ns)
                    max_ts = max(max_ts, ts_ns)
                    msg_counts[struct.unpack('<I', fields[b'conn'])[0]] += 1

        for conn_id, conn in conn_map.items():
            conn.msgcount = msg_counts.get(conn_id, 0)

        self._conn_map = conn_map
        self.connections = list(conn_map.values())
        self.start_time = min_ts if min_ts is not None else 0
        self.end_time = max_ts
        self.duration = max(0, self.end_time - self.start_time)
        self.message_count = sum(msg_counts.values())
        return self

    def messages(self, connections=None, start: Optional[int] = None, stop: Optional[int] = None):
        """
        Yield (connection, timestamp_ns, rawdata) for each message, in file order.

        ``start`` is inclusive and ``stop`` exclusive, matching rosbags.
        """
        conn_ids = {c.id for c in connections} if connections is not None else None

        for chunk in self._chunks():
            for fields, data in _iter_records(chunk):
                if _op(fields) != OP_MSG_DATA or b'conn' not in fields or b'time' not in fields:
                    continue
                conn_id = struct.unpack('<I', fields[b'conn'])[0]
                if conn_ids is not None and conn_id not in conn_ids:
                    continue
                ts_ns = _timestamp_ns(fields)
                if start is not None and ts_ns < start:
                    continue
                if stop is not None and ts_ns >= stop:
                    continue
                conn = self._conn_map.get(conn_id)
                if conn is not None:
                    yield conn, ts_ns, data

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
