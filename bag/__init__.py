"""Bag package -- bag access, schema scan and frame assembly."""
from bag.reader import BagSource, open_bag
from bag.truncated_reader import TruncatedBagReader
from bag.scanner import ScanResult, collect_topic_types, read_session_context, scan_bag
from bag.assembler import assemble_by_key_topic, assemble_by_time, copy_payload
from bag.bag import Bag
