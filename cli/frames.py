"""
CLI entry point -- scan a bag and print its metadata and frame summaries.

Usage:
  python -m cli.frames drive.bag --key-topic /velodyne_points
  python -m cli.frames drive.bag --by-time --start 1500000000 --end 1500000005
  python -m cli.frames --config frames.yaml --limit 20
"""

import argparse
import json
import sys

from bag import Bag
from core.config import FrameSyncConfig, load_config
from core.errors import FrameSyncError
from core.models import TopicConfig
from core.utils import format_absolute_time
from xviz import ConverterRegistry


def _build_config(args) -> FrameSyncConfig:
    config = load_config(args.config) if args.config else FrameSyncConfig()
    if args.bag:
        config.bag_path = args.bag

    key_topic = args.key_topic or config.topic_config.key_topic
    topics = config.topic_config.topics
    if args.topics:
        topics = frozenset(t.strip() for t in args.topics.split(",") if t.strip())
    config.topic_config = TopicConfig(key_topic=key_topic, topics=topics)
    return config


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="cli.frames",
        description="Re-emit a ROS bag as time-aligned XVIZ frames",
    )
    parser.add_argument("bag", nargs="?", help="Path to .bag file")
    parser.add_argument("--config", "-c", default=None, help="Path to frame sync YAML config")
    parser.add_argument("--key-topic", "-k", default=None, help="Topic whose messages anchor frames")
    parser.add_argument("--topics", "-t", default=None, help="Comma-separated topic filter")
    parser.add_argument("--start", type=float, default=None, help="Window start (epoch seconds)")
    parser.add_argument("--end", type=float, default=None, help="Window end (epoch seconds)")
    parser.add_argument("--by-time", action="store_true", help="Emit one frame for the whole window")
    parser.add_argument("--limit", type=int, default=10, help="Max frame summaries to print (default: 10)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print detailed progress")
    args = parser.parse_args(argv)

    config = _build_config(args)
    if not config.bag_path:
        parser.error("a bag path is required (positional or bag_path in --config)")

    bag = Bag(config.bag_path, config=config, verbose=args.verbose)

    try:
        print("\n=== METADATA ===")
        metadata = bag.init(ConverterRegistry())
        print(json.dumps(metadata, indent=2)[:3000])

        start = args.start if args.start is not None else bag.context.start_time
        end = args.end if args.end is not None else bag.context.end_time
        print(f"\n=== FRAMES {format_absolute_time(start)} -> {format_absolute_time(end)} ===")

        if args.by_time or not bag.key_topic:
            frame = bag.read_message_by_time(start, end)
            print(json.dumps(frame.summary(), indent=2))
            return 0

        count = 0
        for frame in bag.read_message_by_key_topic(start, end):
            count += 1
            if count <= args.limit:
                print(json.dumps(frame.summary()))
        print(f"\n  {count} frames keyed on {bag.key_topic}")
    except FrameSyncError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
