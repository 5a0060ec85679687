"""
Bag — the stateful session tying scanner, assembler and metadata together.

    bag = Bag("drive.bag", {"keyTopic": "/velodyne_points"})
    metadata = bag.init(ConverterRegistry())
    for frame in bag.read_message_by_key_topic(metadata["data"]["log_info"]["start_time"],
                                               metadata["data"]["log_info"]["end_time"]):
        ...

``init()`` opens the bag once for the scan; every read opens its own
fresh source.  Subclass and override ``_init_bag`` to extract extra
session context from bag-specific topics.
"""

import time
from dataclasses import replace
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Union

from bag.assembler import assemble_by_key_topic, assemble_by_time
from bag.reader import open_bag
from bag.scanner import read_session_context, scan_bag
from core.config import FrameSyncConfig
from core.models import Frame, SessionContext, TopicConfig, TopicMessageType
from core.utils import sec_to_ns
from xviz.builder import XVIZMetadataBuilder
from xviz.metadata import build_metadata


class Bag:
    """One bag, one topic configuration, any number of frame reads."""

    def __init__(
        self,
        bag_path: str,
        topic_config: Union[TopicConfig, Mapping, None] = None,
        *,
        config: Optional[FrameSyncConfig] = None,
        opener: Callable = open_bag,
        verbose: bool = False,
    ):
        self.bag_path = bag_path
        self.config = replace(config) if config is not None else FrameSyncConfig(bag_path=bag_path)
        if topic_config is not None:
            self.config.topic_config = TopicConfig.from_value(topic_config)
        self.key_topic = self.config.topic_config.key_topic
        self.topics = self.config.topic_config.topics
        self.verbose = verbose
        self._opener = opener

        self.context: Optional[SessionContext] = None
        self.topic_types: Dict[str, str] = {}
        self.topic_message_types: List[TopicMessageType] = []
        self.metadata: Optional[dict] = None
        self.xviz_metadata: Optional[dict] = None

    def _log(self, msg: str):
        if self.verbose:
            print(msg)

    # ------------------------------------------------------------------
    # Scan + metadata
    # ------------------------------------------------------------------
    def _init_bag(self, source) -> SessionContext:
        """
        Extract the frame-id pose map, start/end time and map origin.

        Subclasses override this for bag-specific context topics.
        """
        return read_session_context(
            source,
            configuration_topic=self.config.configuration_topic,
            tf_topic=self.config.tf_topic,
            default_origin=self.config.default_origin,
        )

    def _init_topics(self, context: SessionContext, topic_message_types, converters):
        converters.initialize_converters(topic_message_types, context)

    def init(self, converters) -> dict:
        """
        Scan the bag, initialize converters and build the metadata envelope.

        Nothing is cached if the scan fails.
        """
        t0 = time.time()
        with self._opener(self.bag_path) as source:
            result = scan_bag(source, self.config.topic_config, context_reader=self._init_bag)
        context = result.context
        topic_types, topic_message_types = result.topic_types, result.topic_message_types

        self._log(f"  Scanned {self.bag_path} in {time.time()-t0:.2f}s")
        self._log(f"  Session: {context.start_time:.3f} -> {context.end_time:.3f} "
                  f"({len(topic_message_types)} topics, {len(context.frame_id_to_pose)} frames in /tf)")

        self._init_topics(context, topic_message_types, converters)

        xviz_metadata = build_metadata(
            converters,
            context,
            ui_config=self.config.ui_config,
            builder=XVIZMetadataBuilder(),
        )

        self.context = context
        self.topic_types = topic_types
        self.topic_message_types = topic_message_types
        self.metadata = xviz_metadata["data"]
        self.xviz_metadata = xviz_metadata
        return self.xviz_metadata

    # ------------------------------------------------------------------
    # Frame reads
    # ------------------------------------------------------------------
    def _bound_ns(self, t: Optional[float]) -> Optional[int]:
        # Session bounds map back to the exact bag-native stamps
        if t is None:
            return None
        context = self.context
        if context is not None:
            if t == context.start_time and context.start_time_ns is not None:
                return context.start_time_ns
            if t == context.end_time and context.end_time_ns is not None:
                return context.end_time_ns
        return sec_to_ns(t)

    def read_message_by_time(self, start: Optional[float] = None, end: Optional[float] = None) -> Frame:
        """All messages in [start, end] (seconds) as a single Frame."""
        with self._opener(self.bag_path) as source:
            frame = assemble_by_time(
                source, start, end,
                topics=self.topics,
                key_topic=self.key_topic,
                start_ns=self._bound_ns(start),
                end_ns=self._bound_ns(end),
            )
        self._log(f"  Frame [{start}, {end}]: {frame.message_count} messages")
        return frame

    def read_message_by_key_topic(self, start: float, end: float) -> Iterator[Frame]:
        """
        Frames synchronized on the key topic, streamed as they complete.

        Both bounds are required; raises ValueError when either is None.
        """
        if start is None or end is None:
            raise ValueError(f"read_message_by_key_topic() needs both bounds, got [{start}, {end}]")
        return self._iter_key_topic_frames(start, end)

    def _iter_key_topic_frames(self, start: float, end: float) -> Iterator[Frame]:
        with self._opener(self.bag_path) as source:
            yield from assemble_by_key_topic(
                source, start, end,
                topics=self.topics,
                key_topic=self.key_topic,
                start_ns=self._bound_ns(start),
                end_ns=self._bound_ns(end),
            )
