"""
Topic converters — per-topic XVIZ stream declarations.

CONVERTERS maps a ROS message type to the converter class that declares
its streams.  ConverterRegistry instantiates one converter per topic found
by the scanner and lets each contribute to the metadata builder.
"""

from typing import Dict, Iterable, List, Optional, Type

from core.models import SessionContext, TopicMessageType

VEHICLE_POSE_STREAM = "/vehicle_pose"


class Converter:
    """Base converter: one topic in, zero or more XVIZ streams declared."""

    MESSAGE_TYPES = ()

    def __init__(self, topic: str, msgtype: str, context: SessionContext, frame_id: Optional[str] = None):
        self.topic = topic
        self.msgtype = msgtype
        self.context = context
        self.frame_id = frame_id

    @property
    def stream_name(self) -> str:
        return self.topic

    def get_metadata(self, builder, context: SessionContext):
        raise NotImplementedError


class PoseConverter(Converter):
    """Odometry drives the vehicle pose stream."""

    MESSAGE_TYPES = ("nav_msgs/msg/Odometry",)

    @property
    def stream_name(self) -> str:
        return VEHICLE_POSE_STREAM

    def get_metadata(self, builder, context):
        builder.stream(self.stream_name).category("pose").source(self.topic)


class PointCloudConverter(Converter):
    """Point clouds, placed with the sensor frame's pose from /tf when known."""

    MESSAGE_TYPES = ("sensor_msgs/msg/PointCloud2",)

    def get_metadata(self, builder, context):
        builder.stream(self.stream_name) \
            .category("primitive") \
            .type("point") \
            .source(self.topic) \
            .coordinate("VEHICLE_RELATIVE") \
            .stream_style({"fill_color": "#00a", "radius_pixels": 2})

        pose = context.frame_id_to_pose.get(self.frame_id) if self.frame_id else None
        if pose is not None:
            builder.pose(
                {"x": pose.x, "y": pose.y, "z": pose.z},
                {"roll": pose.roll, "pitch": pose.pitch, "yaw": pose.yaw},
            )


class ImageConverter(Converter):
    """Camera images, raw or compressed."""

    MESSAGE_TYPES = ("sensor_msgs/msg/CompressedImage", "sensor_msgs/msg/Image")

    def get_metadata(self, builder, context):
        builder.stream(self.stream_name).category("primitive").type("image").source(self.topic)


CONVERTERS: Dict[str, Type[Converter]] = {}
for _cls in (PoseConverter, PointCloudConverter, ImageConverter):
    for _msgtype in _cls.MESSAGE_TYPES:
        CONVERTERS[_msgtype] = _cls


class ConverterRegistry:
    """
    Topic -> converter wiring for one session.

    ``frame_ids`` maps a topic to its sensor frame id (for /tf pose lookup).
    """

    def __init__(
        self,
        converters: Optional[Dict[str, Type[Converter]]] = None,
        frame_ids: Optional[Dict[str, str]] = None,
    ):
        self.converter_classes: Dict[str, Type[Converter]] = dict(CONVERTERS if converters is None else converters)
        self.frame_ids: Dict[str, str] = dict(frame_ids or {})
        self.converters: List[Converter] = []

    def register(self, msgtype: str, converter_class: Type[Converter]):
        self.converter_classes[msgtype] = converter_class

    def initialize_converters(self, topic_message_types: Iterable[TopicMessageType], context: SessionContext):
        """One converter per topic whose type has a registered converter class."""
        self.converters = []
        for tmt in topic_message_types:
            converter_class = self.converter_classes.get(tmt.type)
            if converter_class is None:
                continue
            self.converters.append(
                converter_class(tmt.topic, tmt.type, context, frame_id=self.frame_ids.get(tmt.topic))
            )

    def build_metadata(self, builder, context: SessionContext):
        for converter in self.converters:
            converter.get_metadata(builder, context)
