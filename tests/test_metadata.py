"""
Tests for the XVIZ metadata builder, converters and the metadata emitter.
"""
import pytest

from core.constants import DEFAULT_UI_CONFIG
from core.models import Pose, SessionContext, TopicMessageType
from xviz.builder import XVIZMetadataBuilder
from xviz.converters import ConverterRegistry, ImageConverter, PointCloudConverter, PoseConverter
from xviz.metadata import build_metadata


class TestXVIZMetadataBuilder:
    """Tests for the fluent metadata builder."""

    def test_stream_declarations(self):
        builder = XVIZMetadataBuilder()
        builder.stream("/vehicle_pose").category("pose")
        builder.stream("/lidar").category("primitive").type("point").coordinate("VEHICLE_RELATIVE")

        metadata = builder.get_metadata()

        assert metadata["streams"]["/vehicle_pose"] == {"category": "POSE"}
        assert metadata["streams"]["/lidar"] == {
            "category": "PRIMITIVE",
            "primitive_type": "POINT",
            "coordinate": "VEHICLE_RELATIVE",
        }

    def test_scalar_type_outside_primitives(self):
        builder = XVIZMetadataBuilder()
        builder.stream("/speed").category("time_series").type("float")
        stream = builder.get_metadata()["streams"]["/speed"]
        assert stream["scalar_type"] == "FLOAT"

    def test_unknown_category_rejected(self):
        builder = XVIZMetadataBuilder()
        with pytest.raises(ValueError):
            builder.stream("/x").category("sparkles")

    def test_attribute_before_stream_rejected(self):
        with pytest.raises(ValueError):
            XVIZMetadataBuilder().category("pose")

    def test_session_bounds(self):
        metadata = XVIZMetadataBuilder().start_time(1.0).end_time(2.0).get_metadata()
        assert metadata["log_info"] == {"start_time": 1.0, "end_time": 2.0}

    def test_get_metadata_returns_copy(self):
        builder = XVIZMetadataBuilder()
        builder.stream("/a").category("pose")
        first = builder.get_metadata()
        first["streams"]["/a"]["category"] = "CHANGED"
        assert builder.get_metadata()["streams"]["/a"]["category"] == "POSE"


class TestConverterRegistry:
    """Tests for topic -> converter wiring."""

    def setup_method(self):
        self.context = SessionContext(
            start_time=0.0,
            end_time=10.0,
            frame_id_to_pose={"velodyne": Pose(x=1.0, z=1.5, yaw=0.5)},
        )
        self.topic_types = [
            TopicMessageType("/odom", "nav_msgs/msg/Odometry"),
            TopicMessageType("/velodyne_points", "sensor_msgs/msg/PointCloud2"),
            TopicMessageType("/camera/compressed", "sensor_msgs/msg/CompressedImage"),
            TopicMessageType("/rosout", "rosgraph_msgs/msg/Log"),
        ]

    def test_one_converter_per_known_type(self):
        registry = ConverterRegistry()
        registry.initialize_converters(self.topic_types, self.context)

        kinds = [type(c) for c in registry.converters]
        assert kinds == [PoseConverter, PointCloudConverter, ImageConverter]

    def test_point_cloud_pose_from_tf(self):
        registry = ConverterRegistry(frame_ids={"/velodyne_points": "velodyne"})
        registry.initialize_converters(self.topic_types, self.context)
        builder = XVIZMetadataBuilder()
        registry.build_metadata(builder, self.context)

        stream = builder.get_metadata()["streams"]["/velodyne_points"]
        assert stream["transform"] == {"position": [1.0, 0.0, 1.5], "orientation": [0.0, 0.0, 0.5]}
        assert stream["source"] == "/velodyne_points"

    def test_unknown_frame_id_has_no_transform(self):
        registry = ConverterRegistry(frame_ids={"/velodyne_points": "lidar_top"})
        registry.initialize_converters(self.topic_types, self.context)
        builder = XVIZMetadataBuilder()
        registry.build_metadata(builder, self.context)

        assert "transform" not in builder.get_metadata()["streams"]["/velodyne_points"]

    def test_register_custom_converter(self):
        class LogConverter(PoseConverter):
            @property
            def stream_name(self):
                return "/log"

        registry = ConverterRegistry(converters={})
        registry.register("rosgraph_msgs/msg/Log", LogConverter)
        registry.initialize_converters(self.topic_types, self.context)

        assert [c.topic for c in registry.converters] == ["/rosout"]


class TestBuildMetadata:
    """Tests for the metadata envelope."""

    def setup_method(self):
        self.context = SessionContext(start_time=100.0, end_time=160.5)
        self.registry = ConverterRegistry()
        self.registry.initialize_converters(
            [TopicMessageType("/odom", "nav_msgs/msg/Odometry")], self.context
        )

    def test_envelope(self):
        envelope = build_metadata(self.registry, self.context)

        assert envelope["type"] == "xviz/metadata"
        data = envelope["data"]
        assert data["log_info"] == {"start_time": 100.0, "end_time": 160.5}
        assert "/vehicle_pose" in data["streams"]
        assert data["version"] == "2.0.0"

    def test_default_camera_panel(self):
        data = build_metadata(self.registry, self.context)["data"]

        assert data["ui_config"] == DEFAULT_UI_CONFIG
        assert data["ui_config"]["Camera"]["children"][0]["cameras"] == [
            "/vehicle/camera/center_front",
            "/vehicle/camera/forward_center/image_raw/compressed",
        ]

    def test_ui_config_is_copied(self):
        data = build_metadata(self.registry, self.context)["data"]
        data["ui_config"]["Camera"]["name"] = "changed"
        assert DEFAULT_UI_CONFIG["Camera"]["name"] == "Camera"

    def test_custom_ui_config(self):
        panel = {"Map": {"type": "panel", "children": [], "name": "Map"}}
        data = build_metadata(self.registry, self.context, ui_config=panel)["data"]
        assert data["ui_config"] == panel
