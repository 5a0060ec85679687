"""
Frame sync configuration — YAML overrides on top of core/constants.py.

Example file::

    bag_path: ./drive.bag
    key_topic: /velodyne_points
    topics: [/velodyne_points, /odom, /vehicle/camera/center_front]
    configuration_topic: /commander/configuration
    tf_topic: /tf
    origin: {latitude: 37.79, longitude: -122.39, altitude: 0}
"""

import copy
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from core.constants import (
    CONFIGURATION_TOPIC,
    DEFAULT_ORIGIN,
    DEFAULT_UI_CONFIG,
    TF_TOPIC,
)
from core.models import Origin, TopicConfig


@dataclass
class FrameSyncConfig:
    """Everything a Bag session needs beyond the bag itself."""
    bag_path: Optional[str] = None
    topic_config: TopicConfig = field(default_factory=TopicConfig)
    configuration_topic: str = CONFIGURATION_TOPIC
    tf_topic: str = TF_TOPIC
    default_origin: Origin = field(default_factory=lambda: Origin(**DEFAULT_ORIGIN))
    ui_config: Dict[str, Any] = field(default_factory=lambda: copy.deepcopy(DEFAULT_UI_CONFIG))


def config_from_dict(data: Optional[dict]) -> FrameSyncConfig:
    """Build a FrameSyncConfig from a plain dict; missing keys keep defaults."""
    data = data or {}
    config = FrameSyncConfig()

    config.bag_path = data.get("bag_path", data.get("bagPath"))

    topic_config = data.get("topic_config", data.get("topicConfig"))
    if topic_config is None:
        topic_config = {
            "key_topic": data.get("key_topic", data.get("keyTopic")),
            "topics": data.get("topics"),
        }
    config.topic_config = TopicConfig.from_value(topic_config)

    if data.get("configuration_topic"):
        config.configuration_topic = data["configuration_topic"]
    if data.get("tf_topic"):
        config.tf_topic = data["tf_topic"]

    origin = data.get("origin")
    if origin:
        merged = dict(DEFAULT_ORIGIN)
        merged.update(origin)
        config.default_origin = Origin(
            latitude=float(merged["latitude"]),
            longitude=float(merged["longitude"]),
            altitude=float(merged["altitude"]),
        )

    if data.get("ui_config") is not None:
        config.ui_config = copy.deepcopy(data["ui_config"])

    return config


def load_config(yaml_path: str) -> FrameSyncConfig:
    """
    Load a frame sync config from YAML.

    A relative ``bag_path`` is resolved against the config file's directory.
    """
    with open(yaml_path, "r") as f:
        data = yaml.safe_load(f)

    config = config_from_dict(data)
    if config.bag_path and not os.path.isabs(config.bag_path):
        base_dir = os.path.dirname(os.path.abspath(yaml_path))
        config.bag_path = os.path.join(base_dir, config.bag_path)
    return config
