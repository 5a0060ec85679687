"""
Tests for the frames CLI on a small bag written with rosbags.
"""
import json

from rosbags.rosbag1 import Writer
from rosbags.typesys import Stores, get_typestore

from cli.frames import main

NS = 1_000_000_000
T0 = 1_500_000_000


def _write_chatter_bag(path):
    typestore = get_typestore(Stores.ROS1_NOETIC)
    String = typestore.types["std_msgs/msg/String"]
    with Writer(path) as writer:
        chatter = writer.add_connection("/chatter", "std_msgs/msg/String", typestore=typestore)
        for i in range(3):
            payload = typestore.serialize_ros1(String(data=f"msg {i}"), "std_msgs/msg/String")
            writer.write(chatter, (T0 + i) * NS, bytes(payload))


class TestFramesCli:
    """Tests for ``python -m cli.frames``."""

    def test_key_topic_frames(self, tmp_path, capsys):
        path = tmp_path / "chatter.bag"
        _write_chatter_bag(path)

        assert main([str(path), "--key-topic", "/chatter"]) == 0

        out = capsys.readouterr().out
        assert "=== METADATA ===" in out
        assert '"log_info"' in out
        assert "3 frames keyed on /chatter" in out

    def test_limit_caps_printed_summaries(self, tmp_path, capsys):
        path = tmp_path / "chatter.bag"
        _write_chatter_bag(path)

        assert main([str(path), "-k", "/chatter", "--limit", "1"]) == 0

        lines = capsys.readouterr().out.splitlines()
        summaries = [line for line in lines if line.startswith('{"key_time"')]
        assert len(summaries) == 1
        assert json.loads(summaries[0])["topics"] == {"/chatter": 1}

    def test_by_time_single_frame(self, tmp_path, capsys):
        path = tmp_path / "chatter.bag"
        _write_chatter_bag(path)

        assert main([str(path), "--by-time", "--start", str(T0 + 1)]) == 0

        out = capsys.readouterr().out
        assert '"/chatter": 2' in out

    def test_yaml_config(self, tmp_path, capsys):
        path = tmp_path / "chatter.bag"
        _write_chatter_bag(path)
        config = tmp_path / "frames.yaml"
        config.write_text("bag_path: chatter.bag\nkey_topic: /chatter\ntopics: [/chatter]\n")

        assert main(["--config", str(config)]) == 0

        assert "3 frames keyed on /chatter" in capsys.readouterr().out

    def test_missing_bag_exits_nonzero(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.bag")]) == 1
        assert "Error:" in capsys.readouterr().err
