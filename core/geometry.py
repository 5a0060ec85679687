"""
Coordinate helpers — quaternion to Euler conversion for transform trees.
"""

from typing import Dict

import numpy as np


def quaternion_to_euler(q) -> Dict[str, float]:
    """
    Convert a quaternion (anything with x, y, z, w attributes) to
    roll/pitch/yaw in radians (ZYX convention).
    """
    x, y, z, w = float(q.x), float(q.y), float(q.z), float(q.w)

    t0 = 2.0 * (w * x + y * z)
    t1 = 1.0 - 2.0 * (x * x + y * y)
    roll = np.arctan2(t0, t1)

    # Clamp for numerical noise near gimbal lock
    t2 = np.clip(2.0 * (w * y - z * x), -1.0, 1.0)
    pitch = np.arcsin(t2)

    t3 = 2.0 * (w * z + x * y)
    t4 = 1.0 - 2.0 * (y * y + z * z)
    yaw = np.arctan2(t3, t4)

    return {"roll": float(roll), "pitch": float(pitch), "yaw": float(yaw)}
