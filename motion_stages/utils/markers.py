"""Visualization markers for frames (three axis arrows per frame)."""

import numpy as np

from motion_stages.config import MARKER_FRAME_SCALE
from motion_stages.protocol.messages import Marker, Pose, PoseStamped
from motion_stages.utils.se3_utils import se3_axis_angle

# Axis arrows point along +X; Y and Z arrows are rotated onto their axis
_AXES = (
    ("x", (1.0, 0.0, 0.0, 1.0), None),
    ("y", (0.0, 1.0, 0.0, 1.0), ((0.0, 0.0, 1.0), np.pi / 2)),
    ("z", (0.0, 0.0, 1.0, 1.0), ((0.0, 1.0, 0.0), -np.pi / 2)),
)


def append_frame(
    markers: list[Marker],
    pose: PoseStamped,
    scale: float = MARKER_FRAME_SCALE,
    ns: str = "frame",
) -> list[Marker]:
    """Append an RGB axis triad at ``pose`` to ``markers``.

    Marker ids continue from the current length of ``markers``.
    """
    frame = pose.pose.to_se3()
    for axis_name, color, rot in _AXES:
        axis_pose = frame if rot is None else frame * se3_axis_angle(*rot)
        markers.append(
            Marker(
                ns=ns,
                id=len(markers),
                frame_id=pose.frame_id,
                pose=Pose.from_se3(axis_pose),
                scale=(scale, 0.1 * scale, 0.1 * scale),
                color=color,
            )
        )
    return markers
