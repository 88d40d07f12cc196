"""
Goal specifications for MoveTo - a closed tagged union.

Exactly one variant describes a goal:

- NamedPose:      predefined joint configuration of the group
- DiffRobotState: partial robot state, unlisted joints keep their value
- JointMap:       direct joint-variable assignment
- PoseGoal:       Cartesian pose in a named frame
- PointGoal:      Cartesian position in a named frame (orientation kept)

JSON wire format uses a "type" tag, e.g.
``{"type": "point", "frame_id": "world", "point": [0.4, 0.0, 0.3]}``.
"""

from collections.abc import Mapping
from typing import TypeAlias, Union

import msgspec

from motion_stages.protocol.messages import (
    JointState,
    MultiDOFJointState,
    Pose,
    Vector3,
)
from motion_stages.utils.errors import PropertyTypeError


class NamedPose(msgspec.Struct, tag="named_pose", frozen=True):
    """NAMED_POSE: {"type": "named_pose", "name": ...}"""

    name: str


class DiffRobotState(msgspec.Struct, tag="robot_state", frozen=True):
    """ROBOT_STATE: {"type": "robot_state", "joint_state": ..., "multi_dof_joint_state": ..., "is_diff": true}"""

    joint_state: JointState = msgspec.field(default_factory=JointState)
    multi_dof_joint_state: MultiDOFJointState = msgspec.field(
        default_factory=MultiDOFJointState
    )
    is_diff: bool = True

    def referenced_joints(self) -> list[str]:
        return [*self.joint_state.name, *self.multi_dof_joint_state.joint_names]


class JointMap(msgspec.Struct, tag="joints", frozen=True):
    """JOINTS: {"type": "joints", "positions": {name: value}}"""

    positions: dict[str, float]


class PoseGoal(msgspec.Struct, tag="pose", frozen=True):
    """POSE: {"type": "pose", "frame_id": ..., "pose": {...}}"""

    frame_id: str
    pose: Pose = msgspec.field(default_factory=Pose)


class PointGoal(msgspec.Struct, tag="point", frozen=True):
    """POINT: {"type": "point", "frame_id": ..., "point": [x, y, z]}"""

    frame_id: str
    point: Vector3


class IKFrame(msgspec.Struct, frozen=True):
    """Frame (plus offset) that is driven to a Cartesian goal.

    An empty frame_id means "the group's unique end-effector tip".
    """

    frame_id: str = ""
    pose: Pose = msgspec.field(default_factory=Pose)


Goal: TypeAlias = Union[NamedPose, DiffRobotState, JointMap, PoseGoal, PointGoal]

GOAL_TYPES: tuple[type, ...] = (NamedPose, DiffRobotState, JointMap, PoseGoal, PointGoal)

_goal_decoder = msgspec.json.Decoder(Goal)
_goal_encoder = msgspec.json.Encoder()


def decode_goal(data: bytes | str) -> Goal:
    """Decode a JSON goal document.

    Raises:
        msgspec.ValidationError: If the document matches no goal variant
    """
    return _goal_decoder.decode(data)


def encode_goal(goal: Goal) -> bytes:
    return _goal_encoder.encode(goal)


def coerce_goal(value: object) -> Goal:
    """Turn a user-facing goal value into a Goal struct.

    Accepted: a Goal struct, a str (named pose), a tagged mapping
    (``{"type": ...}``) or a plain ``{joint: value}`` mapping.

    Raises:
        PropertyTypeError: If the value has no goal interpretation
    """
    if isinstance(value, GOAL_TYPES):
        return value  # type: ignore[return-value]
    if isinstance(value, str):
        return NamedPose(value)
    if isinstance(value, Mapping):
        try:
            if "type" in value:
                return msgspec.convert(dict(value), type=Goal)
            return JointMap(positions={str(k): float(v) for k, v in value.items()})
        except (msgspec.ValidationError, TypeError, ValueError) as e:
            raise PropertyTypeError(f"malformed goal: {e}") from e
    raise PropertyTypeError(f"unsupported goal type: {type(value).__name__}")


def coerce_ik_frame(value: object, link: str | None = None) -> IKFrame:
    """Turn a user-facing IK frame value into an IKFrame.

    Accepted: an IKFrame, a link name (identity offset), a Pose (with ``link``),
    or a mapping with "frame_id"/"pose" keys.
    """
    if isinstance(value, IKFrame):
        return value
    if isinstance(value, str):
        return IKFrame(frame_id=value)
    if isinstance(value, Pose):
        return IKFrame(frame_id=link or "", pose=value)
    if isinstance(value, Mapping):
        try:
            return msgspec.convert(dict(value), type=IKFrame)
        except msgspec.ValidationError as e:
            raise PropertyTypeError(f"malformed ik_frame: {e}") from e
    # sophuspy SE3 offset
    if hasattr(value, "rotationMatrix") and hasattr(value, "translation"):
        return IKFrame(frame_id=link or "", pose=Pose.from_se3(value))  # type: ignore[arg-type]
    raise PropertyTypeError(f"unsupported ik_frame type: {type(value).__name__}")
