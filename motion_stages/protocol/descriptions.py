"""
JSON documents describing robots and stage configurations.

Robot description::

    {
      "name": "arm",
      "root_link": "base_link",
      "joints": [
        {"name": "j1", "type": "revolute", "parent": "base_link", "child": "l1",
         "origin": {"position": [0, 0, 0.1]}, "axis": [0, 0, 1],
         "lower": -3.14, "upper": 3.14}
      ],
      "groups": [
        {"name": "arm", "joints": ["j1"], "tips": ["l1"],
         "named_states": {"home": {"j1": 0.0}}}
      ]
    }
"""

from pathlib import Path
from typing import Annotated, Literal

import msgspec

from motion_stages.config import DEFAULT_TIMEOUT_S
from motion_stages.protocol.goals import Goal, IKFrame
from motion_stages.protocol.messages import Constraints, Pose, Vector3

JointTypeName = Literal["fixed", "revolute", "continuous", "prismatic", "floating"]


class JointDescription(msgspec.Struct, frozen=True):
    name: Annotated[str, msgspec.Meta(min_length=1)]
    type: JointTypeName
    parent: str
    child: str
    origin: Pose = msgspec.field(default_factory=Pose)
    axis: Vector3 = (0.0, 0.0, 1.0)
    lower: float | None = None
    upper: float | None = None

    def __post_init__(self) -> None:
        if self.lower is not None and self.upper is not None and self.lower > self.upper:
            raise ValueError(f"joint '{self.name}': lower limit exceeds upper limit")


class GroupDescription(msgspec.Struct, frozen=True):
    name: Annotated[str, msgspec.Meta(min_length=1)]
    joints: list[str]
    tips: list[str] = msgspec.field(default_factory=list)
    named_states: dict[str, dict[str, float]] = msgspec.field(default_factory=dict)


class FrameDescription(msgspec.Struct, frozen=True):
    """Named frame in the scene; attached to a robot link when ``link`` is set."""

    name: str
    pose: Pose = msgspec.field(default_factory=Pose)
    link: str | None = None


class RobotDescription(msgspec.Struct, frozen=True):
    name: str
    root_link: str
    joints: list[JointDescription] = msgspec.field(default_factory=list)
    groups: list[GroupDescription] = msgspec.field(default_factory=list)
    frames: list[FrameDescription] = msgspec.field(default_factory=list)


class StageConfig(msgspec.Struct, frozen=True):
    """Properties of a single stage, as read from a configuration file."""

    stage: str
    group: str
    goal: Goal
    name: str = ""
    ik_frame: IKFrame | None = None
    timeout: Annotated[float, msgspec.Meta(gt=0.0)] = DEFAULT_TIMEOUT_S
    path_constraints: Constraints = msgspec.field(default_factory=Constraints)
    start_state: dict[str, float] = msgspec.field(default_factory=dict)


def load_robot_description(path: str | Path) -> RobotDescription:
    """Read and validate a robot description JSON file.

    Raises:
        msgspec.ValidationError: On malformed content
    """
    return msgspec.json.decode(Path(path).read_bytes(), type=RobotDescription)


def load_stage_config(path: str | Path) -> StageConfig:
    """Read and validate a stage configuration JSON file."""
    return msgspec.json.decode(Path(path).read_bytes(), type=StageConfig)
