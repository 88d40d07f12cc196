"""
Message structs shared by goals, constraints and visualization.

Geometry messages mirror the usual ROS layout (position + [x, y, z, w]
quaternion) so goal files written for other tools read naturally. All structs
are msgspec Structs: decoding validates shape and types in a single pass.
"""

import logging
from typing import Annotated

import msgspec
import numpy as np
import sophuspy as sp

from motion_stages.utils.se3_utils import se3_from_quat, se3_to_quat

logger = logging.getLogger(__name__)

Vector3 = tuple[float, float, float]
Quaternion = tuple[float, float, float, float]
RGBA = tuple[float, float, float, float]


def _enc_hook(obj: object) -> object:
    """Custom encoder hook for numpy types."""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.integer, np.floating)):
        return obj.item()
    raise NotImplementedError(f"Cannot encode {type(obj)}")


# Module-level JSON encoder with numpy support (thread-safe, reusable)
json_encoder = msgspec.json.Encoder(enc_hook=_enc_hook)


class Pose(msgspec.Struct, frozen=True):
    """Position + orientation quaternion [x, y, z, w]."""

    position: Vector3 = (0.0, 0.0, 0.0)
    orientation: Quaternion = (0.0, 0.0, 0.0, 1.0)

    def __post_init__(self) -> None:
        if not any(self.orientation):
            raise ValueError("orientation quaternion must be non-zero")

    def to_se3(self) -> sp.SE3:
        return se3_from_quat(self.position, self.orientation)

    @classmethod
    def from_se3(cls, se3: sp.SE3) -> "Pose":
        position, quat = se3_to_quat(se3)
        return cls(
            position=tuple(float(v) for v in position),  # type: ignore[arg-type]
            orientation=tuple(float(v) for v in quat),  # type: ignore[arg-type]
        )


class PoseStamped(msgspec.Struct, frozen=True):
    """Pose expressed in a named frame."""

    frame_id: str
    pose: Pose = msgspec.field(default_factory=Pose)


class JointState(msgspec.Struct, frozen=True):
    """Single-DOF joint positions, parallel name/position lists."""

    name: list[str] = msgspec.field(default_factory=list)
    position: list[float] = msgspec.field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.name) != len(self.position):
            raise ValueError(
                f"joint_state has {len(self.name)} names but {len(self.position)} positions"
            )


class MultiDOFJointState(msgspec.Struct, frozen=True):
    """Multi-DOF joint values, each given as a transform."""

    joint_names: list[str] = msgspec.field(default_factory=list)
    transforms: list[Pose] = msgspec.field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.joint_names) != len(self.transforms):
            raise ValueError(
                f"multi_dof_joint_state has {len(self.joint_names)} names "
                f"but {len(self.transforms)} transforms"
            )


class JointConstraint(msgspec.Struct, frozen=True):
    """Keep a joint within [position - tolerance_below, position + tolerance_above]."""

    joint_name: str
    position: float
    tolerance_above: Annotated[float, msgspec.Meta(ge=0.0)]
    tolerance_below: Annotated[float, msgspec.Meta(ge=0.0)]
    weight: float = 1.0

    def satisfied(self, value: float) -> bool:
        return (
            self.position - self.tolerance_below
            <= value
            <= self.position + self.tolerance_above
        )


class Constraints(msgspec.Struct, frozen=True):
    """Path constraints handed through to the planner untouched."""

    name: str = ""
    joint_constraints: list[JointConstraint] = msgspec.field(default_factory=list)


class Marker(msgspec.Struct, frozen=True):
    """Visualization marker (arrow) in a named frame."""

    ns: str
    id: int
    frame_id: str
    pose: Pose
    scale: Vector3
    color: RGBA
    type: str = "arrow"
