"""
Kinematic robot model: links, joints and planning groups.

The model is a tree rooted at ``root_link``. Each joint connects a parent link
to a child link through a fixed ``origin`` transform followed by the joint's
own motion (rotation about / translation along ``axis``, or a free 6-DOF
transform for floating joints).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
import sophuspy as sp
from numpy.typing import NDArray
from scipy.spatial.transform import Rotation

from motion_stages.protocol.descriptions import RobotDescription
from motion_stages.utils.errors import RobotModelError
from motion_stages.utils.se3_utils import (
    se3_axis_angle,
    se3_from_quat,
    se3_from_trans,
    se3_identity,
)

logger = logging.getLogger(__name__)

# Variable suffixes of a floating joint, quaternion in [x, y, z, w] order
FLOATING_VARIABLES = ("trans_x", "trans_y", "trans_z", "rot_x", "rot_y", "rot_z", "rot_w")


class JointType(Enum):
    FIXED = "fixed"
    REVOLUTE = "revolute"
    CONTINUOUS = "continuous"
    PRISMATIC = "prismatic"
    FLOATING = "floating"


@dataclass(eq=False)
class JointModel:
    name: str
    type: JointType
    parent_link: str
    child_link: str
    origin: sp.SE3 = field(default_factory=se3_identity)
    axis: NDArray[np.float64] = field(
        default_factory=lambda: np.array([0.0, 0.0, 1.0])
    )
    lower: float | None = None
    upper: float | None = None
    first_variable_index: int = -1

    @property
    def variable_names(self) -> list[str]:
        if self.type is JointType.FIXED:
            return []
        if self.type is JointType.FLOATING:
            return [f"{self.name}/{v}" for v in FLOATING_VARIABLES]
        return [self.name]

    @property
    def variable_count(self) -> int:
        return len(self.variable_names)

    def default_values(self) -> list[float]:
        if self.type is JointType.FIXED:
            return []
        if self.type is JointType.FLOATING:
            return [0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 1.0]
        return [float(self.clamp(0.0))]

    def clamp(self, value: float) -> float:
        lo = -np.inf if self.lower is None else self.lower
        hi = np.inf if self.upper is None else self.upper
        return float(min(max(value, lo), hi))

    def motion_transform(self, values: NDArray[np.float64]) -> sp.SE3:
        """Transform contributed by the joint's variables (after ``origin``)."""
        match self.type:
            case JointType.FIXED:
                return se3_identity()
            case JointType.REVOLUTE | JointType.CONTINUOUS:
                return se3_axis_angle(self.axis, float(values[0]))
            case JointType.PRISMATIC:
                return se3_from_trans(*(self.axis * float(values[0])))
            case JointType.FLOATING:
                return se3_from_quat(values[:3], values[3:7])
        raise RobotModelError(f"unsupported joint type {self.type}")

    def transform(self, values: NDArray[np.float64]) -> sp.SE3:
        """parent_link_T_child_link for the given joint variables."""
        return self.origin * self.motion_transform(values)

    def distance(self, a: NDArray[np.float64], b: NDArray[np.float64]) -> float:
        """Distance between two value sets of this joint.

        Floating joints count translation length plus rotation angle.
        """
        match self.type:
            case JointType.FIXED:
                return 0.0
            case JointType.FLOATING:
                rel = Rotation.from_quat(a[3:7]).inv() * Rotation.from_quat(b[3:7])
                return float(np.linalg.norm(b[:3] - a[:3])) + float(rel.magnitude())
            case JointType.CONTINUOUS:
                d = abs(float(b[0]) - float(a[0])) % (2.0 * np.pi)
                return min(d, 2.0 * np.pi - d)
        return abs(float(b[0]) - float(a[0]))


@dataclass(eq=False)
class LinkModel:
    name: str
    parent_joint: JointModel | None = None
    child_joints: list[JointModel] = field(default_factory=list)


@dataclass(eq=False)
class JointModelGroup:
    """Named subset of joints planned together."""

    name: str
    joint_names: list[str]
    end_effector_tips: list[str] = field(default_factory=list)
    named_states: dict[str, dict[str, float]] = field(default_factory=dict)

    def has_joint(self, name: str) -> bool:
        return name in self.joint_names

    def get_joint_model_names(self) -> list[str]:
        return list(self.joint_names)

    def get_end_effector_tips(self) -> list[str]:
        return list(self.end_effector_tips)

    def get_named_state(self, name: str) -> dict[str, float] | None:
        return self.named_states.get(name)


class RobotModel:
    """Immutable kinematic tree with a flat variable layout."""

    def __init__(
        self,
        name: str,
        root_link: str,
        joints: list[JointModel],
        groups: list[JointModelGroup] | None = None,
    ):
        self.name = name
        self.root_link = root_link
        self._links: dict[str, LinkModel] = {root_link: LinkModel(root_link)}
        self._joints: dict[str, JointModel] = {}
        self._groups: dict[str, JointModelGroup] = {}
        self.variable_names: list[str] = []

        for joint in joints:
            self._add_joint(joint)
        # Every link must hang off the root
        self._link_order = self._topological_links()
        for group in groups or []:
            self._add_group(group)

        logger.debug(
            "Robot model '%s': %d links, %d joints, %d variables, groups=%s",
            name,
            len(self._links),
            len(self._joints),
            len(self.variable_names),
            list(self._groups),
        )

    # ---- construction ----

    def _add_joint(self, joint: JointModel) -> None:
        if joint.name in self._joints:
            raise RobotModelError(f"duplicate joint '{joint.name}'")
        child = self._links.get(joint.child_link)
        if child is not None and (
            child.parent_joint is not None or joint.child_link == self.root_link
        ):
            raise RobotModelError(
                f"link '{joint.child_link}' already has a parent (joint '{joint.name}')"
            )
        if child is None:
            child = self._links[joint.child_link] = LinkModel(joint.child_link)
        child.parent_joint = joint
        parent = self._links.setdefault(joint.parent_link, LinkModel(joint.parent_link))
        parent.child_joints.append(joint)

        joint.first_variable_index = len(self.variable_names)
        self.variable_names.extend(joint.variable_names)
        self._joints[joint.name] = joint

    def _topological_links(self) -> list[str]:
        order: list[str] = []
        stack = [self.root_link]
        while stack:
            name = stack.pop()
            order.append(name)
            stack.extend(j.child_link for j in reversed(self._links[name].child_joints))
        unreachable = set(self._links) - set(order)
        if unreachable:
            raise RobotModelError(
                f"links not connected to root '{self.root_link}': {sorted(unreachable)}"
            )
        return order

    def _add_group(self, group: JointModelGroup) -> None:
        for j in group.joint_names:
            if j not in self._joints:
                raise RobotModelError(f"group '{group.name}' references unknown joint '{j}'")
        for tip in group.end_effector_tips:
            if tip not in self._links:
                raise RobotModelError(f"group '{group.name}' references unknown tip '{tip}'")
        for state_name, values in group.named_states.items():
            for j in values:
                if j not in group.joint_names:
                    raise RobotModelError(
                        f"named state '{state_name}' of group '{group.name}' sets foreign joint '{j}'"
                    )
        self._groups[group.name] = group

    @classmethod
    def from_description(cls, desc: RobotDescription) -> RobotModel:
        """Build a model from a validated RobotDescription."""
        joints = [
            JointModel(
                name=j.name,
                type=JointType(j.type),
                parent_link=j.parent,
                child_link=j.child,
                origin=j.origin.to_se3(),
                axis=np.asarray(j.axis, dtype=np.float64),
                lower=j.lower,
                upper=j.upper,
            )
            for j in desc.joints
        ]
        groups = [
            JointModelGroup(
                name=g.name,
                joint_names=list(g.joints),
                end_effector_tips=list(g.tips),
                named_states={k: dict(v) for k, v in g.named_states.items()},
            )
            for g in desc.groups
        ]
        return cls(desc.name, desc.root_link, joints, groups)

    # ---- queries ----

    @property
    def variable_count(self) -> int:
        return len(self.variable_names)

    @property
    def link_names(self) -> list[str]:
        return list(self._link_order)

    @property
    def joint_names(self) -> list[str]:
        return list(self._joints)

    def has_link(self, name: str) -> bool:
        return name in self._links

    def has_joint(self, name: str) -> bool:
        return name in self._joints

    def get_link_model(self, name: str) -> LinkModel | None:
        return self._links.get(name)

    def get_joint_model(self, name: str) -> JointModel | None:
        return self._joints.get(name)

    def get_joint_models(self) -> list[JointModel]:
        return list(self._joints.values())

    def get_joint_model_group(self, name: str) -> JointModelGroup | None:
        return self._groups.get(name)

    def get_joint_model_group_names(self) -> list[str]:
        return list(self._groups)

    def variable_index(self, name: str) -> int:
        try:
            return self.variable_names.index(name)
        except ValueError:
            raise KeyError(f"unknown variable '{name}'") from None

    def default_positions(self) -> NDArray[np.float64]:
        values: list[float] = []
        for joint in self._joints.values():
            values.extend(joint.default_values())
        return np.asarray(values, dtype=np.float64)

    def chain_to_root(self, link: str) -> list[JointModel]:
        """Joints from the root down to ``link`` (root-most first)."""
        chain: list[JointModel] = []
        current = self._links[link]
        while current.parent_joint is not None:
            chain.append(current.parent_joint)
            current = self._links[current.parent_joint.parent_link]
        chain.reverse()
        return chain
