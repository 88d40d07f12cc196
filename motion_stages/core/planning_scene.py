"""
Planning scene: robot state plus named frames, with frame-transform lookup.

Frames known to a scene:
- the planning frame (the robot's root link), also reachable as ""
- every robot link
- fixed world frames (``add_frame``)
- frames attached to a robot link (``attach_frame``), e.g. tool tips or
  grasped objects; they move with their link
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import sophuspy as sp

from motion_stages.core.robot_model import JointType, LinkModel, RobotModel
from motion_stages.core.robot_state import RobotState
from motion_stages.protocol.descriptions import FrameDescription
from motion_stages.utils.errors import UnknownFrameError
from motion_stages.utils.se3_utils import se3_copy, se3_identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttachedFrame:
    link: str
    pose: sp.SE3  # link_T_frame


class PlanningScene:
    """Robot state and frames. ``diff()`` yields an independently mutable copy."""

    def __init__(self, robot_model: RobotModel, name: str = "scene"):
        self.name = name
        self._robot_model = robot_model
        self._state = RobotState(robot_model)
        self._world_frames: dict[str, sp.SE3] = {}
        self._attached_frames: dict[str, AttachedFrame] = {}
        self._parent: PlanningScene | None = None

    def diff(self) -> PlanningScene:
        """Child scene owning copies of state and frames; the parent is never mutated."""
        child = PlanningScene.__new__(PlanningScene)
        child.name = self.name
        child._robot_model = self._robot_model
        child._state = self._state.copy()
        child._world_frames = dict(self._world_frames)
        child._attached_frames = dict(self._attached_frames)
        child._parent = self
        return child

    @property
    def parent(self) -> PlanningScene | None:
        return self._parent

    def get_robot_model(self) -> RobotModel:
        return self._robot_model

    def get_planning_frame(self) -> str:
        return self._robot_model.root_link

    # ---- state ----

    def get_current_state(self) -> RobotState:
        """Copy of the current state."""
        return self._state.copy()

    def get_current_state_non_const(self) -> RobotState:
        """The scene's own state object; writes modify this scene."""
        return self._state

    def set_current_state(self, state: RobotState) -> None:
        if state.robot_model is not self._robot_model:
            raise ValueError("state belongs to a different robot model")
        self._state = state.copy()

    # ---- frames ----

    def add_frame(self, name: str, pose: sp.SE3) -> None:
        """Fixed frame expressed in the planning frame."""
        self._check_new_frame(name)
        self._world_frames[name] = se3_copy(pose)

    def attach_frame(self, name: str, link: str, pose: sp.SE3) -> None:
        """Frame rigidly attached to ``link`` at link_T_frame = ``pose``."""
        self._check_new_frame(name)
        if not self._robot_model.has_link(link):
            raise UnknownFrameError(link, f"cannot attach '{name}' to unknown link '{link}'")
        self._attached_frames[name] = AttachedFrame(link, se3_copy(pose))

    def remove_frame(self, name: str) -> None:
        self._world_frames.pop(name, None)
        self._attached_frames.pop(name, None)

    def add_frames(self, frames: list[FrameDescription]) -> None:
        for f in frames:
            if f.link:
                self.attach_frame(f.name, f.link, f.pose.to_se3())
            else:
                self.add_frame(f.name, f.pose.to_se3())

    def _check_new_frame(self, name: str) -> None:
        if not name:
            raise ValueError("frame name must be non-empty")
        if self._robot_model.has_link(name):
            raise ValueError(f"frame '{name}' collides with a robot link")

    def knows_frame_transform(self, frame_id: str) -> bool:
        return (
            frame_id == ""
            or frame_id == self.get_planning_frame()
            or self._robot_model.has_link(frame_id)
            or frame_id in self._world_frames
            or frame_id in self._attached_frames
        )

    def get_frame_transform(self, frame_id: str) -> sp.SE3:
        """planning_frame_T_frame for the current state.

        Raises:
            UnknownFrameError: If the frame is not known to the scene
        """
        if frame_id == "" or frame_id == self.get_planning_frame():
            return se3_identity()
        if self._robot_model.has_link(frame_id):
            return self._state.get_global_link_transform(frame_id)
        if frame_id in self._world_frames:
            return se3_copy(self._world_frames[frame_id])
        attached = self._attached_frames.get(frame_id)
        if attached is not None:
            return self._state.get_global_link_transform(attached.link) * attached.pose
        raise UnknownFrameError(frame_id)

    def get_rigidly_connected_parent_link(self, frame_id: str) -> LinkModel | None:
        """Closest link that ``frame_id`` moves rigidly with.

        Attached frames resolve to their link first; from there fixed joints are
        climbed until a link whose parent joint moves (or the root). World frames
        and unknown frames have no rigid parent link.
        """
        attached = self._attached_frames.get(frame_id)
        link_name = attached.link if attached is not None else frame_id
        link = self._robot_model.get_link_model(link_name)
        if link is None:
            return None
        while link.parent_joint is not None and link.parent_joint.type is JointType.FIXED:
            parent = self._robot_model.get_link_model(link.parent_joint.parent_link)
            assert parent is not None
            link = parent
        return link
