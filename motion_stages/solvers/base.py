"""
Planner interface consumed by planning stages.

A planner is a black box: it receives a start scene and either a goal scene
(joint-space) or a link plus target pose (Cartesian) and returns a
PlanResult. ``success`` and ``trajectory`` are independent: a planner may fail
without a trajectory (e.g. timeout) or fail with a partial trajectory kept for
diagnostics.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, NamedTuple

import sophuspy as sp

from motion_stages.protocol.messages import Constraints

if TYPE_CHECKING:
    from motion_stages.core.planning_scene import PlanningScene
    from motion_stages.core.robot_model import JointModelGroup, LinkModel, RobotModel
    from motion_stages.core.trajectory import RobotTrajectory

logger = logging.getLogger(__name__)


class PlanResult(NamedTuple):
    trajectory: RobotTrajectory | None
    success: bool


class PlannerInterface(ABC):
    """Planner used by stages to connect two scenes or reach a pose."""

    def init(self, robot_model: RobotModel) -> None:
        """Prepare for planning with ``robot_model``; called once per stage init."""
        return

    @abstractmethod
    def plan_joint(
        self,
        from_scene: PlanningScene,
        to_scene: PlanningScene,
        group: JointModelGroup,
        timeout: float,
        path_constraints: Constraints,
    ) -> PlanResult:
        """Plan from ``from_scene``'s state to ``to_scene``'s state."""
        raise NotImplementedError

    @abstractmethod
    def plan_cartesian(
        self,
        from_scene: PlanningScene,
        link: LinkModel,
        target: sp.SE3,
        group: JointModelGroup,
        timeout: float,
        path_constraints: Constraints,
    ) -> PlanResult:
        """Plan a motion that brings ``link``'s origin to ``target`` (planning frame)."""
        raise NotImplementedError
