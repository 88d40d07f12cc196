"""
Robot model, robot state, planning scene, trajectories and the typed
property store used by stages.
"""

from motion_stages.core.planning_scene import PlanningScene
from motion_stages.core.properties import PropertyMap
from motion_stages.core.robot_model import (
    JointModel,
    JointModelGroup,
    JointType,
    LinkModel,
    RobotModel,
)
from motion_stages.core.robot_state import RobotState
from motion_stages.core.trajectory import RobotTrajectory

__all__ = [
    "JointModel",
    "JointModelGroup",
    "JointType",
    "LinkModel",
    "PlanningScene",
    "PropertyMap",
    "RobotModel",
    "RobotState",
    "RobotTrajectory",
]
