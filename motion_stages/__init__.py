"""
motion_stages Python Package

Planning-pipeline stages for robot arms, centred on MoveTo: move a planning
group to a joint-space goal (named pose, robot-state diff, joint map) or a
Cartesian goal (pose or point in a named frame).

Key components:
- MoveTo: the goal-resolution / Cartesian-target / packaging stage
- PlanningScene, RobotModel, RobotState: scene and kinematics collaborators
- PlannerInterface, JointInterpolationPlanner: planners used by stages
- Goal structs: NamedPose, DiffRobotState, JointMap, PoseGoal, PointGoal
"""

from ._version import __version__
from .core import PlanningScene, RobotModel, RobotState, RobotTrajectory
from .protocol.goals import (
    DiffRobotState,
    IKFrame,
    JointMap,
    NamedPose,
    PointGoal,
    PoseGoal,
)
from .solvers import JointInterpolationPlanner, PlannerInterface, PlanResult
from .stages import Direction, InterfaceState, MoveTo, SubTrajectory

__all__ = [
    "__version__",
    "DiffRobotState",
    "Direction",
    "IKFrame",
    "InterfaceState",
    "JointInterpolationPlanner",
    "JointMap",
    "MoveTo",
    "NamedPose",
    "PlanResult",
    "PlannerInterface",
    "PlanningScene",
    "PointGoal",
    "PoseGoal",
    "RobotModel",
    "RobotState",
    "RobotTrajectory",
    "SubTrajectory",
]
