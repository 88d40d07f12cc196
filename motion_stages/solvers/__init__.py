from motion_stages.solvers.base import PlannerInterface, PlanResult
from motion_stages.solvers.joint_interpolation import JointInterpolationPlanner

__all__ = ["PlannerInterface", "PlanResult", "JointInterpolationPlanner"]
