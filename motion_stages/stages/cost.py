"""Cost terms evaluated on stage solutions."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from motion_stages.stages.base import SubTrajectory


class CostTerm(ABC):
    @abstractmethod
    def __call__(self, solution: SubTrajectory) -> float: ...


class Constant(CostTerm):
    def __init__(self, cost: float = 0.0):
        self.cost = cost

    def __call__(self, solution: SubTrajectory) -> float:
        return self.cost


class PathLength(CostTerm):
    """Joint-space length of the solution's trajectory.

    Sums ``RobotState.distance`` between consecutive waypoints, over the
    trajectory's group when it has one; ``weights`` scales individual joints.
    """

    def __init__(self, weights: dict[str, float] | None = None):
        self.weights = dict(weights or {})

    def __call__(self, solution: SubTrajectory) -> float:
        traj = solution.trajectory
        if traj is None:
            return 0.0 if not solution.failed else math.inf
        return sum(
            (traj[i - 1].distance(traj[i], traj.group, self.weights) for i in range(1, len(traj))),
            0.0,
        )
