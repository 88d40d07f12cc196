"""
Robot trajectories: ordered waypoints with per-segment durations.

``duration_from_previous[i]`` is the time between waypoint i-1 and waypoint i
(the first entry is the offset of the first waypoint, normally 0.0).
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

from motion_stages.core.robot_model import JointModelGroup, RobotModel
from motion_stages.core.robot_state import RobotState

logger = logging.getLogger(__name__)


class RobotTrajectory:
    """Sequence of RobotState waypoints for a group."""

    __slots__ = ("robot_model", "group", "_waypoints", "_durations")

    def __init__(self, robot_model: RobotModel, group: JointModelGroup | None = None):
        self.robot_model = robot_model
        self.group = group
        self._waypoints: list[RobotState] = []
        self._durations: list[float] = []

    def __len__(self) -> int:
        return len(self._waypoints)

    def __getitem__(self, idx: int) -> RobotState:
        return self._waypoints[idx]

    def __iter__(self):
        return iter(self._waypoints)

    @property
    def empty(self) -> bool:
        return not self._waypoints

    @property
    def duration_from_previous(self) -> list[float]:
        return list(self._durations)

    def add_suffix_waypoint(self, state: RobotState, dt: float) -> RobotTrajectory:
        """Append a copy of ``state``, ``dt`` seconds after the previous waypoint."""
        if dt < 0.0:
            raise ValueError("waypoint duration must be non-negative")
        self._waypoints.append(state.copy())
        self._durations.append(float(dt))
        return self

    def get_first_waypoint(self) -> RobotState:
        if not self._waypoints:
            raise IndexError("trajectory is empty")
        return self._waypoints[0]

    def get_last_waypoint(self) -> RobotState:
        if not self._waypoints:
            raise IndexError("trajectory is empty")
        return self._waypoints[-1]

    def waypoint_times(self) -> NDArray[np.float64]:
        """Absolute time of each waypoint."""
        return np.cumsum(np.asarray(self._durations, dtype=np.float64))

    @property
    def duration(self) -> float:
        return float(sum(self._durations))

    def positions(self) -> NDArray[np.float64]:
        """(N, n_variables) array of waypoint variables."""
        if not self._waypoints:
            return np.empty((0, self.robot_model.variable_count), dtype=np.float64)
        return np.stack([w.positions for w in self._waypoints])

    def reverse(self) -> RobotTrajectory:
        """Reverse waypoint order in place.

        Segment durations stay attached to their segments, so the first
        waypoint of the reversed trajectory keeps the original time offset and
        the total duration is unchanged.
        """
        self._waypoints.reverse()
        if self._durations:
            self._durations.append(self._durations[0])
            self._durations.reverse()
            self._durations.pop()
        return self
