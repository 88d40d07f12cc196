"""
Joint-space interpolation planner.

Connects two states by straight-line interpolation of the group's joint
variables. Waypoints are spaced so no variable moves more than
``max_step`` between consecutive waypoints, and timed at a nominal velocity.
No collision checking; path constraints are verified on every waypoint.
"""

from __future__ import annotations

import logging
import math
import time

import numpy as np
import sophuspy as sp

from motion_stages.config import MAX_JOINT_STEP, NOMINAL_JOINT_VELOCITY, TRACE
from motion_stages.core.planning_scene import PlanningScene
from motion_stages.core.robot_model import JointModelGroup, JointType, LinkModel, RobotModel
from motion_stages.core.robot_state import RobotState
from motion_stages.core.trajectory import RobotTrajectory
from motion_stages.protocol.messages import Constraints
from motion_stages.solvers.base import PlannerInterface, PlanResult

logger = logging.getLogger(__name__)


class JointInterpolationPlanner(PlannerInterface):
    def __init__(
        self,
        max_step: float = MAX_JOINT_STEP,
        velocity: float = NOMINAL_JOINT_VELOCITY,
    ):
        if max_step <= 0.0:
            raise ValueError("max_step must be positive")
        if velocity <= 0.0:
            raise ValueError("velocity must be positive")
        self.max_step = max_step
        self.velocity = velocity
        self._robot_model: RobotModel | None = None

    def init(self, robot_model: RobotModel) -> None:
        self._robot_model = robot_model

    def _group_indices(self, group: JointModelGroup, model: RobotModel) -> np.ndarray:
        indices: list[int] = []
        for name in group.joint_names:
            jm = model.get_joint_model(name)
            assert jm is not None
            indices.extend(range(jm.first_variable_index, jm.first_variable_index + jm.variable_count))
        return np.asarray(indices, dtype=np.int64)

    @staticmethod
    def _quaternion_slices(group: JointModelGroup, model: RobotModel) -> list[slice]:
        slices: list[slice] = []
        for name in group.joint_names:
            jm = model.get_joint_model(name)
            assert jm is not None
            if jm.type is JointType.FLOATING:
                # rot_x..rot_w follow trans_x..trans_z
                start = jm.first_variable_index + 3
                slices.append(slice(start, start + 4))
        return slices

    def interpolate(
        self, start: RobotState, goal: RobotState, group: JointModelGroup
    ) -> RobotTrajectory:
        """Straight-line trajectory from ``start`` to ``goal`` over the group's variables.

        Floating-joint quaternions are interpolated along the shorter arc and
        renormalized on every waypoint.
        """
        model = start.robot_model
        idx = self._group_indices(group, model)
        quats = self._quaternion_slices(group, model)
        q0 = start.positions.copy()
        q1 = goal.positions
        delta = np.zeros_like(q0)
        delta[idx] = q1[idx] - q0[idx]
        for s in quats:
            if np.dot(q0[s], q1[s]) < 0.0:
                delta[s] = -q1[s] - q0[s]

        max_delta = float(np.max(np.abs(delta))) if delta.size else 0.0
        n_segments = max(1, math.ceil(max_delta / self.max_step))
        dt = (max_delta / n_segments) / self.velocity

        traj = RobotTrajectory(model, group)
        traj.add_suffix_waypoint(start, 0.0)
        waypoint = start.copy()
        for i in range(1, n_segments + 1):
            q = q0 + delta * (i / n_segments)
            for s in quats:
                q[s] /= np.linalg.norm(q[s])
            if i == n_segments:
                q[idx] = q1[idx]  # land exactly on the goal
            waypoint.set_variable_positions(q)
            traj.add_suffix_waypoint(waypoint, dt)
        return traj

    @staticmethod
    def _violated(traj: RobotTrajectory, path_constraints: Constraints) -> str | None:
        for i, wp in enumerate(traj):
            for jc in path_constraints.joint_constraints:
                value = wp.get_variable_position(jc.joint_name)
                if not jc.satisfied(value):
                    return f"waypoint {i}: joint '{jc.joint_name}'={value:.4f} violates constraint"
        return None

    def plan_joint(
        self,
        from_scene: PlanningScene,
        to_scene: PlanningScene,
        group: JointModelGroup,
        timeout: float,
        path_constraints: Constraints,
    ) -> PlanResult:
        t0 = time.perf_counter()
        traj = self.interpolate(
            from_scene.get_current_state(), to_scene.get_current_state(), group
        )
        violation = self._violated(traj, path_constraints)
        elapsed = time.perf_counter() - t0
        logger.log(
            TRACE,
            "interpolated %d waypoints for group '%s' in %.3f ms",
            len(traj),
            group.name,
            elapsed * 1000.0,
        )
        if violation is not None:
            logger.debug("path constraints violated: %s", violation)
            return PlanResult(traj, False)
        if elapsed > timeout:
            logger.warning("interpolation exceeded timeout (%.3fs > %.3fs)", elapsed, timeout)
            return PlanResult(traj, False)
        return PlanResult(traj, True)

    def plan_cartesian(
        self,
        from_scene: PlanningScene,
        link: LinkModel,
        target: sp.SE3,
        group: JointModelGroup,
        timeout: float,
        path_constraints: Constraints,
    ) -> PlanResult:
        # Reaching a pose needs inverse kinematics, which this planner does not provide
        logger.warning(
            "JointInterpolationPlanner cannot plan Cartesian goals (link '%s')", link.name
        )
        return PlanResult(None, False)
