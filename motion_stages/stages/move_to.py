"""
MoveTo stage: move a planning group to a joint-space or Cartesian goal.

Goal resolution happens in a fixed order:

1. Joint-space goals (NamedPose, DiffRobotState, JointMap) are applied to the
   stage's private copy of the scene and handed to the planner as a goal scene.
2. Any other goal is Cartesian (PoseGoal, PointGoal). The IK frame is
   resolved, the target is expressed in the planning frame and re-expressed
   for the link the IK frame is rigidly attached to, since the planner moves
   links, not logical frames.

Frame algebra is right-to-left, child-into-parent:
``world_T_target = world_T_goalframe * goalframe_T_target``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import sophuspy as sp

from motion_stages.config import MARKER_FRAME_SCALE, STALL_WAYPOINT_TIMES
from motion_stages.core.planning_scene import PlanningScene
from motion_stages.core.robot_model import JointModelGroup, JointType, LinkModel
from motion_stages.core.robot_state import RobotState
from motion_stages.core.trajectory import RobotTrajectory
from motion_stages.protocol.goals import (
    DiffRobotState,
    Goal,
    IKFrame,
    JointMap,
    NamedPose,
    PointGoal,
    PoseGoal,
    coerce_goal,
    coerce_ik_frame,
)
from motion_stages.protocol.messages import Constraints, Pose, PoseStamped
from motion_stages.solvers.base import PlannerInterface, PlanResult
from motion_stages.stages.base import (
    Direction,
    InterfaceState,
    PropagatingEitherWay,
    SubTrajectory,
)
from motion_stages.stages.cost import PathLength
from motion_stages.stages.registry import register_stage
from motion_stages.utils.errors import (
    AmbiguousOrMissingTipError,
    InitStageError,
    InvalidGoalTypeError,
    InvalidGroupError,
    JointNotInGroupError,
    JointValueError,
    MissingRigidParentError,
    NotADiffStateError,
    StageError,
    UndefinedGoalError,
    UnknownFrameError,
    UnknownNamedPoseError,
)
from motion_stages.utils.markers import append_frame
from motion_stages.utils.se3_utils import se3_transform_point, se3_with_translation

if TYPE_CHECKING:
    from motion_stages.core.robot_model import RobotModel

logger = logging.getLogger(__name__)


def get_pose_goal(goal: Goal, scene: PlanningScene) -> sp.SE3 | None:
    """world_T_target for a PoseGoal; None if ``goal`` is not a PoseGoal."""
    if not isinstance(goal, PoseGoal):
        return None
    return scene.get_frame_transform(goal.frame_id) * goal.pose.to_se3()


def get_point_goal(
    goal: Goal, ik_pose_world: sp.SE3, scene: PlanningScene
) -> sp.SE3 | None:
    """world_T_target for a PointGoal; None if ``goal`` is not a PointGoal.

    The target keeps the IK frame's current orientation.
    """
    if not isinstance(goal, PointGoal):
        return None
    point = se3_transform_point(scene.get_frame_transform(goal.frame_id), goal.point)
    return se3_with_translation(ik_pose_world, point)


@register_stage("MoveTo")
class MoveTo(PropagatingEitherWay):
    """Plan a motion of ``group`` to ``goal`` using ``planner``."""

    def __init__(self, name: str = "move to", planner: PlannerInterface | None = None):
        super().__init__(name)
        if planner is None:
            raise ValueError("MoveTo requires a planner")
        self.planner = planner
        self.set_cost_term(PathLength())

        p = self.properties()
        p.declare("group", str, "name of planning group")
        p.declare("ik_frame", IKFrame, "frame to be moved towards goal pose")
        p.declare("goal", Goal, "goal specification")
        p.declare(
            "path_constraints",
            Constraints,
            "constraints to maintain during trajectory",
            default=Constraints(),
        )

    # ---- configuration ----

    def set_group(self, group: str) -> None:
        self.set_property("group", group)

    def set_goal(self, goal: Any) -> None:
        """Set the goal from a Goal struct, a named pose, a joint map or a tagged dict."""
        self.set_property("goal", coerce_goal(goal))

    def set_ik_frame(self, frame: Any, link: str | None = None) -> None:
        """Set the IK frame from an IKFrame, a link name, or an offset (Pose/SE3) on ``link``."""
        self.set_property("ik_frame", coerce_ik_frame(frame, link))

    def set_path_constraints(self, constraints: Constraints | dict) -> None:
        self.set_property("path_constraints", constraints)

    def init(self, robot_model: RobotModel) -> None:
        super().init(robot_model)
        self.planner.init(robot_model)

    # ---- goal decoding ----

    def get_joint_state_goal(
        self, goal: Goal, group: JointModelGroup, state: RobotState
    ) -> bool:
        """
        Apply a joint-space goal to ``state`` in place.

        Returns False if ``goal`` is not a joint-space goal. A joint-space goal
        that fails validation raises; later variants are not tried.
        """
        match goal:
            case NamedPose(name=name):
                if not state.set_to_default_values(group, name):
                    raise UnknownNamedPoseError(name, group.name)
            case DiffRobotState():
                if not goal.is_diff:
                    raise NotADiffStateError()
                for name in goal.referenced_joints():
                    if not group.has_joint(name):
                        raise JointNotInGroupError(name, group.name)
                js = goal.joint_state
                mdof = goal.multi_dof_joint_state
                for name in js.name:
                    self._check_arity(state, name, single_dof=True)
                for name in mdof.joint_names:
                    self._check_arity(state, name, single_dof=False)
                for name, position in zip(js.name, js.position):
                    state.set_variable_position(name, position)
                for name, pose in zip(mdof.joint_names, mdof.transforms):
                    state.set_joint_transform(name, pose.to_se3())
            case JointMap(positions=positions):
                for name in positions:
                    if not group.has_joint(name):
                        raise JointNotInGroupError(name, group.name)
                    self._check_arity(state, name, single_dof=True)
                state.set_variable_positions(positions)
            case _:
                return False
        state.update()
        self.log_debug("joint-space goal %s", type(goal).__name__)
        return True

    @staticmethod
    def _check_arity(state: RobotState, joint: str, single_dof: bool) -> None:
        jm = state.robot_model.get_joint_model(joint)
        assert jm is not None  # group membership was checked
        if single_dof and jm.variable_count != 1:
            raise JointValueError(joint, jm.variable_count, 1)
        if not single_dof and jm.type is not JointType.FLOATING:
            raise JointValueError(joint, jm.variable_count, 7)

    # ---- IK frame ----

    @staticmethod
    def _unique_tip(group: JointModelGroup) -> str | None:
        tips = group.get_end_effector_tips()
        return tips[0] if len(tips) == 1 else None

    def resolve_ik_frame(
        self, scene: PlanningScene, group: JointModelGroup
    ) -> tuple[IKFrame, sp.SE3]:
        """
        Resolve the IK frame and its pose in the planning frame.

        Returns:
            (ik_frame with a non-empty frame_id, world_T_ikframe)
        """
        ik_frame: IKFrame | None = self.properties().get("ik_frame")
        if ik_frame is None:
            tip = self._unique_tip(group)
            if tip is None:
                raise AmbiguousOrMissingTipError(
                    "missing ik_frame", group.get_end_effector_tips()
                )
            ik_frame = IKFrame(frame_id=tip)
        elif not ik_frame.frame_id:
            tip = self._unique_tip(group)
            if tip is None:
                raise AmbiguousOrMissingTipError(
                    "frame_id of ik_frame is empty and no unique group tip was found",
                    group.get_end_effector_tips(),
                )
            ik_frame = IKFrame(frame_id=tip, pose=ik_frame.pose)
        elif not scene.knows_frame_transform(ik_frame.frame_id):
            raise UnknownFrameError(
                ik_frame.frame_id,
                f"ik_frame specified in unknown frame '{ik_frame.frame_id}'",
            )

        ik_pose_world = scene.get_frame_transform(ik_frame.frame_id) * ik_frame.pose.to_se3()
        return ik_frame, ik_pose_world

    # ---- Cartesian target ----

    def compose_cartesian_target(
        self,
        goal: Goal,
        ik_frame: IKFrame,
        ik_pose_world: sp.SE3,
        scene: PlanningScene,
        solution: SubTrajectory | None = None,
    ) -> tuple[LinkModel, sp.SE3]:
        """
        Compute the planner target for the link rigidly carrying the IK frame.

        The IK frame must reach world_T_target. Since
        world_T_ik = world_T_link * link_T_ik, the link must reach
        world_T_target * world_T_ik^-1 * world_T_link.

        Returns:
            (rigid parent link, world_T_link target)
        """
        match goal:
            case PoseGoal():
                target = get_pose_goal(goal, scene)
            case PointGoal():
                target = get_point_goal(goal, ik_pose_world, scene)
            case _:
                raise InvalidGoalTypeError(type(goal).__name__)
        assert target is not None

        if solution is not None:
            self._add_frame_marker(solution, scene, target, "target frame")
            self._add_frame_marker(solution, scene, ik_pose_world, "ik frame")

        parent = scene.get_rigidly_connected_parent_link(ik_frame.frame_id)
        if parent is None:
            raise MissingRigidParentError(ik_frame.frame_id)

        link_target = target * ik_pose_world.inverse() * scene.get_frame_transform(parent.name)
        return parent, link_target

    @staticmethod
    def _add_frame_marker(
        solution: SubTrajectory, scene: PlanningScene, pose: sp.SE3, name: str
    ) -> None:
        msg = PoseStamped(frame_id=scene.get_planning_frame(), pose=Pose.from_se3(pose))
        append_frame(solution.markers, msg, MARKER_FRAME_SCALE, name)

    # ---- compute ----

    def _resolve_and_plan(
        self, state: InterfaceState, scene: PlanningScene, solution: SubTrajectory
    ) -> tuple[JointModelGroup, PlanResult]:
        props = self.properties()
        robot_model = scene.get_robot_model()

        group_name: str | None = props.get("group")
        group = robot_model.get_joint_model_group(group_name) if group_name else None
        if group is None:
            raise InvalidGroupError(group_name or "")
        goal: Goal | None = props.get("goal")
        if goal is None:
            raise UndefinedGoalError()

        timeout = self.timeout
        path_constraints: Constraints = props.get("path_constraints")

        if self.get_joint_state_goal(goal, group, scene.get_current_state_non_const()):
            return group, self.planner.plan_joint(
                state.scene, scene, group, timeout, path_constraints
            )

        ik_frame, ik_pose_world = self.resolve_ik_frame(scene, group)
        link, target = self.compose_cartesian_target(
            goal, ik_frame, ik_pose_world, scene, solution
        )
        self.log_debug(
            "Cartesian goal %s: ik frame '%s' carried by link '%s'",
            type(goal).__name__,
            ik_frame.frame_id,
            link.name,
        )
        return group, self.planner.plan_cartesian(
            state.scene, link, target, group, timeout, path_constraints
        )

    def compute(
        self,
        state: InterfaceState,
        solution: SubTrajectory,
        direction: Direction,
    ) -> PlanningScene | None:
        scene = state.scene.diff()
        try:
            group, result = self._resolve_and_plan(state, scene, solution)
        except InitStageError:
            raise
        except StageError as e:
            if isinstance(e, MissingRigidParentError):
                self.log_error("%s", e)
            else:
                self.log_debug("%s", e)
            solution.mark_as_failure(str(e))
            return None

        if self.store_result(state.scene, scene, group, result, solution, direction):
            return scene
        return None

    # ---- result packaging ----

    def store_result(
        self,
        start_scene: PlanningScene,
        scene: PlanningScene,
        group: JointModelGroup,
        result: PlanResult,
        solution: SubTrajectory,
        direction: Direction,
    ) -> bool:
        """
        Attach the planner's trajectory to ``solution``.

        Without a trajectory (or with an empty one), a two-waypoint stall
        trajectory (start state to the possibly modified end state) is
        synthesized when failures are stored. The scene's state becomes the
        trajectory's last waypoint; backward traversal reverses the waypoints
        afterwards.

        Returns:
            True if a trajectory (real or synthesized) was attached
        """
        trajectory, success = result
        if trajectory is not None and trajectory.empty:
            trajectory = None
        if trajectory is None and self.store_failures:
            t_start, t_end = STALL_WAYPOINT_TIMES
            trajectory = RobotTrajectory(scene.get_robot_model(), group)
            trajectory.add_suffix_waypoint(start_scene.get_current_state(), t_start)
            trajectory.add_suffix_waypoint(scene.get_current_state(), t_end - t_start)

        if trajectory is None:
            solution.mark_as_failure("planner produced no trajectory")
            return False

        scene.set_current_state(trajectory.get_last_waypoint())
        if direction is Direction.BACKWARD:
            trajectory.reverse()
        solution.set_trajectory(trajectory)

        if not success:
            solution.mark_as_failure(solution.comment or "planning failed")
        return True
