"""Shared fixtures: a small arm on a floating base, a scene and a recording planner."""

import msgspec
import pytest

from motion_stages.core.planning_scene import PlanningScene
from motion_stages.core.robot_model import RobotModel
from motion_stages.core.trajectory import RobotTrajectory
from motion_stages.protocol.descriptions import RobotDescription
from motion_stages.solvers.base import PlannerInterface, PlanResult
from motion_stages.solvers.joint_interpolation import JointInterpolationPlanner

# world -(floating)- base_link -j1(z)- link1 -j2(y)- link2 -j3(x, prismatic)- link3
#   -(fixed)- tool_link
ROBOT_DESCRIPTION = {
    "name": "test_arm",
    "root_link": "world",
    "joints": [
        {"name": "base_joint", "type": "floating", "parent": "world", "child": "base_link"},
        {
            "name": "j1",
            "type": "revolute",
            "parent": "base_link",
            "child": "link1",
            "origin": {"position": [0.0, 0.0, 0.1]},
            "axis": [0.0, 0.0, 1.0],
            "lower": -3.14,
            "upper": 3.14,
        },
        {
            "name": "j2",
            "type": "revolute",
            "parent": "link1",
            "child": "link2",
            "origin": {"position": [0.0, 0.0, 0.3]},
            "axis": [0.0, 1.0, 0.0],
            "lower": -2.0,
            "upper": 2.0,
        },
        {
            "name": "j3",
            "type": "prismatic",
            "parent": "link2",
            "child": "link3",
            "origin": {"position": [0.0, 0.0, 0.3]},
            "axis": [1.0, 0.0, 0.0],
            "lower": 0.0,
            "upper": 0.2,
        },
        {
            "name": "tool_joint",
            "type": "fixed",
            "parent": "link3",
            "child": "tool_link",
            "origin": {"position": [0.0, 0.0, 0.1]},
        },
    ],
    "groups": [
        {
            "name": "arm",
            "joints": ["j1", "j2", "j3"],
            "tips": ["tool_link"],
            "named_states": {
                "home": {"j1": 0.0, "j2": 0.0, "j3": 0.0},
                "ready": {"j1": 0.5, "j2": -0.5, "j3": 0.1},
            },
        },
        {"name": "base", "joints": ["base_joint"]},
        {"name": "whole", "joints": ["base_joint", "j1", "j2", "j3"], "tips": ["tool_link"]},
        {"name": "two_tips", "joints": ["j1", "j2", "j3"], "tips": ["link2", "tool_link"]},
    ],
    "frames": [
        {"name": "table", "pose": {"position": [0.5, 0.0, 0.0]}},
        {"name": "gripper_tcp", "link": "tool_link", "pose": {"position": [0.0, 0.0, 0.05]}},
    ],
}


@pytest.fixture
def robot_description() -> RobotDescription:
    return msgspec.convert(ROBOT_DESCRIPTION, type=RobotDescription)


@pytest.fixture
def robot_model(robot_description) -> RobotModel:
    return RobotModel.from_description(robot_description)


@pytest.fixture
def scene(robot_model, robot_description) -> PlanningScene:
    s = PlanningScene(robot_model)
    s.add_frames(robot_description.frames)
    s.get_current_state_non_const().set_variable_positions(
        {"j1": 0.2, "j2": 0.1, "j3": 0.05}
    )
    return s


class RecordingPlanner(PlannerInterface):
    """Planner double: joint goals are interpolated, Cartesian goals stand still.

    ``produce_trajectory=False`` returns no trajectory; ``success`` is reported as given.
    """

    def __init__(self, success: bool = True, produce_trajectory: bool = True):
        self.success = success
        self.produce_trajectory = produce_trajectory
        self.calls: list[dict] = []
        self.robot_model = None
        self._interp = JointInterpolationPlanner(max_step=0.05)

    def init(self, robot_model):
        self.robot_model = robot_model

    def plan_joint(self, from_scene, to_scene, group, timeout, path_constraints):
        self.calls.append(
            {"kind": "joint", "group": group.name, "timeout": timeout, "constraints": path_constraints}
        )
        if not self.produce_trajectory:
            return PlanResult(None, self.success)
        traj = self._interp.interpolate(
            from_scene.get_current_state(), to_scene.get_current_state(), group
        )
        return PlanResult(traj, self.success)

    def plan_cartesian(self, from_scene, link, target, group, timeout, path_constraints):
        self.calls.append(
            {
                "kind": "cartesian",
                "group": group.name,
                "link": link.name,
                "target": target,
                "timeout": timeout,
                "constraints": path_constraints,
            }
        )
        if not self.produce_trajectory:
            return PlanResult(None, self.success)
        start = from_scene.get_current_state()
        traj = RobotTrajectory(from_scene.get_robot_model(), group)
        traj.add_suffix_waypoint(start, 0.0)
        traj.add_suffix_waypoint(start, 0.5)
        return PlanResult(traj, self.success)


@pytest.fixture
def planner() -> RecordingPlanner:
    return RecordingPlanner()


@pytest.fixture
def make_planner():
    """Factory for planners with a chosen outcome."""
    return RecordingPlanner
