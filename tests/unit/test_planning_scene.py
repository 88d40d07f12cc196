"""Planning scene frames and robot state bookkeeping."""

import numpy as np
import pytest

from motion_stages.core.planning_scene import PlanningScene
from motion_stages.core.robot_model import RobotModel
from motion_stages.core.robot_state import RobotState
from motion_stages.utils.errors import UnknownFrameError
from motion_stages.utils.se3_utils import (
    se3_allclose,
    se3_axis_angle,
    se3_from_trans,
    se3_identity,
)


class TestFrames:
    def test_planning_frame_is_root(self, scene):
        """The root link and the empty name are the planning frame."""
        assert scene.get_planning_frame() == "world"
        assert se3_allclose(scene.get_frame_transform(""), se3_identity())
        assert se3_allclose(scene.get_frame_transform("world"), se3_identity())

    def test_knows_frames(self, scene):
        """Links and named frames are known, anything else is not."""
        for frame in ("", "world", "link2", "table", "gripper_tcp"):
            assert scene.knows_frame_transform(frame)
        assert not scene.knows_frame_transform("ghost")

    def test_unknown_frame(self, scene):
        """Unknown frames raise."""
        with pytest.raises(UnknownFrameError, match="unknown frame 'ghost'"):
            scene.get_frame_transform("ghost")

    def test_world_frame(self, scene):
        """World frames keep their pose."""
        assert np.allclose(scene.get_frame_transform("table").translation(), [0.5, 0.0, 0.0])

    def test_attached_frame_follows_link(self, scene):
        """Attached frames move with their link."""
        tool = scene.get_frame_transform("tool_link")
        tcp = scene.get_frame_transform("gripper_tcp")
        assert se3_allclose(tcp, tool * se3_from_trans(0.0, 0.0, 0.05))

        scene.get_current_state_non_const().set_variable_position("j3", 0.15)
        moved = scene.get_frame_transform("gripper_tcp")
        assert not np.allclose(moved.translation(), tcp.translation())

    def test_frame_names_must_not_shadow_links(self, scene):
        """Frame names must not clash with links."""
        with pytest.raises(ValueError):
            scene.add_frame("link1", se3_identity())
        with pytest.raises(ValueError):
            scene.add_frame("", se3_identity())

    def test_attach_to_unknown_link(self, scene):
        """Frames attach only to existing links."""
        with pytest.raises(UnknownFrameError):
            scene.attach_frame("cup", "ghost_link", se3_identity())

    def test_remove_frame(self, scene):
        """Removed frames are forgotten."""
        scene.remove_frame("table")
        assert not scene.knows_frame_transform("table")


class TestRigidParent:
    @pytest.mark.parametrize(
        "frame, link",
        [
            ("link2", "link2"),
            ("link3", "link3"),
            ("tool_link", "link3"),
            ("gripper_tcp", "link3"),
            ("base_link", "base_link"),
        ],
    )
    def test_parent_link(self, scene, frame, link):
        """Frames resolve to the nearest link not separated by a moving joint."""
        assert scene.get_rigidly_connected_parent_link(frame).name == link

    @pytest.mark.parametrize("frame", ["table", "ghost"])
    def test_no_parent_link(self, scene, frame):
        """World-fixed and unknown frames have no rigid parent."""
        assert scene.get_rigidly_connected_parent_link(frame) is None


class TestDiff:
    def test_child_is_independent(self, scene):
        """Changes to a diff leave the parent alone."""
        child = scene.diff()
        assert child.parent is scene

        child.get_current_state_non_const().set_variable_position("j1", 1.0)
        child.add_frame("bin", se3_from_trans(0.0, 1.0, 0.0))

        assert scene.get_current_state().get_variable_position("j1") == 0.2
        assert not scene.knows_frame_transform("bin")
        assert child.knows_frame_transform("table")

    def test_get_current_state_is_a_copy(self, scene):
        """Edits to a returned state do not reach the scene."""
        state = scene.get_current_state()
        state.set_variable_position("j2", 1.5)
        assert scene.get_current_state().get_variable_position("j2") == 0.1

    def test_set_current_state_copies(self, scene):
        """The scene keeps its own copy of an assigned state."""
        state = scene.get_current_state()
        state.set_variable_position("j2", 1.5)
        scene.set_current_state(state)
        state.set_variable_position("j2", -1.5)
        assert scene.get_current_state().get_variable_position("j2") == 1.5

    def test_state_from_other_model_rejected(self, scene, robot_description):
        """States of another robot model are refused."""
        other = RobotModel.from_description(robot_description)
        with pytest.raises(ValueError):
            scene.set_current_state(RobotState(other))


class TestRobotState:
    def test_positions_are_read_only(self, robot_model):
        """The positions view cannot be written."""
        state = RobotState(robot_model)
        with pytest.raises(ValueError):
            state.positions[7] = 1.0

    def test_wrong_length(self, robot_model):
        """Position vectors must match the variable count."""
        with pytest.raises(ValueError):
            RobotState(robot_model, [0.0, 1.0])

    def test_named_state(self, robot_model):
        """Group named states apply and unknown names report False."""
        arm = robot_model.get_joint_model_group("arm")
        state = RobotState(robot_model)
        state.set_variable_position("j1", 2.0)

        assert state.set_to_default_values(arm, "home")
        assert state.get_variable_position("j1") == 0.0
        assert not state.set_to_default_values(arm, "missing")

    def test_joint_transform_needs_floating_joint(self, robot_model):
        """Transforms can only be set on floating joints."""
        with pytest.raises(ValueError):
            RobotState(robot_model).set_joint_transform("j1", se3_identity())

    def test_joint_positions_by_group(self, robot_model):
        """joint_positions lists single-variable joints, optionally by group."""
        state = RobotState(robot_model)
        state.set_variable_positions({"j1": 0.1, "j2": 0.2})
        assert state.joint_positions(robot_model.get_joint_model_group("arm")) == {
            "j1": 0.1,
            "j2": 0.2,
            "j3": 0.0,
        }
        assert "base_joint" not in state.joint_positions()

    def test_distance(self, robot_model):
        """Per-joint distances add up."""
        a = RobotState(robot_model)
        b = a.copy()
        b.set_variable_positions({"j1": 0.3, "j2": -0.4})
        assert a.distance(b) == pytest.approx(0.7)
        assert a.distance(b, weights={"j2": 0.5}) == pytest.approx(0.5)

    def test_distance_counts_floating_joint(self, robot_model):
        """Base translation and rotation angle both contribute."""
        a = RobotState(robot_model)
        b = a.copy()
        b.set_joint_transform(
            "base_joint", se3_from_trans(1.0, 0.0, 0.0) * se3_axis_angle([0.0, 0.0, 1.0], np.pi / 2)
        )
        base = robot_model.get_joint_model_group("base")
        arm = robot_model.get_joint_model_group("arm")
        assert a.distance(b, base) == pytest.approx(1.0 + np.pi / 2)
        assert a.distance(b, arm) == 0.0
