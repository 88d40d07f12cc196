"""Robot model construction, variable layout and forward kinematics."""

import math

import msgspec
import numpy as np
import pytest

from motion_stages.core.robot_model import JointModel, JointModelGroup, JointType, RobotModel
from motion_stages.core.robot_state import RobotState
from motion_stages.protocol.descriptions import JointDescription, RobotDescription
from motion_stages.utils.errors import RobotModelError
from motion_stages.utils.se3_utils import se3_from_trans


def _revolute(name, parent, child):
    return JointModel(name, JointType.REVOLUTE, parent, child, origin=se3_from_trans(0.0, 0.0, 0.1))


class TestLayout:
    def test_variable_names(self, robot_model):
        """The floating base comes first with seven variables."""
        assert robot_model.variable_count == 10
        assert robot_model.variable_names[:7] == [
            "base_joint/trans_x",
            "base_joint/trans_y",
            "base_joint/trans_z",
            "base_joint/rot_x",
            "base_joint/rot_y",
            "base_joint/rot_z",
            "base_joint/rot_w",
        ]
        assert robot_model.variable_names[7:] == ["j1", "j2", "j3"]
        assert robot_model.variable_index("j2") == 8

    def test_unknown_variable(self, robot_model):
        """Unknown variables raise KeyError."""
        with pytest.raises(KeyError):
            robot_model.variable_index("j9")

    def test_links_in_tree_order(self, robot_model):
        """Links are listed from the root down."""
        assert robot_model.link_names == ["world", "base_link", "link1", "link2", "link3", "tool_link"]

    def test_default_positions(self, robot_model):
        """Defaults are zero apart from the identity quaternion."""
        q = robot_model.default_positions()
        assert q[6] == 1.0  # identity quaternion w
        assert np.count_nonzero(q) == 1

    def test_groups(self, robot_model):
        """Group joints, tips and named states."""
        arm = robot_model.get_joint_model_group("arm")
        assert arm.get_joint_model_names() == ["j1", "j2", "j3"]
        assert arm.get_end_effector_tips() == ["tool_link"]
        assert arm.get_named_state("ready") == {"j1": 0.5, "j2": -0.5, "j3": 0.1}
        assert arm.get_named_state("nope") is None
        assert robot_model.get_joint_model_group("legs") is None
        assert set(robot_model.get_joint_model_group_names()) == {"arm", "base", "whole", "two_tips"}

    def test_chain_to_root(self, robot_model):
        """Joint chain from the root to a link."""
        assert [j.name for j in robot_model.chain_to_root("tool_link")] == [
            "base_joint",
            "j1",
            "j2",
            "j3",
            "tool_joint",
        ]

    def test_clamp(self, robot_model):
        """Values clamp to joint limits."""
        j3 = robot_model.get_joint_model("j3")
        assert j3.clamp(0.5) == 0.2
        assert j3.clamp(-1.0) == 0.0


class TestConstruction:
    def test_out_of_order_joints(self):
        """Joints may be listed before their parent link exists."""
        # child declared before the joint that connects its parent
        model = RobotModel(
            "r",
            "root",
            [_revolute("b", "l1", "l2"), _revolute("a", "root", "l1")],
        )
        assert model.link_names == ["root", "l1", "l2"]

    def test_duplicate_joint(self):
        """Joint names are unique."""
        with pytest.raises(RobotModelError, match="duplicate joint"):
            RobotModel("r", "root", [_revolute("a", "root", "l1"), _revolute("a", "l1", "l2")])

    def test_link_with_two_parents(self):
        """A link has one parent joint."""
        with pytest.raises(RobotModelError, match="already has a parent"):
            RobotModel("r", "root", [_revolute("a", "root", "l1"), _revolute("b", "root", "l1")])

    def test_disconnected_link(self):
        """All links must hang off the root."""
        with pytest.raises(RobotModelError, match="not connected"):
            RobotModel("r", "root", [_revolute("a", "elsewhere", "l1")])

    @pytest.mark.parametrize(
        "group",
        [
            JointModelGroup("g", ["zz"]),
            JointModelGroup("g", ["a"], end_effector_tips=["nowhere"]),
            JointModelGroup("g", ["a"], named_states={"s": {"b": 0.0}}),
        ],
    )
    def test_invalid_group(self, group):
        """Groups may only reference existing joints and links."""
        joints = [_revolute("a", "root", "l1"), _revolute("b", "l1", "l2")]
        with pytest.raises(RobotModelError):
            RobotModel("r", "root", joints, [group])

    def test_description_limit_order(self):
        """Lower limits must not exceed upper limits."""
        with pytest.raises(msgspec.ValidationError):
            msgspec.convert(
                {"name": "j", "type": "revolute", "parent": "a", "child": "b", "lower": 1, "upper": 0},
                type=JointDescription,
            )

    def test_description_unknown_joint_type(self):
        """Unsupported joint types fail validation."""
        with pytest.raises(msgspec.ValidationError):
            msgspec.convert(
                {"name": "r", "root_link": "a", "joints": [
                    {"name": "j", "type": "spherical", "parent": "a", "child": "b"}
                ]},
                type=RobotDescription,
            )


class TestForwardKinematics:
    def test_zero_configuration(self, robot_model):
        """Tool height at the zero configuration."""
        state = RobotState(robot_model)
        T = state.get_global_link_transform("tool_link")
        assert np.allclose(T.translation(), [0.0, 0.0, 0.8])

    def test_revolute_then_prismatic(self, robot_model):
        """Prismatic motion follows the preceding rotation."""
        state = RobotState(robot_model)
        state.set_variable_positions({"j1": math.pi / 2, "j3": 0.1})
        T = state.get_global_link_transform("tool_link")
        # j3 slides along link2's x axis, which j1 turned onto world y
        assert np.allclose(T.translation(), [0.0, 0.1, 0.8])

    def test_floating_base(self, robot_model):
        """The floating base shifts the whole chain."""
        state = RobotState(robot_model)
        state.set_joint_transform("base_joint", se3_from_trans(1.0, 2.0, 0.0))
        T = state.get_global_link_transform("tool_link")
        assert np.allclose(T.translation(), [1.0, 2.0, 0.8])

    def test_cache_invalidated_on_write(self, robot_model):
        """Writing a variable refreshes cached link poses."""
        state = RobotState(robot_model)
        before = state.get_global_link_transform("link3").translation().copy()
        state.set_variable_position("j3", 0.2)
        after = state.get_global_link_transform("link3").translation()
        assert np.allclose(after - before, [0.2, 0.0, 0.0])

    def test_unknown_link(self, robot_model):
        """Unknown links raise KeyError."""
        with pytest.raises(KeyError):
            RobotState(robot_model).get_global_link_transform("ghost")
