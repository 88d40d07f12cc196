"""Typed property map used for stage configuration."""

import pytest

from motion_stages.core.properties import PropertyMap
from motion_stages.protocol.goals import Goal, NamedPose, PointGoal
from motion_stages.protocol.messages import Constraints
from motion_stages.utils.errors import PropertyTypeError, PropertyUndefinedError


@pytest.fixture
def props():
    p = PropertyMap()
    p.declare("timeout", float, "timeout per run (s)", default=1.0)
    p.declare("group", str, "name of planning group")
    p.declare("goal", Goal, "goal specification")
    p.declare("path_constraints", Constraints, default=Constraints())
    return p


def test_defaults_and_values(props):
    """Declared defaults, values and descriptions."""
    assert props.get("timeout") == 1.0
    assert props.defined("timeout")
    assert props.get("group") is None
    assert not props.defined("group")

    props.set("group", "arm")
    assert props.value("group") == "arm"
    assert props.description("group") == "name of planning group"


def test_int_widens_to_float(props):
    """Ints are stored as floats in float properties."""
    props.set("timeout", 3)
    assert props.get("timeout") == 3.0
    assert isinstance(props.get("timeout"), float)


def test_bool_is_not_a_number(props):
    """Booleans are not accepted as floats."""
    with pytest.raises(PropertyTypeError):
        props.set("timeout", True)


def test_wrong_type(props):
    """Wrong types name the expected type."""
    with pytest.raises(PropertyTypeError, match="property 'group' expects str"):
        props.set("group", 5)


def test_union_property(props):
    """Union properties take structs or tagged mappings."""
    props.set("goal", NamedPose("home"))
    assert props.get("goal") == NamedPose("home")
    props.set("goal", {"type": "point", "frame_id": "world", "point": [0.0, 0.0, 1.0]})
    assert props.get("goal") == PointGoal("world", (0.0, 0.0, 1.0))


def test_mapping_converted_to_struct(props):
    """Mappings convert to the declared struct type."""
    props.set(
        "path_constraints",
        {"name": "c", "joint_constraints": [
            {"joint_name": "j1", "position": 0.0, "tolerance_above": 0.1, "tolerance_below": 0.1}
        ]},
    )
    constraints = props.get("path_constraints")
    assert isinstance(constraints, Constraints)
    assert constraints.joint_constraints[0].joint_name == "j1"


def test_malformed_mapping(props):
    """Incomplete mappings fail conversion."""
    with pytest.raises(PropertyTypeError):
        props.set("path_constraints", {"joint_constraints": [{"joint_name": "j1"}]})


def test_undefined_value(props):
    """value() raises for unset properties."""
    with pytest.raises(PropertyUndefinedError):
        props.value("goal")


def test_undeclared_property(props):
    """Only declared properties can be set."""
    with pytest.raises(PropertyUndefinedError):
        props.set("speed", 1.0)


def test_reset_restores_default(props):
    """reset() returns to the default."""
    props.set("timeout", 5.0)
    props.reset("timeout")
    assert props.get("timeout") == 1.0


def test_set_default(props):
    """set_default supplies a value for unset properties."""
    props.set_default("group", "arm")
    assert props.get("group") == "arm"


def test_duplicate_declaration(props):
    """A property is declared once."""
    with pytest.raises(PropertyTypeError):
        props.declare("group", str)
