"""
Robot state: joint variable values plus cached forward kinematics.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import numpy as np
import sophuspy as sp
from numpy.typing import ArrayLike, NDArray

from motion_stages.core.robot_model import JointModelGroup, JointType, RobotModel
from motion_stages.utils.se3_utils import se3_copy, se3_identity, se3_to_quat

logger = logging.getLogger(__name__)


class RobotState:
    """Variable positions of a RobotModel.

    Link transforms are computed lazily and cached; any write to the variables
    invalidates the cache.
    """

    __slots__ = ("robot_model", "_positions", "_link_cache")

    def __init__(self, robot_model: RobotModel, positions: ArrayLike | None = None):
        self.robot_model = robot_model
        if positions is None:
            self._positions = robot_model.default_positions()
        else:
            self._positions = np.array(positions, dtype=np.float64)
            if self._positions.shape != (robot_model.variable_count,):
                raise ValueError(
                    f"expected {robot_model.variable_count} variables, got {self._positions.shape}"
                )
        self._link_cache: dict[str, sp.SE3] | None = None

    def copy(self) -> RobotState:
        return RobotState(self.robot_model, self._positions)

    def __repr__(self) -> str:
        values = ", ".join(
            f"{n}={v:.4g}" for n, v in zip(self.robot_model.variable_names, self._positions)
        )
        return f"RobotState({values})"

    # ---- variables ----

    @property
    def positions(self) -> NDArray[np.float64]:
        """Read-only view of all variable positions."""
        view = self._positions.view()
        view.flags.writeable = False
        return view

    def get_variable_position(self, name: str) -> float:
        return float(self._positions[self.robot_model.variable_index(name)])

    def set_variable_position(self, name: str, value: float) -> None:
        self._positions[self.robot_model.variable_index(name)] = float(value)
        self._link_cache = None

    def set_variable_positions(self, values: Mapping[str, float] | ArrayLike) -> None:
        if isinstance(values, Mapping):
            for name, value in values.items():
                self._positions[self.robot_model.variable_index(name)] = float(value)
        else:
            arr = np.asarray(values, dtype=np.float64)
            if arr.shape != self._positions.shape:
                raise ValueError(
                    f"expected {self._positions.shape[0]} variables, got {arr.shape}"
                )
            self._positions[:] = arr
        self._link_cache = None

    def set_joint_positions(self, joint: str, values: ArrayLike) -> None:
        jm = self.robot_model.get_joint_model(joint)
        if jm is None:
            raise KeyError(f"unknown joint '{joint}'")
        arr = np.atleast_1d(np.asarray(values, dtype=np.float64))
        if arr.shape != (jm.variable_count,):
            raise ValueError(f"joint '{joint}' takes {jm.variable_count} values")
        start = jm.first_variable_index
        self._positions[start : start + jm.variable_count] = arr
        self._link_cache = None

    def get_joint_positions(self, joint: str) -> NDArray[np.float64]:
        jm = self.robot_model.get_joint_model(joint)
        if jm is None:
            raise KeyError(f"unknown joint '{joint}'")
        start = jm.first_variable_index
        return self._positions[start : start + jm.variable_count].copy()

    def set_joint_transform(self, joint: str, transform: sp.SE3) -> None:
        """Set a floating joint's variables from a transform."""
        jm = self.robot_model.get_joint_model(joint)
        if jm is None:
            raise KeyError(f"unknown joint '{joint}'")
        if jm.type is not JointType.FLOATING:
            raise ValueError(f"joint '{joint}' is not a multi-DOF joint")
        position, quat = se3_to_quat(transform)
        self.set_joint_positions(joint, np.concatenate([position, quat]))

    def joint_positions(self, group: JointModelGroup | None = None) -> dict[str, float]:
        """Single-variable joint values, optionally restricted to a group."""
        out: dict[str, float] = {}
        for jm in self.robot_model.get_joint_models():
            if jm.variable_count != 1:
                continue
            if group is not None and not group.has_joint(jm.name):
                continue
            out[jm.name] = float(self._positions[jm.first_variable_index])
        return out

    def set_to_default_values(
        self, group: JointModelGroup | None = None, name: str | None = None
    ) -> bool:
        """Reset to model defaults, or apply a group's named state.

        Returns False if ``name`` is not a named state of ``group``.
        """
        if group is None or name is None:
            self._positions = self.robot_model.default_positions()
            self._link_cache = None
            return True
        values = group.get_named_state(name)
        if values is None:
            return False
        for joint, value in values.items():
            self.set_joint_positions(joint, [value])
        return True

    def distance(
        self,
        other: RobotState,
        group: JointModelGroup | None = None,
        weights: Mapping[str, float] | None = None,
    ) -> float:
        """Sum of per-joint distances to ``other``, optionally weighted per joint.

        Multi-DOF joints count too (see ``JointModel.distance``).
        """
        total = 0.0
        for jm in self.robot_model.get_joint_models():
            if group is not None and not group.has_joint(jm.name):
                continue
            s = slice(jm.first_variable_index, jm.first_variable_index + jm.variable_count)
            w = 1.0 if weights is None else weights.get(jm.name, 1.0)
            total += w * jm.distance(self._positions[s], other._positions[s])
        return total

    # ---- kinematics ----

    def update(self) -> None:
        """Recompute all link transforms."""
        cache: dict[str, sp.SE3] = {}
        model = self.robot_model
        for link_name in model.link_names:
            link = model.get_link_model(link_name)
            assert link is not None
            jm = link.parent_joint
            if jm is None:
                cache[link_name] = se3_identity()
                continue
            start = jm.first_variable_index
            values = self._positions[start : start + jm.variable_count]
            cache[link_name] = cache[jm.parent_link] * jm.transform(values)
        self._link_cache = cache

    def get_global_link_transform(self, link: str) -> sp.SE3:
        """root_T_link for the current variables."""
        if not self.robot_model.has_link(link):
            raise KeyError(f"unknown link '{link}'")
        if self._link_cache is None:
            self.update()
        assert self._link_cache is not None
        return se3_copy(self._link_cache[link])
