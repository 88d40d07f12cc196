"""
Base abstractions for pipeline stages.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from motion_stages.config import DEFAULT_TIMEOUT_S, STORE_FAILURES, TRACE
from motion_stages.core.planning_scene import PlanningScene
from motion_stages.core.properties import PropertyMap
from motion_stages.protocol.messages import Marker
from motion_stages.utils.errors import InitStageError

if TYPE_CHECKING:
    from motion_stages.core.robot_model import RobotModel
    from motion_stages.core.trajectory import RobotTrajectory
    from motion_stages.stages.cost import CostTerm

logger = logging.getLogger(__name__)


class Direction(Enum):
    """Traversal direction of a stage in the pipeline graph."""

    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass
class InterfaceState:
    """State handed between stages: a scene (never mutated downstream)."""

    scene: PlanningScene


@dataclass
class SubTrajectory:
    """Solution artifact produced by a stage.

    A solution may carry a trajectory and still be failed: "failed" means the
    motion is not a validated solution, not that nothing was produced.
    """

    trajectory: RobotTrajectory | None = None
    failed: bool = False
    comment: str = ""
    cost: float = 0.0
    markers: list[Marker] = field(default_factory=list)

    def set_trajectory(self, trajectory: RobotTrajectory | None) -> None:
        self.trajectory = trajectory

    def mark_as_failure(self, message: str = "") -> None:
        self.failed = True
        if message:
            self.comment = message
        self.cost = math.inf

    def set_cost(self, cost: float) -> None:
        self.cost = cost


class Stage(ABC):
    """Named stage with typed properties and uniform logging."""

    # Set by @register_stage decorator
    _stage_kind: ClassVar[str | None] = None

    def __init__(self, name: str):
        self._name = name
        self._properties = PropertyMap()
        self._robot_model: RobotModel | None = None
        self._cost_term: CostTerm | None = None
        self.store_failures: bool = STORE_FAILURES
        self._properties.declare(
            "timeout", float, "timeout per run (s)", default=DEFAULT_TIMEOUT_S
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def kind(self) -> str:
        return self._stage_kind or type(self).__name__

    def properties(self) -> PropertyMap:
        return self._properties

    def set_property(self, name: str, value: Any) -> None:
        self._properties.set(name, value)

    @property
    def timeout(self) -> float:
        return float(self._properties.get("timeout"))

    def set_timeout(self, timeout: float) -> None:
        if timeout <= 0.0:
            raise InitStageError("timeout must be positive", self.name)
        self._properties.set("timeout", timeout)

    def set_cost_term(self, cost_term: CostTerm | None) -> None:
        self._cost_term = cost_term

    @property
    def robot_model(self) -> RobotModel | None:
        return self._robot_model

    def init(self, robot_model: RobotModel) -> None:
        """Bind the stage to a robot model before the first compute."""
        self._robot_model = robot_model
        self.log_trace("init with robot model '%s'", robot_model.name)

    # Logging helpers (uniform, include stage identity)
    def log_trace(self, msg: str, *args: Any) -> None:
        logger.log(TRACE, "[%s] " + msg, self.name, *args)

    def log_debug(self, msg: str, *args: Any) -> None:
        logger.debug("[%s] " + msg, self.name, *args)

    def log_info(self, msg: str, *args: Any) -> None:
        logger.info("[%s] " + msg, self.name, *args)

    def log_warning(self, msg: str, *args: Any) -> None:
        logger.warning("[%s] " + msg, self.name, *args)

    def log_error(self, msg: str, *args: Any) -> None:
        logger.error("[%s] " + msg, self.name, *args)


class PropagatingEitherWay(Stage):
    """
    Stage that maps a single interface state to a new one, usable in forward
    or backward traversal.

    Subclasses implement compute(); compute_forward()/compute_backward() run
    it with the direction token and turn every outcome into a SubTrajectory.
    """

    def __init__(self, name: str):
        super().__init__(name)

    @abstractmethod
    def compute(
        self,
        state: InterfaceState,
        solution: SubTrajectory,
        direction: Direction,
    ) -> PlanningScene | None:
        """
        Compute a solution starting from ``state``.

        Returns the resulting scene when a trajectory (successful or marked
        failed) was attached to ``solution``, None when nothing attachable
        was produced.
        """
        raise NotImplementedError

    def compute_forward(self, state: InterfaceState) -> tuple[InterfaceState | None, SubTrajectory]:
        return self._propagate(state, Direction.FORWARD)

    def compute_backward(self, state: InterfaceState) -> tuple[InterfaceState | None, SubTrajectory]:
        return self._propagate(state, Direction.BACKWARD)

    def _propagate(
        self, state: InterfaceState, direction: Direction
    ) -> tuple[InterfaceState | None, SubTrajectory]:
        if self._robot_model is None:
            raise InitStageError("stage used before init()", self.name)
        solution = SubTrajectory()
        self.log_trace("compute %s start", direction.value)
        try:
            scene = self.compute(state, solution, direction)
        except InitStageError:
            raise
        except Exception as e:
            # Collaborator failures (planner, scene) end this branch only
            logger.exception("[%s] compute %s raised", self.name, direction.value)
            solution.mark_as_failure(f"{type(e).__name__}: {e}")
            return None, solution

        if not solution.failed and self._cost_term is not None:
            solution.set_cost(self._cost_term(solution))
        self.log_debug(
            "compute %s: %s%s (cost %.4g)",
            direction.value,
            "failed" if solution.failed else "ok",
            f" - {solution.comment}" if solution.comment else "",
            solution.cost,
        )
        if scene is None:
            return None, solution
        return InterfaceState(scene), solution
