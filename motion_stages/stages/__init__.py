"""
Pipeline stages.

Importing this package registers the built-in stages with the StageRegistry.
"""

from motion_stages.stages.base import (
    Direction,
    InterfaceState,
    PropagatingEitherWay,
    Stage,
    SubTrajectory,
)
from motion_stages.stages.move_to import MoveTo
from motion_stages.stages.registry import StageRegistry, create_stage, register_stage

__all__ = [
    "Direction",
    "InterfaceState",
    "MoveTo",
    "PropagatingEitherWay",
    "Stage",
    "StageRegistry",
    "SubTrajectory",
    "create_stage",
    "register_stage",
]
