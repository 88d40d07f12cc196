"""
Stage registration with decorator support.

Stages register under a kind name so they can be created from configuration
files (see ``StageConfig.stage``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from motion_stages.stages.base import Stage
from motion_stages.utils.errors import InitStageError

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=type[Stage])


class StageRegistry:
    """Singleton registry for stage classes."""

    _instance: StageRegistry | None = None

    def __new__(cls) -> StageRegistry:
        """Ensure singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize the registry (only runs once due to singleton)."""
        if not hasattr(self, "_initialized"):
            self._stages: dict[str, type[Stage]] = {}
            self._initialized = True

    def register(self, kind: str, stage_class: type[Stage]) -> None:
        """
        Register a stage class under ``kind``.

        Raises:
            ValueError: If another class is already registered under ``kind``
        """
        existing = self._stages.get(kind)
        if existing is not None and existing is not stage_class:
            raise ValueError(
                f"Stage {kind} is already registered with class {existing.__name__}. "
                f"Cannot register with {stage_class.__name__}"
            )
        self._stages[kind] = stage_class
        logger.debug("Registered stage %s -> %s", kind, stage_class.__name__)

    def get_stage_class(self, kind: str) -> type[Stage] | None:
        return self._stages.get(kind)

    def list_stages(self) -> list[str]:
        return sorted(self._stages)

    def create(self, kind: str, *args: Any, **kwargs: Any) -> Stage:
        stage_class = self._stages.get(kind)
        if stage_class is None:
            raise InitStageError(
                f"unknown stage kind '{kind}'. Available: {self.list_stages()}"
            )
        return stage_class(*args, **kwargs)


def register_stage(kind: str) -> Callable[[S], S]:
    """Class decorator registering a stage under ``kind``."""

    def decorator(stage_class: S) -> S:
        StageRegistry().register(kind, stage_class)
        stage_class._stage_kind = kind
        return stage_class

    return decorator


def create_stage(kind: str, *args: Any, **kwargs: Any) -> Stage:
    return StageRegistry().create(kind, *args, **kwargs)
