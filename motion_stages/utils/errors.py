"""
Exception hierarchy for stage configuration and computation.

Two tiers:
- InitStageError: configuration problems detected synchronously while a stage
  is being set up (bad property types, malformed goals). These propagate.
- StageError subclasses raised during compute(): caught at the compute
  boundary and recorded as a failure comment on the solution.
"""


class StageError(Exception):
    """Base class for errors raised while a stage resolves or plans a goal."""


class InitStageError(StageError):
    """Configuration error detected before any planning attempt."""

    def __init__(self, message: str, stage: str | None = None):
        self.stage = stage
        super().__init__(f"{stage}: {message}" if stage else message)


class PropertyTypeError(InitStageError):
    """A property was assigned a value of the wrong type."""


class PropertyUndefinedError(InitStageError):
    """A required property has neither a value nor a default."""


class InvalidGroupError(StageError):
    def __init__(self, group: str):
        self.group = group
        super().__init__(f"invalid joint model group: {group}")


class UndefinedGoalError(StageError):
    def __init__(self) -> None:
        super().__init__("undefined goal")


class UnknownNamedPoseError(StageError):
    def __init__(self, name: str, group: str):
        self.name = name
        self.group = group
        super().__init__(f"Unknown joint pose: {name}")


class NotADiffStateError(StageError):
    def __init__(self) -> None:
        super().__init__("Expecting a diff state")


class JointNotInGroupError(StageError):
    def __init__(self, name: str, group: str):
        self.name = name
        self.group = group
        super().__init__(f"Joint '{name}' is not part of group '{group}'")


class JointValueError(StageError):
    """A goal assigns the wrong number of values to a joint."""

    def __init__(self, name: str, expected: int, given: int):
        self.name = name
        super().__init__(f"Joint '{name}' takes {expected} value(s), goal gives {given}")


class AmbiguousOrMissingTipError(StageError):
    """The group does not expose exactly one end-effector tip."""

    def __init__(self, message: str = "missing ik_frame", tips: list[str] | None = None):
        self.tips = list(tips or [])
        super().__init__(message)


class UnknownFrameError(StageError):
    def __init__(self, frame_id: str, message: str | None = None):
        self.frame_id = frame_id
        super().__init__(message or f"unknown frame '{frame_id}'")


class InvalidGoalTypeError(StageError):
    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(f"invalid goal type: {type_name}")


class MissingRigidParentError(StageError):
    """No link is rigidly connected to the IK frame."""

    def __init__(self, frame_id: str):
        self.frame_id = frame_id
        super().__init__(f"frame '{frame_id}' has no rigidly connected parent link")


class RobotModelError(InitStageError):
    """Malformed robot description."""
