"""
Central configuration for motion_stages tunables and shared constants.
"""

from __future__ import annotations

import logging
import os

TRACE: int = 5
logging.addLevelName(TRACE, "TRACE")
# Add Logger.trace if missing
if not hasattr(logging.Logger, "trace"):

    def _trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    logging.Logger.trace = _trace  # type: ignore[attr-defined]
    logging.TRACE = TRACE  # type: ignore[attr-defined]

TRACE_ENABLED = str(os.getenv("MOTION_STAGES_TRACE", "0")).lower() in (
    "1",
    "true",
    "yes",
    "on",
)

logger = logging.getLogger(__name__)


def _env_bool_optional(name: str) -> bool | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    s = raw.strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    return None


# Planner timeout used when the stage's "timeout" property is not overridden (s)
DEFAULT_TIMEOUT_S: float = float(os.getenv("MOTION_STAGES_DEFAULT_TIMEOUT", "1.0"))

# Keep failed solutions (stall trajectories) for introspection
_store_failures = _env_bool_optional("MOTION_STAGES_STORE_FAILURES")
STORE_FAILURES: bool = True if _store_failures is None else _store_failures

# Stall trajectory waypoint times (s)
STALL_WAYPOINT_TIMES: tuple[float, float] = (0.0, 1.0)

# Axis length of frame markers (m)
MARKER_FRAME_SCALE: float = float(os.getenv("MOTION_STAGES_MARKER_SCALE", "0.1"))

# Joint interpolation planner: max joint displacement between waypoints (rad or m)
MAX_JOINT_STEP: float = float(os.getenv("MOTION_STAGES_MAX_JOINT_STEP", "0.1"))

# Joint interpolation planner: nominal joint velocity used for timing (rad/s or m/s)
NOMINAL_JOINT_VELOCITY: float = 1.0

# Tolerance used when checking rotation matrices / comparing poses
SE3_EPS: float = 1e-9

LOG_LEVEL_DEFAULT: str = "INFO"
LOG_FORMAT: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT: str = "%H:%M:%S"
