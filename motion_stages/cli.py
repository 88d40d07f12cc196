"""Command-line interface: run a single MoveTo stage from JSON files."""

import argparse
import logging
import sys

import msgspec

import motion_stages.config as cfg
from motion_stages.config import LOG_DATEFMT, LOG_FORMAT, TRACE
from motion_stages.core.planning_scene import PlanningScene
from motion_stages.core.robot_model import RobotModel
from motion_stages.protocol.descriptions import (
    StageConfig,
    load_robot_description,
    load_stage_config,
)
from motion_stages.protocol.messages import json_encoder
from motion_stages.solvers.joint_interpolation import JointInterpolationPlanner
from motion_stages.stages.base import InterfaceState, SubTrajectory
from motion_stages.stages.move_to import MoveTo
from motion_stages.stages.registry import create_stage
from motion_stages.utils.errors import InitStageError, StageError

logger = logging.getLogger("motion_stages.cli")


def _log_level(args: argparse.Namespace) -> int:
    # Precedence:
    #   1) Explicit --log-level
    #   2) Verbose / quiet flags
    #   3) Environment-driven TRACE (MOTION_STAGES_TRACE=1)
    #   4) Default INFO
    if args.log_level:
        if args.log_level == "TRACE":
            cfg.TRACE_ENABLED = True
            return TRACE
        return getattr(logging, args.log_level)
    if args.verbose >= 3:
        cfg.TRACE_ENABLED = True
        return TRACE
    if args.verbose >= 2:
        return logging.DEBUG
    if args.verbose == 1:
        return logging.INFO
    if args.quiet:
        return logging.WARNING
    if cfg.TRACE_ENABLED:
        return TRACE
    return getattr(logging, cfg.LOG_LEVEL_DEFAULT)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="motion_stages MoveTo runner")
    parser.add_argument("--robot", required=True, help="Robot description JSON file")
    parser.add_argument("--stage", required=True, help="Stage configuration JSON file")
    parser.add_argument(
        "--backward",
        action="store_true",
        help="Propagate backward (trajectory ends at the start state)",
    )
    parser.add_argument(
        "--no-store-failures",
        action="store_true",
        help="Do not synthesize a stall trajectory when planning fails",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity; -v=INFO, -vv=DEBUG, -vvv=TRACE",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Enable quiet logging (WARNING level)",
    )
    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set specific log level",
    )
    return parser


def configure_stage(config: StageConfig, planner: JointInterpolationPlanner) -> MoveTo:
    """Create and configure a stage from a StageConfig."""
    stage = create_stage(config.stage, config.name or config.stage, planner=planner)
    if not isinstance(stage, MoveTo):
        raise InitStageError(f"stage kind '{config.stage}' is not runnable from the CLI")
    stage.set_group(config.group)
    stage.set_goal(config.goal)
    if config.ik_frame is not None:
        stage.set_ik_frame(config.ik_frame)
    stage.set_timeout(config.timeout)
    stage.set_path_constraints(config.path_constraints)
    return stage


def summarize(solution: SubTrajectory) -> dict:
    traj = solution.trajectory
    summary: dict = {
        "failed": solution.failed,
        "comment": solution.comment,
        "cost": None if solution.failed else solution.cost,
        "markers": len(solution.markers),
        "waypoints": 0,
    }
    if traj is not None:
        summary["waypoints"] = len(traj)
        summary["duration"] = traj.duration
        summary["variables"] = traj.robot_model.variable_names
        summary["start"] = traj.get_first_waypoint().positions
        summary["end"] = traj.get_last_waypoint().positions
    return summary


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the runner."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=_log_level(args), format=LOG_FORMAT, datefmt=LOG_DATEFMT)

    try:
        desc = load_robot_description(args.robot)
        robot_model = RobotModel.from_description(desc)
        stage_config = load_stage_config(args.stage)
        stage = configure_stage(stage_config, JointInterpolationPlanner())
        scene = PlanningScene(robot_model)
        scene.add_frames(desc.frames)
        if stage_config.start_state:
            scene.get_current_state_non_const().set_variable_positions(
                stage_config.start_state
            )
    except (
        OSError,
        KeyError,
        ValueError,
        msgspec.ValidationError,
        msgspec.DecodeError,
        StageError,
    ) as e:
        logger.error("Configuration error: %s", e)
        return 2

    if args.no_store_failures:
        stage.store_failures = False
    stage.init(robot_model)

    start = InterfaceState(scene)
    if args.backward:
        _, solution = stage.compute_backward(start)
    else:
        _, solution = stage.compute_forward(start)

    sys.stdout.write(json_encoder.encode(summarize(solution)).decode() + "\n")
    return 1 if solution.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
