from __future__ import annotations

"""Command line entry point for evaluating and optimizing placements.

Two modes:
- evaluate: trace rays for the current source/listener placement
- optimize: run the cooperative placement search and keep the best records

It can load/save configs (JSON/YAML), generate plots, and writes result and
record JSON files in the chosen output directory.
"""

import argparse
import json
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .config import SimulationConfig
from .infra import LoggingConfig, ProgressLogger, get_logger, setup_logging
from .io import RecordBook, save_grid_json, save_result_json
from .scene_utils import empty_room_scene, living_room_scene
from .sim import OptimizerStatus, PlacementOptimizer, SimulationContext

_SCENES = {
    "living_room": living_room_scene,
    "empty": empty_room_scene,
}
_RUN_KEYS = ("mode", "scene", "records", "out_dir", "plot", "show", "log_level", "log_module")
_CONFIG_KEYS = frozenset(_RUN_KEYS) | {f.name for f in fields(SimulationConfig)}

logger = get_logger("cli")


def _is_yaml(path: Path) -> bool:
    return path.suffix.lower() in (".yaml", ".yml")


def _yaml():
    try:
        import yaml
    except ModuleNotFoundError as exc:
        raise ModuleNotFoundError("PyYAML is required for YAML configs") from exc
    return yaml


def _load_config(path: Path) -> Dict[str, Any]:
    """Read a run config; keys other than run options and config fields are dropped."""
    with path.open("r", encoding="utf-8") as f:
        data = (_yaml().safe_load(f) or {}) if _is_yaml(path) else json.load(f)
    if not isinstance(data, dict):
        raise ValueError("config must be a mapping")
    data = {str(k).replace("-", "_"): v for k, v in data.items()}
    unknown = sorted(set(data) - _CONFIG_KEYS)
    if unknown:
        logger.warning("ignoring unknown config keys in %s: %s", path, ", ".join(unknown))
    return {k: v for k, v in data.items() if k in _CONFIG_KEYS}


def _dump_config(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        if _is_yaml(path):
            _yaml().safe_dump(data, f, sort_keys=False)
        else:
            json.dump(data, f, indent=2)


def _normalize_config_values(config: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in config.items():
        if key == "out_dir" and isinstance(value, str):
            out[key] = Path(value)
        elif key == "log_module" and isinstance(value, str):
            out[key] = [value]
        else:
            out[key] = value
    return out


def _module_levels(entries: Optional[List[str]]) -> Dict[str, str]:
    """Parse ``NAME=LEVEL`` entries such as ``sim.optimizer=DEBUG``."""
    levels: Dict[str, str] = {}
    for entry in entries or []:
        name, sep, level = entry.partition("=")
        if not sep or not name or not level:
            raise ValueError(f"--log-module expects NAME=LEVEL, got {entry!r}")
        levels[name.strip()] = level.strip()
    return levels


def _serialize_args(args: argparse.Namespace, config: SimulationConfig) -> Dict[str, Any]:
    data = {
        "mode": args.mode,
        "scene": args.scene,
        "records": args.records,
        "out_dir": str(args.out_dir),
        "plot": args.plot,
        "show": args.show,
        "log_level": args.log_level,
        "log_module": list(args.log_module or []),
    }
    data.update(config.to_dict())
    return data


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="roomray", description="Acoustic ray propagation and placement search"
    )
    parser.add_argument(
        "--mode",
        choices=("evaluate", "optimize"),
        default="evaluate",
        help="Score the current placement or search for a better one.",
    )
    parser.add_argument(
        "--scene",
        choices=sorted(_SCENES),
        default="living_room",
        help="Scene preset to load.",
    )
    parser.add_argument("--num-rays", dest="num_rays", type=int, default=1000)
    parser.add_argument("--max-bounces", dest="max_bounces", type=int, default=3)
    parser.add_argument(
        "--attenuation", dest="attenuation_factor", type=float, default=0.85,
        help="Per-bounce opacity decay.",
    )
    parser.add_argument(
        "--exploration", dest="exploration_factor", type=float, default=1.0,
        help="Scales random-jump probability and magnitude.",
    )
    parser.add_argument(
        "--jump-probability", dest="random_jump_probability", type=float, default=0.1
    )
    parser.add_argument(
        "--iterations", dest="max_iterations", type=int, default=200,
        help="Optimizer iteration cap.",
    )
    parser.add_argument("--step-size", dest="step_size", type=float, default=0.5)
    parser.add_argument("--cell-size", dest="cell_size", type=float, default=0.5)
    parser.add_argument(
        "--all-rays",
        action="store_false",
        dest="listener_only",
        help="Keep segments of rays that never reach the listener.",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed.")
    parser.add_argument("--records", type=int, default=10, help="Best records to keep.")
    parser.add_argument(
        "--out-dir",
        type=Path,
        default=Path("outputs"),
        help="Output directory for JSON results and plots.",
    )
    parser.add_argument("--plot", action="store_true", help="Save scene plots (PNG).")
    parser.add_argument("--show", action="store_true", help="show plots interactively")
    parser.add_argument("--log-level", type=str, default="INFO", help="Log level.")
    parser.add_argument(
        "--log-module",
        action="append",
        metavar="NAME=LEVEL",
        help="Per-subsystem log level, e.g. sim.optimizer=DEBUG (repeatable).",
    )
    parser.add_argument("--config-in", type=Path, help="Load config from JSON/YAML.")
    parser.add_argument("--config-out", type=Path, help="Write config to JSON/YAML.")
    return parser


def _plot(args, ctx: SimulationContext, segments, prefix: str, logger) -> None:
    if not args.plot:
        return
    from .viz import save_scene_plots

    save_scene_plots(
        out_dir=args.out_dir,
        scene=ctx.scene,
        segments=segments,
        prefix=prefix,
        show=args.show,
        logger=logger,
    )


def _run_evaluate(args, ctx: SimulationContext, logger) -> int:
    """Score the preset placement and export the traced segments."""
    result = ctx.evaluate()
    logger.info(
        "score %d (%d direct, %d indirect of %d rays)",
        result.score,
        result.direct_hits,
        result.indirect_hits,
        result.num_rays,
    )
    save_result_json(args.out_dir / "evaluation.json", result, ctx.scene, logger=logger)
    save_grid_json(args.out_dir / "occupancy.json", ctx.grid, logger=logger)
    _plot(args, ctx, result.segments, "evaluation", logger)
    print(f"score: {result.score}")
    return 0


def _run_optimize(args, ctx: SimulationContext, logger) -> int:
    """Search placements and persist the best records."""
    book = RecordBook(max_records=args.records)
    optimizer = PlacementOptimizer(ctx, on_new_best=book.add)
    progress = ProgressLogger(logger, every=max(1, ctx.config.max_iterations // 10))

    outcome = optimizer.run(on_step=progress)
    progress.finish(outcome)
    book.save_json(args.out_dir / "records.json")
    logger.info("saved: %s", args.out_dir / "records.json")
    if outcome.status in (OptimizerStatus.FAILED, OptimizerStatus.NO_MOVABLE_OBJECTS):
        return 1

    result = ctx.evaluate()
    save_result_json(
        args.out_dir / "optimized.json",
        result,
        ctx.scene,
        extra={"status": outcome.status.value, "iterations": outcome.iterations},
        logger=logger,
    )
    _plot(args, ctx, result.segments, "optimized", logger)
    print(f"best score: {outcome.best_score} after {outcome.iterations} iterations")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    pre_args, _ = parser.parse_known_args(argv)
    if pre_args.config_in is not None:
        defaults = _normalize_config_values(_load_config(pre_args.config_in))
        parser.set_defaults(**defaults)
    args = parser.parse_args(argv)

    setup_logging(
        LoggingConfig(level=args.log_level, module_levels=_module_levels(args.log_module))
    )

    config = SimulationConfig.from_mapping(vars(args))
    if args.config_out is not None:
        _dump_config(args.config_out, _serialize_args(args, config))
        logger.info("wrote config: %s", args.config_out)

    ctx = SimulationContext(_SCENES[args.scene](), config)
    if args.mode == "evaluate":
        return _run_evaluate(args, ctx, logger)
    if args.mode == "optimize":
        return _run_optimize(args, ctx, logger)
    raise ValueError(f"unknown mode: {args.mode}")


if __name__ == "__main__":
    raise SystemExit(main())
