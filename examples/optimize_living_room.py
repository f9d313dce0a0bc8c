from __future__ import annotations

"""Living-room placement search example.

This script:
1) Builds the furnished living-room preset.
2) Scores the initial source/listener placement.
3) Runs the cooperative placement search and keeps the best records.
4) Reapplies a chosen record and saves JSON results, optionally plots the scene.

Outputs (default `--out-dir outputs`):
- living_room_initial.json, living_room_best.json
- living_room_records.json
- optional plots: living_room_initial_top.png, living_room_best_3d.png, ...
"""

import argparse
import random
from pathlib import Path

from roomray import (
    PlacementOptimizer,
    RecordBook,
    SimulationConfig,
    SimulationContext,
    living_room_scene,
    save_result_json,
)
from roomray.infra import LoggingConfig, get_logger, setup_logging
from roomray.viz import save_scene_plots


def main() -> None:
    """Run the placement search on the living-room preset."""
    parser = argparse.ArgumentParser(description="Optimize source/listener placement")
    parser.add_argument("--num-rays", type=int, default=1000)
    parser.add_argument("--max-bounces", type=int, default=3)
    parser.add_argument("--iterations", type=int, default=400)
    parser.add_argument("--jump-probability", type=float, default=0.1)
    parser.add_argument("--records", type=int, default=10)
    parser.add_argument(
        "--record-index",
        type=int,
        default=0,
        help="Record to reapply before saving (0 is the best).",
    )
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--out-dir", type=Path, default=Path("outputs"))
    parser.add_argument("--plot", action="store_true", help="Save scene plots (PNG).")
    parser.add_argument("--log-level", type=str, default="INFO")
    args = parser.parse_args()

    setup_logging(LoggingConfig(level=args.log_level))
    logger = get_logger("examples.optimize_living_room")

    config = SimulationConfig(
        num_rays=args.num_rays,
        max_bounces=args.max_bounces,
        max_iterations=args.iterations,
        random_jump_probability=args.jump_probability,
        seed=args.seed,
    )
    ctx = SimulationContext(living_room_scene(), config)
    out_dir = args.out_dir

    initial = ctx.evaluate()
    logger.info("initial score: %d", initial.score)
    save_result_json(out_dir / "living_room_initial.json", initial, ctx.scene, logger=logger)
    if args.plot:
        save_scene_plots(
            out_dir=out_dir,
            scene=ctx.scene,
            segments=initial.segments,
            prefix="living_room_initial",
            logger=logger,
        )

    book = RecordBook(max_records=args.records)
    optimizer = PlacementOptimizer(ctx, rng=random.Random(args.seed), on_new_best=book.add)
    outcome = optimizer.run()
    logger.info(
        "search %s after %d iterations, best score %d",
        outcome.status.value,
        outcome.iterations,
        outcome.best_score,
    )
    book.save_json(out_dir / "living_room_records.json")
    if not len(book):
        logger.warning("no records collected")
        return

    index = min(args.record_index, len(book) - 1)
    chosen = book.apply(ctx, index)
    logger.info(
        "record %d: score %d, source %s, listener %s",
        index,
        chosen.score,
        chosen.source_pos,
        chosen.listener_pos,
    )
    best = ctx.evaluate()
    save_result_json(
        out_dir / "living_room_best.json",
        best,
        ctx.scene,
        extra={"record": chosen, "status": outcome.status.value},
        logger=logger,
    )
    if args.plot:
        save_scene_plots(
            out_dir=out_dir,
            scene=ctx.scene,
            segments=best.segments,
            prefix="living_room_best",
            logger=logger,
        )


if __name__ == "__main__":
    main()
