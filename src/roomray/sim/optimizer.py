"""Cooperative source/listener placement search."""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, List, Optional

from ..config import EPSILON
from ..geometry.sampling import dedupe_positions, neighbor_offsets
from ..geometry.vector import Vector3
from ..models.results import BestSettings
from .context import MissingObjectError, SimulationContext
from .occupancy import Role

logger = logging.getLogger(__name__)


class OptimizerStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED = "stopped"
    NO_MOVABLE_OBJECTS = "no_movable_objects"
    FAILED = "failed"


@dataclass
class OptimizerState:
    iteration: int = 0
    turn: Role = Role.SOURCE
    best_score: int = -1
    best: Optional[BestSettings] = None
    running: bool = False
    status: OptimizerStatus = OptimizerStatus.IDLE


@dataclass(frozen=True)
class StepReport:
    """What a host needs after one step: positions, scores, and run state."""

    iteration: int
    moved: Role
    source_pos: Vector3
    listener_pos: Vector3
    score: int
    best_score: int
    running: bool
    status: OptimizerStatus
    jumped: bool = False


@dataclass(frozen=True)
class OptimizationOutcome:
    status: OptimizerStatus
    iterations: int
    best_score: int
    best: Optional[BestSettings]


@dataclass(frozen=True)
class _Choice:
    position: Vector3
    jumped: bool


class PlacementOptimizer:
    """Alternating local search over source and listener positions.

    Each step moves one object: it scores the 26 grid neighbors of the
    current position with the reduced ray count, takes an improving move when
    one exists, and otherwise either attempts a random jump or drifts along a
    plateau. Turns alternate between the source and the listener. The host
    drives the search with ``steps()`` (one report per step) or ``run()``.

    Examples:
        ```python
        ctx = SimulationContext(living_room_scene(), SimulationConfig(max_iterations=200, seed=0))
        optimizer = PlacementOptimizer(ctx)
        outcome = optimizer.run()
        print(outcome.status, outcome.best_score)
        ```
    """

    def __init__(
        self,
        context: SimulationContext,
        *,
        rng: Optional[random.Random] = None,
        on_new_best: Optional[Callable[[BestSettings], None]] = None,
    ) -> None:
        self.context = context
        self.rng = rng if rng is not None else random.Random(context.config.seed)
        self.on_new_best = on_new_best
        self.state = OptimizerState()
        self._stop = threading.Event()

    @property
    def running(self) -> bool:
        return self.state.running

    def start(self) -> OptimizerState:
        """Reset the run state; ends immediately when a movable object is missing."""
        self._stop.clear()
        self.state = OptimizerState(running=True, status=OptimizerStatus.RUNNING)
        try:
            self.context.require()
        except MissingObjectError:
            logger.error("optimization aborted: source or listener is missing")
            self.state.running = False
            self.state.status = OptimizerStatus.NO_MOVABLE_OBJECTS
            return self.state
        logger.info(
            "optimization started (max_iterations=%d)", self.context.config.max_iterations
        )
        return self.state

    def stop(self) -> None:
        """Request the run to end before the next step."""
        self._stop.set()

    def step(self) -> StepReport:
        """Move the object whose turn it is and report the new state."""
        state = self.state
        if not state.running:
            raise RuntimeError("optimizer is not running; call start() first")
        turn = state.turn
        try:
            report = self._step(turn)
        except Exception:
            logger.exception("optimization step %d failed; stopping", state.iteration + 1)
            state.running = False
            state.status = OptimizerStatus.FAILED
            source, listener = self.context.scene.source, self.context.scene.listener
            return StepReport(
                iteration=state.iteration,
                moved=turn,
                source_pos=source.center,
                listener_pos=listener.center,
                score=max(state.best_score, 0),
                best_score=state.best_score,
                running=False,
                status=state.status,
            )
        if state.iteration >= self.context.config.max_iterations:
            self._finish(OptimizerStatus.COMPLETED)
            report = self._with_status(report)
        return report

    def steps(self) -> Iterator[StepReport]:
        """Yield one report per step until the cap, a stop request, or a fault."""
        if not self.state.running:
            self.start()
        while self.state.running:
            if self._stop.is_set():
                self._finish(OptimizerStatus.STOPPED)
                break
            if self.state.iteration >= self.context.config.max_iterations:
                self._finish(OptimizerStatus.COMPLETED)
                break
            yield self.step()

    def run(
        self,
        delay: float = 0.0,
        on_step: Optional[Callable[[StepReport], None]] = None,
    ) -> OptimizationOutcome:
        """Drive ``steps()`` to the end, sleeping ``delay`` seconds between steps."""
        for report in self.steps():
            if on_step is not None:
                on_step(report)
            if delay > 0:
                time.sleep(delay)
        state = self.state
        return OptimizationOutcome(
            status=state.status,
            iterations=state.iteration,
            best_score=state.best_score,
            best=state.best,
        )

    def _step(self, turn: Role) -> StepReport:
        ctx = self.context
        source, listener = ctx.require()
        moving = source if turn is Role.SOURCE else listener
        current = moving.center

        def score_at(pos: Vector3) -> int:
            if turn is Role.SOURCE:
                return ctx.estimate(pos, listener.center)
            return ctx.estimate(source.center, pos)

        baseline = score_at(current)
        best_score = baseline
        ties: List[Vector3] = [current]
        for candidate in self._candidates(turn, current, moving.radius):
            try:
                score = score_at(candidate)
            except (ValueError, ArithmeticError) as exc:
                logger.debug("discarding candidate %s: %s", candidate, exc)
                continue
            if score > best_score:
                best_score = score
                ties = [candidate]
            elif score == best_score and not any(candidate.is_close(t, EPSILON) for t in ties):
                ties.append(candidate)

        choice = self._select(turn, current, moving.radius, baseline, best_score, ties)

        with ctx.lock:
            if not choice.position.is_close(current, EPSILON):
                # The other object may have been moved while candidates were scored.
                if ctx.is_valid(turn, choice.position):
                    ctx.move(turn, choice.position)
                else:
                    logger.debug(
                        "%s stays at %s: %s became invalid", turn.value, current, choice.position
                    )
                    choice = _Choice(current, False)
            self.state.turn = turn.other
            self.state.iteration += 1
            iteration = self.state.iteration

        result = ctx.evaluate(collect_segments=False)
        if result.score > self.state.best_score:
            self.state.best_score = result.score
            self.state.best = ctx.snapshot(result.score, iteration)
            logger.info("new best score %d at iteration %d", result.score, iteration)
            if self.on_new_best is not None:
                self.on_new_best(self.state.best)

        return StepReport(
            iteration=iteration,
            moved=turn,
            source_pos=source.center,
            listener_pos=listener.center,
            score=result.score,
            best_score=self.state.best_score,
            running=self.state.running,
            status=self.state.status,
            jumped=choice.jumped,
        )

    def _candidates(self, turn: Role, current: Vector3, radius: float) -> List[Vector3]:
        ctx = self.context
        room = ctx.scene.room
        clamped = [
            room.clamp(current + offset, radius)
            for offset in neighbor_offsets(ctx.config.step_size)
        ]
        unique = [
            pos for pos in dedupe_positions(clamped, EPSILON) if not pos.is_close(current, EPSILON)
        ]
        valid = [pos for pos in unique if ctx.is_valid(turn, pos)]
        logger.debug(
            "%s: %d of %d neighbors valid", turn.value, len(valid), len(unique)
        )
        return valid

    def _select(
        self,
        turn: Role,
        current: Vector3,
        radius: float,
        baseline: int,
        best_score: int,
        ties: List[Vector3],
    ) -> _Choice:
        cfg = self.context.config
        rng = self.rng
        if best_score > baseline:
            return _Choice(rng.choice(ties), False)

        if rng.random() < cfg.random_jump_probability * cfg.exploration_factor:
            magnitude = (rng.random() * 2.0 + 2.0) * cfg.exploration_factor
            dx = (rng.random() * 2.0 - 1.0) * cfg.step_size * magnitude
            dy = (rng.random() * 0.5 - 0.25) * cfg.step_size * magnitude
            dz = (rng.random() * 2.0 - 1.0) * cfg.step_size * magnitude
            target = self.context.scene.room.clamp(current + Vector3(dx, dy, dz), radius)
            if self.context.is_valid(turn, target):
                logger.debug("%s jumps to %s", turn.value, target)
                return _Choice(target, True)
            return _Choice(rng.choice(ties), False)

        chosen = rng.choice(ties)
        if chosen.is_close(current, EPSILON) and len(ties) > 1:
            others = [pos for pos in ties if not pos.is_close(current, EPSILON)]
            chosen = rng.choice(others)
        return _Choice(chosen, False)

    def _finish(self, status: OptimizerStatus) -> None:
        state = self.state
        state.running = False
        state.status = status
        if state.best is not None:
            self.context.apply_settings(state.best)
        logger.info(
            "optimization %s after %d iterations (best score %d)",
            status.value,
            state.iteration,
            state.best_score,
        )

    def _with_status(self, report: StepReport) -> StepReport:
        state = self.state
        source, listener = self.context.scene.source, self.context.scene.listener
        return StepReport(
            iteration=report.iteration,
            moved=report.moved,
            source_pos=source.center,
            listener_pos=listener.center,
            score=report.score,
            best_score=state.best_score,
            running=False,
            status=state.status,
            jumped=report.jumped,
        )
