from __future__ import annotations

"""Logging helpers for roomray."""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

ROOT_LOGGER = "roomray"


def _resolve(level: str | int) -> int:
    if isinstance(level, int):
        return level
    if not isinstance(level, str):
        raise TypeError("level must be str or int")
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"unknown log level: {level}")
    return value


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for roomray logging.

    ``module_levels`` overrides the level of individual subsystems, keyed by
    their name below the ``roomray`` root (for example ``"sim.optimizer"``).

    Example:
        >>> config = LoggingConfig(level="INFO", module_levels={"sim.optimizer": "DEBUG"})
        >>> logger = setup_logging(config)
    """

    level: str | int = "INFO"
    module_levels: Mapping[str, str | int] = field(default_factory=dict)
    format: str = "%(levelname)s:%(name)s:%(message)s"
    datefmt: Optional[str] = None
    propagate: bool = False

    def resolve_level(self) -> int:
        """Resolve level to a logging integer constant."""
        return _resolve(self.level)

    def resolve_module_levels(self) -> Dict[str, int]:
        return {name: _resolve(level) for name, level in self.module_levels.items()}

    def replace(self, **kwargs) -> "LoggingConfig":
        """Return a new config with updated fields."""
        return replace(self, **kwargs)


def setup_logging(config: LoggingConfig, *, name: str = ROOT_LOGGER) -> logging.Logger:
    """Configure and return the base roomray logger.

    Calling it again reuses the installed handler and only updates levels.
    A subsystem override lower than the root level still reaches the handler.

    Example:
        >>> logger = setup_logging(LoggingConfig(level="DEBUG"))
        >>> logger.info("ready")
    """
    logger = logging.getLogger(name)
    level = config.resolve_level()
    overrides = config.resolve_module_levels()
    handler_level = min([level, *overrides.values()])

    logger.setLevel(level)
    logger.propagate = config.propagate
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(config.format, datefmt=config.datefmt))
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setLevel(handler_level)
    for module, module_level in overrides.items():
        get_logger(module if name == ROOT_LOGGER else f"{name}.{module}").setLevel(module_level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a roomray logger, namespaced under the roomray root.

    Example:
        >>> logger = get_logger("cli")
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER)
    if name.startswith(ROOT_LOGGER):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


class ProgressLogger:
    """Step callback that logs optimizer progress every ``every`` iterations.

    Jumps, new best scores, and the final step are always logged.

    Examples:
        ```python
        progress = ProgressLogger(get_logger("cli"), every=50)
        outcome = optimizer.run(on_step=progress)
        progress.finish(outcome)
        ```
    """

    def __init__(self, logger: logging.Logger, *, every: int = 1) -> None:
        if every <= 0:
            raise ValueError("every must be positive")
        self.logger = logger
        self.every = every
        self._best = -1

    def __call__(self, report: Any) -> None:
        improved = report.best_score > self._best
        self._best = max(self._best, report.best_score)
        if report.jumped:
            self.logger.debug(
                "iteration %d: %s jumped to %s",
                report.iteration,
                report.moved.value,
                report.source_pos if report.moved.value == "source" else report.listener_pos,
            )
        if improved or not report.running or report.iteration % self.every == 0:
            self.logger.info(
                "iteration %d [%s]: score %d (best %d)",
                report.iteration,
                report.status.value,
                report.score,
                report.best_score,
            )

    def finish(self, outcome: Any) -> None:
        """Log the final status; failures and missing objects log at ERROR."""
        level = logging.INFO
        if outcome.status.value in ("failed", "no_movable_objects"):
            level = logging.ERROR
        self.logger.log(
            level,
            "optimization %s: %d iterations, best score %d",
            outcome.status.value,
            outcome.iterations,
            outcome.best_score,
        )
