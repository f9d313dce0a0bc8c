"""Top-N store of best-score snapshots."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from ..models.results import BestSettings

if TYPE_CHECKING:
    from ..sim.context import SimulationContext

logger = logging.getLogger(__name__)


class RecordBook:
    """Keep the ``max_records`` highest-scoring snapshots, best first.

    Records with equal scores keep insertion order. A book can be used
    directly as the optimizer's ``on_new_best`` callback.

    Examples:
        ```python
        book = RecordBook(max_records=10)
        optimizer = PlacementOptimizer(ctx, on_new_best=book.add)
        optimizer.run()
        book.save_json(Path("outputs/records.json"))
        book.apply(ctx, 0)
        ```
    """

    def __init__(self, max_records: int = 10) -> None:
        if max_records <= 0:
            raise ValueError("max_records must be positive")
        self.max_records = max_records
        self.records: List[BestSettings] = []

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, index: int) -> BestSettings:
        return self.records[index]

    def __call__(self, settings: BestSettings) -> None:
        self.add(settings)

    def add(self, settings: BestSettings) -> None:
        self.records.append(settings)
        self.records.sort(key=lambda rec: rec.score, reverse=True)
        del self.records[self.max_records :]
        logger.info(
            "record candidate score %d at iteration %d (%d kept)",
            settings.score,
            settings.iteration,
            len(self.records),
        )

    @property
    def best(self) -> Optional[BestSettings]:
        return self.records[0] if self.records else None

    def apply(self, context: "SimulationContext", index: int) -> BestSettings:
        """Reapply the record at ``index`` to ``context``."""
        if not 0 <= index < len(self.records):
            raise IndexError(f"record index {index} out of range (have {len(self.records)})")
        settings = self.records[index]
        context.apply_settings(settings)
        return settings

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_records": self.max_records,
            "records": [rec.to_dict() for rec in self.records],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecordBook":
        book = cls(max_records=int(data.get("max_records", 10)))
        for item in data.get("records", []):
            book.records.append(BestSettings.from_dict(item))
        book.records.sort(key=lambda rec: rec.score, reverse=True)
        del book.records[book.max_records :]
        return book

    def save_json(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load_json(cls, path: Path) -> "RecordBook":
        with path.open("r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))
