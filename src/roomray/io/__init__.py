"""I/O helpers for result export and best-score records."""

from .outputs import build_result_payload, save_grid_json, save_result_json
from .records import RecordBook

__all__ = [
    "RecordBook",
    "build_result_payload",
    "save_grid_json",
    "save_result_json",
]
