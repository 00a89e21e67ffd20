"""UI-only selection state over a result; never authoritative domain state."""

from __future__ import annotations

import re
from enum import Enum

from equitool.catalog.models import EquivalencyResult, ProductInfo

REPORT_PREFIX = "EquiTool-Report"

_UNSAFE_FILENAME = re.compile(r"[^\w.\-]+")


class ResultStatus(str, Enum):
    DENIED = "denied"
    NEEDS_REFINEMENT = "needs_refinement"
    MATCHED = "matched"


def result_status(result: EquivalencyResult) -> ResultStatus:
    if result.is_denied:
        return ResultStatus.DENIED
    if result.needs_refinement:
        return ResultStatus.NEEDS_REFINEMENT
    return ResultStatus.MATCHED


class ResultView:
    """Tracks which candidate the user is looking at for one result."""

    def __init__(self, result: EquivalencyResult) -> None:
        self.result = result
        self._index = 0

    @property
    def active(self) -> ProductInfo:
        return self.result.candidates()[self._index]

    @property
    def is_best_match(self) -> bool:
        return self._index == 0

    @property
    def status(self) -> ResultStatus:
        return result_status(self.result)

    @property
    def show_alternatives(self) -> bool:
        """Alternatives are only offered for a final, non-denied answer."""
        return self.status is ResultStatus.MATCHED and bool(self.result.alternatives)

    def select(self, index: int) -> ProductInfo:
        candidates = self.result.candidates()
        if not 0 <= index < len(candidates):
            raise IndexError(f"candidate index out of range: {index}")
        self._index = index
        return candidates[index]

    def report_filename(self) -> str:
        part_number = self.active.part_number.strip() or "result"
        return f"{REPORT_PREFIX}-{_UNSAFE_FILENAME.sub('_', part_number)}.png"
