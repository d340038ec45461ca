"""Merging units into the matrix and collecting what it refused."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .matrix import DestinationMatrix
from .models import SequenceList

logger = logging.getLogger(__name__)


@dataclass
class ImportReport:
    """Append-only list of rejection notices for one unit."""
    unit_name: str
    rejections: List[str] = field(default_factory=list)
    merged: int = 0

    @property
    def success(self) -> bool:
        return not self.rejections

    def add(self, notice: str) -> None:
        self.rejections.append(notice)

    def to_text(self) -> str:
        return "\n".join(self.rejections)


class ImportAggregator:
    """Merges one unit, never aborting on individual rejected sequences."""

    def merge(self, unit: SequenceList, matrix: DestinationMatrix,
              name: Optional[str] = None) -> ImportReport:
        unit_name = name or unit.name or "Unnamed"
        report = ImportReport(unit_name=unit_name)
        outcome = matrix.add_sequences(unit, name=name)
        for notice in outcome.rejections:
            report.add(notice)
        report.merged = outcome.added
        if not report.success:
            logger.warning(f"{unit_name}: {len(report.rejections)} sequence(s) weren't added")
        return report
