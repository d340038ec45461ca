"""The taxon-by-set matrix that imported sequences are merged into."""

import logging
from threading import Lock
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Set, Tuple

import pandas as pd

from .models import INITIAL_NAME_PROPERTY, Sequence, SequenceList

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """What one call to `add_sequences` did."""
    column: str
    added: int = 0
    rejections: List[str] = field(default_factory=list)


class DestinationMatrix(Protocol):
    """What the import pipeline needs from the matrix it fills."""

    def add_sequences(self, sequences: SequenceList, name: Optional[str] = None) -> MergeResult:
        """Merge a unit as a new column; refused sequences get one notice each."""
        ...

    @property
    def taxa(self) -> List[str]:
        ...

    @property
    def set_count(self) -> int:
        ...

    def count_cancelled(self) -> int:
        ...


class SequenceMatrix:
    """In-memory matrix with one row per taxon and one column per imported unit.

    Backed by a pandas DataFrame of :class:`Sequence` objects; empty cells
    are missing values.
    """

    def __init__(self):
        self._table = pd.DataFrame()
        self._cancelled: Set[Tuple[str, str]] = set()
        self._lock = Lock()

    @property
    def taxa(self) -> List[str]:
        return list(self._table.index)

    @property
    def column_names(self) -> List[str]:
        return list(self._table.columns)

    @property
    def taxon_count(self) -> int:
        return len(self._table.index)

    @property
    def set_count(self) -> int:
        return len(self._table.columns)

    def _unique_column(self, name: str) -> str:
        if name not in self._table.columns:
            return name
        suffix = 2
        while f"{name}_{suffix}" in self._table.columns:
            suffix += 1
        return f"{name}_{suffix}"

    def add_sequences(self, sequences: SequenceList, name: Optional[str] = None) -> MergeResult:
        """
        Merge a sequence list as a new column.

        Args:
            sequences: Sequences carrying their canonical name as a property
            name: Column name; defaults to the list's own name

        Returns:
            MergeResult with the column used, the number of sequences added
            and a notice per sequence that was refused
        """
        rejections: List[str] = []
        accepted: Dict[str, Sequence] = {}

        with self._lock:
            column = self._unique_column(name or sequences.name or "Unnamed")

            for sequence in sequences:
                taxon = sequence.get_property(INITIAL_NAME_PROPERTY) or sequence.full_name
                if not taxon:
                    rejections.append(f"A sequence without a name ({len(sequence)} bp) in {column}")
                    continue
                if taxon in accepted:
                    if accepted[taxon].data != sequence.data:
                        rejections.append(
                            f"{taxon}: more than one sequence with this name in {column}, "
                            f"and they differ; only the first was added"
                        )
                    continue
                accepted[taxon] = sequence

            if accepted:
                column_data = pd.Series(accepted, dtype=object, name=column)
                if self._table.empty and len(self._table.columns) == 0:
                    self._table = column_data.to_frame()
                else:
                    self._table = pd.concat([self._table, column_data.to_frame()], axis=1, sort=False)

        logger.info(f"Added {len(accepted)} sequences to {column} ({len(rejections)} refused)")
        return MergeResult(column=column, added=len(accepted), rejections=rejections)

    def get(self, taxon: str, column: str) -> Optional[Sequence]:
        if taxon not in self._table.index or column not in self._table.columns:
            return None
        value = self._table.at[taxon, column]
        return value if isinstance(value, Sequence) else None

    def cancel(self, taxon: str, column: str) -> None:
        """Mark a cell as cancelled; it stays in the matrix but is not exported."""
        if self.get(taxon, column) is None:
            raise KeyError(f"No sequence for {taxon} in {column}")
        self._cancelled.add((taxon, column))

    def uncancel(self, taxon: str, column: str) -> None:
        self._cancelled.discard((taxon, column))

    def count_cancelled(self) -> int:
        return len(self._cancelled)

    def to_dataframe(self) -> pd.DataFrame:
        """Character data as strings, with empty cells as None."""
        return self._table.apply(
            lambda col: col.map(lambda v: v.data if isinstance(v, Sequence) else None)
        )

    def length_table(self) -> pd.DataFrame:
        """Number of informative characters per cell, 0 for empty cells."""
        return self._table.apply(
            lambda col: col.map(lambda v: v.actual_length if isinstance(v, Sequence) else 0)
        ).astype(int)
