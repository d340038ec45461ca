"""Data models for sequences, sequence lists and character ranges."""

import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .errors import SequenceError, SequenceListLockedError

GAP_CHAR = '-'
MISSING_CHAR = '?'

# Sequence property holding the name the sequence will carry in the matrix
INITIAL_NAME_PROPERTY = 'initial_name'
# Prefix of the properties holding codon position payloads ("position_1" ...)
CODON_POSITION_PROPERTY = 'position_'

_BINOMIAL = re.compile(r'^([A-Z][a-z]+)[\s_]+([a-z][a-z-]+)(?![A-Za-z])')


def guess_species_name(full_name: str) -> str:
    """Guess a binomial species name from a sequence name.

    Falls back to the full name when nothing looks like "Genus species".
    """
    if not full_name:
        return full_name
    match = _BINOMIAL.match(full_name.strip())
    if match:
        return f"{match.group(1)} {match.group(2)}"
    return full_name


@dataclass(frozen=True, order=True)
class Interval:
    """Inclusive, 1-based character range."""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 1:
            raise ValueError(f"Interval must start at 1 or later, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"Interval end {self.end} is before its start {self.start}")

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass
class Sequence:
    """A named run of characters plus free-form properties."""

    full_name: str
    data: str = ""
    species_name: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.species_name is None:
            self.species_name = guess_species_name(self.full_name)

    def __len__(self) -> int:
        return len(self.data)

    @property
    def actual_length(self) -> int:
        """Number of characters that are neither gaps nor missing data."""
        return sum(1 for c in self.data if c not in (GAP_CHAR, MISSING_CHAR))

    def get_property(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)

    def set_property(self, name: str, value: Any) -> None:
        self.properties[name] = value

    def subsequence(self, start: int, end: int) -> 'Sequence':
        """Return characters start..end (1-based, inclusive) as a new sequence."""
        if start < 1 or end < start:
            raise SequenceError(f"Invalid range {start}-{end}")
        if end > len(self.data):
            raise SequenceError(
                f"Range {start}-{end} extends past the end of the sequence "
                f"(length {len(self.data)})"
            )
        return Sequence(
            full_name=self.full_name,
            data=self.data[start - 1:end],
            species_name=self.species_name,
            properties=dict(self.properties),
        )

    def concat(self, other: 'Sequence') -> 'Sequence':
        """Return this sequence followed by `other`, keeping this name."""
        return Sequence(
            full_name=self.full_name,
            data=self.data + other.data,
            species_name=self.species_name,
            properties=dict(self.properties),
        )


class SequenceList:
    """Ordered collection of sequences produced by one load."""

    def __init__(self, sequences: Optional[List[Sequence]] = None, name: Optional[str] = None):
        self._sequences: List[Sequence] = list(sequences or [])
        self.name = name
        self._owner: Optional[str] = None

    def __iter__(self) -> Iterator[Sequence]:
        return iter(self._sequences)

    def __len__(self) -> int:
        return len(self._sequences)

    def __getitem__(self, index: int) -> Sequence:
        return self._sequences[index]

    def __repr__(self) -> str:
        return f"SequenceList(name={self.name!r}, count={len(self._sequences)})"

    def add(self, sequence: Sequence) -> None:
        if self._owner is not None:
            raise SequenceListLockedError(f"Sequence list is owned by {self._owner}")
        self._sequences.append(sequence)

    @property
    def owner(self) -> Optional[str]:
        return self._owner

    @contextmanager
    def take(self, owner: str):
        """Hand exclusive ownership of the list to `owner` for a block.

        Ownership is returned on every exit path, including exceptions.
        """
        if self._owner is not None:
            raise SequenceListLockedError(
                f"Sequence list is already owned by {self._owner}"
            )
        self._owner = owner
        try:
            yield self
        finally:
            self._owner = None
