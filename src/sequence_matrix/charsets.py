"""Character set events and the per-load registry that collects them."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from .models import Interval

logger = logging.getLogger(__name__)

# Codon position pseudo-sets are named ":1", ":2" or ":3"
CODON_SET_PREFIX = ':'


def is_codon_set_name(name: str) -> bool:
    """Whether `name` is a codon position pseudo-set rather than an ordinary set."""
    return (
        len(name) == 2
        and name[0] == CODON_SET_PREFIX
        and name[1].isdigit()
    )


def codon_position(name: str) -> Optional[int]:
    """Codon position encoded in a pseudo-set name, or None for ordinary sets."""
    if not is_codon_set_name(name):
        return None
    return int(name[1])


@dataclass(frozen=True)
class CharacterSetEvent:
    """A character set range reported by a parser."""
    name: str
    start: int
    end: int

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)


class CharacterSetListener(Protocol):
    """Receives character set events while a file is being parsed."""

    def character_set_found(self, event: CharacterSetEvent) -> bool:
        """Handle one event; the return value only says whether it was consumed."""
        ...


class CharacterSetRegistry:
    """Intervals per set name, reported during a single parse.

    Only touched while the load lock is held, so it carries no lock of its own.
    """

    def __init__(self):
        self._sets: Dict[str, List[Interval]] = {}

    def __len__(self) -> int:
        return len(self._sets)

    def __contains__(self, name: str) -> bool:
        return name in self._sets

    def record(self, name: str, interval: Interval) -> None:
        """Append an interval to a set, in arrival order."""
        self._sets.setdefault(name, []).append(interval)
        logger.debug(f"Character set {name}: recorded {interval}")

    def character_set_found(self, event: CharacterSetEvent) -> bool:
        self.record(event.name, event.interval)
        # Recorded, but other listeners may still look at it
        return False

    def names(self) -> List[str]:
        return list(self._sets)

    def has_ordinary_sets(self) -> bool:
        return any(not is_codon_set_name(name) for name in self._sets)

    def has_codon_sets(self) -> bool:
        return any(is_codon_set_name(name) for name in self._sets)

    def drain(self) -> Dict[str, List[Interval]]:
        """Return everything recorded so far and reset the registry to empty."""
        contents, self._sets = self._sets, {}
        return contents

    def clear(self) -> None:
        self._sets = {}
