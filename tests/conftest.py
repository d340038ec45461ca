"""Shared test doubles for the import pipeline."""

from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from sequence_matrix.charsets import CharacterSetEvent
from sequence_matrix.error_handler import ErrorHandler
from sequence_matrix.errors import ParseFailure
from sequence_matrix.models import Sequence, SequenceList


class FakeParser:
    """Returns fixed sequences and reports fixed character sets."""

    def __init__(self, sequences: Dict[str, str],
                 charsets: Optional[List[Tuple[str, int, int]]] = None,
                 error: Optional[Exception] = None):
        self.sequences = sequences
        self.charsets = charsets or []
        self.error = error
        self.calls: List[str] = []

    def parse(self, path, format_hint, listener, cancel_token=None):
        self.calls.append(str(path))
        if cancel_token is not None:
            cancel_token.raise_if_cancelled("Loading")
        for name, start, end in self.charsets:
            listener.character_set_found(CharacterSetEvent(name, start, end))
        if self.error is not None:
            raise self.error
        return SequenceList(
            [Sequence(full_name=name, data=data) for name, data in self.sequences.items()],
            name=Path(path).name
        )


@pytest.fixture
def error_handler():
    return ErrorHandler()


@pytest.fixture
def parse_failure():
    return ParseFailure("I could not understand a sequence in this file")
