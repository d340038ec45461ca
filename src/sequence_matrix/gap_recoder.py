"""Recoding of external gaps as missing data."""

import logging

from .models import GAP_CHAR, MISSING_CHAR, Sequence, SequenceList

logger = logging.getLogger(__name__)


class GapRecoder:
    """Turns leading and trailing gaps into missing-data characters.

    Internal gaps are left alone.
    """

    def __init__(self, gap_char: str = GAP_CHAR, missing_char: str = MISSING_CHAR):
        self.gap_char = gap_char
        self.missing_char = missing_char

    def recode_sequence(self, sequence: Sequence) -> None:
        data = sequence.data
        core = data.strip(self.gap_char)
        if not core:
            sequence.data = self.missing_char * len(data)
            return
        leading = len(data) - len(data.lstrip(self.gap_char))
        trailing = len(data) - len(data.rstrip(self.gap_char))
        sequence.data = (
            self.missing_char * leading + core + self.missing_char * trailing
        )

    def recode(self, sequences: SequenceList) -> None:
        for sequence in sequences:
            self.recode_sequence(sequence)
        logger.debug(f"Recoded external gaps in {len(sequences)} sequences")
