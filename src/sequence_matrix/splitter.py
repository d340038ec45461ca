"""Splitting a loaded sequence list by its character sets."""

import logging
from typing import Dict, List, Optional

from .cancellation import CancellationToken
from .charsets import codon_position
from .errors import SequenceError, SplitFailure
from .logging_config import LogTimer, SetProgressLogger
from .models import CODON_POSITION_PROPERTY, Interval, Sequence, SequenceList

logger = logging.getLogger(__name__)


class SequenceSplitter:
    """Builds one sequence list per ordinary character set.

    Codon position pseudo-sets produce no list; their intervals are attached
    to every input sequence as a ``position_<n>`` property instead.
    """

    OWNER = "splitter"

    def split(self,
              sequences: SequenceList,
              sets: Dict[str, List[Interval]],
              cancel_token: Optional[CancellationToken] = None) -> Dict[str, SequenceList]:
        """
        Split `sequences` by `sets`.

        Args:
            sequences: The loaded list; owned by the splitter until this returns
            sets: Interval lists per set name, as drained from the registry
            cancel_token: Checked between sets

        Returns:
            Sequence list per ordinary set name, in the order of `sets`

        Raises:
            SplitFailure: An interval did not fit a sequence. No lists are returned.
            LoadCancelled: The token was cancelled between two sets.
        """
        results: Dict[str, SequenceList] = {}

        with sequences.take(self.OWNER), LogTimer(f"Splitting {len(sets)} character sets", logger):
            ordinary = []
            for name, intervals in sets.items():
                position = codon_position(name)
                if position is None:
                    ordinary.append(name)
                    continue
                for sequence in sequences:
                    sequence.set_property(f"{CODON_POSITION_PROPERTY}{position}", list(intervals))
                logger.info(f"Annotated {len(sequences)} sequences with codon position {position}")

            progress = SetProgressLogger(logger, len(ordinary), len(sequences))
            for name in ordinary:
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled("Splitting")
                results[name] = self._split_set(name, sorted(sets[name]), sequences)
                progress.set_done(name, kept=len(results[name]))
            progress.complete()

        return results

    def _split_set(self, name: str, intervals: List[Interval],
                   sequences: SequenceList) -> SequenceList:
        """Concatenate the pieces of every sequence at `intervals`, in that order."""
        output = SequenceList(name=name)

        for sequence in sequences:
            joined = Sequence(
                full_name=sequence.full_name,
                species_name=sequence.species_name,
                properties=dict(sequence.properties),
            )
            for interval in intervals:
                try:
                    piece = sequence.subsequence(interval.start, interval.end)
                except SequenceError as e:
                    raise SplitFailure(name, sequence.full_name, interval, str(e)) from e
                logger.debug(f"Cutting [{name}] {sequence.full_name} from {interval}: {piece.data}")
                joined = joined.concat(piece)

            # Rows made only of gaps or missing data are left out of the set
            if joined.actual_length > 0:
                output.add(joined)
            else:
                logger.debug(f"[{name}] {sequence.full_name} has no data in this set, skipped")

        return output
