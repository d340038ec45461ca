"""Reading sequence files with Biopython.

Parsers report character sets to a listener while they read; the import
pipeline never looks inside the file itself.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Protocol, Set, Union

from Bio import SeqIO
from Bio.Nexus import Nexus

from .cancellation import CancellationToken
from .charsets import CODON_SET_PREFIX, CharacterSetEvent, CharacterSetListener
from .errors import ParseFailure
from .models import Sequence, SequenceList

logger = logging.getLogger(__name__)


class SequenceParser(Protocol):
    """Turns a file into a sequence list, reporting character sets as it goes."""

    def parse(self,
              path: Path,
              format_hint: Optional[str],
              listener: CharacterSetListener,
              cancel_token: Optional[CancellationToken] = None) -> SequenceList:
        ...


def charset_events(name: str, positions: List[int],
                   strided: bool = False) -> Iterator[CharacterSetEvent]:
    """
    Convert a NEXUS charset into character set events.

    Args:
        name: Charset name
        positions: 0-based character positions, as Bio.Nexus stores them
        strided: The charset was written with a stride, as in ``2-300\\3``

    Yields:
        One event per contiguous run, or a single codon position event for
        a strided charset whose positions step by three.
    """
    positions = sorted(set(positions))
    if not positions:
        return

    if strided and all(b - a == 3 for a, b in zip(positions, positions[1:])):
        frame = (positions[0] % 3) + 1
        yield CharacterSetEvent(f"{CODON_SET_PREFIX}{frame}", positions[0] + 1, positions[-1] + 1)
        return

    run_start = previous = positions[0]
    for position in positions[1:]:
        if position != previous + 1:
            yield CharacterSetEvent(name, run_start + 1, previous + 1)
            run_start = position
        previous = position
    yield CharacterSetEvent(name, run_start + 1, previous + 1)


class _StrideAwareNexus(Nexus.Nexus):
    """Bio.Nexus reader that remembers which charsets were written with a stride.

    Bio.Nexus expands ``2-300\\3`` into plain positions, so the stride is only
    visible in the charset command itself.
    """

    def __init__(self):
        self.strided_charsets: Set[str] = set()
        super().__init__()

    def _charset(self, options):
        before = set(self.charsets)
        super()._charset(options)
        added = set(self.charsets) - before
        name = added.pop() if added else options.split('=', 1)[0].strip()
        if '\\' in options.split('=', 1)[-1]:
            self.strided_charsets.add(name)
        else:
            self.strided_charsets.discard(name)


class BiopythonParser:
    """Parser for every format Bio.SeqIO reads, plus NEXUS character sets."""
    
    SUFFIX_FORMATS = {
        '.fa': 'fasta',
        '.fas': 'fasta',
        '.fasta': 'fasta',
        '.fna': 'fasta',
        '.faa': 'fasta',
        '.phy': 'phylip-relaxed',
        '.phylip': 'phylip-relaxed',
        '.aln': 'clustal',
        '.gb': 'genbank',
        '.gbk': 'genbank',
        '.sto': 'stockholm',
        '.nex': 'nexus',
        '.nexus': 'nexus',
        '.nxs': 'nexus',
    }
    
    def __init__(self, default_format: str = 'fasta'):
        self.default_format = default_format
    
    def detect_format(self, path: Path, format_hint: Optional[str] = None) -> str:
        if format_hint:
            return format_hint.lower()
        return self.SUFFIX_FORMATS.get(path.suffix.lower(), self.default_format)
    
    def parse(self,
              path: Union[str, Path],
              format_hint: Optional[str],
              listener: CharacterSetListener,
              cancel_token: Optional[CancellationToken] = None) -> SequenceList:
        """
        Parse a file into a sequence list.
        
        Raises:
            ParseFailure: The file could not be understood
            LoadCancelled: The token was cancelled while reading
            FileNotFoundError: The file doesn't exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Input file not found: {path}")
        
        fmt = self.detect_format(path, format_hint)
        logger.info(f"Reading {path} as {fmt}")
        
        if cancel_token is not None:
            cancel_token.raise_if_cancelled("Loading")
        
        if fmt == 'nexus':
            sequences = self._parse_nexus(path, listener)
        else:
            sequences = self._parse_seqio(path, fmt)
        
        if cancel_token is not None:
            cancel_token.raise_if_cancelled("Loading")
        
        if len(sequences) == 0:
            raise ParseFailure(f"No sequences found in {path}", path=str(path))
        
        logger.info(f"Read {len(sequences)} sequences from {path}")
        return sequences
    
    def _parse_seqio(self, path: Path, fmt: str) -> SequenceList:
        sequences = SequenceList(name=path.name)
        try:
            for record in SeqIO.parse(str(path), fmt):
                full_name = record.description or record.id
                organism = record.annotations.get('organism')
                sequences.add(Sequence(
                    full_name=full_name,
                    data=str(record.seq),
                    species_name=organism or None,
                ))
        except (ValueError, AssertionError, UnicodeDecodeError) as e:
            raise ParseFailure(
                f"Could not read {path} as {fmt}: {e}", path=str(path)
            ) from e
        return sequences
    
    def _parse_nexus(self, path: Path, listener: CharacterSetListener) -> SequenceList:
        nexus = _StrideAwareNexus()
        try:
            nexus.read(str(path))
        except (Nexus.NexusError, ValueError, IndexError, UnicodeDecodeError) as e:
            raise ParseFailure(f"Could not read {path} as nexus: {e}", path=str(path)) from e
        
        sequences = SequenceList(name=path.name)
        for taxon in nexus.taxlabels:
            sequences.add(Sequence(full_name=taxon, data=str(nexus.matrix[taxon])))
        
        for name, positions in (nexus.charsets or {}).items():
            strided = name in nexus.strided_charsets
            for event in charset_events(name, positions, strided=strided):
                listener.character_set_found(event)
        
        return sequences
