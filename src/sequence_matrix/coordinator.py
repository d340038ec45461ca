"""Single-flight file loading into the matrix."""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from .aggregator import ImportAggregator, ImportReport
from .cancellation import CancellationToken
from .charsets import CharacterSetRegistry, is_codon_set_name
from .error_handler import ErrorContext, ErrorHandler, get_error_handler
from .errors import (
    LoadCancelled, LoadError, LoadInProgressError, ParseFailure, SplitFailure
)
from .gap_recoder import GapRecoder
from .logging_config import LogTimer, log_performance
from .matrix import DestinationMatrix
from .models import SequenceList
from .name_resolver import ImportSession, NamePreferenceResolver
from .parsers import BiopythonParser, SequenceParser
from .queries import EXPORT_CANCELLED, RECODE_GAPS, SPLIT_SETS, InteractiveQueries
from .splitter import SequenceSplitter

logger = logging.getLogger(__name__)

# Shared by every coordinator in the process unless one is given its own
_LOAD_LOCK = threading.Lock()


@dataclass
class LoadResult:
    """Outcome of one call to :meth:`FileLoadCoordinator.load`."""
    path: str
    success: bool = False
    error: Optional[Exception] = None
    error_context: Optional[ErrorContext] = None
    reports: List[ImportReport] = field(default_factory=list)
    units_merged: List[str] = field(default_factory=list)

    @property
    def rejections(self) -> List[str]:
        return [notice for report in self.reports for notice in report.rejections]


class FileLoadCoordinator:
    """Loads files one at a time and merges them into a matrix.

    Each load parses the file, optionally splits it by the character sets
    the parser reported, settles names, optionally recodes external gaps
    and merges every resulting unit. Units merged before a later failure
    stay merged.
    """
    
    ERROR_TITLES = {
        ParseFailure: "Could not read file!",
        LoadCancelled: "Load cancelled",
        SplitFailure: "Uh-oh: Error forming a set",
    }
    
    def __init__(self,
                 matrix: DestinationMatrix,
                 queries: InteractiveQueries,
                 parser: Optional[SequenceParser] = None,
                 session: Optional[ImportSession] = None,
                 recoder: Optional[GapRecoder] = None,
                 splitter: Optional[SequenceSplitter] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 lock: Optional[threading.Lock] = None):
        """
        Initialize the coordinator.
        
        Args:
            matrix: Where loaded units are merged
            queries: Answers the split, name and gap questions
            parser: File reader (Biopython based by default)
            session: Session state; keeps the name preference across loads
            recoder: External gap recoder
            splitter: Character set splitter
            error_handler: Records aborted loads and refused sequences
            lock: Load lock; the process-wide lock by default
        """
        self.matrix = matrix
        self.queries = queries
        self.parser = parser or BiopythonParser()
        self.session = session or ImportSession()
        self.recoder = recoder or GapRecoder()
        self.splitter = splitter or SequenceSplitter()
        self.error_handler = error_handler or get_error_handler()
        self.resolver = NamePreferenceResolver(self.session, self.queries)
        self._lock = lock or _LOAD_LOCK
        self._registry = CharacterSetRegistry()
    
    @property
    def registry(self) -> CharacterSetRegistry:
        return self._registry
    
    def load(self,
             path: Union[str, Path],
             format_hint: Optional[str] = None,
             cancel_token: Optional[CancellationToken] = None,
             blocking: bool = True) -> LoadResult:
        """
        Load one file into the matrix.
        
        Args:
            path: File to load
            format_hint: Parser format name; guessed from the suffix if None
            cancel_token: Lets another thread abort the load
            blocking: Wait for a running load to finish instead of failing
            
        Returns:
            LoadResult; failures are reported in it rather than raised
        """
        path = Path(path)
        result = LoadResult(path=str(path))
        
        if not self._lock.acquire(blocking=blocking):
            return self._fail(result, LoadInProgressError(
                f"Cannot load {path}: another file is still being loaded"
            ), notify=False)
        
        timer = LogTimer(f"Loading {path}", logger)
        try:
            with timer:
                self._load_locked(path, format_hint, cancel_token, result)
            result.success = True
        except LoadError as e:
            self._fail(result, e)
        except Exception as e:
            # Unexpected failures still end the load with a reason
            self._fail(result, e)
        finally:
            self._registry.clear()
            self._lock.release()
        
        if result.success:
            log_performance(f"Loaded {path.name}", timer.elapsed,
                            units=len(result.units_merged))
        return result
    
    def _load_locked(self, path: Path, format_hint: Optional[str],
                     cancel_token: Optional[CancellationToken], result: LoadResult):
        self._registry.clear()
        sequences = self.parser.parse(path, format_hint, self._registry, cancel_token)
        if sequences.name is None:
            sequences.name = path.name
        
        sets = self._registry.drain()
        codon_sets = {name: v for name, v in sets.items() if is_codon_set_name(name)}
        
        split_units: Dict[str, SequenceList] = {}
        was_split = False
        if len(codon_sets) < len(sets) and self._ask_split(path):
            split_units = self.splitter.split(sequences, sets, cancel_token)
            was_split = True
        elif codon_sets:
            self.splitter.split(sequences, codon_sets, cancel_token)
        
        for name, unit in split_units.items():
            if cancel_token is not None:
                cancel_token.raise_if_cancelled("Merging")
            self._merge_unit(name, unit, result)
        
        # The whole file is a unit unless it was split; codon annotated files
        # are merged whole as well
        if not was_split or codon_sets:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled("Merging")
            self._merge_unit(sequences.name, sequences, result)
    
    def _ask_split(self, path: Path) -> bool:
        answer = self.queries.ask_yes_no(
            SPLIT_SETS,
            "I see sets!",
            f"The file {path} contains character sets. "
            "Do you want me to split the file into character sets?",
            allow_to_all=True
        )
        return answer.is_yes
    
    def _merge_unit(self, name: str, unit: SequenceList, result: LoadResult):
        """Settle names, offer gap recoding and merge one unit."""
        self.resolver.resolve_all(unit)
        
        answer = self.queries.ask_yes_no(
            RECODE_GAPS,
            "Replace external gaps with missing characters during import?",
            f"Would you like to recode external gaps in {name} as question marks?",
            allow_to_all=True
        )
        if answer.is_yes:
            self.recoder.recode(unit)
        
        report = ImportAggregator().merge(unit, self.matrix, name=name)
        result.reports.append(report)
        result.units_merged.append(report.unit_name)
        
        if not report.success:
            self.error_handler.record_partial_failure(report.unit_name, report.rejections)
            self.queries.notify(
                f"{name}: Some sequences weren't added!",
                f"Some sequences in {name} weren't added. These are:\n{report.to_text()}"
            )
    
    def _fail(self, result: LoadResult, error: Exception, notify: bool = True) -> LoadResult:
        result.success = False
        result.error = error
        result.error_context = self.error_handler.handle_error(
            error, operation="load", item_id=result.path
        )
        if notify:
            title = self.ERROR_TITLES.get(type(error), "Error while reading file")
            message = str(error)
            if result.error_context.suggestion:
                message += f"\n\n{result.error_context.suggestion}"
            self.queries.notify(title, message)
        return result
    
    def check_cancelled_before_export(self) -> bool:
        """Ask before exporting a matrix that has cancelled sequences.
        
        Returns:
            True if there is nothing to lose or the user wants to go ahead
        """
        cancelled = self.matrix.count_cancelled()
        if cancelled == 0:
            return True
        
        answer = self.queries.ask_yes_no(
            EXPORT_CANCELLED,
            "Warning: Cancelled sequences aren't exported!",
            f"You have {cancelled} cancelled sequence(s) in your dataset. These sequences "
            "will not be exported! Are you sure you are okay with losing the data in "
            "these sequences?"
        )
        return answer.is_yes
