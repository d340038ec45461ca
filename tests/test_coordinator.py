"""Tests for loading files into the matrix."""

import threading
import time

import pytest

from conftest import FakeParser
from sequence_matrix.cancellation import CancellationToken
from sequence_matrix.coordinator import FileLoadCoordinator
from sequence_matrix.error_handler import ErrorType
from sequence_matrix.errors import (
    LoadCancelled, LoadInProgressError, ParseFailure, SplitFailure
)
from sequence_matrix.matrix import SequenceMatrix
from sequence_matrix.models import Interval, Sequence
from sequence_matrix.name_resolver import ImportSession, NamePreference
from sequence_matrix.queries import (
    EXPORT_CANCELLED, NAME_PREFERENCE, RECODE_GAPS, SPLIT_SETS,
    QueryAnswer, ScriptedQueries
)

SEQUENCES = {"A": "ACGT-TT", "B": "ACGTATT"}


class TestFileLoadCoordinator:
    """Test cases for the load coordinator."""
    
    @pytest.fixture
    def matrix(self):
        return SequenceMatrix()
    
    @pytest.fixture
    def queries(self):
        return ScriptedQueries({
            SPLIT_SETS: QueryAnswer.YES,
            RECODE_GAPS: QueryAnswer.NO,
        })
    
    def make(self, matrix, queries, parser, error_handler, **kwargs):
        return FileLoadCoordinator(
            matrix, queries, parser=parser, error_handler=error_handler,
            lock=kwargs.pop('lock', threading.Lock()), **kwargs
        )
    
    def test_load_without_sets(self, matrix, queries, error_handler):
        coordinator = self.make(matrix, queries, FakeParser(SEQUENCES), error_handler)
        
        result = coordinator.load("data/genes.fasta")
        
        assert result.success
        assert result.units_merged == ["genes.fasta"]
        assert matrix.column_names == ["genes.fasta"]
        assert matrix.get("A", "genes.fasta").data == "ACGT-TT"
        assert SPLIT_SETS not in queries.asked
        assert queries.asked.count(RECODE_GAPS) == 1
    
    def test_split_by_set(self, matrix, queries, error_handler):
        parser = FakeParser(SEQUENCES, charsets=[("gene1", 1, 4)])
        coordinator = self.make(matrix, queries, parser, error_handler)
        
        result = coordinator.load("genes.nex")
        
        assert result.success
        assert matrix.column_names == ["gene1"]
        assert matrix.get("A", "gene1").data == "ACGT"
        assert matrix.get("B", "gene1").data == "ACGT"
        assert queries.asked == [SPLIT_SETS, RECODE_GAPS]
    
    def test_split_declined(self, matrix, error_handler):
        queries = ScriptedQueries({SPLIT_SETS: QueryAnswer.NO})
        parser = FakeParser(SEQUENCES, charsets=[("gene1", 1, 4)])
        coordinator = self.make(matrix, queries, parser, error_handler)
        
        result = coordinator.load("genes.nex")
        
        assert result.success
        assert matrix.column_names == ["genes.nex"]
        assert matrix.get("A", "genes.nex").data == "ACGT-TT"
    
    def test_codon_set_annotates_whole_list(self, matrix, queries, error_handler):
        parser = FakeParser(SEQUENCES, charsets=[(":1", 1, 4)])
        coordinator = self.make(matrix, queries, parser, error_handler)
        
        result = coordinator.load("genes.nex")
        
        assert result.success
        assert SPLIT_SETS not in queries.asked
        assert matrix.column_names == ["genes.nex"]
        for taxon in ("A", "B"):
            assert matrix.get(taxon, "genes.nex").get_property("position_1") == [Interval(1, 4)]
    
    def test_codon_and_ordinary_sets_merge_whole_list_too(self, matrix, queries, error_handler):
        parser = FakeParser(SEQUENCES, charsets=[("gene1", 5, 7), (":2", 2, 7)])
        coordinator = self.make(matrix, queries, parser, error_handler)
        
        result = coordinator.load("genes.nex")
        
        assert result.units_merged == ["gene1", "genes.nex"]
        assert matrix.get("B", "gene1").data == "ATT"
    
    def test_split_sub_lists_each_asked_about_gaps(self, matrix, queries, error_handler):
        parser = FakeParser(
            {"A": "--ACGT--"},
            charsets=[("gene1", 1, 4), ("gene2", 5, 8)]
        )
        coordinator = self.make(matrix, queries, parser, error_handler)
        
        coordinator.load("genes.nex")
        
        assert queries.asked.count(RECODE_GAPS) == 2
    
    def test_gap_recoding(self, matrix, error_handler):
        queries = ScriptedQueries({RECODE_GAPS: QueryAnswer.YES})
        coordinator = self.make(matrix, queries, FakeParser({"A": "--ACGT--"}), error_handler)
        
        coordinator.load("a.fasta")
        
        assert matrix.get("A", "a.fasta").data == "??ACGT??"
    
    def test_names_resolved_before_merge(self, matrix, error_handler):
        queries = ScriptedQueries({NAME_PREFERENCE: 1})
        session = ImportSession()
        parser = FakeParser({"Homo sapiens voucher 1": "ACGT", "Pan troglodytes 2": "ACGA"})
        coordinator = self.make(matrix, queries, parser, error_handler, session=session)
        
        coordinator.load("apes.fasta")
        
        assert sorted(matrix.taxa) == ["Homo sapiens", "Pan troglodytes"]
        assert queries.asked.count(NAME_PREFERENCE) == 1
        assert session.name_preference is NamePreference.SPECIES_NAME
    
    def test_name_preference_survives_loads(self, matrix, error_handler):
        queries = ScriptedQueries({NAME_PREFERENCE: 0})
        session = ImportSession()
        coordinator = self.make(
            matrix, queries, FakeParser({"Homo sapiens voucher 1": "ACGT"}),
            error_handler, session=session
        )
        coordinator.load("first.fasta")
        coordinator.parser = FakeParser({"Mus musculus clone 3": "ACGT"})
        coordinator.load("second.fasta")
        
        assert queries.asked.count(NAME_PREFERENCE) == 1
        assert "Mus musculus clone 3" in matrix.taxa
    
    def test_parse_failure(self, matrix, queries, error_handler, parse_failure):
        parser = FakeParser(SEQUENCES, charsets=[("gene1", 1, 4)], error=parse_failure)
        coordinator = self.make(matrix, queries, parser, error_handler)
        
        result = coordinator.load("broken.nex")
        
        assert not result.success
        assert isinstance(result.error, ParseFailure)
        assert result.error_context.error_type is ErrorType.PARSE_ERROR
        assert matrix.set_count == 0
        assert len(coordinator.registry) == 0
        assert queries.notices[0][0] == "Could not read file!"
    
    def test_split_failure_leaves_matrix_untouched(self, matrix, queries, error_handler):
        parser = FakeParser(SEQUENCES, charsets=[("gene1", 1, 4), ("gene2", 5, 50)])
        coordinator = self.make(matrix, queries, parser, error_handler)
        
        result = coordinator.load("genes.nex")
        
        assert not result.success
        assert isinstance(result.error, SplitFailure)
        assert result.error.set_name == "gene2"
        assert matrix.taxon_count == 0
        assert matrix.set_count == 0
        assert len(coordinator.registry) == 0
        assert error_handler.error_history[-1].error_type is ErrorType.SPLIT_ERROR
    
    def test_lock_released_after_failure(self, matrix, queries, error_handler, parse_failure):
        lock = threading.Lock()
        coordinator = self.make(
            matrix, queries, FakeParser(SEQUENCES, error=parse_failure), error_handler, lock=lock
        )
        coordinator.load("broken.fasta")
        assert not lock.locked()
        
        coordinator.parser = FakeParser(SEQUENCES)
        assert coordinator.load("fine.fasta").success
    
    def test_unexpected_error_is_reported(self, matrix, queries, error_handler):
        coordinator = self.make(
            matrix, queries, FakeParser(SEQUENCES, error=RuntimeError("disk on fire")), error_handler
        )
        result = coordinator.load("x.fasta")
        assert not result.success
        assert result.error_context.error_type is ErrorType.UNKNOWN
    
    def test_cancelled_before_parse(self, matrix, queries, error_handler):
        token = CancellationToken()
        token.cancel()
        coordinator = self.make(matrix, queries, FakeParser(SEQUENCES), error_handler)
        
        result = coordinator.load("genes.fasta", cancel_token=token)
        
        assert isinstance(result.error, LoadCancelled)
        assert result.error_context.error_type is ErrorType.CANCELLED
        assert matrix.set_count == 0
    
    def test_cancel_midway_keeps_merged_units(self, matrix, error_handler):
        token = CancellationToken()
        
        class CancellingQueries(ScriptedQueries):
            def ask_yes_no(self, key, title, message, allow_to_all=False):
                answer = super().ask_yes_no(key, title, message, allow_to_all)
                if key == RECODE_GAPS:
                    token.cancel()
                return answer
        
        queries = CancellingQueries({SPLIT_SETS: QueryAnswer.YES})
        parser = FakeParser(SEQUENCES, charsets=[("gene1", 1, 4), ("gene2", 5, 7)])
        coordinator = self.make(matrix, queries, parser, error_handler)
        
        result = coordinator.load("genes.nex", cancel_token=token)
        
        assert isinstance(result.error, LoadCancelled)
        assert matrix.column_names == ["gene1"]
        assert result.units_merged == ["gene1"]
    
    def test_partial_merge_failure_is_not_fatal(self, matrix, queries, error_handler):
        class DuplicatingParser(FakeParser):
            def parse(self, path, format_hint, listener, cancel_token=None):
                sequences = super().parse(path, format_hint, listener, cancel_token)
                sequences.add(Sequence(full_name="A", data="TTTT"))
                sequences.add(Sequence(full_name="B", data="GGGG"))
                return sequences
        
        coordinator = self.make(matrix, queries, DuplicatingParser({"A": "ACGT"}), error_handler)
        result = coordinator.load("dups.fasta")
        
        assert result.success
        assert len(result.rejections) == 1
        assert matrix.get("B", "dups.fasta").data == "GGGG"
        assert error_handler.error_history[-1].error_type is ErrorType.PARTIAL_FAILURE
        assert queries.notices[-1][0] == "dups.fasta: Some sequences weren't added!"
    
    def test_loads_are_serialized(self, matrix, queries, error_handler):
        events = []
        release = threading.Event()
        started = threading.Event()
        
        class SlowParser(FakeParser):
            def parse(self, path, format_hint, listener, cancel_token=None):
                events.append(f"start:{path}")
                started.set()
                release.wait(timeout=5)
                events.append(f"end:{path}")
                return super().parse(path, format_hint, listener, cancel_token)
        
        lock = threading.Lock()
        first = self.make(matrix, queries, SlowParser(SEQUENCES), error_handler, lock=lock)
        second = self.make(matrix, queries, SlowParser({"C": "ACGT"}), error_handler, lock=lock)
        
        t1 = threading.Thread(target=first.load, args=("one",))
        t1.start()
        assert started.wait(timeout=5)
        t2 = threading.Thread(target=second.load, args=("two",))
        t2.start()
        time.sleep(0.1)
        assert events == ["start:one"]
        
        release.set()
        t1.join(timeout=5)
        t2.join(timeout=5)
        assert events == ["start:one", "end:one", "start:two", "end:two"]
    
    def test_non_blocking_load_rejected_while_busy(self, matrix, queries, error_handler):
        lock = threading.Lock()
        coordinator = self.make(matrix, queries, FakeParser(SEQUENCES), error_handler, lock=lock)
        
        with lock:
            result = coordinator.load("genes.fasta", blocking=False)
        
        assert isinstance(result.error, LoadInProgressError)
        assert queries.notices == []
        assert matrix.set_count == 0
    
    def test_check_cancelled_before_export(self, matrix, error_handler):
        queries = ScriptedQueries({EXPORT_CANCELLED: QueryAnswer.NO})
        coordinator = self.make(matrix, queries, FakeParser(SEQUENCES), error_handler)
        
        assert coordinator.check_cancelled_before_export() is True
        assert EXPORT_CANCELLED not in queries.asked
        
        coordinator.load("genes.fasta")
        matrix.cancel("A", "genes.fasta")
        assert coordinator.check_cancelled_before_export() is False
        
        queries.answers[EXPORT_CANCELLED] = QueryAnswer.YES
        assert coordinator.check_cancelled_before_export() is True
