"""Tests for error handling."""

import json

import pytest

from sequence_matrix.error_handler import (
    ErrorHandler, ErrorType, ErrorSeverity, get_error_handler, setup_error_handler
)
from sequence_matrix.errors import (
    LoadCancelled, LoadInProgressError, ParseFailure, SequenceError, SplitFailure
)
from sequence_matrix.models import Interval


class TestErrorHandler:
    """Test cases for error handler."""
    
    @pytest.fixture
    def handler(self):
        """Create error handler for testing."""
        return ErrorHandler(max_history=10)
    
    @pytest.fixture
    def split_failure(self):
        return SplitFailure("gene2", "Homo sapiens", Interval(5, 50), "interval runs past the end")
    
    def test_error_classification(self, handler, split_failure):
        """Test error type classification."""
        assert handler._classify_error(ParseFailure("bad")) == ErrorType.PARSE_ERROR
        assert handler._classify_error(LoadCancelled("stop")) == ErrorType.CANCELLED
        assert handler._classify_error(split_failure) == ErrorType.SPLIT_ERROR
        assert handler._classify_error(SequenceError("short")) == ErrorType.SPLIT_ERROR
        assert handler._classify_error(LoadInProgressError("busy")) == ErrorType.LOAD_IN_PROGRESS
        assert handler._classify_error(FileNotFoundError("gone")) == ErrorType.FILE_IO_ERROR
        assert handler._classify_error(ValueError("odd")) == ErrorType.PARSE_ERROR
        assert handler._classify_error(RuntimeError("boom")) == ErrorType.UNKNOWN
    
    def test_severity_determination(self, handler):
        """Test severity determination."""
        assert handler._determine_severity(ErrorType.CANCELLED) == ErrorSeverity.INFO
        assert handler._determine_severity(ErrorType.PARTIAL_FAILURE) == ErrorSeverity.WARNING
        assert handler._determine_severity(ErrorType.PARSE_ERROR) == ErrorSeverity.ERROR
        assert handler._determine_severity(ErrorType.UNKNOWN) == ErrorSeverity.CRITICAL
    
    def test_handle_error(self, handler, split_failure):
        """Test error handling."""
        context = handler.handle_error(
            split_failure,
            operation="load",
            item_id="genes.nex",
            attempt=1
        )
        
        assert context.error_type == ErrorType.SPLIT_ERROR
        assert "extends from 5 to 50" in context.message
        assert "Homo sapiens" in context.message
        assert context.operation == "load"
        assert context.item_id == "genes.nex"
        assert context.details == {'attempt': 1}
        assert context.suggestion is not None
        assert context.traceback is None
        assert handler.error_history == [context]
    
    def test_unknown_error_keeps_traceback(self, handler):
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            context = handler.handle_error(e, operation="load")
        
        assert context.severity == ErrorSeverity.CRITICAL
        assert "RuntimeError: boom" in context.traceback
    
    def test_record_partial_failure(self, handler):
        context = handler.record_partial_failure("gene1", ["A: duplicate", "B: duplicate"])
        
        assert context.error_type == ErrorType.PARTIAL_FAILURE
        assert context.message == "2 sequence(s) in gene1 weren't added"
        assert context.details == {'rejections': ["A: duplicate", "B: duplicate"]}
    
    def test_history_is_bounded(self, handler):
        for i in range(15):
            handler.handle_error(ParseFailure(f"bad {i}"), operation="load")
        
        assert len(handler.error_history) == 10
        assert handler.error_history[-1].message == "bad 14"
    
    def test_error_summary(self, handler):
        """Test error summary generation."""
        handler.handle_error(ParseFailure("bad"), operation="load")
        handler.handle_error(ParseFailure("worse"), operation="load")
        handler.handle_error(LoadCancelled("stop"), operation="load")
        handler.record_partial_failure("gene1", ["A"])
        
        summary = handler.get_error_summary()
        
        assert summary['total_errors'] == 4
        assert summary['by_type'][ErrorType.PARSE_ERROR.value] == 2
        assert summary['by_type'][ErrorType.CANCELLED.value] == 1
        assert summary['by_severity'][ErrorSeverity.WARNING.value] == 1
        assert len(summary['recent_errors']) == 4
    
    def test_export_error_report(self, handler, split_failure, tmp_path):
        """Test error report export."""
        handler.handle_error(split_failure, operation="load", item_id="genes.nex")
        handler.record_partial_failure("gene1", ["A"])
        
        report_file = tmp_path / "errors.json"
        handler.export_error_report(str(report_file))
        
        with open(report_file) as f:
            report = json.load(f)
        
        assert report['summary']['total_errors'] == 2
        assert len(report['detailed_errors']) == 2
        first = report['detailed_errors'][0]
        assert first['error_type'] == 'split_error'
        assert first['item_id'] == 'genes.nex'
        assert 'exception' not in first
    
    def test_clear(self, handler):
        handler.handle_error(ParseFailure("bad"), operation="load")
        handler.clear()
        assert handler.get_error_summary()['total_errors'] == 0
    
    def test_global_handler(self):
        handler = setup_error_handler(max_history=5)
        assert get_error_handler() is handler
        assert handler.max_history == 5
