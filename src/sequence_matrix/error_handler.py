"""Classification, logging and reporting of load failures.

Nothing in the import pipeline is retried automatically; every failure
ends either as an aborted load or as an aggregated report, and both pass
through here so they are logged once and kept for the session summary.
"""

import json
import logging
import time
import traceback
from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import (
    LoadCancelled, LoadInProgressError, ParseFailure, SequenceError, SplitFailure
)


class ErrorType(Enum):
    """Kinds of failure a load can end in."""
    PARSE_ERROR = "parse_error"
    CANCELLED = "cancelled"
    SPLIT_ERROR = "split_error"
    PARTIAL_FAILURE = "partial_failure"
    FILE_IO_ERROR = "file_io_error"
    LOAD_IN_PROGRESS = "load_in_progress"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Context information for an error."""
    error_type: ErrorType
    severity: ErrorSeverity
    message: str
    timestamp: float
    operation: str
    item_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    exception: Optional[Exception] = None
    traceback: Optional[str] = None
    suggestion: Optional[str] = None


class ErrorHandler:
    """Logs failures with a user-facing suggestion and keeps their history."""
    
    SUGGESTIONS = {
        ErrorType.PARSE_ERROR: "I could not understand a sequence in this file. Please fix any errors in the file.",
        ErrorType.CANCELLED: "The load was cancelled. Sets merged before the cancellation stay in the matrix.",
        ErrorType.SPLIT_ERROR: "A character set does not fit the sequences in this file. The file was skipped.",
        ErrorType.PARTIAL_FAILURE: "Some sequences were not added. The rest of the set was merged.",
        ErrorType.FILE_IO_ERROR: "Please ensure that you have adequate permissions to read this file.",
        ErrorType.LOAD_IN_PROGRESS: "Another file is still loading. Try again once it has finished.",
        ErrorType.UNKNOWN: "An unexpected error occurred. See the log file for details.",
    }
    
    def __init__(self, max_history: int = 1000):
        """
        Initialize error handler.
        
        Args:
            max_history: Number of errors kept for summaries and reports
        """
        self.max_history = max_history
        self.error_history: List[ErrorContext] = []
        self.logger = logging.getLogger(__name__)
        self.error_logger = logging.getLogger(f"{__name__}.errors")
    
    def handle_error(self,
                     error: Exception,
                     operation: str,
                     item_id: Optional[str] = None,
                     **kwargs) -> ErrorContext:
        """
        Classify, log and record an error that aborted an operation.
        
        Args:
            error: The exception that occurred
            operation: The operation being performed
            item_id: Optional item identifier, usually the file being loaded
            **kwargs: Additional context data
            
        Returns:
            ErrorContext with error details and suggestion
        """
        error_type = self._classify_error(error)
        severity = self._determine_severity(error_type)
        
        context = ErrorContext(
            error_type=error_type,
            severity=severity,
            message=str(error),
            timestamp=time.time(),
            operation=operation,
            item_id=item_id,
            details=kwargs or None,
            exception=error,
            traceback=(
                ''.join(traceback.format_exception(type(error), error, error.__traceback__))
                if error_type is ErrorType.UNKNOWN else None
            ),
            suggestion=self.SUGGESTIONS.get(error_type)
        )
        
        self._record(context)
        return context
    
    def record_partial_failure(self, unit_name: str, rejections: List[str],
                               operation: str = "merge") -> ErrorContext:
        """Record sequences the matrix refused while the rest of a unit merged."""
        context = ErrorContext(
            error_type=ErrorType.PARTIAL_FAILURE,
            severity=ErrorSeverity.WARNING,
            message=f"{len(rejections)} sequence(s) in {unit_name} weren't added",
            timestamp=time.time(),
            operation=operation,
            item_id=unit_name,
            details={'rejections': list(rejections)},
            suggestion=self.SUGGESTIONS[ErrorType.PARTIAL_FAILURE]
        )
        self._record(context)
        return context
    
    def _record(self, context: ErrorContext):
        self._log_error(context)
        self.error_history.append(context)
        if len(self.error_history) > self.max_history:
            del self.error_history[:-self.max_history]
    
    def _classify_error(self, error: Exception) -> ErrorType:
        """Classify the error type based on exception."""
        if isinstance(error, ParseFailure):
            return ErrorType.PARSE_ERROR
        if isinstance(error, LoadCancelled):
            return ErrorType.CANCELLED
        if isinstance(error, (SplitFailure, SequenceError)):
            return ErrorType.SPLIT_ERROR
        if isinstance(error, LoadInProgressError):
            return ErrorType.LOAD_IN_PROGRESS
        if isinstance(error, (FileNotFoundError, PermissionError, IsADirectoryError)):
            return ErrorType.FILE_IO_ERROR
        if isinstance(error, (UnicodeDecodeError, ValueError)):
            return ErrorType.PARSE_ERROR
        if isinstance(error, OSError):
            return ErrorType.FILE_IO_ERROR
        return ErrorType.UNKNOWN
    
    def _determine_severity(self, error_type: ErrorType) -> ErrorSeverity:
        if error_type in (ErrorType.CANCELLED, ErrorType.LOAD_IN_PROGRESS):
            return ErrorSeverity.INFO
        if error_type is ErrorType.PARTIAL_FAILURE:
            return ErrorSeverity.WARNING
        if error_type is ErrorType.UNKNOWN:
            return ErrorSeverity.CRITICAL
        return ErrorSeverity.ERROR
    
    def _log_error(self, context: ErrorContext):
        """Log error with appropriate level and details."""
        log_message = f"{context.operation} - {context.error_type.value}: {context.message}"
        
        if context.item_id:
            log_message += f" (item: {context.item_id})"
        
        if context.severity == ErrorSeverity.INFO:
            self.logger.info(log_message)
        elif context.severity == ErrorSeverity.WARNING:
            self.logger.warning(log_message)
        elif context.severity == ErrorSeverity.ERROR:
            self.error_logger.error(log_message)
        elif context.severity == ErrorSeverity.CRITICAL:
            self.error_logger.critical(log_message)
            if context.traceback:
                self.error_logger.critical(f"Traceback:\n{context.traceback}")
        
        if context.suggestion:
            self.logger.debug(f"Suggestion: {context.suggestion}")
    
    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of errors for reporting."""
        by_type: Dict[str, int] = {}
        by_severity: Dict[str, int] = {}
        for error in self.error_history:
            by_type[error.error_type.value] = by_type.get(error.error_type.value, 0) + 1
            by_severity[error.severity.value] = by_severity.get(error.severity.value, 0) + 1
        
        recent_errors = [
            {
                'type': error.error_type.value,
                'severity': error.severity.value,
                'message': error.message,
                'operation': error.operation,
                'item': error.item_id,
                'timestamp': datetime.fromtimestamp(error.timestamp).isoformat(),
                'suggestion': error.suggestion
            }
            for error in self.error_history[-5:]
        ]
        
        return {
            'total_errors': len(self.error_history),
            'by_type': by_type,
            'by_severity': by_severity,
            'recent_errors': recent_errors
        }
    
    def export_error_report(self, output_file: str):
        """Write every recorded error to a JSON file."""
        report = {
            'generated_at': datetime.now().isoformat(),
            'summary': self.get_error_summary(),
            'detailed_errors': []
        }
        
        for error in self.error_history:
            # Exception objects are not serializable
            error_dict = {
                f.name: getattr(error, f.name) for f in fields(error) if f.name != 'exception'
            }
            error_dict['error_type'] = error.error_type.value
            error_dict['severity'] = error.severity.value
            error_dict['timestamp'] = datetime.fromtimestamp(error.timestamp).isoformat()
            report['detailed_errors'].append(error_dict)
        
        with open(output_file, 'w') as f:
            json.dump(report, f, indent=2, default=str)
        
        self.logger.info(f"Error report exported to {output_file}")
    
    def clear(self):
        self.error_history.clear()


# Global error handler instance
_error_handler = None


def get_error_handler() -> ErrorHandler:
    """Get global error handler instance."""
    global _error_handler
    if _error_handler is None:
        _error_handler = ErrorHandler()
    return _error_handler


def setup_error_handler(**kwargs) -> ErrorHandler:
    """Replace the global error handler with a newly configured one."""
    global _error_handler
    _error_handler = ErrorHandler(**kwargs)
    return _error_handler
