"""Exceptions raised by the import pipeline."""

from typing import Optional


class SequenceMatrixError(Exception):
    """Base class for all errors raised by this package."""


class SequenceError(SequenceMatrixError):
    """A sequence could not be sliced, joined or otherwise transformed."""


class SequenceListLockedError(SequenceMatrixError):
    """A sequence list was taken while another component already owned it."""


class LoadError(SequenceMatrixError):
    """A load was abandoned; nothing further from it will be merged."""


class ParseFailure(LoadError):
    """The input file could not be understood by the parser."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class LoadCancelled(LoadError):
    """The user aborted a running parse or merge."""


class LoadInProgressError(LoadError):
    """Another load holds the load lock and the caller chose not to wait."""


class SplitFailure(LoadError):
    """An interval of a character set could not be cut out of a sequence."""

    def __init__(self, set_name: str, sequence_name: str, interval, reason: str):
        self.set_name = set_name
        self.sequence_name = sequence_name
        self.interval = interval
        self.reason = reason
        super().__init__(
            f"Character set {set_name} extends from {interval.start} to {interval.end}. "
            f"While processing sequence '{sequence_name}' this went wrong: {reason}"
        )
