#!/usr/bin/env python3

"""
Exception types raised by the proteome extraction pipeline.

Only unreadable inputs and bad configuration are raised to callers;
problems with single features or records are logged and skipped.
"""

class PipelineError(Exception):
    """Base exception for all pipeline-related errors."""
    pass


class ParseError(PipelineError):
    """An annotation file could not be opened or read."""

    def __init__(self, message: str, filename: str = "", line_number: int = 0):
        super().__init__(message)
        self.filename = filename
        self.line_number = line_number

    def __str__(self):
        location = self.filename
        if location and self.line_number:
            location = f"{location}:{self.line_number}"
        if location:
            return f"{location}: {super().__str__()}"
        return super().__str__()


class SequenceError(PipelineError):
    """A nucleotide record could not be translated."""

    def __init__(self, message: str, sequence_id: str = "", sequence_type: str = ""):
        super().__init__(message)
        self.sequence_id = sequence_id
        self.sequence_type = sequence_type

    def __str__(self):
        if self.sequence_id:
            kind = f"{self.sequence_type} record" if self.sequence_type else "record"
            return f"Cannot translate {kind} {self.sequence_id}: {super().__str__()}"
        return super().__str__()


class ExtractionError(PipelineError):
    """The interval extraction tool could not be run or exited with an error."""

    def __init__(self, message: str, tool: str = "", returncode: int = 0):
        super().__init__(message)
        self.tool = tool
        self.returncode = returncode

    def __str__(self):
        if not self.tool:
            return super().__str__()
        status = f" exited with {self.returncode}" if self.returncode else " failed"
        return f"{self.tool}{status}: {super().__str__()}"


class ConfigurationError(PipelineError):
    """Invalid pipeline configuration."""
    pass
