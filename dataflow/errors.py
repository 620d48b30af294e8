"""
Pipeline Errors

Terminating errors of a pipeline run. A run raises at most one of these.
"""


class PipelineError(Exception):
    """Base class for errors that abort a pipeline run"""


class TradeParseError(PipelineError, ValueError):
    """A trade record could not be parsed or validated"""

    def __init__(self, message: str, line_number: int = 0, line: str = ""):
        self.line_number = line_number
        self.line = line
        if line_number:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class DeadlineExceeded(PipelineError):
    """The run deadline expired before the input was exhausted"""

    def __init__(self, deadline: float):
        self.deadline = deadline
        super().__init__(f"pipeline deadline exceeded with timeout {deadline}s")


class SinkError(PipelineError):
    """The candle sink failed to write or publish"""


class TradeSourceError(PipelineError):
    """The trade source could not be opened or read"""
