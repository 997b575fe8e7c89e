"""
Core Exceptions

Error taxonomy for the orchestration run. Only TransportError and
MaxIterationsExceeded end a run; the rest are absorbed into the
conversation as tool results or dropped calls.
"""
from typing import Any, Dict, Optional


class SecretaryError(Exception):
    """Base exception for the calendar secretary"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class TransportError(SecretaryError):
    """Raised when the model or calendar store cannot be reached"""
    pass


class ToolValidationError(SecretaryError):
    """Raised when a tool call names an unknown tool or lacks required arguments"""
    pass


class UnparseableDateError(SecretaryError):
    """Raised when a date/time expression cannot be resolved in strict mode"""

    def __init__(self, expression: str):
        super().__init__(
            f"Could not understand date/time: '{expression}'",
            details={"expression": expression}
        )
        self.expression = expression


class EventNotFoundError(SecretaryError):
    """Raised when an event identifier matches nothing in the search window"""

    def __init__(self, identifier: str, window: Optional[str] = None):
        message = f"Event not found: {identifier}"
        if window:
            message += f" (searched {window})"
        super().__init__(message, details={"identifier": identifier, "window": window})
        self.identifier = identifier


class ToolExecutionError(SecretaryError):
    """Raised by a handler when the calendar store reports a failure"""
    pass


class MaxIterationsExceeded(SecretaryError):
    """Raised when a run reaches the iteration ceiling without completing"""

    def __init__(self, max_iterations: int):
        super().__init__(
            f"Reached maximum iterations ({max_iterations}). "
            "The task may be too complex or the assistant got stuck in a loop.",
            details={"max_iterations": max_iterations}
        )
        self.max_iterations = max_iterations
