"""
Core types shared across the broker
"""
from .exceptions import (
    SecretaryError,
    TransportError,
    ToolValidationError,
    UnparseableDateError,
    EventNotFoundError,
    ToolExecutionError,
    MaxIterationsExceeded,
)

__all__ = [
    "SecretaryError",
    "TransportError",
    "ToolValidationError",
    "UnparseableDateError",
    "EventNotFoundError",
    "ToolExecutionError",
    "MaxIterationsExceeded",
]
