"""
Performance Tracking Utilities

Provides context managers for tracking execution time of model and
calendar store calls.
"""
import time
from typing import Optional

from .logger import setup_logger

logger = setup_logger(__name__)


class PerformanceContext:
    """
    Context manager for tracking execution time of code blocks

    Usage:
        with PerformanceContext("operation_name"):
            # code to measure
            pass

        # Or with threshold warning:
        with PerformanceContext("slow_operation", warn_threshold=5.0):
            # warns if takes > 5 seconds
            pass
    """

    def __init__(
        self,
        operation_name: str,
        warn_threshold: Optional[float] = None,
        log_start: bool = False,
        log_end: bool = True
    ):
        """
        Initialize performance context

        Args:
            operation_name: Name to identify this operation in logs
            warn_threshold: Log warning if execution exceeds this many seconds
            log_start: Whether to log when context is entered
            log_end: Whether to log when context exits
        """
        self.operation_name = operation_name
        self.warn_threshold = warn_threshold
        self.log_start = log_start
        self.log_end = log_end
        self.start_time: Optional[float] = None
        self.duration: Optional[float] = None

    def __enter__(self) -> 'PerformanceContext':
        """Start timing"""
        self.start_time = time.monotonic()
        if self.log_start:
            logger.debug(f"Starting: {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Stop timing and log results"""
        self.duration = time.monotonic() - (self.start_time or time.monotonic())

        if not self.log_end:
            return
        if exc_type is not None:
            logger.warning(
                f"Failed: {self.operation_name} after {self.duration:.3f}s - {exc_type.__name__}: {exc_val}"
            )
        elif self.warn_threshold and self.duration > self.warn_threshold:
            logger.warning(
                f"Slow operation: {self.operation_name} took {self.duration:.3f}s "
                f"(threshold: {self.warn_threshold}s)"
            )
        else:
            logger.debug(f"Completed: {self.operation_name} in {self.duration:.3f}s")
