"""
Services - application shell around the orchestrator

- SecretaryService: filters chat messages, runs the orchestrator under the
  admission gate, keeps counters and produces the reply
"""

from .secretary_service import (
    ChatMessage,
    SecretaryService,
    SecretaryStats,
    build_orchestrator,
)

__all__ = [
    "ChatMessage",
    "SecretaryService",
    "SecretaryStats",
    "build_orchestrator",
]
