"""
Calendar agent package

- orchestrator.py: bounded model/tool loop
- ordering.py: optional search-before-mutate guard
- formatting.py: final reply rendering
"""
from .formatting import ResponseFormatter, infer_intent
from .ordering import MutationOrderGuard
from .orchestrator import ConversationOrchestrator, OrchestrationResult, RunState

__all__ = [
    'ResponseFormatter',
    'infer_intent',
    'MutationOrderGuard',
    'ConversationOrchestrator',
    'OrchestrationResult',
    'RunState',
]
