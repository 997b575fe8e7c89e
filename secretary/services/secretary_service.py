"""
SecretaryService - turns group-chat messages into calendar actions.

Only messages from the configured group (and, by default, only the owner's
own messages) are processed. Each accepted message is one orchestration run;
runs are admitted through a semaphore so at most
``processing.max_concurrent_calendar_ops`` touch the calendar at once.
"""
import asyncio
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ..agents.calendar.orchestrator import ConversationOrchestrator, OrchestrationResult
from ..ai.llm_factory import LLMFactory
from ..ai.model_client import create_model_client
from ..ai.tool_call_parser import INTENT_CREATE
from ..tools.calendar.catalog import CalendarToolNames, CapabilityCatalog
from ..tools.calendar.dedup import DUPLICATE_EVENT_ERROR, RecentEventRegistry
from ..tools.calendar.executor import ToolExecutor
from ..tools.calendar.store import CalendarStore
from ..utils.config import Config
from ..utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass
class ChatMessage:
    """An incoming chat message"""
    body: str
    chat_name: Optional[str] = None
    sender: str = "Unknown"
    from_me: bool = False
    is_group: bool = True
    timestamp: Optional[datetime] = None


@dataclass
class SecretaryStats:
    """Running counters for one service instance"""
    messages_processed: int = 0
    events_detected: int = 0
    events_created: int = 0
    errors_encountered: int = 0
    duplicates_skipped: int = 0

    @property
    def success_rate(self) -> Optional[float]:
        if not self.events_detected:
            return None
        return self.events_created / self.events_detected * 100

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_orchestrator(
    config: Config,
    store: CalendarStore,
    llm: Any = None,
    mode: Optional[str] = None
) -> ConversationOrchestrator:
    """
    Wire a ConversationOrchestrator from configuration.

    Args:
        config: Application configuration
        store: Calendar store the tools act on
        llm: LangChain chat model (built with LLMFactory when omitted)
        mode: Tool mode override ("native" or "json")

    Returns:
        Ready-to-run orchestrator
    """
    catalog = CapabilityCatalog()
    llm = llm or LLMFactory.get_llm_for_provider(config)
    model = create_model_client(llm, catalog, mode or config.agent.tool_mode)
    executor = ToolExecutor(
        store,
        config,
        recent_events=RecentEventRegistry(config.processing.duplicate_event_window_minutes),
    )
    return ConversationOrchestrator(model, executor, config, catalog=catalog)


class SecretaryService:
    """
    Chat-facing entry point.

    Args:
        orchestrator: Orchestrator that handles accepted messages
        config: Application configuration
    """

    def __init__(self, orchestrator: ConversationOrchestrator, config: Config):
        self.orchestrator = orchestrator
        self.config = config
        self.stats = SecretaryStats()
        self._gate = asyncio.Semaphore(config.processing.max_concurrent_calendar_ops)

    @classmethod
    def from_config(cls, config: Config, store: CalendarStore, llm: Any = None) -> "SecretaryService":
        return cls(build_orchestrator(config, store, llm=llm), config)

    def should_process(self, message: ChatMessage) -> bool:
        """Whether the message comes from the monitored group (and the owner, when required)"""
        chat = self.config.chat
        if not message.is_group or message.chat_name != chat.target_group_name:
            return False
        if chat.only_from_me and not message.from_me:
            logger.debug(f"[SecretaryService] Skipping message from {message.sender}: not from me")
            return False
        return bool(message.body and message.body.strip())

    async def handle_message(self, message: ChatMessage) -> Optional[str]:
        """
        Process one chat message.

        Returns:
            Reply text when auto-reply is enabled and the run produced a
            response, otherwise None
        """
        self.stats.messages_processed += 1
        if not self.should_process(message):
            return None

        preview = message.body[:100] + ("..." if len(message.body) > 100 else "")
        logger.info(f"[SecretaryService] New message in {message.chat_name} from {message.sender}: {preview}")

        async with self._gate:
            result = await self.orchestrator.run(message.body, sender=message.sender)

        self._record(result)

        if self.config.chat.auto_reply and result.response:
            return f"{self.config.chat.reply_prefix} {result.response}".strip()
        return None

    def _record(self, result: OrchestrationResult) -> None:
        if not result.success:
            self.stats.errors_encountered += 1
            logger.warning(f"[SecretaryService] Run ended in {result.state.value}: {result.error}")
            return

        if not result.tool_calls:
            logger.info("[SecretaryService] No calendar action taken")
            return

        self.stats.events_detected += 1
        if result.intent == INTENT_CREATE:
            self.stats.events_created += sum(
                1 for r in result.results
                if r.success and r.source_call.name == CalendarToolNames.CREATE_EVENT
            )
        failures = [r for r in result.results if not r.success]
        duplicates = [r for r in failures if (r.error or "").startswith(DUPLICATE_EVENT_ERROR)]
        self.stats.duplicates_skipped += len(duplicates)
        self.stats.errors_encountered += len(failures) - len(duplicates)
        logger.info(f"[SecretaryService] Completed {result.intent} with {len(result.results)} tool results")
