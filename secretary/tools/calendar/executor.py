"""
Tool Executor

Dispatches validated ToolCalls to their calendar handlers and normalises
every outcome into a ToolResult. The executor never raises: validation
problems, missing events, store failures and timeouts all come back as
``success=False`` results the model can react to.
"""
import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from ...core.exceptions import SecretaryError
from ...utils.config import Config, get_timezone
from ...utils.datetime.resolver import DateTimeResolver
from ...utils.logger import setup_logger
from ...utils.performance import PerformanceContext
from .catalog import CalendarToolNames
from .dedup import RecentEventRegistry
from .handlers import CalendarActionHandlers
from .models import ToolCall, ToolResult
from .store import CalendarStore

logger = setup_logger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


class CalendarAction(str, Enum):
    """Calendar tools the executor can run"""
    LIST = CalendarToolNames.LIST_EVENTS
    CREATE = CalendarToolNames.CREATE_EVENT
    UPDATE = CalendarToolNames.UPDATE_EVENT
    DELETE = CalendarToolNames.DELETE_EVENT
    SEARCH = CalendarToolNames.SEARCH_EVENTS

    @classmethod
    def from_tool_name(cls, name: str) -> Optional["CalendarAction"]:
        try:
            return cls(name)
        except ValueError:
            return None


class ToolExecutor:
    """
    Runs calendar tool calls against a CalendarStore.

    Args:
        store: Calendar store collaborator
        config: Application configuration
        resolver: Optional resolver (built from config when omitted)
        recent_events: Optional duplicate-create guard shared across runs
    """

    def __init__(
        self,
        store: CalendarStore,
        config: Config,
        resolver: Optional[DateTimeResolver] = None,
        recent_events: Optional[RecentEventRegistry] = None
    ):
        self.config = config
        self.resolver = resolver or DateTimeResolver(
            get_timezone(config), strict=config.calendar.strict_dates
        )
        self.handlers = CalendarActionHandlers(store, self.resolver, config, recent_events)
        self.timeout_seconds = config.calendar.store_timeout_seconds

        self._dispatch: Dict[CalendarAction, Handler] = {
            CalendarAction.LIST: self.handlers.handle_list,
            CalendarAction.CREATE: self.handlers.handle_create,
            CalendarAction.UPDATE: self.handlers.handle_update,
            CalendarAction.DELETE: self.handlers.handle_delete,
            CalendarAction.SEARCH: self.handlers.handle_search,
        }
        missing = [action.value for action in CalendarAction if action not in self._dispatch]
        if missing:
            raise RuntimeError(f"No handler registered for calendar actions: {missing}")

    async def execute(self, call: ToolCall) -> ToolResult:
        """
        Execute one tool call.

        Returns:
            ToolResult whose ``source_call`` is ``call``
        """
        action = CalendarAction.from_tool_name(call.name)
        if action is None:
            logger.error(f"[ToolExecutor] Unknown tool: {call.name}")
            return ToolResult.failure(call, f"Unknown tool: {call.name}")

        handler = self._dispatch[action]
        logger.info(f"[ToolExecutor] Executing {call.name} ({call.id}) with {call.arguments}")

        try:
            with PerformanceContext(f"tool:{call.name}", warn_threshold=self.timeout_seconds / 2):
                data = await asyncio.wait_for(handler(dict(call.arguments)), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"[ToolExecutor] {call.name} timed out after {self.timeout_seconds}s")
            return ToolResult.failure(call, f"Calendar operation timed out after {self.timeout_seconds:g}s")
        except SecretaryError as e:
            logger.warning(f"[ToolExecutor] {call.name} failed: {e.message}")
            return ToolResult.failure(call, e.message)
        except Exception as e:
            logger.error(f"[ToolExecutor] {call.name} raised {type(e).__name__}: {e}", exc_info=True)
            return ToolResult.failure(call, str(e) or type(e).__name__)

        return ToolResult.ok(call, data)
