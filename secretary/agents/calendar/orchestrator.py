"""
Conversation Orchestrator

Bounded agent loop that brokers one chat message between the language model
and the calendar tools.

State machine:
    INIT -> ITERATING -> (TOOL_DISPATCH -> ITERATING)* -> COMPLETE
                                                       | MAX_ITERATIONS
                                                       | API_ERROR

- INIT: system turn (tool menu, today/now in the operating timezone) and
  the user turn
- ITERATING: send the conversation to the model (retried with linear
  backoff on transport failures and timeouts), append the assistant turn
- TOOL_DISPATCH: run the validated calls sequentially in emitted order and
  append one tool turn per call; rejected calls get an error tool turn but
  are never executed
- A reply without tool calls completes the run; running out of iterations
  or exhausting model retries fails it

Only transport failures and the iteration ceiling end a run early. Every
other problem is fed back to the model as a failed tool result.
"""
import asyncio
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import structlog

from ...ai.conversation import Conversation
from ...ai.llm_constants import TOOL_MODE_JSON
from ...ai.model_client import ModelClient, ModelReply
from ...ai.prompts import USER_MESSAGE_TEMPLATE, build_calendar_system_prompt
from ...ai.tool_call_parser import INTENT_OTHER, ToolCallParser
from ...core.exceptions import MaxIterationsExceeded, TransportError
from ...tools.calendar.catalog import CapabilityCatalog
from ...tools.calendar.executor import ToolExecutor
from ...tools.calendar.models import RejectedCall, ToolCall, ToolResult
from ...utils.config import Config
from ...utils.logger import setup_logger
from ...utils.performance import PerformanceContext
from ...utils.resilience import model_call_retrying
from .formatting import ResponseFormatter, infer_intent
from .ordering import MutationOrderGuard

logger = setup_logger(__name__)


class RunState(str, Enum):
    """Orchestration run states"""
    INIT = "init"
    ITERATING = "iterating"
    TOOL_DISPATCH = "tool_dispatch"
    COMPLETE = "complete"
    MAX_ITERATIONS = "max_iterations"
    API_ERROR = "api_error"


@dataclass
class OrchestrationResult:
    """Outcome of one orchestration run"""
    success: bool
    state: RunState
    response: str = ""
    intent: str = INTENT_OTHER
    iterations: int = 0
    tool_calls: List[ToolCall] = field(default_factory=list)
    results: List[ToolResult] = field(default_factory=list)
    rejected: List[RejectedCall] = field(default_factory=list)
    error: Optional[str] = None
    conversation_length: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "state": self.state.value,
            "response": self.response,
            "intent": self.intent,
            "iterations": self.iterations,
            "tool_calls": [call.to_dict() for call in self.tool_calls],
            "results": [result.to_payload() for result in self.results],
            "rejected": [{"name": r.name, "reason": r.reason} for r in self.rejected],
            "error": self.error,
            "conversation_length": self.conversation_length,
        }


@dataclass
class _RunRecord:
    """Mutable bookkeeping for one run"""
    conversation: Conversation
    guard: MutationOrderGuard
    state: RunState = RunState.INIT
    intent: Optional[str] = None
    calls: List[ToolCall] = field(default_factory=list)
    results: List[ToolResult] = field(default_factory=list)
    rejected: List[RejectedCall] = field(default_factory=list)


class ConversationOrchestrator:
    """
    Runs the bounded model/tool loop for one message at a time.

    Args:
        model: Chat model client (native tool calling or JSON mode)
        executor: Tool executor bound to a calendar store
        config: Application configuration
        catalog: Capability catalog (defaults to the calendar tools)
        formatter: Response formatter
    """

    def __init__(
        self,
        model: ModelClient,
        executor: ToolExecutor,
        config: Config,
        catalog: Optional[CapabilityCatalog] = None,
        formatter: Optional[ResponseFormatter] = None
    ):
        self.model = model
        self.executor = executor
        self.config = config
        self.catalog = catalog or CapabilityCatalog()
        self.parser = ToolCallParser(self.catalog)
        self.formatter = formatter or ResponseFormatter()
        self.resolver = executor.resolver
        self.max_iterations = config.agent.max_iterations

    @property
    def json_mode(self) -> bool:
        return self.model.mode == TOOL_MODE_JSON

    async def run(self, message: str, sender: str = "User") -> OrchestrationResult:
        """
        Process one chat message to completion.

        Never raises for model, tool or store problems; the returned result
        carries the terminal state.
        """
        structlog.contextvars.bind_contextvars(run_id=uuid.uuid4().hex[:8])
        try:
            return await self._run(message, sender)
        finally:
            structlog.contextvars.unbind_contextvars("run_id")

    async def _run(self, message: str, sender: str) -> OrchestrationResult:
        record = _RunRecord(
            conversation=Conversation(),
            guard=MutationOrderGuard(self.config.agent.enforce_search_before_mutate),
        )
        record.conversation.add_system(build_calendar_system_prompt(
            self.catalog.render_prompt_block(),
            self.resolver.prompt_context(),
            json_mode=self.json_mode,
        ))
        record.conversation.add_user(USER_MESSAGE_TEMPLATE.format(sender=sender, message=message))
        logger.info(
            f"[Orchestrator] Processing message from {sender} "
            f"(mode={self.model.mode}, max_iterations={self.max_iterations})"
        )

        for iteration in range(1, self.max_iterations + 1):
            record.state = RunState.ITERATING
            logger.info(
                f"[Orchestrator] Iteration {iteration}/{self.max_iterations} "
                f"(conversation length {len(record.conversation)})"
            )

            try:
                reply = await self._call_model(record.conversation)
            except (TransportError, asyncio.TimeoutError) as e:
                return self._api_error(record, iteration, e)

            calls, rejected, text = self._extract_calls(record, reply, iteration)

            if not calls and not rejected:
                return self._complete(record, iteration, text)

            record.state = RunState.TOOL_DISPATCH
            await self._dispatch(record, calls, rejected)

        return self._max_iterations(record)

    # ============================================
    # ITERATING
    # ============================================

    async def _call_model(self, conversation: Conversation) -> ModelReply:
        """Send the conversation with per-call timeout and linear-backoff retries"""
        timeout = self.config.ai.timeout_seconds
        async for attempt in model_call_retrying(
            max_attempts=self.config.ai.max_retries,
            backoff_seconds=self.config.ai.retry_backoff_seconds
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        f"[Orchestrator] Retrying model call "
                        f"(attempt {attempt.retry_state.attempt_number}/{self.config.ai.max_retries})"
                    )
                with PerformanceContext("model.complete", warn_threshold=timeout / 2):
                    return await asyncio.wait_for(self.model.complete(conversation.turns), timeout=timeout)

    def _extract_calls(
        self,
        record: _RunRecord,
        reply: ModelReply,
        iteration: int
    ) -> Tuple[List[ToolCall], List[RejectedCall], str]:
        """Validate the reply's tool calls and append the assistant turn"""
        id_prefix = f"iter{iteration}_call"

        if self.json_mode:
            parsed = self.parser.parse(reply.text, id_prefix=id_prefix)
            if parsed.payload_found and parsed.intent != INTENT_OTHER and record.intent is None:
                record.intent = parsed.intent
            if parsed.reasoning:
                logger.debug(f"[Orchestrator] Model reasoning: {parsed.reasoning}")
            record.conversation.add_assistant(reply.text)
            return parsed.tool_calls, parsed.rejected, parsed.message

        # Ids must be unique within the turn; repeated or missing provider ids get a positional one
        candidates = []
        seen_ids = set()
        for index, candidate in enumerate(reply.tool_calls):
            call_id = candidate.get("id")
            if not call_id or call_id in seen_ids:
                if call_id:
                    logger.warning(f"[Orchestrator] Repeated tool call id '{call_id}' at position {index}")
                call_id = f"{id_prefix}_{index}"
                while call_id in seen_ids:
                    call_id += "_"
            seen_ids.add(call_id)
            candidates.append(dict(candidate, id=call_id))
        calls, rejected = self.parser.validate(candidates, id_prefix=id_prefix)
        record.conversation.add_assistant(reply.text, tool_calls=[
            {"id": c["id"], "name": c.get("name"), "arguments": c.get("arguments")}
            for c in candidates
        ])
        return calls, rejected, reply.text

    # ============================================
    # TOOL_DISPATCH
    # ============================================

    async def _dispatch(
        self,
        record: _RunRecord,
        calls: List[ToolCall],
        rejected: List[RejectedCall]
    ) -> None:
        """Execute valid calls in emitted order; answer rejected ones with an error turn"""
        record.rejected.extend(rejected)
        calls_by_id = {call.id: call for call in calls}
        rejected_by_id = {r.id: r for r in rejected}

        if self.json_mode:
            order = [call.id for call in calls] + [r.id for r in rejected]
        else:
            order = [c.get("id") or "" for c in record.conversation.turns[-1].tool_calls]

        logger.info(f"[Orchestrator] Dispatching {len(calls)} tool calls ({len(rejected)} rejected)")

        for call_id in order:
            if call_id in rejected_by_id:
                bad = rejected_by_id[call_id]
                record.conversation.add_tool_result(
                    call_id, bad.name, {"success": False, "error": f"Invalid tool call: {bad.reason}"}
                )
                continue

            call = calls_by_id[call_id]
            blocked = record.guard.check(call)
            if blocked:
                logger.warning(f"[Orchestrator] Blocked {call.name} ({call.id}): {blocked}")
                result = ToolResult.failure(call, blocked)
            else:
                result = await self.executor.execute(call)
                record.guard.observe(result)

            record.calls.append(call)
            record.results.append(result)
            record.conversation.add_tool_result(call.id, call.name, result.to_payload())
            logger.info(
                f"[Orchestrator] {call.name} ({call.id}) -> "
                f"{'success' if result.success else 'error: ' + str(result.error)}"
            )

    # ============================================
    # TERMINAL STATES
    # ============================================

    def _final_intent(self, record: _RunRecord) -> str:
        return record.intent or infer_intent(record.calls)

    def _complete(self, record: _RunRecord, iteration: int, text: str) -> OrchestrationResult:
        record.state = RunState.COMPLETE
        intent = self._final_intent(record)
        response = (text or "").strip()
        if not response:
            response = self.formatter.format(intent, record.results)

        logger.info(
            f"[Orchestrator] Completed after {iteration} iterations "
            f"({len(record.results)} tool results, intent={intent})"
        )
        return self._result(record, True, iteration, response=response, intent=intent)

    def _api_error(self, record: _RunRecord, iteration: int, error: Exception) -> OrchestrationResult:
        record.state = RunState.API_ERROR
        detail = str(error) or type(error).__name__
        message = f"Model API error: {detail}"
        logger.error(f"[Orchestrator] {message} (iteration {iteration})")
        return self._result(record, False, iteration, response=message, error=message)

    def _max_iterations(self, record: _RunRecord) -> OrchestrationResult:
        record.state = RunState.MAX_ITERATIONS
        error = MaxIterationsExceeded(self.max_iterations)
        logger.error(f"[Orchestrator] {error.message}")
        return self._result(record, False, self.max_iterations, response=error.message, error=error.message)

    def _result(
        self,
        record: _RunRecord,
        success: bool,
        iterations: int,
        response: str,
        intent: Optional[str] = None,
        error: Optional[str] = None
    ) -> OrchestrationResult:
        return OrchestrationResult(
            success=success,
            state=record.state,
            response=response,
            intent=intent or self._final_intent(record),
            iterations=iterations,
            tool_calls=list(record.calls),
            results=list(record.results),
            rejected=list(record.rejected),
            error=error,
            conversation_length=len(record.conversation),
        )
