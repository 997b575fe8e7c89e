"""
Tool-Call Extractor/Validator

Turns model output into validated ToolCalls.

Two entry points:
- ``parse(text)`` for prompted JSON payloads (``{"intent", "reasoning",
  "tool_calls", "response"}``) embedded anywhere in free text
- ``validate(candidates)`` for provider-native tool calls

Both drop invalid calls instead of raising. A call is kept only when it names
a catalog tool, carries a mapping of arguments, and fills every ``required``
field (and at least one ``anyOf`` required-group) of the tool's schema.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Tuple

from ..core.exceptions import ToolValidationError
from ..tools.calendar.catalog import CapabilityCatalog
from ..tools.calendar.models import RejectedCall, ToolCall
from ..utils.json_utils import find_first_json_object, loads_lenient
from ..utils.logger import setup_logger

logger = setup_logger(__name__)

INTENT_CREATE = "create_event"
INTENT_EDIT = "edit_event"
INTENT_DELETE = "delete_event"
INTENT_QUERY = "query_events"
INTENT_OTHER = "other"

VALID_INTENTS = (INTENT_CREATE, INTENT_EDIT, INTENT_DELETE, INTENT_QUERY, INTENT_OTHER)


@dataclass
class ParsedResponse:
    """
    Result of parsing one model reply.

    Attributes:
        intent: One of VALID_INTENTS
        reasoning: Model's explanation, if any
        tool_calls: Valid calls in emitted order
        rejected: Dropped candidates with the reason
        message: Free-text answer (``response`` field, or text around the payload)
        payload_found: Whether a JSON payload was decoded
    """
    intent: str = INTENT_OTHER
    reasoning: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)
    rejected: List[RejectedCall] = field(default_factory=list)
    message: str = ""
    payload_found: bool = False


class ToolCallParser:
    """Extracts and validates tool calls against a CapabilityCatalog"""

    def __init__(self, catalog: CapabilityCatalog):
        self.catalog = catalog

    def parse(self, text: Optional[str], id_prefix: str = "call") -> ParsedResponse:
        """
        Extract a JSON tool-call payload from free text.

        Text without a payload, or with a payload that does not decode even
        after repair, is treated as a plain answer with intent ``other``.
        """
        text = text or ""
        span = find_first_json_object(text)
        if span is None:
            logger.debug("[ToolCallParser] No JSON payload in model output, treating as text")
            return ParsedResponse(message=text.strip())

        try:
            payload = loads_lenient(span)
        except json.JSONDecodeError as e:
            logger.warning(f"[ToolCallParser] Failed to parse tool payload, treating as text: {e}")
            return ParsedResponse(message=text.strip())

        if not isinstance(payload, dict):
            logger.warning(f"[ToolCallParser] Payload is {type(payload).__name__}, not an object")
            return ParsedResponse(message=text.strip())

        intent = payload.get("intent")
        if intent not in VALID_INTENTS:
            if intent:
                logger.debug(f"[ToolCallParser] Unknown intent '{intent}', using '{INTENT_OTHER}'")
            intent = INTENT_OTHER

        candidates = payload.get("tool_calls") or []
        if not isinstance(candidates, list):
            logger.warning("[ToolCallParser] 'tool_calls' is not a list, ignoring it")
            candidates = []
        # Payload ids are not trusted; calls are numbered from id_prefix
        candidates = [
            {k: v for k, v in c.items() if k != "id"} if isinstance(c, dict) else c
            for c in candidates
        ]

        tool_calls, rejected = self.validate(candidates, id_prefix=id_prefix)

        response_text = payload.get("response")
        if not isinstance(response_text, str) or not response_text.strip():
            response_text = text.replace(span, "", 1)

        return ParsedResponse(
            intent=intent,
            reasoning=str(payload.get("reasoning") or ""),
            tool_calls=tool_calls,
            rejected=rejected,
            message=response_text.strip(),
            payload_found=True,
        )

    def validate(
        self,
        candidates: Iterable[Any],
        id_prefix: str = "call"
    ) -> Tuple[List[ToolCall], List[RejectedCall]]:
        """
        Validate candidate calls, keeping their order.

        Candidates are mappings with ``name`` and ``arguments`` (or ``args``)
        and an optional ``id``; missing ids become ``{id_prefix}_{index}``.

        Returns:
            (valid calls, rejected calls)
        """
        valid: List[ToolCall] = []
        rejected: List[RejectedCall] = []

        for index, candidate in enumerate(candidates):
            call_id = f"{id_prefix}_{index}"
            name = None
            if isinstance(candidate, dict):
                call_id = str(candidate.get("id") or call_id)
                name = candidate.get("name")

            try:
                valid.append(self._check(candidate, call_id))
            except ToolValidationError as e:
                logger.warning(f"[ToolCallParser] Dropped tool call #{index} ({name}): {e.message}")
                rejected.append(RejectedCall(
                    index=index,
                    name=name if isinstance(name, str) else None,
                    reason=e.message,
                    id=call_id,
                    raw=candidate,
                ))

        if rejected:
            logger.info(f"[ToolCallParser] {len(valid)} valid, {len(rejected)} rejected tool calls")
        return valid, rejected

    def _check(self, candidate: Any, call_id: str) -> ToolCall:
        """
        Raises:
            ToolValidationError: When the candidate cannot be executed
        """
        if not isinstance(candidate, dict):
            raise ToolValidationError("Invalid tool call structure")

        name = candidate.get("name")
        if not isinstance(name, str) or not self.catalog.exists(name):
            raise ToolValidationError(
                f"Unknown tool '{name}'. Valid tools: {', '.join(self.catalog.names())}"
            )

        arguments = candidate.get("arguments", candidate.get("args"))
        if arguments is None:
            arguments = {}
        if isinstance(arguments, str):
            try:
                arguments = loads_lenient(arguments) if arguments.strip() else {}
            except json.JSONDecodeError:
                raise ToolValidationError(f"Malformed arguments for {name}")
        if not isinstance(arguments, dict):
            raise ToolValidationError(f"Arguments for {name} must be an object")

        spec = self.catalog.get(name)
        missing = [f for f in spec.required if _is_blank(arguments.get(f))]
        if missing:
            raise ToolValidationError(f"Missing required argument(s) for {name}: {', '.join(missing)}")

        groups = spec.required_groups
        if groups and not any(all(not _is_blank(arguments.get(f)) for f in group) for group in groups):
            options = " or ".join("+".join(group) for group in groups)
            raise ToolValidationError(f"{name} requires {options}")

        return ToolCall(id=call_id, name=name, arguments=arguments)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False
