"""
JSON Utilities - Robust extraction and repair functions for LLM outputs.
"""
import json
import re
from typing import Any, Optional


def find_first_json_object(text: str) -> Optional[str]:
    """
    Locate the first balanced ``{...}`` span in free text.

    Braces inside JSON string literals are ignored, so a payload such as
    ``{"title": "party {bring snacks}"}`` is returned whole.

    Args:
        text: Raw model output

    Returns:
        The span including its outer braces, or None when no opening brace
        is ever closed
    """
    if not text:
        return None

    start = text.find('{')
    while start != -1:
        depth = 0
        in_string = False
        escaped = False

        for index in range(start, len(text)):
            char = text[index]
            if escaped:
                escaped = False
                continue
            if char == '\\' and in_string:
                escaped = True
                continue
            if char == '"':
                in_string = not in_string
                continue
            if in_string:
                continue
            if char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]

        # Unbalanced from this brace; try the next opening brace
        start = text.find('{', start + 1)

    return None


def repair_json(json_str: str) -> str:
    """
    Attempt to repair malformed JSON strings common from LLMs.
    - Replaces single-quoted keys and values with double quotes
    - Fixes trailing commas
    - Fixes unquoted keys
    """
    # Replace 'key': with "key":
    json_str = re.sub(r"\'(\w+)\'\s*:", r'"\1":', json_str)
    # Replace : 'value' with : "value"
    json_str = re.sub(r":\s*\'([^\']*)\'", r': "\1"', json_str)

    # Remove trailing commas
    json_str = re.sub(r",\s*([\]\}])", r"\1", json_str)

    # Fix unquoted keys (e.g. {key: "value"})
    json_str = re.sub(r'([{,]\s*)([A-Za-z_]\w*)\s*:', r'\1"\2":', json_str)

    return json_str


def loads_lenient(json_str: str) -> Any:
    """
    Parse JSON, retrying once on the repaired text.

    Raises:
        json.JSONDecodeError: If neither the original nor the repaired text parses
    """
    try:
        return json.loads(json_str)
    except json.JSONDecodeError:
        return json.loads(repair_json(json_str))
