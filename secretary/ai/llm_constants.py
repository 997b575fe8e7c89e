"""
LLM Factory Constants

Centralized constants for LLM provider names and configuration.
"""
from typing import Tuple

# Provider Names
PROVIDER_GEMINI = "gemini"
PROVIDER_GOOGLE = "google"

# Provider Aliases (for flexible matching)
GEMINI_ALIASES: Tuple[str, ...] = (PROVIDER_GEMINI, PROVIDER_GOOGLE)

# Model modes
TOOL_MODE_NATIVE = "native"
TOOL_MODE_JSON = "json"
TOOL_MODES: Tuple[str, ...] = (TOOL_MODE_NATIVE, TOOL_MODE_JSON)

# Log Prefix Constants
LOG_ERROR = "[ERROR]"
LOG_DEBUG = "[DEBUG]"
