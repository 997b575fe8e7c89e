"""
Configuration management
"""
import os
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


# ============================================
# CONFIGURATION DEFAULTS
# ============================================

class ConfigDefaults:
    """Default configuration values as constants"""

    # Agent defaults
    AGENT_NAME = "Calendar Secretary"
    AGENT_MAX_ITERATIONS = 5
    AGENT_TOOL_MODE_NATIVE = "native"
    AGENT_TOOL_MODE_JSON = "json"
    AGENT_TIMEZONE_AUTO = "auto"
    AGENT_TIMEZONE_DEFAULT = "America/New_York"

    # AI/LLM defaults
    AI_PROVIDER_GEMINI = "gemini"
    AI_MODEL_DEFAULT = "gemini-2.5-flash"
    AI_TEMPERATURE_DEFAULT = 0.2
    AI_MAX_TOKENS_DEFAULT = 1000
    AI_TIMEOUT_SECONDS_DEFAULT = 30.0
    AI_MAX_RETRIES_DEFAULT = 3
    AI_RETRY_BACKOFF_SECONDS_DEFAULT = 1.0

    # Calendar defaults
    CALENDAR_ID_DEFAULT = "primary"
    CALENDAR_EVENT_DURATION_DEFAULT = 60  # minutes
    CALENDAR_SEARCH_WINDOW_DEFAULT = "this month"
    CALENDAR_MAX_RESULTS_DEFAULT = 10
    CALENDAR_STORE_TIMEOUT_SECONDS_DEFAULT = 20.0
    CALENDAR_CREDENTIALS_PATH_DEFAULT = "credentials.json"
    CALENDAR_TOKEN_PATH_DEFAULT = "token.json"

    # Chat defaults
    CHAT_TARGET_GROUP_DEFAULT = "Family Events"
    CHAT_REPLY_PREFIX_DEFAULT = "📅"

    # Processing defaults
    PROCESSING_MAX_CONCURRENT_CALENDAR_OPS = 3
    PROCESSING_DUPLICATE_WINDOW_MINUTES = 5

    # Logging defaults
    LOGGING_LEVEL_INFO = "INFO"
    LOGGING_FORMAT_CONSOLE = "console"
    LOGGING_FORMAT_JSON = "json"

    # Config file defaults
    CONFIG_PATH_DEFAULT = "config/config.yaml"


# ============================================
# CONFIGURATION MODELS
# ============================================

class AgentConfig(BaseModel):
    """Orchestration loop configuration"""
    name: str = ConfigDefaults.AGENT_NAME
    timezone: str = ConfigDefaults.AGENT_TIMEZONE_DEFAULT  # IANA name, or "auto" to detect from system
    max_iterations: int = Field(default=ConfigDefaults.AGENT_MAX_ITERATIONS, ge=1)
    tool_mode: str = ConfigDefaults.AGENT_TOOL_MODE_NATIVE  # "native" tool calling or "json" prompt extraction
    enforce_search_before_mutate: bool = False


class AIConfig(BaseModel):
    """AI/LLM configuration"""
    provider: str = ConfigDefaults.AI_PROVIDER_GEMINI
    model: str = ConfigDefaults.AI_MODEL_DEFAULT
    api_key: str = ""
    temperature: float = ConfigDefaults.AI_TEMPERATURE_DEFAULT
    max_tokens: int = ConfigDefaults.AI_MAX_TOKENS_DEFAULT
    timeout_seconds: float = ConfigDefaults.AI_TIMEOUT_SECONDS_DEFAULT
    max_retries: int = Field(default=ConfigDefaults.AI_MAX_RETRIES_DEFAULT, ge=1)
    retry_backoff_seconds: float = ConfigDefaults.AI_RETRY_BACKOFF_SECONDS_DEFAULT


class CalendarConfig(BaseModel):
    """Calendar store and tool configuration"""
    calendar_id: str = ConfigDefaults.CALENDAR_ID_DEFAULT
    default_event_duration: int = ConfigDefaults.CALENDAR_EVENT_DURATION_DEFAULT
    search_window: str = ConfigDefaults.CALENDAR_SEARCH_WINDOW_DEFAULT  # recency window for identifier lookups
    default_max_results: int = ConfigDefaults.CALENDAR_MAX_RESULTS_DEFAULT
    store_timeout_seconds: float = ConfigDefaults.CALENDAR_STORE_TIMEOUT_SECONDS_DEFAULT
    strict_dates: bool = False  # raise instead of falling back to "now" on unparseable dates
    credentials_path: str = ConfigDefaults.CALENDAR_CREDENTIALS_PATH_DEFAULT  # service-account key file
    token_path: str = ConfigDefaults.CALENDAR_TOKEN_PATH_DEFAULT  # authorized-user token file


class ChatConfig(BaseModel):
    """Chat intake configuration"""
    target_group_name: str = ConfigDefaults.CHAT_TARGET_GROUP_DEFAULT
    only_from_me: bool = True
    auto_reply: bool = False
    reply_prefix: str = ConfigDefaults.CHAT_REPLY_PREFIX_DEFAULT


class ProcessingConfig(BaseModel):
    """Message processing configuration"""
    max_concurrent_calendar_ops: int = Field(
        default=ConfigDefaults.PROCESSING_MAX_CONCURRENT_CALENDAR_OPS, ge=1
    )
    duplicate_event_window_minutes: int = ConfigDefaults.PROCESSING_DUPLICATE_WINDOW_MINUTES


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = ConfigDefaults.LOGGING_LEVEL_INFO
    file: Optional[str] = None
    format: str = ConfigDefaults.LOGGING_FORMAT_CONSOLE


class Config(BaseModel):
    """Main configuration"""
    agent: AgentConfig = AgentConfig()
    ai: AIConfig = AIConfig()
    calendar: CalendarConfig = CalendarConfig()
    chat: ChatConfig = ChatConfig()
    processing: ProcessingConfig = ProcessingConfig()
    logging: LoggingConfig = LoggingConfig()

    @classmethod
    def from_env(cls) -> "Config":
        """
        Build configuration from environment variables only.

        Used when no YAML file is available (CLI dry runs, containers).
        """
        load_dotenv()

        agent = AgentConfig(
            timezone=os.getenv("TIMEZONE", ConfigDefaults.AGENT_TIMEZONE_DEFAULT),
            max_iterations=int(os.getenv("MAX_ITERATIONS", ConfigDefaults.AGENT_MAX_ITERATIONS)),
            tool_mode=os.getenv("TOOL_MODE", ConfigDefaults.AGENT_TOOL_MODE_NATIVE),
            enforce_search_before_mutate=_env_flag("ENFORCE_SEARCH_BEFORE_MUTATE"),
        )
        ai = AIConfig(
            provider=os.getenv("AI_PROVIDER", ConfigDefaults.AI_PROVIDER_GEMINI),
            model=os.getenv("AI_MODEL", ConfigDefaults.AI_MODEL_DEFAULT),
            api_key=os.getenv("GOOGLE_API_KEY", ""),
            timeout_seconds=float(os.getenv("LLM_TIMEOUT", ConfigDefaults.AI_TIMEOUT_SECONDS_DEFAULT)),
            max_retries=int(os.getenv("LLM_MAX_RETRIES", ConfigDefaults.AI_MAX_RETRIES_DEFAULT)),
        )
        calendar = CalendarConfig(
            calendar_id=os.getenv("CALENDAR_ID", ConfigDefaults.CALENDAR_ID_DEFAULT),
            default_event_duration=int(
                os.getenv("DEFAULT_EVENT_DURATION", ConfigDefaults.CALENDAR_EVENT_DURATION_DEFAULT)
            ),
            strict_dates=_env_flag("STRICT_DATES"),
            credentials_path=os.getenv(
                "GOOGLE_CREDENTIALS_PATH", ConfigDefaults.CALENDAR_CREDENTIALS_PATH_DEFAULT
            ),
            token_path=os.getenv("GOOGLE_TOKEN_PATH", ConfigDefaults.CALENDAR_TOKEN_PATH_DEFAULT),
        )
        chat = ChatConfig(
            target_group_name=os.getenv("TARGET_GROUP_NAME", ConfigDefaults.CHAT_TARGET_GROUP_DEFAULT),
            auto_reply=_env_flag("AUTO_REPLY"),
        )
        processing = ProcessingConfig(
            max_concurrent_calendar_ops=int(
                os.getenv("MAX_CONCURRENT_CALENDAR_OPS", ConfigDefaults.PROCESSING_MAX_CONCURRENT_CALENDAR_OPS)
            ),
            duplicate_event_window_minutes=int(
                os.getenv("DUPLICATE_EVENT_WINDOW_MINUTES", ConfigDefaults.PROCESSING_DUPLICATE_WINDOW_MINUTES)
            ),
        )
        logging_config = LoggingConfig(
            level=os.getenv("LOG_LEVEL", ConfigDefaults.LOGGING_LEVEL_INFO),
            file=os.getenv("LOG_FILE_PATH") or None,
        )
        return cls(
            agent=agent,
            ai=ai,
            calendar=calendar,
            chat=chat,
            processing=processing,
            logging=logging_config,
        )


def load_config(config_path: str = ConfigDefaults.CONFIG_PATH_DEFAULT) -> Config:
    """
    Load configuration from YAML file and environment variables.
    """
    # Load environment variables
    load_dotenv()

    # Read YAML config
    with open(config_path, 'r') as f:
        config_dict = yaml.safe_load(f) or {}

    # Replace environment variable placeholders
    config_dict = _replace_env_vars(config_dict)

    # Create and validate config
    return Config(**config_dict)


def _replace_env_vars(obj: Any) -> Any:
    """
    Recursively replace ${VAR} placeholders with environment variables.
    """
    if isinstance(obj, dict):
        return {k: _replace_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_replace_env_vars(item) for item in obj]
    elif isinstance(obj, str) and obj.startswith("${") and obj.endswith("}"):
        var_name = obj[2:-1]
        env_value = os.getenv(var_name)
        if env_value:
            return env_value
        return obj
    return obj


def _env_flag(name: str) -> bool:
    """Read a boolean flag from the environment ("true"/"1"/"yes")."""
    return os.getenv(name, "").strip().lower() in ("true", "1", "yes")


def get_timezone(config: Optional[Config] = None) -> str:
    """
    Get timezone from config or environment variable.

    Args:
        config: Optional Config object

    Returns:
        Timezone string (e.g., "America/New_York", "UTC")
    """
    # Check environment variable first
    env_tz = os.getenv("TIMEZONE")
    if env_tz and env_tz != ConfigDefaults.AGENT_TIMEZONE_AUTO:
        return env_tz

    if config and config.agent and config.agent.timezone:
        tz = config.agent.timezone
        if tz == ConfigDefaults.AGENT_TIMEZONE_AUTO:
            # Auto-detect from system
            import datetime
            local_tz = datetime.datetime.now().astimezone().tzinfo
            if hasattr(local_tz, 'key'):
                return local_tz.key
            return ConfigDefaults.AGENT_TIMEZONE_DEFAULT
        return tz

    return ConfigDefaults.AGENT_TIMEZONE_DEFAULT
