"""
LLM Client Factory for Google Gemini

Creates configured LangChain chat models from a ``Config``. Each call
returns a fresh client; callers hold on to the instance they need.

Usage:
    from secretary.ai.llm_factory import LLMFactory
    from secretary.utils.config import load_config

    config = load_config()
    llm = LLMFactory.get_llm_for_provider(config)
"""
from typing import Optional

from langchain_google_genai import ChatGoogleGenerativeAI

from ..utils.config import Config
from ..utils.logger import setup_logger
from .llm_constants import GEMINI_ALIASES, LOG_DEBUG, LOG_ERROR

logger = setup_logger(__name__)

# Constants for validation
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0
MIN_MAX_TOKENS = 1
MAX_MAX_TOKENS = 100000


class LLMFactory:
    """Factory for Google Gemini chat models"""

    @staticmethod
    def _validate_temperature(temperature: float) -> None:
        """
        Raises:
            ValueError: If temperature is out of valid range
        """
        if not (MIN_TEMPERATURE <= temperature <= MAX_TEMPERATURE):
            raise ValueError(
                f"Temperature must be between {MIN_TEMPERATURE} and {MAX_TEMPERATURE}, "
                f"got {temperature}"
            )

    @staticmethod
    def _validate_max_tokens(max_tokens: Optional[int]) -> None:
        """
        Raises:
            ValueError: If max_tokens is out of valid range
        """
        if max_tokens is not None and not (MIN_MAX_TOKENS <= max_tokens <= MAX_MAX_TOKENS):
            raise ValueError(
                f"max_tokens must be between {MIN_MAX_TOKENS} and {MAX_MAX_TOKENS}, "
                f"got {max_tokens}"
            )

    @staticmethod
    def _validate_config(config: Config) -> None:
        """
        Validate configuration object.

        Raises:
            ValueError: If config is invalid or missing required fields
        """
        if not config:
            raise ValueError("Config object is required")

        if not config.ai.api_key:
            raise ValueError("API key is required in config.ai.api_key (set GOOGLE_API_KEY)")

        provider = (config.ai.provider or "").lower()
        if provider not in GEMINI_ALIASES:
            raise ValueError(
                f"Unsupported provider: '{provider}'. "
                f"Only Gemini/Google providers are supported: {', '.join(GEMINI_ALIASES)}"
            )

    @staticmethod
    def get_google_llm(
        config: Config,
        temperature: float,
        max_tokens: Optional[int] = None
    ) -> ChatGoogleGenerativeAI:
        """
        Create a Google Gemini chat model.

        Provider-side retries are disabled; the orchestrator retries model
        calls itself with linear backoff.

        Raises:
            ValueError: If config or parameters are invalid
        """
        LLMFactory._validate_config(config)
        LLMFactory._validate_temperature(temperature)
        LLMFactory._validate_max_tokens(max_tokens)

        try:
            llm = ChatGoogleGenerativeAI(
                model=config.ai.model,
                google_api_key=config.ai.api_key,
                temperature=temperature,
                max_output_tokens=max_tokens or config.ai.max_tokens,
                timeout=config.ai.timeout_seconds,
                max_retries=0,
            )
        except Exception as e:
            logger.error(f"{LOG_ERROR} Failed to create Google LLM client: {e}")
            raise ValueError(f"Failed to create Google LLM client: {e}") from e

        logger.debug(
            f"{LOG_DEBUG} Created Google LLM client "
            f"(model={config.ai.model}, temp={temperature}, "
            f"max_tokens={max_tokens or config.ai.max_tokens})"
        )
        return llm

    @staticmethod
    def get_llm_for_provider(
        config: Config,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> ChatGoogleGenerativeAI:
        """
        Get a chat model for the configured provider (main entry point).

        Example:
            >>> llm = LLMFactory.get_llm_for_provider(config)
            >>> reply = llm.invoke([HumanMessage(content="Hello")])
        """
        LLMFactory._validate_config(config)
        temp = temperature if temperature is not None else config.ai.temperature
        return LLMFactory.get_google_llm(config, temperature=temp, max_tokens=max_tokens)
