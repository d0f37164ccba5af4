"""Agent configuration with environment variable loading.

Pydantic-based configuration for the Gemini-backed agents.
Chat and summarization use separately configurable models.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from docchat.errors import ConfigurationError

# Load environment variables from .env file
load_dotenv()


class AgentConfig(BaseModel):
    """Configuration for the Gemini agents.

    Attributes:
        api_key: Gemini API key.
        chat_model: Model identifier used for chat replies.
        summary_model: Model identifier used to summarize uploads.
        temperature: Sampling temperature (0.0 = deterministic, 2.0 = creative).
        max_output_tokens: Maximum tokens in a generated reply.
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("GEMINI_API_KEY", os.getenv("GOOGLE_API_KEY", "")),
        description="API key for Gemini",
    )
    chat_model: str = Field(
        default_factory=lambda: os.getenv("GEMINI_CHAT_MODEL", "gemini-2.5-flash"),
        description="Model used for chat",
    )
    summary_model: str = Field(
        default_factory=lambda: os.getenv("GEMINI_SUMMARY_MODEL", "gemini-2.0-flash"),
        description="Model used to summarize uploaded files",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for response generation",
    )
    max_output_tokens: int = Field(
        default=8192,
        ge=1,
        le=65536,
        description="Maximum tokens in generated response",
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that API key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError("Gemini API key not found. Set GEMINI_API_KEY in .env")
        return v.strip()


def get_agent_config() -> AgentConfig:
    """Create agent configuration from environment.

    Returns:
        Configured AgentConfig instance.

    Raises:
        ConfigurationError: If no API key is set.
    """
    try:
        return AgentConfig()
    except ValidationError as e:
        error = e.errors()[0]
        # Report the validator message without pydantic's "Value error, " prefix
        raise ConfigurationError(str(error.get("ctx", {}).get("error", error["msg"]))) from e
