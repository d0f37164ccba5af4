"""Context budget configuration loaded from the environment."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from docchat.context.budget import DEFAULT_TOKEN_LIMIT

load_dotenv()


class ContextConfig(BaseModel):
    """Capacity budget settings.

    Attributes:
        token_limit: Maximum estimated tokens of selected summaries per request.
    """

    token_limit: int = Field(
        default_factory=lambda: int(os.getenv("CONTEXT_TOKEN_LIMIT", str(DEFAULT_TOKEN_LIMIT))),
        ge=1,
        description="Maximum estimated tokens of selected document summaries",
    )


def get_context_config() -> ContextConfig:
    """Create context configuration from environment."""
    return ContextConfig()
