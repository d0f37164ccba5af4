"""Agno agent logic for Gemini calls.

Responsibilities:
    - Agent initialization with Gemini models
    - Streaming chat replies as plain text deltas
    - Summarizing uploads sent inline (images, PDFs) or as text

Leverages the Agno framework for agent lifecycle management.
Maintains clean separation from the HTTP layer.
"""

from docchat.agent.config import AgentConfig, get_agent_config
from docchat.agent.gemini_agent import AgentService, LLMServiceError, get_agent_service

__all__ = [
    "AgentConfig",
    "AgentService",
    "LLMServiceError",
    "get_agent_config",
    "get_agent_service",
]
