"""Agno agents backed by Gemini for chat streaming and file summarization.

Two agents share one configuration:

1. **Chat agent** - stateless. Each request carries its own context (the
   selected document summaries plus the user's question), so no agno
   session storage is attached. Transcripts live in Supabase.

2. **Summary agent** - receives an uploaded file either inline (images,
   PDFs) or as text, and returns a structured summary that later serves as
   chat context.

Both stream from the model. Errors are raised as LLMServiceError instead of
being folded into the reply text, so callers can turn them into a single
error turn.
"""

import logging
from collections.abc import AsyncGenerator

from agno.agent import Agent
from agno.media import File, Image
from agno.models.google import Gemini

from docchat.agent.config import AgentConfig, get_agent_config
from docchat.parsing.ingest import FileKind, IngestedFile

logger = logging.getLogger(__name__)

# agno run event names
_RUN_CONTENT_EVENT = "RunContent"
_RUN_ERROR_EVENT = "RunError"

IMAGE_SUMMARY_PROMPT = (
    "Analyze this image and extract all relevant information including: objects, "
    "text, people, locations, dates, and any other important details. Provide a "
    "comprehensive structured summary."
)
PDF_SUMMARY_PROMPT = (
    "Analyze this PDF document thoroughly and extract ALL information including: "
    "main topics, key points, important dates, names, locations, data, tables, and "
    "any other relevant details. Provide a comprehensive structured summary of the "
    "ENTIRE document."
)
TEXT_SUMMARY_PROMPT = "Provide a brief summary (2-3 sentences) of this document:\n\n"

# Only the head of a text document is sent for summarization
TEXT_PREVIEW_CHARS = 10_000


class LLMServiceError(Exception):
    """Raised when a Gemini call fails."""

    pass


def format_text_summary(summary: str, content: str) -> str:
    """Combine a text document's summary with its full content."""
    return f"SUMMARY:\n{summary}\n\n---\n\nFULL CONTENT:\n{content}"


class AgentService:
    """Service for the Gemini chat and summary agents.

    Wraps agno's Agent with:
    - Separate models for chat and summarization
    - A plain text-delta streaming interface for SSE endpoints
    - Inline image and PDF parts for summarization
    - Centralized error handling
    """

    def __init__(self, config: AgentConfig | None = None) -> None:
        """Initialize the agent service.

        Args:
            config: Optional agent configuration.
                    Loads from environment if not provided.

        Raises:
            ConfigurationError: If no config is given and no API key is set.
        """
        self._config = config or get_agent_config()
        self._chat_agent = self._create_agent(
            self._config.chat_model,
            description="A helpful assistant answering questions about the user's documents.",
            instructions=[
                "Answer using the provided file context when it is relevant.",
                "Say so when the context does not contain the answer.",
                "Be concise yet thorough.",
            ],
        )
        self._summary_agent = self._create_agent(
            self._config.summary_model,
            description="An analyst producing structured summaries of uploaded files.",
        )

    def _create_model(self, model_id: str) -> Gemini:
        return Gemini(
            id=model_id,
            api_key=self._config.api_key,
            temperature=self._config.temperature,
            max_output_tokens=self._config.max_output_tokens,
        )

    def _create_agent(
        self,
        model_id: str,
        description: str,
        instructions: list[str] | None = None,
    ) -> Agent:
        """Create a stateless agno agent for one Gemini model.

        Returns:
            Configured Agent without session storage or history.
        """
        return Agent(
            model=self._create_model(model_id),
            description=description,
            instructions=instructions,
            # Output as markdown for rich formatting in UI
            markdown=True,
        )

    async def _stream(
        self,
        agent: Agent,
        prompt: str,
        images: list[Image] | None = None,
        files: list[File] | None = None,
    ) -> AsyncGenerator[str]:
        media: dict[str, list] = {}
        if images:
            media["images"] = images
        if files:
            media["files"] = files

        try:
            response_stream = agent.arun(prompt, stream=True, **media)

            async for chunk in response_stream:
                event = getattr(chunk, "event", None)
                if event == _RUN_ERROR_EVENT:
                    raise LLMServiceError(getattr(chunk, "content", None) or "Model run failed")
                content = getattr(chunk, "content", None)
                if event == _RUN_CONTENT_EVENT and isinstance(content, str) and content:
                    yield content

        except LLMServiceError:
            raise
        except Exception as e:
            logger.error(f"Gemini request failed: {e}")
            raise LLMServiceError(str(e)) from e

    async def stream_response(self, prompt: str) -> AsyncGenerator[str]:
        """Stream the chat reply to a fully built prompt.

        Args:
            prompt: File context followed by the user's question.

        Yields:
            Response text deltas in arrival order.

        Raises:
            LLMServiceError: If the model call fails at any point.
        """
        async for delta in self._stream(self._chat_agent, prompt):
            yield delta

    async def summarize(self, file: IngestedFile) -> str:
        """Summarize an uploaded file.

        Images and PDFs go to the model inline. Text documents are
        summarized from their first 10,000 characters and stored as the
        summary followed by the full content.

        Args:
            file: The prepared upload.

        Returns:
            Text to store as the document's context.

        Raises:
            LLMServiceError: If the model call fails.
        """
        if file.kind is FileKind.IMAGE:
            image_format = file.mime_type.split("/", 1)[-1]
            image = Image(content=file.data, mime_type=file.mime_type, format=image_format)
            parts = [delta async for delta in self._stream(
                self._summary_agent, IMAGE_SUMMARY_PROMPT, images=[image]
            )]
        elif file.kind is FileKind.PDF:
            pdf = File(content=file.data, mime_type=file.mime_type, filename=file.name)
            parts = [delta async for delta in self._stream(
                self._summary_agent, PDF_SUMMARY_PROMPT, files=[pdf]
            )]
        else:
            text = file.text or ""
            prompt = TEXT_SUMMARY_PROMPT + text[:TEXT_PREVIEW_CHARS]
            parts = [delta async for delta in self._stream(self._summary_agent, prompt)]
            logger.info(f"Summarized text document: {file.name}")
            return format_text_summary("".join(parts), text)

        logger.info(f"Summarized {file.kind.value}: {file.name}")
        return "".join(parts)


# Module-level singleton instance
_agent_service: AgentService | None = None


def get_agent_service() -> AgentService:
    """Get or create the global agent service.

    Uses singleton pattern for resource efficiency.

    Returns:
        The AgentService instance.

    Raises:
        ConfigurationError: If the Gemini API key is missing.
    """
    global _agent_service
    if _agent_service is None:
        _agent_service = AgentService()
    return _agent_service
