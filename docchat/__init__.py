"""DocChat - chat with your documents using Gemini summaries as context.

Combines FastAPI for HTTP streaming, Agno for Gemini orchestration,
Supabase for auth and persistence, NiceGUI for the web interface, and
Pydantic for data validation.

Components:
    - api: HTTP endpoints and streaming responses
    - agent: Gemini chat streaming and file summarization
    - chat: Conversation send state machine
    - context: Token budgeting for selected documents
    - parsing: Upload validation and text extraction
    - storage: Supabase persistence and auth
    - ui: Web interface for chat interactions
    - models: Request/response schemas
"""

__version__ = "0.1.0"
