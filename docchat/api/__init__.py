"""FastAPI endpoints for DocChat.

HTTP and streaming routes with RESTful API design and async request handling.
Supports Server-Sent Events for real-time chat streaming.

Endpoints:
    - GET /health: Service health status
    - POST /auth/signup, /auth/login, /auth/logout; GET /auth/me
    - GET, POST /documents; DELETE /documents/{id}
    - POST /context/selection, /context/usage: Token budget checks
    - POST /chat/stream: Streamed chat replies
    - GET /chats, GET /chats/{id}, DELETE /chats/{id}: Chat history
"""

from docchat.api.app import app, create_app

__all__ = ["app", "create_app"]
