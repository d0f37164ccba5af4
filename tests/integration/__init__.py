"""Integration tests for components working together as a system.

Coverage:
    - Document upload, listing and deletion
    - Context selection against the token limit
    - SSE chat streaming and stored chat history
    - Sign up, sign in and sign out
    - Error translation for missing configuration and backend failures

Requests go through the real FastAPI app via httpx ASGITransport.
"""
