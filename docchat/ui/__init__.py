"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Sign in and sign up
    - Document upload, selection with a token usage bar, and deletion
    - Chat message display with streaming support
    - Chat history navigation

Contains minimal business logic. Delegates all operations to the API.
Remains a pure presentation layer.
"""
