"""Unit tests for individual components in isolation.

Coverage:
    - context/: Token estimates, selection toggling, usage levels
    - chat/: Send state machine, prompt assembly, transcript saving
    - parsing/: Upload classification and PDF validation
    - agent/: Agent configuration and agno event handling
    - storage/: Supabase queries against the in-memory client
    - ui/: The API client used by the NiceGUI pages

Uses mocks for agno and Gemini. Leverages pytest-check for multiple
assertions per test.
"""
