"""Test package for DocChat.

Structure:
    - unit/: Individual function and class tests
    - integration/: HTTP workflows through the FastAPI app
    - fakes.py: In-memory Supabase client and scripted Gemini agent
    - conftest.py: Shared fixtures

No network access is needed. Supabase and Gemini are replaced by fakes;
everything else (routing, validation, ingestion, budgeting, the send state
machine) runs for real. Leverages pytest with pytest-check for soft
assertions.
"""
