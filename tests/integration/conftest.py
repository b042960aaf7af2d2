"""
Integration test configuration.

These tests call real APIs and cost money.
Run with: pytest -m integration
Skip with: pytest -m "not integration"
"""

import os

import pytest

from taskrun.model import create_openai_service


@pytest.fixture(scope="session")
def openai_service():
    """
    Session-scoped OpenAI model service.

    Skips if API key not available.
    """
    if not os.environ.get("OPENAI_API_KEY"):
        pytest.skip("OPENAI_API_KEY not set")

    return create_openai_service(model="gpt-4o-mini", max_tokens=500)
