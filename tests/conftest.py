"""Shared fixtures - JSON fixtures and raw record factories, no internet."""

import json
from pathlib import Path

import pytest


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def response_path() -> Path:
    """Path to a saved last_tweets API response."""
    return FIXTURES_DIR / "last_tweets.json"


@pytest.fixture
def response_payload(response_path) -> dict:
    """Decoded last_tweets API response."""
    return json.loads(response_path.read_text(encoding="utf-8"))


@pytest.fixture
def make_raw():
    """Factory for minimal raw records in the API's camelCase shape."""

    def _make(post_id: str, minute: int = 0, **fields) -> dict:
        raw = {
            "id": post_id,
            "text": f"post {post_id}",
            "createdAt": f"2024-03-01T12:{minute:02d}:00Z",
            "author": {"userName": f"user{post_id}", "name": f"User {post_id}"},
        }
        raw.update(fields)
        return raw

    return _make
