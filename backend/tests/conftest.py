"""
Shared fixtures for backend tests.

Every test gets a fresh in-memory SQLite database with the production
schema, and router tests get a fake model client instead of the real
Anthropic adapter so nothing ever leaves the process.
"""
import pytest
import aiosqlite

from db.database import SCHEMA


class FakeLLM:
    """Stands in for LLMClient.  Returns queued replies or raises ``error``."""

    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []

    async def complete(self, prompt, params):
        self.calls.append((prompt, params))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


@pytest.fixture
async def db():
    """Yield a fresh in-memory SQLite connection with the full schema."""
    async with aiosqlite.connect(":memory:") as conn:
        conn.row_factory = aiosqlite.Row
        await conn.executescript(SCHEMA)
        yield conn


@pytest.fixture
def fake_llm():
    return FakeLLM()


def receipt_json(**overrides) -> str:
    """A well-formed model reply for the STORE A receipt."""
    import json
    data = {
        "vendor": "STORE A",
        "date": "2025-12-02",
        "total": 52.10,
        "tax": 6.20,
        "subtotal": 45.90,
        "items": [{"name": "Seasonal Produce", "quantity": 1, "price": 45.90}],
        "paymentMethod": "Visa",
        "confidence": 0.92,
    }
    data.update(overrides)
    return json.dumps(data)
