# tests/conftest.py
"""
Shared pytest fixtures for the Stage 2 prompt service.

Provides:
- FakeBackend: a generation backend test double that records every call
- A TestClient factory wired to fake backends
- A valid request payload
"""
from typing import Callable, List, Optional

import pytest
from fastapi.testclient import TestClient


class FakeBackend:
    """Backend double: returns `text`, or raises `error` if given."""

    def __init__(self, name: str, text: Optional[str] = "Generated prompt", error: Optional[Exception] = None):
        self.name = name
        self.text = text
        self.error = error
        self.calls: List[str] = []

    async def generate(self, prompt_text: str) -> str:
        self.calls.append(prompt_text)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def make_backend() -> Callable[..., FakeBackend]:
    return FakeBackend


@pytest.fixture
def make_client() -> Callable[..., TestClient]:
    from virtue_coach.main import create_app

    def _make(backends) -> TestClient:
        return TestClient(create_app(backends=backends))

    return _make


@pytest.fixture
def valid_payload() -> dict:
    return {
        "virtueName": "Patience",
        "virtueDef": "The capacity to accept delay or trouble without getting angry.",
        "characterDefectAnalysis": "I snap at people when plans change.",
        "stage1Complete": True,
        "stage1MemoContent": "x" * 60,
    }
