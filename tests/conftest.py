"""
Pytest configuration and shared fixtures
"""
import asyncio
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest

from maturagrader.services.collaborators import QueueNotifier


def make_payload(points: Optional[Dict[str, int]] = None, total: Optional[int] = None, **extra: Any) -> Dict[str, Any]:
    """Build a scorer payload in wire format; unspecified criteria score zero."""
    points = points or {}
    criteria: Dict[str, Any] = {
        "formalRequirements": {
            "points": points.get("formalRequirements", 0),
            "reasons": {
                "cardinalError": False,
                "missingReading": False,
                "irrelevant": False,
                "notArgumentative": False,
            },
        },
        "literaryCompetencies": {"points": points.get("literaryCompetencies", 0), "factualErrors": 0},
        "structure": {"points": points.get("structure", 0)},
        "coherence": {"points": points.get("coherence", 0), "coherenceErrors": 0},
        "style": {"points": points.get("style", 0)},
        "language": {"points": points.get("language", 0), "languageErrors": 0},
        "spelling": {"points": points.get("spelling", 0), "spellingErrors": 0},
        "punctuation": {"points": points.get("punctuation", 0), "punctuationErrors": 0},
    }
    payload: Dict[str, Any] = {
        "totalScore": sum(points.values()) if total is None else total,
        "criteria": criteria,
        "feedback": "Solidna praca.",
        "errors": [],
        "suggestions": [],
    }
    payload.update(extra)
    return payload


class GatedScorer:
    """Scorer double whose answer is released by the test."""

    def __init__(self, payload: Optional[Dict[str, Any]] = None, error: Optional[BaseException] = None):
        self.payload = payload if payload is not None else make_payload({"structure": 3})
        self.error = error
        self.calls: List[str] = []
        self.gate = asyncio.Event()

    def release(self) -> None:
        self.gate.set()

    async def grade(self, text: str) -> Dict[str, Any]:
        self.calls.append(text)
        await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.payload


class ImmediateScorer:
    """Scorer double that answers without waiting."""

    def __init__(self, payload: Optional[Dict[str, Any]] = None, error: Optional[BaseException] = None):
        self.payload = payload if payload is not None else make_payload({"structure": 3})
        self.error = error
        self.calls: List[str] = []

    async def grade(self, text: str) -> Dict[str, Any]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def payload_factory():
    return make_payload


@pytest.fixture
def valid_payload():
    return make_payload({"structure": 3})


@pytest.fixture
def notifier():
    return QueueNotifier()


@pytest.fixture
def mock_llm():
    """Mock LLM client for testing"""
    llm = Mock()
    llm.deployment = "test-deployment"
    llm.run_azure_openai = AsyncMock()
    llm.run_azure_openai.return_value = {
        "content": make_payload({"structure": 3}),
        "usage": {"prompt_tokens": 100, "completion_tokens": 50, "total_tokens": 150},
    }
    return llm


@pytest.fixture
def sample_essay_text():
    """Sample essay text for testing"""
    return (
        "Czy warto poświęcić szczęście osobiste dla dobra innych?\n\n"
        "W mojej pracy odwołam się do 'Lalki' Bolesława Prusa.\n"
        "Stanisław Wokulski wielokrotnie stawał przed takim wyborem."
    )


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for component interactions"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on file location"""
    for item in items:
        if "unit_test" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
