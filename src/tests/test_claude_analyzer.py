"""Tests for the Claude-backed analyzer, using a fake client."""

import json

import pytest

from ai.analyzer import ClaudeAnalyzer, parse_analysis
from ai.claude_client import ClaudeClient
from terminal.models import ArtifactCategory


class FakeClient:
    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    async def generate_response(self, prompt, system_prompt=None, max_tokens=1000):
        self.calls.append((prompt, system_prompt))
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


@pytest.mark.asyncio
async def test_parses_model_reply():
    reply = "Here you go:\n" + json.dumps({
        "complexity_score": 14,
        "estimated_artifacts": ["table_schema", "dashboard_component", "mobile_app", "table_schema"],
        "matched_keywords": ["election", "dashboard"],
    })
    client = FakeClient(reply)

    result = await ClaudeAnalyzer(client).analyze("create an election results dashboard", "plugin")

    assert result.complexity_score == 10
    assert result.estimated_artifacts == [ArtifactCategory.TABLE_SCHEMA, ArtifactCategory.DASHBOARD_COMPONENT]
    assert result.matched_keywords == ["election", "dashboard"]
    assert result.linked_modules == ["election_core"]
    assert "Feature request: create an election results dashboard" in client.calls[0][0]


@pytest.mark.asyncio
async def test_empty_category_list_falls_back_to_minimal_set():
    client = FakeClient('{"complexity_score": 0, "estimated_artifacts": []}')

    result = await ClaudeAnalyzer(client).analyze("hmm", "plugin")

    assert result.complexity_score == 1
    assert result.estimated_artifacts == [ArtifactCategory.TABLE_SCHEMA]


@pytest.mark.asyncio
async def test_client_errors_propagate():
    analyzer = ClaudeAnalyzer(FakeClient(RuntimeError("overloaded")))

    with pytest.raises(RuntimeError, match="overloaded"):
        await analyzer.analyze("create a village feedback form", "plugin")


def test_reply_without_json_is_rejected():
    with pytest.raises(ValueError):
        parse_analysis("I cannot help with that")


def test_client_requires_api_key(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    with pytest.raises(ValueError, match="API key is required"):
        ClaudeClient()
