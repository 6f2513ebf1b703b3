"""Shared fixtures: a stand-in for the OpenAI client."""

import json
from types import SimpleNamespace

import pytest

SAMPLE_REPLY = {
    "emetteur": "Solaire Invest SAS",
    "date_virement": "05-09-2025",
    "paiements": [
        {"beneficiaire": "M. Jean Dupont", "montant": 1000, "date": "05-09-2025", "reference": "CPN-1"},
        {"beneficiaire": "Inconnu Total", "montant": 99999, "date": "05-09-2025", "reference": None},
    ],
}


class FakeCompletions:
    """Records chat completion requests and replies with canned content."""

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    def __init__(self, content=None, error=None):
        self.chat = SimpleNamespace(completions=FakeCompletions(content, error))

    @property
    def calls(self):
        return self.chat.completions.calls


@pytest.fixture
def fake_openai():
    """Factory for fake OpenAI clients: fake_openai(content=..., error=...)."""
    return FakeOpenAI


@pytest.fixture
def sample_reply() -> str:
    """A model reply wrapped in a Markdown code fence."""
    return "```json\n" + json.dumps(SAMPLE_REPLY, ensure_ascii=False) + "\n```"
