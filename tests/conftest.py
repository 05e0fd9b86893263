# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""
Shared test fixtures for the Erpa test suite.

This module provides common fixtures used across all test categories:
- A scripted LLM provider that answers classifier, parser and follow-up prompts
- An oracle whose sessions count how often they are destroyed
- A static document page and the default catalog bound to it
- A recording sink
"""

from __future__ import annotations

import json
import os
from collections import deque
from typing import Any, AsyncIterator, Deque, Dict, List, Optional, Union

import pytest

from erpa.agents.config import AgentConfig
from erpa.agents.sink import RecordingSink
from erpa.agents.tools.document import DocumentSection, StaticDocumentBridge
from erpa.agents.tools.page import create_default_catalog
from erpa.agents.tools.registry import ActionCatalog
from erpa.llm.base import BaseLLMProvider, LLMResponse
from erpa.llm.conversation import ConversationHistory
from erpa.llm.session import Oracle, OracleSession

NO_MATCH = '{"functionName": null, "parameters": {}, "confidence": 0}'

Reply = Union[str, BaseException]


# ==================== Environment Setup ====================

@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables."""
    os.environ.setdefault("ERPA_LOG_LEVEL", "warning")
    os.environ.setdefault("OPENAI_API_KEY", "test-key")
    yield


# ==================== Scripted LLM Provider ====================

class ScriptedProvider(BaseLLMProvider):
    """
    LLM provider that routes on the last user message.

    - ``Parse this command: ...``  -> next reply from ``parser_replies``
    - ``Based on the result ...``  -> next reply from ``next_action_replies``
    - anything else                -> next reply from ``classifier_replies``

    A queued exception instance is raised instead of returned.
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(model="scripted-model", **kwargs)
        self.classifier_replies: Deque[Reply] = deque()
        self.parser_replies: Deque[Reply] = deque()
        self.next_action_replies: Deque[Reply] = deque()
        self.stream_fragments: List[str] = []
        self.calls: List[List[Dict[str, Any]]] = []

    def script(
        self,
        classifier: Optional[List[Reply]] = None,
        parser: Optional[List[Reply]] = None,
        next_action: Optional[List[Reply]] = None,
    ) -> "ScriptedProvider":
        self.classifier_replies.extend(classifier or [])
        self.parser_replies.extend(parser or [])
        self.next_action_replies.extend(next_action or [])
        return self

    @staticmethod
    def _pop(queue: Deque[Reply], default: str) -> str:
        reply = queue.popleft() if queue else default
        if isinstance(reply, BaseException):
            raise reply
        return reply

    def calls_starting_with(self, prefix: str) -> List[List[Dict[str, Any]]]:
        return [c for c in self.calls if c[-1]["content"].startswith(prefix)]

    async def chat(
        self,
        messages: List[Dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        self.calls.append([dict(m) for m in messages])
        last = messages[-1]["content"]

        if last.startswith("Parse this command"):
            content = self._pop(self.parser_replies, NO_MATCH)
        elif last.startswith("Based on the result"):
            content = self._pop(self.next_action_replies, "What should happen next?")
        else:
            content = self._pop(self.classifier_replies, "<blank>")

        return LLMResponse(content=content, model=self.model)

    async def chat_stream(
        self,
        messages: List[Dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> AsyncIterator[str]:
        self.calls.append([dict(m) for m in messages])
        for fragment in self.stream_fragments:
            yield fragment


# ==================== Counting Oracle ====================

class CountingSession(OracleSession):
    """OracleSession that counts destroy() calls and registers itself with its oracle."""

    def __init__(self, oracle: "CountingOracle", history: ConversationHistory, parent_id: Optional[str] = None):
        super().__init__(oracle, history, parent_id=parent_id)
        self.destroy_calls = 0
        oracle.all_sessions.append(self)

    def destroy(self) -> None:
        self.destroy_calls += 1
        super().destroy()


class CountingOracle(Oracle):
    session_class = CountingSession

    def __init__(self, provider: BaseLLMProvider, **kwargs: Any) -> None:
        super().__init__(provider, **kwargs)
        self.all_sessions: List[CountingSession] = []
        self.main_sessions: List[CountingSession] = []

    async def create_session(self, system_prompt: str) -> OracleSession:
        session = await super().create_session(system_prompt)
        self.main_sessions.append(session)
        return session


# ==================== Fixtures ====================

@pytest.fixture
def provider() -> ScriptedProvider:
    """Create a scripted LLM provider."""
    return ScriptedProvider()


@pytest.fixture
def oracle(provider: ScriptedProvider) -> CountingOracle:
    """Create an oracle over the scripted provider."""
    return CountingOracle(provider)


@pytest.fixture
def parse_reply():
    """Build a parser reply in the JSON contract."""
    def _build(name: Optional[str], parameters: Optional[Dict[str, Any]] = None, confidence: float = 0.95) -> str:
        return json.dumps({
            "functionName": name,
            "parameters": parameters or {},
            "confidence": confidence,
        })
    return _build


@pytest.fixture
def document() -> StaticDocumentBridge:
    """A small university page."""
    return StaticDocumentBridge(
        url="https://example.edu/about",
        sections=[
            DocumentSection(
                title="Campus",
                locator="#campus",
                content=(
                    "The campus covers 209 acres along the river. "
                    "Most undergraduate housing is in the Yard."
                ),
            ),
            DocumentSection(
                title="History",
                locator="#history",
                content="The college was founded in 1636. It is the oldest in the country.",
            ),
            DocumentSection(
                title="FAQ",
                locator="#faq",
                content="Tuition is listed on the admissions page. Tours run daily at noon.",
            ),
        ],
    )


@pytest.fixture
def catalog(document: StaticDocumentBridge) -> ActionCatalog:
    """Default catalog bound to the static document."""
    return create_default_catalog(document)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def agent_config() -> AgentConfig:
    return AgentConfig(max_iterations=10, oracle_timeout_seconds=None)
