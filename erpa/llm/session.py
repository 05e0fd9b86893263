# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Oracle and stateful oracle sessions.

The Oracle wraps one LLM provider and adds the per-call timeout. It offers a
stateless ``complete`` call and creates OracleSession handles. A session keeps
its own conversation history, grows with every prompt/append and must be
destroyed by whoever created it. A destroyed session rejects further use.

Example:
    >>> oracle = Oracle(provider, timeout_seconds=30)
    >>> session = await oracle.create_session("You are a helpful assistant.")
    >>> try:
    ...     reply = await session.prompt("Hello")
    ... finally:
    ...     session.destroy()
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, AsyncIterator, Dict, List, Optional, Type

from erpa.exceptions import OracleTimeoutError, SessionClosedError
from erpa.llm.base import BaseLLMProvider
from erpa.llm.conversation import ConversationHistory, ConversationMessage
from erpa.llm.streaming import TextStream
from erpa.utils.logger import logger


class OracleSession:
    """
    Stateful conversation handle.

    Not safe to share between concurrently running tasks; each task owns
    the sessions it creates.
    """

    def __init__(
        self,
        oracle: "Oracle",
        history: ConversationHistory,
        parent_id: Optional[str] = None,
    ) -> None:
        self.session_id = uuid.uuid4().hex[:12]
        self.parent_id = parent_id
        self._oracle = oracle
        self._history = history
        self._destroyed = False

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def history(self) -> ConversationHistory:
        return self._history

    def _ensure_open(self) -> None:
        if self._destroyed:
            raise SessionClosedError(f"Oracle session {self.session_id} was destroyed")

    async def prompt(self, message: str) -> str:
        """
        Send a user message and return the reply.

        Both turns are recorded in the history. If the call fails the user
        turn is rolled back so the history stays consistent.
        """
        self._ensure_open()
        user_message = ConversationMessage.user(message)
        self._history.add(user_message)
        try:
            reply = await self._oracle._chat(self._history.get_messages_for_api())
        except BaseException:
            self._history.messages.remove(user_message)
            raise
        self._history.add(ConversationMessage.assistant(reply))
        return reply

    def prompt_streaming(self, message: str) -> TextStream:
        """
        Send a user message and stream the reply.

        The assistant turn is recorded once the stream completes. If the
        stream fails or is abandoned the user turn is rolled back, as in
        ``prompt``.
        """
        self._ensure_open()
        user_message = ConversationMessage.user(message)
        self._history.add(user_message)
        source = self._oracle._chat_stream(self._history.get_messages_for_api())

        def rollback(error: BaseException) -> None:
            self._history.messages[:] = [m for m in self._history.messages if m is not user_message]
            logger.debug(f"[Oracle] Stream on session {self.session_id} failed: {error!r}")

        return TextStream(
            source,
            on_complete=lambda text: self._history.add(ConversationMessage.assistant(text)),
            on_error=rollback,
        )

    async def append(self, message: ConversationMessage) -> None:
        """Add a message to the history without asking for a reply."""
        self._ensure_open()
        self._history.add(message)

    async def clone(self) -> "OracleSession":
        """Create an independent session starting from this session's history."""
        self._ensure_open()
        return self._oracle.session_class(
            self._oracle, self._history.copy(), parent_id=self.session_id
        )

    def destroy(self) -> None:
        """Release the session. Safe to call more than once."""
        if self._destroyed:
            return
        self._destroyed = True
        self._history.clear()
        logger.debug(f"[Oracle] Session {self.session_id} destroyed")

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else "open"
        return f"OracleSession(id={self.session_id!r}, {state}, messages={self._history.message_count})"


class Oracle:
    """
    Conversational capability backed by an LLM provider.

    Attributes:
        provider: The LLM provider answering prompts
        timeout_seconds: Per-call timeout; None waits indefinitely
        temperature: Sampling temperature used for every call
        max_tokens: Optional cap on generated tokens
    """

    session_class: Type[OracleSession] = OracleSession

    def __init__(
        self,
        provider: BaseLLMProvider,
        timeout_seconds: Optional[float] = None,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
    ) -> None:
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def create_session(self, system_prompt: str) -> OracleSession:
        """Create a session primed with a system message."""
        history = ConversationHistory()
        history.add(ConversationMessage.system(system_prompt))
        session = self.session_class(self, history)
        logger.debug(f"[Oracle] Session {session.session_id} created")
        return session

    async def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """One stateless exchange; no session is created."""
        messages: List[Dict[str, Any]] = []
        if system_prompt:
            messages.append(ConversationMessage.system(system_prompt).to_api_format())
        messages.append(ConversationMessage.user(prompt).to_api_format())
        return await self._chat(messages)

    async def _chat(self, messages: List[Dict[str, Any]]) -> str:
        call = self.provider.chat(
            messages, temperature=self.temperature, max_tokens=self.max_tokens
        )
        if self.timeout_seconds is None:
            response = await call
        else:
            try:
                response = await asyncio.wait_for(call, timeout=self.timeout_seconds)
            except asyncio.TimeoutError as e:
                raise OracleTimeoutError(
                    f"Oracle call timed out after {self.timeout_seconds}s"
                ) from e
        return response.content

    def _chat_stream(self, messages: List[Dict[str, Any]]) -> AsyncIterator[str]:
        return self.provider.chat_stream(
            messages, temperature=self.temperature, max_tokens=self.max_tokens
        )
