# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Tests for Oracle and OracleSession lifecycle."""

import asyncio

import pytest

from erpa.exceptions import LLMProviderError, OracleTimeoutError, SessionClosedError
from erpa.llm.base import LLMResponse
from erpa.llm.conversation import ConversationMessage, MessageRole
from erpa.llm.session import Oracle


class TestOracle:
    @pytest.mark.asyncio
    async def test_complete_is_stateless(self, provider):
        provider.script(classifier=["Paris"])
        oracle = Oracle(provider)

        reply = await oracle.complete("Capital of France?", system_prompt="Be brief")

        assert reply == "Paris"
        assert provider.calls[0] == [
            {"role": "system", "content": "Be brief"},
            {"role": "user", "content": "Capital of France?"},
        ]

    @pytest.mark.asyncio
    async def test_complete_without_system_prompt(self, provider):
        await Oracle(provider).complete("Hi")

        assert provider.calls[0] == [{"role": "user", "content": "Hi"}]

    @pytest.mark.asyncio
    async def test_sampling_settings_reach_provider(self, provider, monkeypatch):
        seen = {}

        async def chat(messages, temperature=0.7, max_tokens=None, **kwargs):
            seen.update(temperature=temperature, max_tokens=max_tokens)
            return LLMResponse(content="ok", model="m")

        monkeypatch.setattr(provider, "chat", chat)

        await Oracle(provider, temperature=0.0, max_tokens=256).complete("Hi")

        assert seen == {"temperature": 0.0, "max_tokens": 256}

    @pytest.mark.asyncio
    async def test_timeout(self, provider, monkeypatch):
        async def slow_chat(messages, temperature=0.7, max_tokens=None, **kwargs):
            await asyncio.sleep(1)
            return LLMResponse(content="late", model="m")

        monkeypatch.setattr(provider, "chat", slow_chat)
        oracle = Oracle(provider, timeout_seconds=0.01)

        with pytest.raises(OracleTimeoutError, match="timed out after 0.01s"):
            await oracle.complete("Hi")

    def test_timeout_is_a_provider_error(self):
        assert issubclass(OracleTimeoutError, LLMProviderError)


class TestOracleSession:
    @pytest.mark.asyncio
    async def test_create_session_primes_system_message(self, provider):
        session = await Oracle(provider).create_session("You are a page agent.")

        assert session.history.message_count == 1
        assert session.history.messages[0].role == MessageRole.SYSTEM
        assert not session.destroyed

    @pytest.mark.asyncio
    async def test_prompt_grows_history(self, provider):
        provider.script(classifier=["Hello!"])
        session = await Oracle(provider).create_session("policy")

        reply = await session.prompt("Hi")

        assert reply == "Hello!"
        assert [m.role for m in session.history.messages] == [
            MessageRole.SYSTEM, MessageRole.USER, MessageRole.ASSISTANT,
        ]
        assert provider.calls[0][-1] == {"role": "user", "content": "Hi"}

    @pytest.mark.asyncio
    async def test_failed_prompt_rolls_back_user_turn(self, provider):
        provider.script(classifier=[LLMProviderError("boom")])
        session = await Oracle(provider).create_session("policy")

        with pytest.raises(LLMProviderError):
            await session.prompt("Hi")

        assert session.history.message_count == 1

    @pytest.mark.asyncio
    async def test_append_adds_without_reply(self, provider):
        session = await Oracle(provider).create_session("policy")

        await session.append(ConversationMessage.assistant("Function navigate executed"))

        assert session.history.message_count == 2
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_clone_is_independent(self, provider):
        session = await Oracle(provider).create_session("policy")
        clone = await session.clone()

        await clone.append(ConversationMessage.system("parser contract"))
        clone.destroy()

        assert clone.parent_id == session.session_id
        assert clone.session_id != session.session_id
        assert session.history.message_count == 1
        assert not session.destroyed

    @pytest.mark.asyncio
    async def test_destroy_is_idempotent(self, oracle):
        session = await oracle.create_session("policy")

        session.destroy()
        session.destroy()

        assert session.destroyed
        assert session.history.message_count == 0

    @pytest.mark.asyncio
    async def test_destroyed_session_rejects_use(self, provider):
        session = await Oracle(provider).create_session("policy")
        session.destroy()

        with pytest.raises(SessionClosedError):
            await session.prompt("Hi")
        with pytest.raises(SessionClosedError):
            await session.append(ConversationMessage.user("Hi"))
        with pytest.raises(SessionClosedError):
            await session.clone()
        with pytest.raises(SessionClosedError):
            session.prompt_streaming("Hi")

    @pytest.mark.asyncio
    async def test_prompt_streaming_records_reply(self, provider):
        provider.stream_fragments = ["The page ", "covers ", "campus life."]
        session = await Oracle(provider).create_session("policy")

        stream = session.prompt_streaming("Describe the page")
        assert session.history.message_count == 2

        text = await stream.collect()

        assert text == "The page covers campus life."
        assert session.history.messages[-1].role == MessageRole.ASSISTANT
        assert session.history.messages[-1].content == text

    @pytest.mark.asyncio
    async def test_failed_stream_rolls_back_user_turn(self, provider):
        def broken_fragments():
            yield "The page "
            raise LLMProviderError("stream reset")

        provider.stream_fragments = broken_fragments()
        session = await Oracle(provider).create_session("policy")
        stream = session.prompt_streaming("Describe the page")

        with pytest.raises(LLMProviderError):
            await stream.collect()

        assert session.history.message_count == 1
        assert session.history.messages[-1].role == MessageRole.SYSTEM
        assert not stream.completed

    @pytest.mark.asyncio
    async def test_repr(self, provider):
        session = await Oracle(provider).create_session("policy")

        assert "open" in repr(session)
        session.destroy()
        assert "destroyed" in repr(session)
