# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for provider session usage tracking."""

import pytest

from erpa.llm.base import BaseLLMProvider, LLMResponse


class UsageProvider(BaseLLMProvider):
    """Provider that reports a fixed token usage per call."""

    def __init__(self, usage=None):
        super().__init__(model="usage-model")
        self.usage = usage

    async def chat(self, messages, temperature=0.7, max_tokens=None, **kwargs):
        response = LLMResponse(content=messages[-1]["content"], model=self.model, usage=self.usage)
        self._track_usage(response)
        return response


class TestSessionUsageTracking:
    def test_fresh_provider_has_zero_usage(self):
        usage = UsageProvider().get_session_usage()

        assert usage == {
            "prompt_tokens": 0,
            "completion_tokens": 0,
            "total_tokens": 0,
            "calls_count": 0,
            "model": "usage-model",
        }

    @pytest.mark.asyncio
    async def test_usage_accumulates(self):
        provider = UsageProvider({"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15})

        await provider.generate("Hi", system_prompt="policy")
        await provider.generate("Again")

        usage = provider.get_session_usage()
        assert usage["calls_count"] == 2
        assert usage["prompt_tokens"] == 20
        assert usage["total_tokens"] == 30

    @pytest.mark.asyncio
    async def test_calls_without_usage_still_count(self):
        provider = UsageProvider()

        await provider.generate("Hi")

        assert provider.get_session_usage()["calls_count"] == 1
        assert provider.get_session_usage()["total_tokens"] == 0

    @pytest.mark.asyncio
    async def test_reset(self):
        provider = UsageProvider({"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2})
        await provider.generate("Hi")

        provider.reset_session_usage()

        assert provider.get_session_usage()["calls_count"] == 0
        assert provider.get_session_usage()["total_tokens"] == 0

    @pytest.mark.asyncio
    async def test_default_stream_yields_single_fragment(self):
        provider = UsageProvider()

        parts = [p async for p in provider.chat_stream([{"role": "user", "content": "echo"}])]

        assert parts == ["echo"]
        assert repr(provider) == "UsageProvider(model='usage-model')"
