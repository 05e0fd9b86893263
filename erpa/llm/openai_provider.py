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
OpenAI LLM provider implementation.

Implements BaseLLMProvider on top of OpenAI's Chat Completions API using the
official async client. Also works with any OpenAI-compatible server via
``base_url``.
"""

from __future__ import annotations

import os
from typing import Any, AsyncIterator, Dict, List, Optional

from openai import AsyncOpenAI

from erpa.exceptions import LLMProviderError
from erpa.llm.base import BaseLLMProvider, LLMResponse
from erpa.llm.config import LLMProviderConfig
from erpa.utils.logger import logger


class OpenAIProvider(BaseLLMProvider):
    """
    OpenAI LLM provider implementation using the Chat Completions API.

    Attributes:
        client: AsyncOpenAI client instance for API calls
        model: OpenAI model name (e.g., "gpt-4o-mini")

    Example:
        >>> provider = OpenAIProvider(model="gpt-4o-mini", api_key="sk-...")
        >>> response = await provider.generate("Hello")
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        config: Optional[LLMProviderConfig] = None,
        base_url: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the OpenAI provider.

        Args:
            model: OpenAI model name
            api_key: OpenAI API key. Falls back to the OPENAI_API_KEY environment variable.
            config: Optional full provider configuration
            base_url: Optional OpenAI-compatible endpoint
            **kwargs: Additional configuration passed to BaseLLMProvider
        """
        api_key = api_key or os.environ.get("OPENAI_API_KEY")
        super().__init__(model, api_key, config=config, **kwargs)
        timeout = config.timeout if config else 60.0
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    def _build_api_kwargs(
        self,
        messages: List[Dict[str, Any]],
        temperature: float,
        max_tokens: Optional[int],
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """Build keyword arguments for ``chat.completions.create``."""
        api_kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            **kwargs,
        }
        if max_tokens is not None:
            api_kwargs["max_tokens"] = max_tokens
        return api_kwargs

    async def chat(
        self,
        messages: List[Dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Complete a conversation using OpenAI."""
        api_kwargs = self._build_api_kwargs(messages, temperature, max_tokens, **kwargs)

        try:
            response = await self._execute_with_rate_limit_retry(
                lambda: self.client.chat.completions.create(**api_kwargs)
            )
        except Exception as e:
            logger.error(f"[OpenAI] Request failed: {e}")
            raise LLMProviderError(f"OpenAI request failed: {e}") from e

        choice = response.choices[0]
        usage = None
        if response.usage is not None:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        result = LLMResponse(
            content=choice.message.content or "",
            model=response.model,
            usage=usage,
            finish_reason=choice.finish_reason,
        )
        self._track_usage(result)
        return result

    async def chat_stream(
        self,
        messages: List[Dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> AsyncIterator[str]:
        """Complete a conversation incrementally using OpenAI."""
        api_kwargs = self._build_api_kwargs(
            messages, temperature, max_tokens, stream=True, **kwargs
        )

        try:
            stream = await self._execute_with_rate_limit_retry(
                lambda: self.client.chat.completions.create(**api_kwargs)
            )
            async for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        except Exception as e:
            logger.error(f"[OpenAI] Streaming error: {e}")
            raise LLMProviderError(f"OpenAI streaming failed: {e}") from e
