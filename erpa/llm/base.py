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
Base LLM provider interface.

Every oracle backend implements BaseLLMProvider. The agent loop never talks
to a provider directly: it goes through erpa.llm.session.Oracle, which keeps
the conversation history and hands complete message lists to ``chat``.

Subclasses must implement:
- chat(): one blocking completion over a list of chat messages

Subclasses may override:
- chat_stream(): incremental completion (defaults to a single fragment)
"""

from __future__ import annotations

import asyncio
import random
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, TypeVar

from erpa.llm.config import LLMProviderConfig, RetryConfig
from erpa.utils.logger import logger

T = TypeVar("T")


@dataclass
class LLMResponse:
    """
    Standardized response from an LLM provider.

    Attributes:
        content: The generated text content from the LLM
        model: Name of the model that generated the response
        usage: Token usage statistics (prompt_tokens, completion_tokens, total_tokens)
        metadata: Additional provider-specific metadata
        finish_reason: Reason for completion (e.g., "stop", "length")
    """

    content: str
    model: str
    usage: Optional[Dict[str, int]] = None
    metadata: Optional[Dict[str, Any]] = None
    finish_reason: Optional[str] = None


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Attributes:
        model: Model name/identifier
        api_key: API key for the provider (unused by local providers)
        provider_config: Full provider configuration, if one was supplied
        retry_config: Rate limit retry settings
        extra_config: Additional provider-specific configuration

    Example:
        >>> class EchoProvider(BaseLLMProvider):
        ...     async def chat(self, messages, temperature=0.7, max_tokens=None, **kwargs):
        ...         return LLMResponse(content=messages[-1]["content"], model=self.model)
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        config: Optional[LLMProviderConfig] = None,
        **kwargs: Any,
    ) -> None:
        self.model = model
        self.api_key = api_key
        self.provider_config = config
        self.retry_config = config.retry_config if config else RetryConfig()
        self.extra_config = kwargs

        # Session-level usage tracking (always enabled)
        self._session_prompt_tokens = 0
        self._session_completion_tokens = 0
        self._session_total_tokens = 0
        self._session_calls = 0

    @abstractmethod
    async def chat(
        self,
        messages: List[Dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Complete a conversation.

        Args:
            messages: Chat messages in API format ({"role": ..., "content": ...}),
                oldest first. A system message, if present, comes first.
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Additional provider parameters

        Returns:
            LLMResponse object
        """

    async def chat_stream(
        self,
        messages: List[Dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> AsyncIterator[str]:
        """
        Complete a conversation incrementally.

        Yields:
            Response fragments as strings, in order

        Note:
            Default implementation falls back to non-streaming and yields
            the whole reply as one fragment.
        """
        response = await self.chat(messages, temperature, max_tokens, **kwargs)
        yield response.content

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Single-turn convenience wrapper around ``chat``."""
        messages: List[Dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return await self.chat(messages, temperature, max_tokens, **kwargs)

    async def _execute_with_rate_limit_retry(
        self,
        api_call: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Execute an API call with automatic rate limit retry using exponential backoff.

        Only rate limit errors (HTTP 429 or a "rate limit" message) are retried;
        everything else propagates immediately.

        Args:
            api_call: Async callable to execute

        Returns:
            The result from the API call
        """
        retry = self.retry_config

        for attempt in range(retry.max_retries + 1):
            try:
                return await api_call()
            except Exception as e:
                if not self._is_rate_limit_error(e):
                    raise

                if attempt >= retry.max_retries:
                    logger.error(
                        f"[{self.__class__.__name__}] Rate limit: max retries ({retry.max_retries}) "
                        f"exhausted. Last error: {e}"
                    )
                    raise

                delay = min(
                    retry.initial_delay * (retry.exponential_base ** attempt),
                    retry.max_delay,
                )

                # e.g. "Please try again in 734ms"
                match = re.search(r"try again in (\d+(?:\.\d+)?)(ms|s)", str(e).lower())
                if match:
                    value = float(match.group(1))
                    delay = value / 1000.0 if match.group(2) == "ms" else value
                    delay = min(delay + 0.5, retry.max_delay)

                if retry.jitter:
                    # ±25%
                    delay = max(0.1, delay * (0.75 + random.random() * 0.5))

                logger.warning(
                    f"[{self.__class__.__name__}] Rate limit hit (attempt {attempt + 1}/"
                    f"{retry.max_retries + 1}). Waiting {delay:.2f}s before retry..."
                )
                await asyncio.sleep(delay)

        raise RuntimeError("Unexpected state in rate limit retry")

    @staticmethod
    def _is_rate_limit_error(error: Exception) -> bool:
        """Check whether an exception signals a rate limit (HTTP 429)."""
        message = str(error).lower()
        return (
            getattr(error, "status_code", None) == 429
            or "429" in message
            or ("rate" in message and "limit" in message)
        )

    def get_session_usage(self) -> Dict[str, Any]:
        """
        Get accumulated usage statistics for this provider instance.

        Returns:
            Dictionary with prompt_tokens, completion_tokens, total_tokens,
            calls_count and model
        """
        return {
            "prompt_tokens": self._session_prompt_tokens,
            "completion_tokens": self._session_completion_tokens,
            "total_tokens": self._session_total_tokens,
            "calls_count": self._session_calls,
            "model": self.model,
        }

    def reset_session_usage(self) -> None:
        """Reset session-level usage tracking."""
        self._session_prompt_tokens = 0
        self._session_completion_tokens = 0
        self._session_total_tokens = 0
        self._session_calls = 0

    def _track_usage(self, response: LLMResponse) -> None:
        """Update session-level usage from a response."""
        self._session_calls += 1
        if response.usage:
            self._session_prompt_tokens += response.usage.get("prompt_tokens", 0)
            self._session_completion_tokens += response.usage.get("completion_tokens", 0)
            self._session_total_tokens += response.usage.get("total_tokens", 0)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model!r})"
