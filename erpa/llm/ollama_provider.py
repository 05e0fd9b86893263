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
Ollama LLM provider implementation.

Talks to a locally hosted Ollama server over its HTTP chat API. Ollama must
be running locally or on the server given by ``base_url``.
Install from: https://ollama.ai
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Dict, List, Optional

import aiohttp

from erpa.exceptions import LLMProviderError
from erpa.llm.base import BaseLLMProvider, LLMResponse
from erpa.llm.config import LLMProviderConfig
from erpa.utils.logger import logger


class OllamaProvider(BaseLLMProvider):
    """
    Ollama local LLM provider implementation.

    Attributes:
        model: Ollama model name (e.g., "qwen3:8b")
        base_url: Ollama server URL (default: http://localhost:11434)

    Example:
        >>> provider = OllamaProvider(model="qwen3:8b")
        >>> response = await provider.generate("Hello, how are you?")
        >>> print(response.content)
    """

    def __init__(
        self,
        model: str = "qwen3:8b",
        api_key: Optional[str] = None,
        config: Optional[LLMProviderConfig] = None,
        base_url: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(model, api_key, config=config, **kwargs)
        self.base_url = (base_url or "http://localhost:11434").rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=config.timeout if config else None)

    def _build_payload(
        self,
        messages: List[Dict[str, Any]],
        temperature: float,
        max_tokens: Optional[int],
        stream: bool,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": stream,
            "options": {"temperature": temperature},
        }
        if max_tokens:
            payload["options"]["num_predict"] = max_tokens
        return payload

    async def _post_chat(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/api/chat"
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(url, json=payload) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise LLMProviderError(
                        f"Ollama request failed: {response.status} - {error_text}"
                    )
                return await response.json()

    async def chat(
        self,
        messages: List[Dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Complete a conversation using Ollama's chat API."""
        payload = self._build_payload(messages, temperature, max_tokens, stream=False)

        try:
            data = await self._execute_with_rate_limit_retry(lambda: self._post_chat(payload))
        except LLMProviderError:
            raise
        except Exception as e:
            logger.error(f"[Ollama] Request failed: {e}")
            raise LLMProviderError(f"Ollama request failed: {e}") from e

        prompt_tokens = data.get("prompt_eval_count", 0)
        completion_tokens = data.get("eval_count", 0)
        result = LLMResponse(
            content=data.get("message", {}).get("content", ""),
            model=data.get("model", self.model),
            usage={
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
            finish_reason=data.get("done_reason"),
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
        """Complete a conversation incrementally; Ollama streams NDJSON lines."""
        payload = self._build_payload(messages, temperature, max_tokens, stream=True)
        url = f"{self.base_url}/api/chat"

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(url, json=payload) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise LLMProviderError(
                            f"Ollama streaming request failed: {response.status} - {error_text}"
                        )

                    async for line in response.content:
                        if not line.strip():
                            continue
                        try:
                            data = json.loads(line.decode("utf-8"))
                        except json.JSONDecodeError:
                            continue
                        content = data.get("message", {}).get("content")
                        if content:
                            yield content
                        if data.get("done"):
                            break
        except LLMProviderError:
            raise
        except Exception as e:
            logger.error(f"[Ollama] Streaming error: {e}")
            raise LLMProviderError(f"Ollama streaming failed: {e}") from e
