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

"""Configuration models for oracle (LLM) providers."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class LLMProviderType(str, Enum):
    """Supported LLM provider types."""

    OPENAI = "openai"
    OLLAMA = "ollama"


class RetryConfig(BaseModel):
    """Retry configuration for rate-limited provider calls."""

    max_retries: int = Field(default=3, ge=0, le=10)
    initial_delay: float = Field(default=1.0, ge=0.1, le=60.0)
    max_delay: float = Field(default=60.0, ge=1.0, le=300.0)
    exponential_base: float = Field(default=2.0, ge=1.0, le=10.0)
    jitter: bool = Field(default=True)


# Per-provider fallbacks for settings the caller left out
DEFAULT_CONFIGS: Dict[LLMProviderType, Dict[str, str]] = {
    LLMProviderType.OPENAI: {"model": "gpt-4o-mini"},
    LLMProviderType.OLLAMA: {"model": "qwen3:8b", "base_url": "http://localhost:11434"},
}


class LLMProviderConfig(BaseModel):
    """Configuration for an LLM provider."""

    provider_type: LLMProviderType
    model: str
    api_key: Optional[str] = None
    base_url: Optional[str] = Field(default=None, validate_default=True)
    timeout: float = Field(default=60.0, ge=1.0, le=300.0)

    retry_config: RetryConfig = Field(default_factory=RetryConfig)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: Optional[str], info: Any) -> Optional[str]:
        """Fill in the default server URL for providers that have one."""
        if v:
            return v
        return DEFAULT_CONFIGS.get(info.data.get("provider_type"), {}).get("base_url")
