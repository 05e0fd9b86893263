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

"""Factory for creating LLM provider instances."""

from typing import Any, Dict, List, Optional, Type

from erpa.exceptions import ConfigurationError
from erpa.llm.base import BaseLLMProvider
from erpa.llm.config import DEFAULT_CONFIGS, LLMProviderConfig
from erpa.llm.ollama_provider import OllamaProvider
from erpa.llm.openai_provider import OpenAIProvider


class LLMProviderFactory:
    """Factory for creating LLM provider instances."""

    _providers: Dict[str, Type[BaseLLMProvider]] = {
        "openai": OpenAIProvider,
        "ollama": OllamaProvider,
    }

    @classmethod
    def create(
        cls,
        provider: str,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        config: Optional[LLMProviderConfig] = None,
        **kwargs: Any,
    ) -> BaseLLMProvider:
        """
        Create an LLM provider instance.

        Args:
            provider: Provider name (openai, ollama, or a registered name)
            model: Model name (optional, uses provider default if not specified)
            api_key: API key for the provider
            config: Full provider configuration (optional)
            **kwargs: Additional provider-specific configuration

        Returns:
            BaseLLMProvider instance

        Raises:
            ConfigurationError: If provider is not supported
        """
        provider_lower = provider.lower()

        if provider_lower not in cls._providers:
            raise ConfigurationError(
                f"Unsupported LLM provider: {provider}. "
                f"Supported providers: {', '.join(cls._providers.keys())}"
            )

        provider_class = cls._providers[provider_lower]

        if not model:
            model = DEFAULT_CONFIGS.get(provider_lower, {}).get("model", "default")

        return provider_class(model=model, api_key=api_key, config=config, **kwargs)

    @classmethod
    def create_from_config(cls, config: LLMProviderConfig) -> BaseLLMProvider:
        """Create a provider from a configuration object."""
        return cls.create(
            provider=config.provider_type.value,
            model=config.model,
            api_key=config.api_key,
            config=config,
            base_url=config.base_url,
        )

    @classmethod
    def register_provider(cls, name: str, provider_class: type) -> None:
        """
        Register a custom LLM provider.

        Raises:
            ConfigurationError: If the class does not inherit from BaseLLMProvider
        """
        if not isinstance(provider_class, type) or not issubclass(provider_class, BaseLLMProvider):
            raise ConfigurationError(
                f"Provider class must inherit from BaseLLMProvider, got {provider_class}"
            )
        cls._providers[name.lower()] = provider_class

    @classmethod
    def list_providers(cls) -> List[str]:
        """List all registered provider names."""
        return list(cls._providers.keys())
