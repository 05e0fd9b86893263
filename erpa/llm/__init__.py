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

"""Oracle layer for Erpa: LLM providers, conversation history and sessions."""

from erpa.llm.base import BaseLLMProvider, LLMResponse
from erpa.llm.config import LLMProviderConfig, LLMProviderType, RetryConfig
from erpa.llm.conversation import (
    ConversationHistory,
    ConversationMessage,
    MessageRole,
)
from erpa.llm.factory import LLMProviderFactory
from erpa.llm.session import Oracle, OracleSession
from erpa.llm.streaming import TextStream

__all__ = [
    # Providers
    "BaseLLMProvider",
    "LLMResponse",
    "LLMProviderFactory",
    "LLMProviderConfig",
    "LLMProviderType",
    "RetryConfig",
    # Conversation management
    "ConversationHistory",
    "ConversationMessage",
    "MessageRole",
    # Sessions
    "Oracle",
    "OracleSession",
    "TextStream",
]
