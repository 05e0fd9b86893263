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
Conversation messages and history for multi-turn oracle sessions.

History is kept in insertion order, system messages included: a session may
be primed with one system message and have further system messages appended
later (the command parser does this on a cloned session).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


def estimate_tokens(text: str) -> int:
    """Approximate token count (1 token ≈ 4 characters of English text)."""
    return max(int(len(text) / 4), 1)


class MessageRole(str, Enum):
    """Roles for conversation messages."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class ConversationMessage:
    """
    A message in a conversation.

    Attributes:
        role: Message role (system, user, assistant)
        content: Message text
        tokens: Estimated token count
        timestamp: When message was created
    """
    role: MessageRole
    content: str
    tokens: int = 0
    timestamp: float = field(default_factory=time.time)

    def to_api_format(self) -> Dict[str, Any]:
        """Convert to API message format."""
        return {
            "role": self.role.value,
            "content": self.content,
        }

    @classmethod
    def system(cls, content: str) -> "ConversationMessage":
        """Create a system message."""
        return cls(role=MessageRole.SYSTEM, content=content, tokens=estimate_tokens(content))

    @classmethod
    def user(cls, content: str) -> "ConversationMessage":
        """Create a user message."""
        return cls(role=MessageRole.USER, content=content, tokens=estimate_tokens(content))

    @classmethod
    def assistant(cls, content: str) -> "ConversationMessage":
        """Create an assistant message."""
        return cls(role=MessageRole.ASSISTANT, content=content, tokens=estimate_tokens(content))


@dataclass
class ConversationHistory:
    """Ordered conversation history."""
    messages: List[ConversationMessage] = field(default_factory=list)

    @property
    def total_tokens(self) -> int:
        """Total estimated tokens in the history."""
        return sum(m.tokens for m in self.messages)

    @property
    def message_count(self) -> int:
        return len(self.messages)

    def add(self, message: ConversationMessage) -> None:
        """Add a message to history."""
        self.messages.append(message)

    def get_messages_for_api(self) -> List[Dict[str, Any]]:
        """Get messages in API format."""
        return [m.to_api_format() for m in self.messages]

    def copy(self) -> "ConversationHistory":
        """Shallow copy; messages are never mutated after creation."""
        return ConversationHistory(messages=list(self.messages))

    def clear(self) -> None:
        self.messages.clear()
