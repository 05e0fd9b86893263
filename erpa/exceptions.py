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

"""Exception hierarchy for Erpa."""

from typing import Any, Dict, Optional


class ErpaError(Exception):
    """Base class for all Erpa errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ConfigurationError(ErpaError):
    """Invalid or missing configuration."""


class LLMProviderError(ErpaError):
    """An oracle provider call failed."""


class OracleTimeoutError(LLMProviderError):
    """An oracle call did not finish within the configured timeout."""


class SessionClosedError(ErpaError):
    """An oracle session was used after it was destroyed."""


class StreamConsumedError(ErpaError):
    """A text stream was iterated more than once."""


class ActionError(ErpaError):
    """An action could not be carried out against its target."""


class ContextNotFoundError(ErpaError):
    """No usable page context exists for a task target."""
