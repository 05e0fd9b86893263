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
Erpa - an agentic task execution loop for reading and navigating web pages.

A natural-language instruction is either answered directly or turned into a
bounded sequence of page actions chosen by an LLM oracle.
"""

__version__ = "0.3.0"
__author__ = "Firefly Software Solutions Inc"
__license__ = "Apache-2.0"

from erpa.agents import (
    AgentConfig,
    ExecutionState,
    TaskAgent,
    TaskResult,
    create_default_catalog,
)
from erpa.exceptions import ErpaError
from erpa.llm import LLMProviderFactory, Oracle

__all__ = [
    "AgentConfig",
    "ErpaError",
    "ExecutionState",
    "LLMProviderFactory",
    "Oracle",
    "TaskAgent",
    "TaskResult",
    "create_default_catalog",
]
