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
Erpa agentic task execution loop.

Turns one natural-language instruction into a bounded sequence of page
actions driven by an LLM oracle.

Core Components:
    - TaskAgent: single-flight front door (context, classification, loop)
    - ClassifierGate: decides between a direct answer and the action cycle
    - CommandParser: maps the current prompt onto one catalog action
    - ActionExecutor: runs a parsed command against the catalog
    - IterationController: the bounded action cycle
    - ActionCatalog: the read-only registry of actions

Example Usage:
    ```python
    from erpa.agents import AgentConfig, TaskAgent, create_default_catalog
    from erpa.agents.tools import StaticDocumentBridge

    bridge = StaticDocumentBridge.from_file("page.json")
    agent = TaskAgent.from_config(AgentConfig(max_iterations=5), create_default_catalog(bridge))
    result = await agent.submit("Read the campus section and summarize it")
    ```
"""

from erpa.agents.classifier import SENTINEL, ClassifierGate
from erpa.agents.config import CONFIDENCE_THRESHOLD, AgentConfig, LLMSettings
from erpa.agents.context import (
    ContextLoader,
    ContextRepository,
    ContextStorage,
    InMemoryContextStorage,
    JsonFileContextStorage,
    PageContext,
    RepositoryContextLoader,
)
from erpa.agents.controller import IterationController
from erpa.agents.executor import ActionExecutor
from erpa.agents.parser import CommandParser
from erpa.agents.sink import (
    LoggingSink,
    ProgressEvent,
    ProgressSink,
    RecordingSink,
    SafeSink,
    SinkMessage,
)
from erpa.agents.task_agent import TaskAgent
from erpa.agents.tools import ActionCatalog, create_default_catalog
from erpa.agents.types import (
    ContextSection,
    ExecutionOutcome,
    ExecutionState,
    FailureKind,
    ParsedCommand,
    Task,
    TaskResult,
    TaskTarget,
)

__all__ = [
    # Front door
    "TaskAgent",
    "AgentConfig",
    "LLMSettings",
    "CONFIDENCE_THRESHOLD",
    # Loop components
    "ClassifierGate",
    "SENTINEL",
    "CommandParser",
    "ActionExecutor",
    "IterationController",
    # Catalog
    "ActionCatalog",
    "create_default_catalog",
    # Context
    "ContextLoader",
    "ContextRepository",
    "ContextStorage",
    "InMemoryContextStorage",
    "JsonFileContextStorage",
    "PageContext",
    "RepositoryContextLoader",
    # Sinks
    "LoggingSink",
    "ProgressEvent",
    "ProgressSink",
    "RecordingSink",
    "SafeSink",
    "SinkMessage",
    # Types
    "ContextSection",
    "ExecutionOutcome",
    "ExecutionState",
    "FailureKind",
    "ParsedCommand",
    "Task",
    "TaskResult",
    "TaskTarget",
]
