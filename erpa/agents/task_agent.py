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
TaskAgent: the front door for submitted instructions.

Loads page context, asks the classifier gate whether actions are needed and
hands the instruction to the iteration controller. One task at a time: a
submission while a task is running is dropped, not queued.

Example:
    >>> bridge = StaticDocumentBridge.from_file("page.json")
    >>> agent = TaskAgent.from_config(AgentConfig(), create_default_catalog(bridge))
    >>> result = await agent.submit("Summarize the campus section")
    >>> print(result.text)
"""

from __future__ import annotations

from typing import List, Optional

from erpa.agents.classifier import ClassifierGate
from erpa.agents.config import AgentConfig
from erpa.agents.context import ContextLoader
from erpa.agents.controller import IterationController
from erpa.agents.sink import LoggingSink, ProgressSink, SafeSink, SinkMessage
from erpa.agents.tools.registry import ActionCatalog
from erpa.agents.types import (
    ContextSection,
    DirectAnswer,
    ExecutionState,
    FailureKind,
    Task,
    TaskResult,
    TaskTarget,
)
from erpa.exceptions import ContextNotFoundError
from erpa.llm.base import BaseLLMProvider
from erpa.llm.factory import LLMProviderFactory
from erpa.llm.session import Oracle
from erpa.prompts.registry import PromptRegistry, get_prompt_registry
from erpa.utils.logger import logger

PROCESSING_ERROR_MESSAGE = "I'm sorry, I couldn't process your request right now. Please try again."
DEFAULT_TARGET = TaskTarget(target_id="default")


class TaskAgent:
    """
    Single-flight consumer of natural-language instructions.

    Attributes:
        oracle: Oracle used by the classifier and the controller
        catalog: Shared, read-only action catalog
        context_loader: Optional source of page sections
        config: Agent configuration
    """

    def __init__(
        self,
        oracle: Oracle,
        catalog: ActionCatalog,
        context_loader: Optional[ContextLoader] = None,
        sink: Optional[ProgressSink] = None,
        config: Optional[AgentConfig] = None,
        prompts: Optional[PromptRegistry] = None,
    ) -> None:
        self.oracle = oracle
        self.catalog = catalog
        self.context_loader = context_loader
        self.config = config or AgentConfig()
        self.sink = SafeSink(sink or LoggingSink())
        prompts = prompts or get_prompt_registry()

        self.classifier = ClassifierGate(oracle, catalog, prompts)
        self.controller = IterationController(
            oracle, catalog, sink=self.sink, config=self.config, prompts=prompts
        )
        self._processing = False

    @classmethod
    def from_config(
        cls,
        config: AgentConfig,
        catalog: ActionCatalog,
        provider: Optional[BaseLLMProvider] = None,
        api_key: Optional[str] = None,
        context_loader: Optional[ContextLoader] = None,
        sink: Optional[ProgressSink] = None,
    ) -> "TaskAgent":
        """Build an agent, creating the LLM provider from ``config.llm`` if none is given."""
        if provider is None:
            kwargs = {"base_url": config.llm.base_url} if config.llm.base_url else {}
            provider = LLMProviderFactory.create(
                config.llm.provider, model=config.llm.model, api_key=api_key, **kwargs
            )
        oracle = Oracle(
            provider,
            timeout_seconds=config.oracle_timeout_seconds,
            temperature=config.llm.temperature,
            max_tokens=config.llm.max_tokens,
        )
        return cls(oracle, catalog, context_loader=context_loader, sink=sink, config=config)

    @property
    def is_processing(self) -> bool:
        return self._processing

    async def submit(self, instruction: str, target: Optional[TaskTarget] = None) -> Optional[TaskResult]:
        """
        Process one instruction.

        Returns:
            TaskResult, or None if the instruction was blank or another task
            was still running
        """
        if not instruction or not instruction.strip():
            logger.debug("[TaskAgent] Ignoring blank instruction")
            return None
        if self._processing:
            logger.warning("[TaskAgent] A task is already running; submission dropped")
            return None

        self._processing = True
        try:
            return await self._process(Task(instruction=instruction, target=target or DEFAULT_TARGET))
        finally:
            self._processing = False

    async def _process(self, task: Task) -> TaskResult:
        try:
            context = await self._load_context(task.target)
            task = Task(instruction=task.instruction, target=task.target, context=tuple(context))

            classification = await self.classifier.classify(task.instruction)
            if isinstance(classification, DirectAnswer):
                logger.info("[TaskAgent] Answered directly")
                await self.sink.report_message(SinkMessage(text=classification.text))
                return TaskResult(state=ExecutionState.ANSWERED, text=classification.text)

            return await self.controller.run(task.instruction, task.context)
        except Exception as e:
            logger.error(f"[TaskAgent] Task failed: {e}", exc_info=True)
            await self.sink.report_message(SinkMessage(text=PROCESSING_ERROR_MESSAGE))
            return TaskResult(
                state=ExecutionState.FAILED,
                text=PROCESSING_ERROR_MESSAGE,
                failure=FailureKind.INTERNAL_ERROR,
            )

    async def _load_context(self, target: TaskTarget) -> List[ContextSection]:
        if self.context_loader is None:
            return []
        try:
            return list(await self.context_loader.load_context(target))
        except ContextNotFoundError as e:
            logger.info(f"[TaskAgent] {e}; proceeding without context")
        except Exception as e:
            logger.warning(f"[TaskAgent] Failed to load context, proceeding without it: {e}")
        return []
