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
Iteration controller: the bounded action cycle.

One run owns one oracle session. Each pass parses the current prompt into a
single command, then either finishes (task_complete), fails (unparseable or
low-confidence command, failing action) or executes the action and asks the
oracle what to do next. The run stops at ``max_iterations`` passes.

State machine:
    NEEDS_ACTIONS -> PARSING -> TASK_COMPLETE
                             -> LOW_CONFIDENCE
                             -> EXECUTING -> FAILED
                                          -> AWAITING_NEXT_ACTION -> PARSING ...
                                                                  -> MAX_ITERATIONS_REACHED

Every exit path destroys the session exactly once. Failures travel as
StepResult values; no exception escapes a pass.
"""

from __future__ import annotations

import json
from typing import List, Optional, Sequence

from erpa.agents.config import CONFIDENCE_THRESHOLD, AgentConfig
from erpa.agents.executor import ActionExecutor
from erpa.agents.parser import CommandParser
from erpa.agents.sink import LoggingSink, ProgressSink, SafeSink, SinkMessage
from erpa.agents.tools.registry import ActionCatalog
from erpa.agents.types import (
    CapReached,
    Complete,
    ContextSection,
    Continue,
    ExecutionState,
    Failed,
    FailureKind,
    LoopState,
    ParsedCommand,
    StepResult,
    TaskResult,
)
from erpa.llm.conversation import ConversationMessage
from erpa.llm.session import Oracle, OracleSession
from erpa.prompts.registry import PromptRegistry, get_prompt_registry
from erpa.utils.logger import logger

PARSE_FAILURE_MESSAGE = "I'm sorry, I couldn't understand what you want me to do. Please try again."
CAP_REACHED_MESSAGE = (
    "I've reached the maximum number of steps. The task may not be fully complete. "
    "Please try a more specific request."
)
DEFAULT_COMPLETION = "All requested actions have been performed."


def final_message(step: StepResult) -> str:
    """User-facing text for a terminal step."""
    if isinstance(step, Complete):
        return f"Task completed! {step.summary or DEFAULT_COMPLETION}"
    if isinstance(step, CapReached):
        return CAP_REACHED_MESSAGE
    if isinstance(step, Failed) and step.kind == FailureKind.EXECUTION_FAILURE:
        return f"I encountered an error on step {step.iteration}: {step.reason}. Please try again."
    return PARSE_FAILURE_MESSAGE


def _summary_of(command: ParsedCommand) -> Optional[str]:
    summary = command.parameters.get("summary")
    if isinstance(summary, str) and summary.strip():
        return summary.strip()
    return None


class IterationController:
    """
    Runs the action cycle for one instruction.

    A controller instance may run several tasks one after another, but each
    run creates its own session and LoopState.
    """

    def __init__(
        self,
        oracle: Oracle,
        catalog: ActionCatalog,
        sink: Optional[ProgressSink] = None,
        config: Optional[AgentConfig] = None,
        parser: Optional[CommandParser] = None,
        executor: Optional[ActionExecutor] = None,
        prompts: Optional[PromptRegistry] = None,
    ) -> None:
        self.oracle = oracle
        self.catalog = catalog
        self.config = config or AgentConfig()
        self.prompts = prompts or get_prompt_registry()
        self.parser = parser or CommandParser(catalog, self.prompts)
        self.executor = executor or ActionExecutor(catalog)
        self.sink = sink if isinstance(sink, SafeSink) else SafeSink(sink or LoggingSink())

    def build_system_prompt(self, context: Sequence[ContextSection]) -> str:
        rendered = self.prompts.render(
            "agent_system",
            persona=self.config.persona_prompt,
            actions=self.catalog.to_prompt_context(),
            sections=[s.to_dict() for s in context],
        )
        return rendered["system"]

    async def run(self, instruction: str, context: Sequence[ContextSection] = ()) -> TaskResult:
        """
        Drive the action cycle until a terminal step.

        Raises only if the session cannot be created; everything after that
        ends in a TaskResult.
        """
        context = list(context)
        session = await self.oracle.create_session(self.build_system_prompt(context))
        state = LoopState(max_iterations=self.config.max_iterations, current_prompt=instruction)

        try:
            while True:
                try:
                    step = await self._step(session, state, context)
                except Exception as e:
                    logger.error(f"[Controller] Step {state.iteration} raised: {e}")
                    step = Failed(FailureKind.EXECUTION_FAILURE, str(e) or type(e).__name__, state.iteration)

                if isinstance(step, Continue):
                    state.current_prompt = step.next_prompt
                    if not state.cap_reached:
                        continue
                    step = CapReached(iterations=state.iteration)

                return await self._conclude(state, step)
        finally:
            session.destroy()

    async def _step(
        self,
        session: OracleSession,
        state: LoopState,
        context: List[ContextSection],
    ) -> StepResult:
        state.iteration += 1
        iteration = state.iteration
        state.state = ExecutionState.PARSING
        logger.info(f"[Controller] Iteration {iteration}/{state.max_iterations}")

        await self.sink.report_progress(iteration, "Analyzing task", "Determining next action...")
        command = await self.parser.parse(session, state.current_prompt, context)

        if command is None or not command.has_action or command.confidence < CONFIDENCE_THRESHOLD:
            if command is not None:
                logger.info(
                    f"[Controller] Rejected command {command.action_name!r} "
                    f"(confidence {command.confidence:.2f})"
                )
            return Failed(FailureKind.PARSE_FAILURE, "Could not parse command", iteration)

        state.executed.append(command)
        name = command.action_name

        if self.catalog.is_terminal(name):
            return Complete(summary=_summary_of(command))

        state.state = ExecutionState.EXECUTING
        await self.sink.report_progress(iteration, f"Executing {name}", "Running function...")
        outcome = await self.executor.execute(command)
        if not outcome.success:
            return Failed(FailureKind.EXECUTION_FAILURE, outcome.error or "Unknown error", iteration)

        state.state = ExecutionState.AWAITING_NEXT_ACTION
        result_json = json.dumps(outcome.payload.to_dict(), default=str)
        recorded = self.prompts.render("action_result", action_name=name, result=result_json)
        await session.append(ConversationMessage.assistant(recorded["user"]))

        follow_up = self.prompts.render("next_action", action_name=name)
        next_prompt = await session.prompt(follow_up["user"])

        await self.sink.report_message(SinkMessage(action_name=name, action_result=outcome.payload))
        return Continue(next_prompt=next_prompt)

    async def _conclude(self, state: LoopState, step: StepResult) -> TaskResult:
        iteration = state.iteration
        text = final_message(step)
        failure: Optional[FailureKind] = None

        if isinstance(step, Complete):
            state.state = ExecutionState.TASK_COMPLETE
            await self.sink.report_progress(
                iteration, "Task Complete", step.summary or "Task completed successfully"
            )
        elif isinstance(step, CapReached):
            state.state = ExecutionState.MAX_ITERATIONS_REACHED
            failure = FailureKind.CAP_REACHED
            await self.sink.report_progress(iteration, "Max Iterations Reached", "Stopping execution")
        elif isinstance(step, Failed) and step.kind == FailureKind.PARSE_FAILURE:
            state.state = ExecutionState.LOW_CONFIDENCE
            failure = step.kind
            await self.sink.report_progress(iteration, "Error", step.reason)
        else:
            state.state = ExecutionState.FAILED
            failure = FailureKind.EXECUTION_FAILURE
            await self.sink.report_progress(iteration, "Error", f"Failed: {step.reason}")

        await self.sink.report_message(SinkMessage(text=text))
        logger.info(f"[Controller] Finished in state {state.state.value} after {iteration} iteration(s)")

        return TaskResult(
            state=state.state,
            text=text,
            iterations=iteration,
            commands=list(state.executed),
            failure=failure,
        )
