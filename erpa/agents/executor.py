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

"""Action executor: runs one parsed command against the catalog."""

from __future__ import annotations

from erpa.agents.tools.registry import ActionCatalog
from erpa.agents.types import ErrorCode, ExecutionOutcome, ParsedCommand
from erpa.utils.logger import logger


class ActionExecutor:
    """
    Dispatches parsed commands to catalog actions.

    ``execute`` never raises: unknown actions, invalid parameters and
    exceptions thrown by an action all come back as failed outcomes.
    """

    def __init__(self, catalog: ActionCatalog) -> None:
        self.catalog = catalog

    async def execute(self, command: ParsedCommand) -> ExecutionOutcome:
        name = command.action_name or ""
        action = self.catalog.get(name)
        if action is None:
            logger.warning(f"[Executor] Unknown action: {name!r}")
            return ExecutionOutcome.error_result(
                name, f"Unknown function: {name}", ErrorCode.UNKNOWN_ACTION
            )

        logger.info(f"[Executor] Executing {name}", extra={"parameters": command.parameters})
        try:
            outcome = await action.execute_safe(**command.parameters)
        except Exception as e:
            outcome = ExecutionOutcome.error_result(name, str(e) or type(e).__name__)

        if outcome.success:
            logger.debug(f"[Executor] {name} succeeded in {outcome.execution_time_ms:.1f}ms")
        else:
            logger.warning(f"[Executor] {name} failed ({outcome.error_code.value}): {outcome.error}")
        return outcome
