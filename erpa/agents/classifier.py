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
Classifier gate.

One stateless oracle call decides whether an instruction can be answered
directly or needs the action cycle. The oracle answers with the sentinel
token when actions are needed. Any failure here falls back to the action
cycle, so a flaky classifier can only cost an extra loop, never an answer.
"""

from __future__ import annotations

from typing import Optional

from erpa.agents.tools.registry import ActionCatalog
from erpa.agents.types import Classification, DirectAnswer, NeedsActions
from erpa.llm.session import Oracle
from erpa.prompts.registry import PromptRegistry, get_prompt_registry
from erpa.utils.logger import logger

SENTINEL = "<blank>"


class ClassifierGate:
    def __init__(
        self,
        oracle: Oracle,
        catalog: ActionCatalog,
        prompts: Optional[PromptRegistry] = None,
    ) -> None:
        self.oracle = oracle
        self.catalog = catalog
        self.prompts = prompts or get_prompt_registry()

    async def classify(self, instruction: str) -> Classification:
        """Return DirectAnswer with the oracle's reply, or NeedsActions."""
        try:
            rendered = self.prompts.render(
                "classifier",
                actions=self.catalog.to_prompt_context(),
                sentinel=SENTINEL,
                instruction=instruction,
            )
            answer = await self.oracle.complete(rendered["user"], system_prompt=rendered["system"])
        except Exception as e:
            logger.warning(f"[Classifier] Classification failed, continuing to actions: {e}")
            return NeedsActions()

        normalized = (answer or "").strip()
        logger.debug(
            "[Classifier] Reply classified",
            extra={"answer_length": len(normalized), "sentinel": normalized == SENTINEL},
        )
        if normalized and normalized != SENTINEL:
            return DirectAnswer(text=answer)
        return NeedsActions()
