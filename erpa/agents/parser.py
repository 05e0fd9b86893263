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
Command parser.

Maps the current prompt onto exactly one catalog action. Parsing runs on a
clone of the agent session so the parser instructions never leak into the
main conversation; the clone is destroyed whatever happens.

Expected reply format:
    {
        "functionName": "navigate",
        "parameters": {"location": "#campus"},
        "confidence": 0.9
    }

Replies may be wrapped in markdown code fences. A reply naming an action
that is not in the catalog, or that is not a JSON object, yields None.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Optional, Sequence

from erpa.agents.tools.registry import ActionCatalog
from erpa.agents.types import ContextSection, ParsedCommand
from erpa.llm.conversation import ConversationMessage
from erpa.llm.session import OracleSession
from erpa.prompts.registry import PromptRegistry, get_prompt_registry
from erpa.utils.logger import logger

_CODE_BLOCK_RE = re.compile(r"```(?:[a-zA-Z]+)?\s*\n?(.*?)\n?```", re.DOTALL)


def extract_from_markdown(content: str) -> str:
    """Extract content from a markdown code block, if there is one."""
    match = _CODE_BLOCK_RE.search(content)
    if match:
        return match.group(1).strip()
    return content.strip()


def find_json_object(content: str) -> Optional[str]:
    """Return the text from the first "{" to the last "}", or None."""
    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end <= start:
        return None
    return content[start:end + 1]


def _coerce_confidence(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(confidence):
        return 0.0
    return confidence


class CommandParser:
    def __init__(self, catalog: ActionCatalog, prompts: Optional[PromptRegistry] = None) -> None:
        self.catalog = catalog
        self.prompts = prompts or get_prompt_registry()

    async def parse(
        self,
        session: OracleSession,
        current_prompt: str,
        context: Sequence[ContextSection] = (),
    ) -> Optional[ParsedCommand]:
        """
        Ask the oracle which action the current prompt calls for.

        Returns:
            ParsedCommand, or None when the oracle failed or the reply was unusable
        """
        parser_session: Optional[OracleSession] = None
        try:
            rendered = self.prompts.render(
                "command_parser",
                actions=self.catalog.to_prompt_context(),
                sections=[s.to_dict() for s in context],
                command=current_prompt,
            )
            parser_session = await session.clone()
            await parser_session.append(ConversationMessage.system(rendered["system"]))
            reply = await parser_session.prompt(rendered["user"])
        except Exception as e:
            logger.warning(f"[Parser] Oracle call failed: {e}")
            return None
        finally:
            if parser_session is not None:
                parser_session.destroy()

        return self.parse_reply(reply)

    def parse_reply(self, reply: str) -> Optional[ParsedCommand]:
        """Turn a raw oracle reply into a ParsedCommand."""
        json_str = find_json_object(extract_from_markdown(reply or ""))
        if json_str is None:
            logger.warning("[Parser] No JSON object in reply")
            return None

        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            logger.warning(f"[Parser] Invalid JSON in reply: {e}")
            return None

        if not isinstance(data, dict):
            return None

        name = data.get("functionName")
        if name is not None and not isinstance(name, str):
            logger.warning(f"[Parser] functionName is not a string: {name!r}")
            return None
        if name and name not in self.catalog:
            logger.warning(f"[Parser] Invalid function name: {name}")
            return None

        parameters = data.get("parameters") or {}
        if not isinstance(parameters, dict):
            logger.warning("[Parser] parameters is not an object")
            return None

        command = ParsedCommand(
            action_name=name or None,
            parameters=parameters,
            confidence=_coerce_confidence(data.get("confidence", 0)),
        )
        logger.debug("[Parser] Parsed command", extra={"command": command.to_dict()})
        return command
