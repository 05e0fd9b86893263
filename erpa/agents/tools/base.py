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
Base action class for the action catalog.

Actions are the only way the loop affects its target. Each action carries an
immutable ActionDefinition (name, description, parameters, examples) that is
rendered into oracle prompts and used to validate parameters before the
action runs.

Key Features:
- Parameter validation against the definition's JSON schema
- Typed ActionResult payloads
- ``execute_safe`` turns every failure into an ExecutionOutcome
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from erpa.agents.types import ActionResult, ErrorCode, ExecutionOutcome

if TYPE_CHECKING:
    from erpa.agents.tools.page import PageBridge


@dataclass(frozen=True)
class ActionParameter:
    """Definition of an action parameter for schema validation."""

    name: str
    type: str  # "string", "number", "integer", "boolean", "array", "object"
    description: str = ""
    required: bool = False
    default: Any = None
    enum: Optional[Tuple[Any, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "required": self.required,
        }
        if self.enum:
            data["enum"] = list(self.enum)
        if self.default is not None:
            data["default"] = self.default
        return data


_TYPE_MAP = {
    "string": str,
    "number": (int, float),
    "integer": int,
    "boolean": bool,
    "array": list,
    "object": dict,
    "null": type(None),
}


@dataclass(frozen=True)
class ActionDefinition:
    """Immutable description of one catalog action."""

    name: str
    description: str
    parameters: Tuple[ActionParameter, ...] = ()
    examples: Tuple[str, ...] = ()
    is_terminal: bool = False
    returns_description: str = ""

    def to_json_schema(self) -> Dict[str, Any]:
        """Generate JSON schema for action parameters."""
        properties: Dict[str, Any] = {}
        required: List[str] = []

        for param in self.parameters:
            prop: Dict[str, Any] = {"type": param.type}
            if param.description:
                prop["description"] = param.description
            if param.enum:
                prop["enum"] = list(param.enum)
            if param.default is not None:
                prop["default"] = param.default

            properties[param.name] = prop
            if param.required:
                required.append(param.name)

        return {
            "type": "object",
            "properties": properties,
            "required": required,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Prompt- and CLI-friendly representation."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": [p.to_dict() for p in self.parameters],
            "examples": list(self.examples),
            "is_terminal": self.is_terminal,
        }

    def validate_parameters(self, params: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
        """
        Validate parameters against the action's JSON schema.

        Returns:
            Tuple of (is_valid, error_message). error_message is None if valid.
        """
        schema = self.to_json_schema()
        properties = schema["properties"]

        for param_name in schema["required"]:
            if param_name not in params or params[param_name] is None:
                return False, f"Missing required parameter: {param_name}"

        for param_name, value in params.items():
            if param_name not in properties:
                continue  # Allow extra parameters
            if value is None:
                continue

            prop_schema = properties[param_name]
            expected_type = prop_schema.get("type")
            if not _validate_type(value, expected_type):
                return False, f"Parameter '{param_name}' has invalid type. Expected {expected_type}"

            if "enum" in prop_schema and value not in prop_schema["enum"]:
                return False, f"Parameter '{param_name}' must be one of: {prop_schema['enum']}"

        return True, None

    def with_defaults(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Return params with defaults filled in for absent optional parameters."""
        merged = dict(params)
        for param in self.parameters:
            if merged.get(param.name) is None and param.default is not None:
                merged[param.name] = param.default
        return merged


def _validate_type(value: Any, expected_type: Optional[str]) -> bool:
    """Validate a value against an expected JSON schema type."""
    if expected_type not in _TYPE_MAP:
        return True  # Unknown type, allow

    # bool is an int subclass but never a JSON number
    if expected_type in ("number", "integer") and isinstance(value, bool):
        return False

    return isinstance(value, _TYPE_MAP[expected_type])


class BaseAction(ABC):
    """
    Abstract base class for all catalog actions.

    Subclasses declare a class-level ``definition`` and implement
    ``execute``, which returns an ActionResult or raises.

    Example:
        >>> class HighlightAction(BaseAction):
        ...     definition = ActionDefinition(
        ...         name="highlight",
        ...         description="Highlight a section",
        ...         parameters=(ActionParameter("selector", "string", required=True),),
        ...     )
        ...
        ...     async def execute(self, selector: str, **kwargs) -> ActionResult:
        ...         return ContentResult(selector=selector, content="")
    """

    definition: ActionDefinition  # Must be defined by subclass

    def __init__(self, bridge: Optional["PageBridge"] = None) -> None:
        self.bridge = bridge

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def description(self) -> str:
        return self.definition.description

    async def execute_safe(self, **kwargs: Any) -> ExecutionOutcome:
        """
        Validate parameters, run the action and wrap the result.

        Never raises for action failures; they come back as error outcomes.
        """
        is_valid, error = self.definition.validate_parameters(kwargs)
        if not is_valid:
            return ExecutionOutcome.error_result(
                self.name, error or "Invalid parameters", ErrorCode.INVALID_PARAMS
            )

        start = time.perf_counter()
        try:
            payload = await self.execute(**self.definition.with_defaults(kwargs))
        except Exception as e:
            return ExecutionOutcome.error_result(
                self.name,
                str(e) or type(e).__name__,
                ErrorCode.EXECUTION_ERROR,
                execution_time_ms=(time.perf_counter() - start) * 1000,
            )

        return ExecutionOutcome.success_result(
            self.name, payload, execution_time_ms=(time.perf_counter() - start) * 1000
        )

    @abstractmethod
    async def execute(self, **kwargs: Any) -> ActionResult:
        """
        Run the action with validated parameters.

        Raises:
            ActionError (or any exception) when the action fails
        """
        raise NotImplementedError("Subclasses must implement execute()")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
