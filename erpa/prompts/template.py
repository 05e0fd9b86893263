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
Prompt template system with Jinja2 support.

Every piece of text Erpa sends to the oracle is rendered from a
PromptTemplate: the classifier instructions, the agent system policy, the
command parser contract and the follow-up turns of the action cycle. Keeping
them as data means the wording can change without touching control flow.

Example:
    >>> template = PromptTemplate(
    ...     name="next_action",
    ...     version="1.0.0",
    ...     user_template="Based on the result of {{ action_name }}, what next?",
    ... )
    >>> template.render(action_name="navigate")["user"]
    'Based on the result of navigate, what next?'
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from jinja2 import Environment, meta
from pydantic import BaseModel, Field, field_validator, model_validator


def _environment() -> Environment:
    # Block tags must not leave blank lines behind in rendered prompts
    return Environment(trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=False)


class PromptTemplate(BaseModel):
    """
    A versioned prompt template with Jinja2 support and validation.

    Attributes:
        name: Unique template name (e.g., "classifier", "command_parser")
        version: Semantic version (e.g., "1.0.0")
        description: Human-readable description of the template's purpose
        system_template: Optional Jinja2 template for the system prompt
        user_template: Optional Jinja2 template for the user prompt
        optional_variables: Optional variables with default values
        metadata: Additional metadata (tags, author, etc.)
        usage_count: Number of times this template has been rendered

    At least one of ``system_template`` and ``user_template`` must be set.
    """

    name: str = Field(..., description="Template name")
    version: str = Field(default="1.0.0", description="Template version")
    description: str = Field(default="", description="Template description")

    system_template: Optional[str] = Field(None, description="System prompt template")
    user_template: Optional[str] = Field(None, description="User prompt template")

    optional_variables: Dict[str, Any] = Field(
        default_factory=dict, description="Optional variables with defaults"
    )
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Additional metadata")

    usage_count: int = Field(default=0, description="Number of times used")

    @field_validator("user_template", "system_template")
    @classmethod
    def validate_template_syntax(cls, v: Optional[str]) -> Optional[str]:
        """Validate Jinja2 template syntax."""
        if v is None:
            return v

        try:
            _environment().parse(v)
            return v
        except Exception as e:
            raise ValueError(f"Invalid template syntax: {e}")

    @model_validator(mode="after")
    def validate_has_body(self) -> "PromptTemplate":
        if not self.system_template and not self.user_template:
            raise ValueError(f"Template {self.name} defines neither system nor user text")
        return self

    def get_required_variables(self) -> List[str]:
        """
        Extract required variables from templates.

        Returns:
            Sorted list of variable names that have no default
        """
        env = _environment()
        variables = set()

        for source in (self.system_template, self.user_template):
            if source:
                variables.update(meta.find_undeclared_variables(env.parse(source)))

        variables -= set(self.optional_variables.keys())
        return sorted(variables)

    def render(self, **variables: Any) -> Dict[str, str]:
        """
        Render the template with provided variables.

        Args:
            **variables: Variables to render the template with

        Returns:
            Dictionary with 'system' and/or 'user' prompts

        Raises:
            ValueError: If required variables are missing
        """
        missing = set(self.get_required_variables()) - set(variables.keys())
        if missing:
            raise ValueError(f"Missing required variables for {self.name}: {sorted(missing)}")

        all_vars = {**self.optional_variables, **variables}
        env = _environment()

        result: Dict[str, str] = {}
        if self.system_template:
            result["system"] = env.from_string(self.system_template).render(**all_vars).strip()
        if self.user_template:
            result["user"] = env.from_string(self.user_template).render(**all_vars).strip()

        self.usage_count += 1
        return result
