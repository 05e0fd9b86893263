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
Configuration for Erpa task agents.

Supports YAML/JSON loading and environment variable overrides. The confidence
threshold of the command parser is a module constant and cannot be configured.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from erpa.exceptions import ConfigurationError

# Parsed commands below this confidence are never executed
CONFIDENCE_THRESHOLD = 0.8

MIN_ITERATIONS = 1
MAX_ITERATIONS = 20
DEFAULT_MAX_ITERATIONS = 10


@dataclass
class LLMSettings:
    """Oracle provider selection and sampling settings."""

    provider: str = "openai"
    model: Optional[str] = None
    base_url: Optional[str] = None
    # Low temperature keeps parser JSON and sentinel replies stable
    temperature: float = 0.2
    max_tokens: Optional[int] = None


@dataclass
class AgentConfig:
    """
    Configuration for a TaskAgent and the loop it runs.

    Attributes:
        max_iterations: Iteration cap of the action cycle, within [1, 20]
        oracle_timeout_seconds: Per-call oracle timeout; None disables it
        persona_prompt: Optional text placed ahead of the agent system policy
        llm: Oracle provider settings
    """

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    oracle_timeout_seconds: Optional[float] = 60.0
    persona_prompt: str = ""
    llm: LLMSettings = field(default_factory=LLMSettings)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: If a value is outside its allowed range
        """
        if isinstance(self.max_iterations, bool) or not isinstance(self.max_iterations, int):
            raise ConfigurationError(
                f"max_iterations must be an integer, got {self.max_iterations!r}"
            )
        if not MIN_ITERATIONS <= self.max_iterations <= MAX_ITERATIONS:
            raise ConfigurationError(
                f"max_iterations must be between {MIN_ITERATIONS} and {MAX_ITERATIONS}, "
                f"got {self.max_iterations}"
            )
        if self.oracle_timeout_seconds is not None and self.oracle_timeout_seconds <= 0:
            raise ConfigurationError(
                f"oracle_timeout_seconds must be positive or None, got {self.oracle_timeout_seconds}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentConfig":
        """Create config from dictionary. Unknown keys are rejected."""
        data = dict(data)
        llm_data = data.pop("llm", None) or {}
        try:
            llm = LLMSettings(**llm_data)
            return cls(llm=llm, **data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid agent configuration: {e}") from e

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "AgentConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            max_iterations: 5
            oracle_timeout_seconds: 30
            llm:
              provider: ollama
              model: qwen3:8b
        """
        path = Path(yaml_path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {yaml_path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, json_path: Union[str, Path]) -> "AgentConfig":
        """Load configuration from JSON file."""
        path = Path(json_path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {json_path}")

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "AgentConfig":
        """Load from a .yaml/.yml or .json file based on its suffix."""
        suffix = Path(path).suffix.lower()
        if suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        if suffix == ".json":
            return cls.from_json(path)
        raise ConfigurationError(f"Unsupported configuration format: {suffix or path}")

    def save_yaml(self, yaml_path: Union[str, Path]) -> None:
        with open(yaml_path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def apply_env_overrides(self) -> None:
        """
        Apply environment variable overrides.

        Environment variables follow pattern: ERPA_<KEY> or ERPA_LLM_<KEY>
        Examples:
            ERPA_MAX_ITERATIONS=5
            ERPA_ORACLE_TIMEOUT_SECONDS=none
            ERPA_LLM_MODEL=gpt-4o
        """
        prefix = "ERPA_"

        for env_var, value in os.environ.items():
            if not env_var.startswith(prefix):
                continue

            key = env_var[len(prefix):].lower()
            if key.startswith("llm_") and key[4:] in LLMSettings.__dataclass_fields__:
                field_name = key[4:]
                current = getattr(self.llm, field_name)
                if field_name == "max_tokens" and current is None:
                    current = 0
                setattr(self.llm, field_name, self._parse_env_value(value, current))
            elif key in ("max_iterations", "oracle_timeout_seconds", "persona_prompt"):
                current = getattr(self, key)
                if key == "oracle_timeout_seconds" and current is None:
                    current = 0.0
                setattr(self, key, self._parse_env_value(value, current))

        self.validate()

    @staticmethod
    def _parse_env_value(value: str, current_value: Any) -> Any:
        """Parse environment variable value based on current type."""
        if value.strip().lower() in ("none", "null", ""):
            return None
        try:
            if isinstance(current_value, bool):
                return value.lower() in ("true", "1", "yes", "on")
            elif isinstance(current_value, int):
                return int(value)
            elif isinstance(current_value, float):
                return float(value)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment override value {value!r}: {e}") from e
        return value
