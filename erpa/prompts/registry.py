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
Prompt registry for managing templates.

Templates are loaded from YAML files in a directory (by default the
``templates/`` directory shipped next to this module):

```
templates/
  ├── classifier.yaml
  ├── agent_system.yaml
  ├── command_parser.yaml
  ├── action_result.yaml
  └── next_action.yaml
```

Example:
    >>> registry = PromptRegistry()
    >>> rendered = registry.render("next_action", action_name="navigate")
    >>> rendered["user"]
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from erpa.exceptions import ConfigurationError
from erpa.prompts.template import PromptTemplate
from erpa.utils.logger import logger


class PromptRegistry:
    """
    Registry for managing and storing prompt templates.

    Attributes:
        templates: Mapping of "name:version" keys to PromptTemplate instances
        templates_dir: Directory containing template YAML files
    """

    def __init__(self, templates_dir: Optional[Path] = None) -> None:
        self.templates: Dict[str, PromptTemplate] = {}
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"

        if self.templates_dir.exists():
            self.load_templates()

    def register(self, template: PromptTemplate) -> None:
        """Register a prompt template, replacing any with the same name and version."""
        key = self._make_key(template.name, template.version)
        self.templates[key] = template
        logger.debug(f"Registered template: {key}")

    def get(self, name: str, version: Optional[str] = None) -> PromptTemplate:
        """
        Get a prompt template.

        Args:
            name: Template name
            version: Template version (latest if not specified)

        Raises:
            ConfigurationError: If template not found
        """
        if version:
            key = self._make_key(name, version)
            if key not in self.templates:
                raise ConfigurationError(f"Template not found: {key}")
            return self.templates[key]

        matching = [k for k in self.templates.keys() if k.startswith(f"{name}:")]
        if not matching:
            raise ConfigurationError(f"No templates found for: {name}")

        return self.templates[sorted(matching)[-1]]

    def render(self, name: str, version: Optional[str] = None, **variables: Any) -> Dict[str, str]:
        """Look up a template and render it."""
        template = self.get(name, version)
        try:
            return template.render(**variables)
        except ValueError as e:
            raise ConfigurationError(f"Failed to render prompt {name}: {e}") from e

    def list_templates(self) -> List[str]:
        return list(self.templates.keys())

    def load_templates(self) -> None:
        """Load templates from the templates directory."""
        for yaml_file in sorted(self.templates_dir.glob("*.yaml")):
            try:
                self._load_yaml_template(yaml_file)
            except Exception as e:
                logger.error(f"Failed to load template {yaml_file}: {e}")

        logger.debug(f"Loaded {len(self.templates)} templates from {self.templates_dir}")

    def _load_yaml_template(self, file_path: Path) -> None:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        self.register(PromptTemplate(**data))

    def _make_key(self, name: str, version: str) -> str:
        return f"{name}:{version}"


_default_registry: Optional[PromptRegistry] = None


def get_prompt_registry() -> PromptRegistry:
    """Get the shared registry of bundled templates."""
    global _default_registry
    if _default_registry is None:
        _default_registry = PromptRegistry()
    return _default_registry
