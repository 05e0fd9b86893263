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
Action catalog.

The catalog is built once at startup and is read-only afterwards, so one
instance can be shared by any number of concurrently running task agents.
It holds executable actions plus terminal definitions (``task_complete``)
that the parser may choose but the executor never runs.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Iterator, List, Optional

from erpa.agents.tools.base import ActionDefinition, BaseAction
from erpa.utils.logger import logger


class ActionCatalog:
    """
    Ordered registry of actions and terminal definitions.

    Example:
        >>> catalog = ActionCatalog()
        >>> catalog.register(NavigateAction(bridge))
        >>> catalog.register_definition(TASK_COMPLETE)
        >>> catalog.names()
        ['navigate', 'task_complete']
    """

    def __init__(self) -> None:
        self._definitions: Dict[str, ActionDefinition] = {}
        self._actions: Dict[str, BaseAction] = {}
        self._lock = threading.RLock()

    def register(self, action: BaseAction) -> None:
        """
        Register an executable action.

        Raises:
            ValueError: If the action has no definition or its name is taken
        """
        definition = getattr(action, "definition", None)
        if not isinstance(definition, ActionDefinition):
            raise ValueError(
                f"Action {type(action).__name__} has no definition attribute. "
                "Define a 'definition' class attribute with an ActionDefinition."
            )
        with self._lock:
            self._add_definition(definition)
            self._actions[definition.name] = action

    def register_definition(self, definition: ActionDefinition) -> None:
        """Register a definition the executor never runs (e.g. task_complete)."""
        with self._lock:
            self._add_definition(definition)

    def _add_definition(self, definition: ActionDefinition) -> None:
        if definition.name in self._definitions:
            raise ValueError(
                f"Action '{definition.name}' is already registered. "
                "Use a unique name."
            )
        self._definitions[definition.name] = definition
        logger.debug(f"[Catalog] Registered action: {definition.name}")

    def get(self, name: str) -> Optional[BaseAction]:
        """Get an executable action by name."""
        with self._lock:
            return self._actions.get(name)

    def get_definition(self, name: str) -> Optional[ActionDefinition]:
        with self._lock:
            return self._definitions.get(name)

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._definitions

    def is_terminal(self, name: str) -> bool:
        definition = self.get_definition(name)
        return bool(definition and definition.is_terminal)

    def names(self) -> List[str]:
        with self._lock:
            return list(self._definitions.keys())

    def definitions(self) -> List[ActionDefinition]:
        with self._lock:
            return list(self._definitions.values())

    def to_prompt_context(self) -> List[Dict[str, Any]]:
        """Definitions as plain dicts, in registration order, for prompt rendering."""
        return [d.to_dict() for d in self.definitions()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __iter__(self) -> Iterator[ActionDefinition]:
        return iter(self.definitions())

    def __len__(self) -> int:
        with self._lock:
            return len(self._definitions)

    def __repr__(self) -> str:
        return f"ActionCatalog(actions={self.names()!r})"
