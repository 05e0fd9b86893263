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
Page context repository and loader.

The repository remembers the detected sections of each target (browser tab)
together with the URL they were detected on. It is an explicit object with a
pluggable storage backend; nothing is kept at module level.

Storage failures are logged and never propagate: losing remembered context
only means the next task starts without section hints.
"""

from __future__ import annotations

import json
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from erpa.agents.types import ContextSection, TaskTarget
from erpa.exceptions import ContextNotFoundError
from erpa.utils.logger import logger

DEFAULT_MAX_CONTEXTS = 50


@dataclass
class PageContext:
    """Sections detected for one target at one URL."""

    target_id: str
    url: str
    sections: List[ContextSection] = field(default_factory=list)
    last_updated: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_id": self.target_id,
            "url": self.url,
            "sections": [s.to_dict() for s in self.sections],
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PageContext":
        return cls(
            target_id=str(data["target_id"]),
            url=str(data.get("url", "")),
            sections=[
                ContextSection(title=s["title"], locator=s["locator"])
                for s in data.get("sections", [])
            ],
            last_updated=float(data.get("last_updated", 0.0)),
        )


class ContextStorage(ABC):
    """Persistence backend for the context repository."""

    @abstractmethod
    def load(self) -> List[PageContext]:
        ...

    @abstractmethod
    def save(self, contexts: List[PageContext]) -> None:
        ...


class InMemoryContextStorage(ContextStorage):
    def __init__(self) -> None:
        self.saved: List[Dict[str, Any]] = []

    def load(self) -> List[PageContext]:
        return [PageContext.from_dict(d) for d in self.saved]

    def save(self, contexts: List[PageContext]) -> None:
        self.saved = [c.to_dict() for c in contexts]


class JsonFileContextStorage(ContextStorage):
    """Stores all contexts as one JSON array in a file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> List[PageContext]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return [PageContext.from_dict(d) for d in data]

    def save(self, contexts: List[PageContext]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump([c.to_dict() for c in contexts], f, indent=2)


class ContextRepository:
    """
    Per-target page context, bounded to ``max_contexts`` entries.

    When the bound is exceeded the least recently updated contexts are
    evicted.
    """

    def __init__(
        self,
        storage: Optional[ContextStorage] = None,
        max_contexts: int = DEFAULT_MAX_CONTEXTS,
    ) -> None:
        self.storage = storage or InMemoryContextStorage()
        self.max_contexts = max_contexts
        self._contexts: Dict[str, PageContext] = {}
        self._lock = threading.RLock()
        self._load()

    def _load(self) -> None:
        try:
            stored = self.storage.load()
        except Exception as e:
            logger.warning(f"[Context] Failed to load from storage: {e}")
            return
        for context in sorted(stored, key=lambda c: c.last_updated):
            self._contexts[context.target_id] = context
        if self._evict_overflow():
            self._save()

    def _evict_overflow(self) -> int:
        overflow = len(self._contexts) - self.max_contexts
        if overflow <= 0:
            return 0
        oldest = sorted(self._contexts.values(), key=lambda c: c.last_updated)[:overflow]
        for stale in oldest:
            del self._contexts[stale.target_id]
        logger.debug(f"[Context] Evicted {overflow} stale context(s)")
        return overflow

    def _save(self) -> None:
        try:
            self.storage.save(list(self._contexts.values()))
        except Exception as e:
            logger.warning(f"[Context] Failed to save to storage: {e}")

    def get_context(self, target_id: str) -> Optional[PageContext]:
        with self._lock:
            return self._contexts.get(target_id)

    def set_context(self, target_id: str, url: str, sections: List[ContextSection]) -> PageContext:
        context = PageContext(target_id=target_id, url=url, sections=list(sections))
        with self._lock:
            # Re-insert so dict order follows recency on timestamp ties
            self._contexts.pop(target_id, None)
            self._contexts[target_id] = context

            self._evict_overflow()
            self._save()
        return context

    def remove_context(self, target_id: str) -> None:
        with self._lock:
            self._contexts.pop(target_id, None)
            self._save()

    def clear_all(self) -> None:
        with self._lock:
            self._contexts.clear()
            self._save()

    def is_context_valid(self, target_id: str, url: str) -> bool:
        """A context is valid while the target is still on the URL it was detected on."""
        context = self.get_context(target_id)
        return context is not None and context.url == url

    def __len__(self) -> int:
        with self._lock:
            return len(self._contexts)


class ContextLoader(ABC):
    """Supplies the section list for a task target."""

    @abstractmethod
    async def load_context(self, target: TaskTarget) -> List[ContextSection]:
        """
        Raises:
            ContextNotFoundError: If no usable context exists for the target
        """


class RepositoryContextLoader(ContextLoader):
    """Loads context remembered in a ContextRepository."""

    def __init__(self, repository: ContextRepository) -> None:
        self.repository = repository

    async def load_context(self, target: TaskTarget) -> List[ContextSection]:
        if not self.repository.is_context_valid(target.target_id, target.url):
            raise ContextNotFoundError(
                f"No valid context for target {target.target_id}",
                details={"target_id": target.target_id, "url": target.url},
            )
        context = self.repository.get_context(target.target_id)
        return list(context.sections) if context else []
