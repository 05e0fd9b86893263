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
In-memory page built from a JSON snapshot.

Snapshot format::

    {
      "url": "https://example.edu/about",
      "sections": [
        {"title": "Campus", "locator": "#campus", "content": "..."}
      ]
    }

Search ranks sentences by keyword overlap with the query.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from erpa.agents.tools.page import PageBridge
from erpa.agents.types import ContextSection, SearchMatch
from erpa.exceptions import ActionError, ConfigurationError

_WORD_RE = re.compile(r"[a-z0-9]+")
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")
_DOCUMENT_LOCATORS = ("body", "html", "main", ":root")


def _words(text: str) -> set:
    return set(_WORD_RE.findall(text.lower()))


@dataclass
class DocumentSection:
    title: str
    locator: str
    content: str = ""


class StaticDocumentBridge(PageBridge):
    """
    PageBridge over a fixed list of sections.

    Attributes:
        url: URL of the snapshot
        sections: Sections in document order
        position: Locator of the section last navigated to
        spoken: Texts passed to read_out, in order
    """

    def __init__(self, url: str, sections: List[DocumentSection]) -> None:
        self.url = url
        self.sections = list(sections)
        self.position: Optional[str] = None
        self.spoken: List[str] = []

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StaticDocumentBridge":
        try:
            sections = [
                DocumentSection(
                    title=str(item["title"]),
                    locator=str(item["locator"]),
                    content=str(item.get("content", "")),
                )
                for item in data.get("sections", [])
            ]
        except (KeyError, TypeError, AttributeError) as e:
            raise ConfigurationError(f"Invalid page snapshot: {e}") from e
        return cls(url=str(data.get("url", "")), sections=sections)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "StaticDocumentBridge":
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Page snapshot not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Page snapshot is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError("Page snapshot must be a JSON object")
        return cls.from_dict(data)

    def context_sections(self) -> List[ContextSection]:
        """Sections as context for the loader."""
        return [ContextSection(title=s.title, locator=s.locator) for s in self.sections]

    def _find(self, locator: str) -> Optional[DocumentSection]:
        wanted = locator.strip()
        for section in self.sections:
            if section.locator == wanted:
                return section
        lowered = wanted.lower()
        for section in self.sections:
            if section.title.lower() == lowered:
                return section
        return None

    def _full_text(self) -> str:
        return "\n\n".join(f"{s.title}\n{s.content}".strip() for s in self.sections)

    async def scroll_to(self, locator: str) -> Optional[str]:
        section = self._find(locator)
        if section is None:
            return None
        self.position = section.locator
        return section.title

    async def read_out(self, target_type: str, target: str) -> str:
        section = self._find(target)
        if section is None:
            raise ActionError(f"Failed to read out {target_type.lower()}: {target} not found")
        self.position = section.locator
        self.spoken.append(section.content)
        return section.content

    async def get_content(self, locator: str) -> str:
        if locator.strip().lower() in _DOCUMENT_LOCATORS:
            return self._full_text()
        section = self._find(locator)
        if section is None:
            raise ActionError(f"No element matches selector: {locator}")
        return section.content

    async def semantic_search(self, query: str, limit: int = 3) -> List[SearchMatch]:
        query_words = _words(query)
        if not query_words:
            return []

        matches: List[SearchMatch] = []
        for section in self.sections:
            for sentence in _SENTENCE_RE.split(section.content):
                sentence = sentence.strip()
                if not sentence:
                    continue
                overlap = len(query_words & _words(sentence))
                if overlap:
                    matches.append(
                        SearchMatch(
                            text=sentence,
                            locator=section.locator,
                            score=round(overlap / len(query_words), 3),
                        )
                    )

        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[:limit]

    async def summarize_page(self) -> str:
        if not self.sections:
            return "The page has no content."
        lines = []
        for section in self.sections:
            content = section.content.strip()
            first = _SENTENCE_RE.split(content, maxsplit=1)[0] if content else ""
            lines.append(f"{section.title}: {first}" if first else section.title)
        return "\n".join(lines)
