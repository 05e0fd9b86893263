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
Page actions for the default catalog.

The actions talk to the page through a PageBridge, so the same catalog can
drive a real browser tab, a static document snapshot or a test double.

Actions:
- navigate: Scroll to a section by CSS selector
- read_out: Read a section or node aloud
- get_content: Return the text content of an element
- semantic_search: Find the page passages most relevant to a query
- summarize_page: Summarize the whole page
- task_complete: Terminal definition, never executed
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from erpa.agents.tools.base import ActionDefinition, ActionParameter, BaseAction
from erpa.agents.tools.registry import ActionCatalog
from erpa.agents.types import (
    ContentResult,
    NavigationResult,
    ReadOutResult,
    SearchMatch,
    SearchResult,
    SummaryResult,
)
from erpa.exceptions import ActionError

TASK_COMPLETE_NAME = "task_complete"


class PageBridge(ABC):
    """Access to the page a task operates on."""

    @abstractmethod
    async def scroll_to(self, locator: str) -> Optional[str]:
        """Scroll to the element; return its title, or None if it does not exist."""

    @abstractmethod
    async def read_out(self, target_type: str, target: str) -> str:
        """Speak a section (by title) or node (by locator); return the text read."""

    @abstractmethod
    async def get_content(self, locator: str) -> str:
        """Return the text content of the element."""

    @abstractmethod
    async def semantic_search(self, query: str, limit: int = 3) -> List[SearchMatch]:
        """Return the passages most relevant to the query, best first."""

    @abstractmethod
    async def summarize_page(self) -> str:
        """Return a summary of the whole page."""


class NavigateAction(BaseAction):
    definition = ActionDefinition(
        name="navigate",
        description="Navigate to a specific location on the page",
        parameters=(
            ActionParameter(
                name="location",
                type="string",
                description=(
                    "Location to navigate to. Look for the section name in the context and use "
                    "its css selector. e.g., '#campus', '.div:nth-of-type(2) > div'"
                ),
                required=True,
            ),
        ),
        examples=("i want to go to Campus section", "Go Allston section"),
    )

    async def execute(self, location: str, **kwargs: Any) -> NavigationResult:
        title = await self.bridge.scroll_to(location)
        if title is None:
            raise ActionError(f"Failed to navigate to section: {location}")
        return NavigationResult(location=location, found=True, title=title)


class ReadOutAction(BaseAction):
    definition = ActionDefinition(
        name="read_out",
        description="Read out a specific section or node",
        parameters=(
            ActionParameter(
                name="target_type",
                type="string",
                description="Type of target to read out. Should be 'SECTION' or 'NODE'",
                required=True,
                enum=("SECTION", "NODE"),
            ),
            ActionParameter(
                name="target",
                type="string",
                description=(
                    "Target to read out. For a section, the exact section name from the context. "
                    "For a node, the node id or selector."
                ),
                required=True,
            ),
        ),
        examples=("Read the introduction section", "Read this paragraph out loud"),
    )

    async def execute(self, target_type: str, target: str, **kwargs: Any) -> ReadOutResult:
        text = await self.bridge.read_out(target_type, target)
        return ReadOutResult(target_type=target_type, target=target, text=text)


class GetContentAction(BaseAction):
    definition = ActionDefinition(
        name="get_content",
        description="Get content from a specific element on the page",
        parameters=(
            ActionParameter(
                name="selector",
                type="string",
                description="CSS selector for the element to get content from",
                required=True,
            ),
        ),
        examples=("What does the FAQ section say?", "Get content from #history"),
    )

    async def execute(self, selector: str, **kwargs: Any) -> ContentResult:
        content = await self.bridge.get_content(selector)
        return ContentResult(selector=selector, content=content)


class SemanticSearchAction(BaseAction):
    definition = ActionDefinition(
        name="semantic_search",
        description="Perform semantic search on the current page",
        parameters=(
            ActionParameter(
                name="query",
                type="string",
                description="The search query to find relevant content on the page",
                required=True,
            ),
            ActionParameter(
                name="auto_play_first",
                type="boolean",
                description="Whether to automatically read out the first result",
                default=False,
            ),
        ),
        examples=("Find where the page mentions tuition", "Search for opening hours and read it"),
    )

    async def execute(self, query: str, auto_play_first: bool = False, **kwargs: Any) -> SearchResult:
        matches = await self.bridge.semantic_search(query)
        played = None
        if auto_play_first and matches:
            await self.bridge.read_out("NODE", matches[0].locator)
            played = matches[0].locator
        return SearchResult(query=query, matches=list(matches), played=played)


class SummarizePageAction(BaseAction):
    definition = ActionDefinition(
        name="summarize_page",
        description=(
            "Analyze and summarize the entire current page content. Extracts the meaningful "
            "content of every section and creates a page level summary."
        ),
        examples=("Summarize this page", "What is this page about?"),
    )

    async def execute(self, **kwargs: Any) -> SummaryResult:
        return SummaryResult(summary=await self.bridge.summarize_page())


TASK_COMPLETE = ActionDefinition(
    name=TASK_COMPLETE_NAME,
    description="Signal that the task is finished and report the final answer to the user",
    parameters=(
        ActionParameter(
            name="summary",
            type="string",
            description="Final answer or summary of what was done",
        ),
    ),
    examples=("The task is complete", "Done, here is the summary"),
    is_terminal=True,
)

PAGE_ACTIONS = (
    NavigateAction,
    ReadOutAction,
    GetContentAction,
    SemanticSearchAction,
    SummarizePageAction,
)


def create_default_catalog(bridge: PageBridge) -> ActionCatalog:
    """Build the catalog of page actions bound to ``bridge`` plus task_complete."""
    catalog = ActionCatalog()
    for action_class in PAGE_ACTIONS:
        catalog.register(action_class(bridge))
    catalog.register_definition(TASK_COMPLETE)
    return catalog
