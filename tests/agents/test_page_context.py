# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Tests for the page context repository and loader."""

import json

import pytest

from erpa.agents.context import (
    ContextRepository,
    ContextStorage,
    InMemoryContextStorage,
    JsonFileContextStorage,
    PageContext,
    RepositoryContextLoader,
)
from erpa.agents.types import ContextSection, TaskTarget
from erpa.exceptions import ContextNotFoundError

SECTIONS = [ContextSection("Campus", "#campus"), ContextSection("FAQ", "#faq")]


class FailingStorage(ContextStorage):
    def load(self):
        raise OSError("disk unavailable")

    def save(self, contexts):
        raise OSError("disk unavailable")


class TestContextRepository:
    def test_set_and_get(self):
        repository = ContextRepository()

        repository.set_context("tab-1", "https://example.edu/about", SECTIONS)

        context = repository.get_context("tab-1")
        assert context.url == "https://example.edu/about"
        assert context.sections == SECTIONS
        assert len(repository) == 1

    def test_missing_target(self):
        assert ContextRepository().get_context("tab-9") is None

    def test_validity_follows_url(self):
        repository = ContextRepository()
        repository.set_context("tab-1", "https://example.edu/about", SECTIONS)

        assert repository.is_context_valid("tab-1", "https://example.edu/about")
        assert not repository.is_context_valid("tab-1", "https://example.edu/apply")
        assert not repository.is_context_valid("tab-2", "https://example.edu/about")

    def test_set_replaces_previous(self):
        repository = ContextRepository()
        repository.set_context("tab-1", "https://a.example", SECTIONS)
        repository.set_context("tab-1", "https://b.example", [])

        assert repository.get_context("tab-1").url == "https://b.example"
        assert len(repository) == 1

    def test_evicts_oldest(self):
        repository = ContextRepository(max_contexts=2)
        repository.set_context("tab-1", "https://a.example", [])
        repository.set_context("tab-2", "https://b.example", [])
        repository.set_context("tab-1", "https://a.example/2", [])
        repository.set_context("tab-3", "https://c.example", [])

        assert len(repository) == 2
        assert repository.get_context("tab-2") is None
        assert repository.get_context("tab-1") is not None
        assert repository.get_context("tab-3") is not None

    def test_remove_and_clear(self):
        repository = ContextRepository()
        repository.set_context("tab-1", "https://a.example", [])
        repository.set_context("tab-2", "https://b.example", [])

        repository.remove_context("tab-1")
        assert repository.get_context("tab-1") is None

        repository.clear_all()
        assert len(repository) == 0

    def test_persists_to_storage(self):
        storage = InMemoryContextStorage()
        ContextRepository(storage).set_context("tab-1", "https://a.example", SECTIONS)

        reloaded = ContextRepository(storage)

        assert reloaded.get_context("tab-1").sections == SECTIONS

    def test_load_applies_bound(self):
        storage = InMemoryContextStorage()
        storage.save([
            PageContext(f"tab-{i}", f"https://{i}.example", last_updated=float(i))
            for i in range(5)
        ])

        repository = ContextRepository(storage, max_contexts=3)

        assert len(repository) == 3
        assert repository.get_context("tab-0") is None
        assert repository.get_context("tab-1") is None
        assert repository.get_context("tab-4") is not None
        assert sorted(d["target_id"] for d in storage.saved) == ["tab-2", "tab-3", "tab-4"]

    def test_storage_failures_are_not_raised(self):
        repository = ContextRepository(FailingStorage())

        repository.set_context("tab-1", "https://a.example", SECTIONS)

        assert repository.get_context("tab-1") is not None


class TestJsonFileContextStorage:
    def test_round_trip_through_file(self, tmp_path):
        path = tmp_path / "contexts" / "tabs.json"
        ContextRepository(JsonFileContextStorage(path)).set_context("tab-1", "https://a.example", SECTIONS)

        data = json.loads(path.read_text())
        assert data[0]["target_id"] == "tab-1"
        assert data[0]["sections"][1] == {"title": "FAQ", "locator": "#faq"}

        reloaded = ContextRepository(JsonFileContextStorage(path))
        assert reloaded.is_context_valid("tab-1", "https://a.example")

    def test_missing_file_is_empty(self, tmp_path):
        assert JsonFileContextStorage(tmp_path / "none.json").load() == []

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "tabs.json"
        path.write_text("{not json")

        assert len(ContextRepository(JsonFileContextStorage(path))) == 0


class TestPageContext:
    def test_from_dict_defaults(self):
        context = PageContext.from_dict({"target_id": 7})

        assert context.target_id == "7"
        assert context.url == ""
        assert context.sections == []


class TestRepositoryContextLoader:
    @pytest.mark.asyncio
    async def test_loads_sections(self):
        repository = ContextRepository()
        repository.set_context("tab-1", "https://a.example", SECTIONS)

        sections = await RepositoryContextLoader(repository).load_context(TaskTarget("tab-1", "https://a.example"))

        assert sections == SECTIONS

    @pytest.mark.asyncio
    async def test_stale_url_raises(self):
        repository = ContextRepository()
        repository.set_context("tab-1", "https://a.example", SECTIONS)

        with pytest.raises(ContextNotFoundError) as exc_info:
            await RepositoryContextLoader(repository).load_context(TaskTarget("tab-1", "https://b.example"))

        assert exc_info.value.details == {"target_id": "tab-1", "url": "https://b.example"}
