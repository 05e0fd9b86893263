# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Tests for TextStream."""

import pytest

from erpa.exceptions import StreamConsumedError
from erpa.llm.streaming import TextStream


async def fragments(*parts):
    for part in parts:
        yield part


class TestTextStream:
    @pytest.mark.asyncio
    async def test_iterates_in_order(self):
        stream = TextStream(fragments("a", "b", "c"))

        seen = [f async for f in stream]

        assert seen == ["a", "b", "c"]
        assert stream.completed
        assert stream.text == "abc"

    @pytest.mark.asyncio
    async def test_collect(self):
        assert await TextStream(fragments("Hello, ", "world")).collect() == "Hello, world"

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        stream = TextStream(fragments())

        assert await stream.collect() == ""
        assert stream.completed

    @pytest.mark.asyncio
    async def test_second_iteration_raises(self):
        stream = TextStream(fragments("a"))
        await stream.collect()

        with pytest.raises(StreamConsumedError):
            async for _ in stream:
                pass

    @pytest.mark.asyncio
    async def test_text_before_completion_raises(self):
        stream = TextStream(fragments("a", "b"))

        with pytest.raises(StreamConsumedError):
            stream.text

        iterator = stream.__aiter__()
        assert await iterator.__anext__() == "a"
        assert not stream.completed
        with pytest.raises(StreamConsumedError):
            stream.text

    @pytest.mark.asyncio
    async def test_lazy_until_iterated(self):
        started = []

        async def source():
            started.append(True)
            yield "x"

        stream = TextStream(source())
        assert started == []

        await stream.collect()
        assert started == [True]

    @pytest.mark.asyncio
    async def test_on_complete_called_once(self):
        completed = []
        stream = TextStream(fragments("x", "y"), on_complete=completed.append)

        await stream.collect()

        assert completed == ["xy"]

    @pytest.mark.asyncio
    async def test_source_error_propagates_without_completion(self):
        completed = []

        async def broken():
            yield "partial"
            raise RuntimeError("connection dropped")

        stream = TextStream(broken(), on_complete=completed.append)

        with pytest.raises(RuntimeError):
            await stream.collect()
        assert not stream.completed
        assert completed == []

    @pytest.mark.asyncio
    async def test_on_error_receives_source_error(self):
        errors = []

        async def broken():
            yield "partial"
            raise RuntimeError("connection dropped")

        stream = TextStream(broken(), on_error=errors.append)

        with pytest.raises(RuntimeError):
            await stream.collect()
        assert len(errors) == 1
        assert str(errors[0]) == "connection dropped"

    @pytest.mark.asyncio
    async def test_on_error_not_called_on_success(self):
        errors = []

        await TextStream(fragments("ok"), on_error=errors.append).collect()

        assert errors == []
