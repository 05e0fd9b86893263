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
Streaming oracle replies.

A TextStream is a lazy, finite, non-restartable sequence of text fragments.
Nothing is requested from the provider until iteration starts; iterating a
second time raises StreamConsumedError. Consumers either iterate fragments
themselves or call ``collect()`` to concatenate until the stream completes.

Example:
    >>> stream = session.prompt_streaming("Describe the page")
    >>> async for fragment in stream:
    ...     print(fragment, end="", flush=True)
    >>> stream.text  # full reply once the stream has completed
"""

from __future__ import annotations

from typing import AsyncIterator, Callable, List, Optional

from erpa.exceptions import StreamConsumedError


class TextStream:
    """
    Single-use async iterator over reply fragments.

    Attributes:
        completed: True once the underlying source was exhausted
        text: Concatenated reply; only available after completion
    """

    def __init__(
        self,
        source: AsyncIterator[str],
        on_complete: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[BaseException], None]] = None,
    ) -> None:
        self._source = source
        self._on_complete = on_complete
        self._on_error = on_error
        self._started = False
        self._completed = False
        self._text: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def text(self) -> str:
        if not self._completed or self._text is None:
            raise StreamConsumedError("Stream has not completed yet")
        return self._text

    def __aiter__(self) -> AsyncIterator[str]:
        if self._started:
            raise StreamConsumedError("TextStream can only be iterated once")
        self._started = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        parts: List[str] = []
        try:
            async for fragment in self._source:
                parts.append(fragment)
                yield fragment
        except BaseException as e:
            if self._on_error is not None:
                self._on_error(e)
            raise

        self._text = "".join(parts)
        self._completed = True
        if self._on_complete is not None:
            self._on_complete(self._text)

    async def collect(self) -> str:
        """Consume the whole stream and return the concatenated text."""
        async for _ in self:
            pass
        return self.text
