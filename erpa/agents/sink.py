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
Progress and result sinks.

The loop reports two kinds of events: progress markers
``(iteration, action, status)`` and user-facing messages carrying either text
or an action result. Sinks are outward-facing collaborators; SafeSink makes
sure a broken sink can never break the loop.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from erpa.agents.types import ActionResult
from erpa.utils.logger import logger


@dataclass
class ProgressEvent:
    """A progress marker emitted once or more per iteration.

    Attributes:
        iteration: 1-based iteration the event belongs to.
        action: Short label, e.g. "Analyzing task" or "Executing navigate".
        status: Human-readable detail.
        timestamp: Unix timestamp of the event.
    """

    iteration: int
    action: str
    status: str
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "progress",
            "iteration": self.iteration,
            "action": self.action,
            "status": self.status,
            "timestamp": self.timestamp,
        }


@dataclass
class SinkMessage:
    """A user-facing message: final text, or the result of an executed action."""

    text: Optional[str] = None
    action_name: Optional[str] = None
    action_result: Optional[ActionResult] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def is_action_result(self) -> bool:
        return self.action_result is not None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"type": "message", "timestamp": self.timestamp}
        if self.text is not None:
            d["text"] = self.text
        if self.action_name is not None:
            d["action"] = self.action_name
        if self.action_result is not None:
            d["result"] = self.action_result.to_dict()
        return d


class ProgressSink(ABC):
    """Receives progress markers and messages from the loop."""

    @abstractmethod
    async def report_progress(self, iteration: int, action: str, status: str) -> None:
        ...

    @abstractmethod
    async def report_message(self, message: SinkMessage) -> None:
        ...


class SafeSink(ProgressSink):
    """Wraps a sink so its failures are logged instead of raised."""

    def __init__(self, inner: ProgressSink) -> None:
        self.inner = inner

    async def report_progress(self, iteration: int, action: str, status: str) -> None:
        try:
            await self.inner.report_progress(iteration, action, status)
        except Exception as e:
            logger.warning(f"[Sink] Failed to report progress: {e}")

    async def report_message(self, message: SinkMessage) -> None:
        try:
            await self.inner.report_message(message)
        except Exception as e:
            logger.warning(f"[Sink] Failed to report message: {e}")


class LoggingSink(ProgressSink):
    """Sends everything to the package logger."""

    async def report_progress(self, iteration: int, action: str, status: str) -> None:
        logger.info(f"[Progress] Step {iteration}: {action} - {status}")

    async def report_message(self, message: SinkMessage) -> None:
        if message.is_action_result:
            logger.info(f"[Result] {message.action_name}", extra={"result": message.action_result.to_dict()})
        else:
            logger.info(f"[Message] {message.text}")


class RecordingSink(ProgressSink):
    """Keeps every event in memory, in order."""

    def __init__(self) -> None:
        self.progress: List[ProgressEvent] = []
        self.messages: List[SinkMessage] = []
        self.events: List[Any] = []

    async def report_progress(self, iteration: int, action: str, status: str) -> None:
        event = ProgressEvent(iteration=iteration, action=action, status=status)
        self.progress.append(event)
        self.events.append(event)

    async def report_message(self, message: SinkMessage) -> None:
        self.messages.append(message)
        self.events.append(message)

    @property
    def texts(self) -> List[str]:
        """Text messages only, action results excluded."""
        return [m.text for m in self.messages if m.text is not None]

    @property
    def action_results(self) -> List[SinkMessage]:
        return [m for m in self.messages if m.is_action_result]
