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
Core types and data structures for the task execution loop.

Key Components:
- Task / TaskTarget / ContextSection: what the loop works on
- ParsedCommand: the single action chosen by the parser each iteration
- ActionResult variants: typed payloads returned by catalog actions
- ExecutionOutcome: executor verdict for one command
- StepResult variants: outcome of one controller pass
- LoopState: mutable state owned by one controller run
- TaskResult: value handed back to callers
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple


class ExecutionState(str, Enum):
    """States of the task execution lifecycle."""

    IDLE = "idle"                                      # Nothing submitted yet
    CLASSIFYING = "classifying"                        # Asking whether actions are needed
    ANSWERED = "answered"                              # Direct answer, no actions
    NEEDS_ACTIONS = "needs_actions"                    # Entering the action cycle
    PARSING = "parsing"                                # Choosing the next action
    EXECUTING = "executing"                            # Running an action
    AWAITING_NEXT_ACTION = "awaiting_next_action"      # Asking the oracle what next
    TASK_COMPLETE = "task_complete"                    # task_complete accepted
    LOW_CONFIDENCE = "low_confidence"                  # Parse failed or was unsure
    FAILED = "failed"                                  # Action or internal failure
    MAX_ITERATIONS_REACHED = "max_iterations_reached"  # Iteration cap hit

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({
    ExecutionState.ANSWERED,
    ExecutionState.TASK_COMPLETE,
    ExecutionState.LOW_CONFIDENCE,
    ExecutionState.FAILED,
    ExecutionState.MAX_ITERATIONS_REACHED,
})


class FailureKind(str, Enum):
    """Why a task ended without completing."""

    PARSE_FAILURE = "parse_failure"
    EXECUTION_FAILURE = "execution_failure"
    CAP_REACHED = "cap_reached"
    INTERNAL_ERROR = "internal_error"


class ErrorCode(str, Enum):
    """Machine-readable executor error codes."""

    UNKNOWN_ACTION = "unknown_action"
    INVALID_PARAMS = "invalid_params"
    EXECUTION_ERROR = "execution_error"


@dataclass(frozen=True)
class ContextSection:
    """One addressable section of the target page."""

    title: str
    locator: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "locator": self.locator}


@dataclass(frozen=True)
class TaskTarget:
    """The thing a task operates on (a browser tab and its current URL)."""

    target_id: str
    url: str = ""


@dataclass(frozen=True)
class Task:
    """A submitted instruction together with its target and page context."""

    instruction: str
    target: TaskTarget
    context: Tuple[ContextSection, ...] = ()


@dataclass
class ParsedCommand:
    """
    The action the parser chose for the current prompt.

    ``action_name`` is None when the oracle reported that nothing matched.
    Confidence is clamped to [0, 1]; NaN and infinities count as 0.
    """

    action_name: Optional[str]
    parameters: Dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0

    def __post_init__(self):
        value = float(self.confidence)
        if not math.isfinite(value):
            value = 0.0
        self.confidence = max(0.0, min(1.0, value))

    @property
    def has_action(self) -> bool:
        return bool(self.action_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action_name,
            "parameters": dict(self.parameters),
            "confidence": self.confidence,
        }


# =============================================================================
# Action results
# =============================================================================


@dataclass
class ActionResult:
    """Base of the typed action payloads; ``kind`` tags the variant."""

    kind: ClassVar[str] = "result"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind
        return data


@dataclass
class NavigationResult(ActionResult):
    kind: ClassVar[str] = "navigation"

    location: str
    found: bool
    title: Optional[str] = None


@dataclass
class ReadOutResult(ActionResult):
    kind: ClassVar[str] = "read_out"

    target_type: str
    target: str
    text: str


@dataclass
class ContentResult(ActionResult):
    kind: ClassVar[str] = "content"

    selector: str
    content: str


@dataclass
class SearchMatch:
    text: str
    locator: str
    score: float


@dataclass
class SearchResult(ActionResult):
    kind: ClassVar[str] = "search"

    query: str
    matches: List[SearchMatch] = field(default_factory=list)
    played: Optional[str] = None


@dataclass
class SummaryResult(ActionResult):
    kind: ClassVar[str] = "summary"

    summary: str


@dataclass
class ExecutionOutcome:
    """
    Executor verdict for one command.

    Exactly one of ``payload`` (on success) or ``error`` (on failure) is set.
    """

    success: bool
    action_name: str
    payload: Optional[ActionResult] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    execution_time_ms: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def success_result(cls, action_name: str, payload: ActionResult, **kwargs: Any) -> ExecutionOutcome:
        return cls(success=True, action_name=action_name, payload=payload, **kwargs)

    @classmethod
    def error_result(
        cls,
        action_name: str,
        error: str,
        error_code: ErrorCode = ErrorCode.EXECUTION_ERROR,
        **kwargs: Any,
    ) -> ExecutionOutcome:
        return cls(success=False, action_name=action_name, error=error, error_code=error_code, **kwargs)


# =============================================================================
# Controller step results
# =============================================================================


class StepResult:
    """Outcome of one controller pass. Exactly one variant per pass."""

    terminal: ClassVar[bool] = True


@dataclass(frozen=True)
class Continue(StepResult):
    terminal: ClassVar[bool] = False

    next_prompt: str


@dataclass(frozen=True)
class Complete(StepResult):
    summary: Optional[str] = None


@dataclass(frozen=True)
class Failed(StepResult):
    kind: FailureKind
    reason: str
    iteration: int


@dataclass(frozen=True)
class CapReached(StepResult):
    iterations: int


@dataclass
class LoopState:
    """Mutable state of one controller run."""

    max_iterations: int
    current_prompt: str
    iteration: int = 0
    state: ExecutionState = ExecutionState.NEEDS_ACTIONS
    executed: List[ParsedCommand] = field(default_factory=list)

    @property
    def terminal(self) -> bool:
        return self.state.is_terminal

    @property
    def cap_reached(self) -> bool:
        return self.iteration >= self.max_iterations


# =============================================================================
# Classification and task results
# =============================================================================


class Classification:
    """Verdict of the classifier gate."""


@dataclass(frozen=True)
class DirectAnswer(Classification):
    text: str


@dataclass(frozen=True)
class NeedsActions(Classification):
    pass


@dataclass
class TaskResult:
    """Final result of a submitted task."""

    state: ExecutionState
    text: str
    iterations: int = 0
    commands: List[ParsedCommand] = field(default_factory=list)
    failure: Optional[FailureKind] = None

    @property
    def success(self) -> bool:
        return self.state in (ExecutionState.ANSWERED, ExecutionState.TASK_COMPLETE)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "text": self.text,
            "iterations": self.iterations,
            "commands": [c.to_dict() for c in self.commands],
            "failure": self.failure.value if self.failure else None,
            "success": self.success,
        }
