# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for loop types and sinks."""

import pytest

from erpa.agents.sink import LoggingSink, RecordingSink, SafeSink, SinkMessage
from erpa.agents.types import (
    CapReached,
    Complete,
    Continue,
    ExecutionState,
    Failed,
    FailureKind,
    LoopState,
    NavigationResult,
    ParsedCommand,
    SearchMatch,
    SearchResult,
    TaskResult,
)


class TestExecutionState:
    def test_terminal_states(self):
        terminal = {s for s in ExecutionState if s.is_terminal}

        assert terminal == {
            ExecutionState.ANSWERED,
            ExecutionState.TASK_COMPLETE,
            ExecutionState.LOW_CONFIDENCE,
            ExecutionState.FAILED,
            ExecutionState.MAX_ITERATIONS_REACHED,
        }


class TestParsedCommand:
    def test_clamps_confidence(self):
        assert ParsedCommand("navigate", {}, 3).confidence == 1.0
        assert ParsedCommand("navigate", {}, -1).confidence == 0.0

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_confidence_is_zero(self, value):
        assert ParsedCommand("navigate", {}, value).confidence == 0.0

    def test_to_dict(self):
        command = ParsedCommand("navigate", {"location": "#faq"}, 0.9)

        assert command.to_dict() == {"action": "navigate", "parameters": {"location": "#faq"}, "confidence": 0.9}


class TestStepResults:
    def test_only_continue_is_non_terminal(self):
        assert not Continue("next").terminal
        assert Complete().terminal
        assert Failed(FailureKind.PARSE_FAILURE, "x", 1).terminal
        assert CapReached(3).terminal

    def test_loop_state_cap(self):
        state = LoopState(max_iterations=2, current_prompt="go")

        assert not state.cap_reached
        state.iteration = 2
        assert state.cap_reached
        assert not state.terminal


class TestResults:
    def test_search_result_to_dict(self):
        result = SearchResult(query="tours", matches=[SearchMatch("Tours run daily.", "#faq", 1.0)])

        assert result.to_dict() == {
            "kind": "search",
            "query": "tours",
            "matches": [{"text": "Tours run daily.", "locator": "#faq", "score": 1.0}],
            "played": None,
        }

    def test_task_result_to_dict(self):
        result = TaskResult(
            state=ExecutionState.MAX_ITERATIONS_REACHED,
            text="stopped",
            iterations=10,
            commands=[ParsedCommand("summarize_page", {}, 0.9)],
            failure=FailureKind.CAP_REACHED,
        )

        assert result.to_dict() == {
            "state": "max_iterations_reached",
            "text": "stopped",
            "iterations": 10,
            "commands": [{"action": "summarize_page", "parameters": {}, "confidence": 0.9}],
            "failure": "cap_reached",
            "success": False,
        }


class TestSinks:
    @pytest.mark.asyncio
    async def test_recording_sink_keeps_order(self):
        sink = RecordingSink()
        payload = NavigationResult(location="#faq", found=True, title="FAQ")

        await sink.report_progress(1, "Executing navigate", "Running function...")
        await sink.report_message(SinkMessage(action_name="navigate", action_result=payload))
        await sink.report_message(SinkMessage(text="Task completed!"))

        assert [type(e).__name__ for e in sink.events] == ["ProgressEvent", "SinkMessage", "SinkMessage"]
        assert sink.texts == ["Task completed!"]
        assert sink.action_results[0].to_dict()["result"]["kind"] == "navigation"
        assert sink.progress[0].to_dict()["type"] == "progress"

    @pytest.mark.asyncio
    async def test_safe_sink_forwards(self):
        inner = RecordingSink()
        sink = SafeSink(inner)

        await sink.report_progress(2, "Error", "Could not parse command")
        await sink.report_message(SinkMessage(text="sorry"))

        assert inner.progress[0].iteration == 2
        assert inner.texts == ["sorry"]

    @pytest.mark.asyncio
    async def test_logging_sink(self):
        sink = LoggingSink()

        await sink.report_progress(1, "Analyzing task", "Determining next action...")
        await sink.report_message(SinkMessage(text="done"))
        await sink.report_message(
            SinkMessage(action_name="navigate", action_result=NavigationResult("#faq", True, "FAQ"))
        )
