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

"""CLI output formatting utilities and the console progress sink."""

import json
import sys
from typing import Any, Dict, List, Optional

from erpa.agents.sink import ProgressSink, SinkMessage


class CLIOutput:
    """
    Unified CLI output formatting for Erpa commands.

    Colours are only used when stdout is a TTY.
    """

    # ANSI color codes
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"

    def __init__(self, use_colors: bool = True):
        self.use_colors = use_colors and sys.stdout.isatty()

    def _color(self, text: str, color: str) -> str:
        """Apply color to text if colors are enabled."""
        if self.use_colors:
            return f"{color}{text}{self.RESET}"
        return text

    def _bold(self, text: str) -> str:
        return self._color(text, self.BOLD)

    def _dim(self, text: str) -> str:
        return self._color(text, self.DIM)

    def print_summary(self, title: str, items: Dict[str, Any], show_divider: bool = True) -> None:
        """
        Print a summary with aligned key-value pairs.

        Args:
            title: Summary title (e.g., "Task", "Configuration")
            items: Dictionary of key-value pairs to display
            show_divider: Whether to show a divider line after the summary
        """
        print(self._bold(f"> {title}"))
        print()

        max_key_len = max(len(str(k)) for k in items.keys()) if items else 0
        for key, value in items.items():
            key_str = str(key).ljust(max_key_len)
            value_str = str(value) if value is not None else "-"
            print(f"  {self._dim(key_str)}  {value_str}")

        print()
        if show_divider:
            self.print_divider()

    def print_divider(self, char: str = "─", width: int = 50) -> None:
        print(self._dim(char * width))

    def print_status_line(
        self,
        status: str,
        message: str,
        ok: bool = True,
        info: bool = False,
        warn: bool = False,
    ) -> None:
        """
        Print a status line with icon.

        Args:
            status: Status icon text (e.g., "OK", "FAIL", "STEP 2")
            message: Status message
            ok: Whether this is a success status (green)
            info: Whether this is an info status (blue)
            warn: Whether this is a warning status (yellow)
        """
        if ok:
            icon = self._color(f"[{status}]", self.GREEN)
        elif info:
            icon = self._color(f"[{status}]", self.BLUE)
        elif warn:
            icon = self._color(f"[{status}]", self.YELLOW)
        else:
            icon = self._color(f"[{status}]", self.RED)

        print(f"{icon} {message}")

    def print_list(self, title: str, items: List[str], bullet: str = "•") -> None:
        if title:
            print(self._bold(title))
        for item in items:
            print(f"  {bullet} {item}")


class ConsoleSink(ProgressSink):
    """Prints loop progress and messages through CLIOutput."""

    def __init__(self, output: Optional[CLIOutput] = None, verbose: bool = False) -> None:
        self.output = output or CLIOutput()
        self.verbose = verbose

    async def report_progress(self, iteration: int, action: str, status: str) -> None:
        failed = action in ("Error", "Max Iterations Reached")
        self.output.print_status_line(
            f"STEP {iteration}",
            f"{action}: {status}",
            ok=action == "Task Complete",
            info=not failed and action != "Task Complete",
        )

    async def report_message(self, message: SinkMessage) -> None:
        if message.is_action_result:
            if self.verbose:
                payload = json.dumps(message.action_result.to_dict(), indent=2, default=str)
                print(self.output._dim(f"{message.action_name} -> {payload}"))
            return
        print()
        print(message.text)
