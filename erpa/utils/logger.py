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
Logging for Erpa.

Everything logs through the package logger ``erpa``. Library code tags its
messages with a bracketed component prefix ("[Controller] Step 2 ...");
the formatters lift that prefix into its own field so JSON logs can be
filtered by component.

Environment:
    ERPA_LOG_LEVEL: debug, info, warning, error or critical
    ERPA_LOG_FORMAT: json (default), human or text
"""

import json
import logging
import os
import re
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

__all__ = [
    "logger",
    "setup_logger",
    "configure_logging",
    "get_log_level",
    "LogFormat",
]

# Attributes every LogRecord carries; anything else came in via ``extra``
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

_COMPONENT_RE = re.compile(r"^\[(?P<component>[A-Za-z][\w .-]*)\]\s*(?P<text>.*)$", re.DOTALL)


class LogFormat(str, Enum):
    JSON = "json"
    HUMAN = "human"
    TEXT = "text"

    @classmethod
    def parse(cls, value: Optional[str]) -> "LogFormat":
        """Map an environment value onto a format; unknown values mean JSON."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.JSON


def split_component(message: str) -> Tuple[Optional[str], str]:
    """Split "[Parser] text" into ("Parser", "text")."""
    match = _COMPONENT_RE.match(message)
    if not match:
        return None, message
    return match.group("component"), match.group("text")


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        component, text = split_component(record.getMessage())
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": text,
        }
        if component:
            payload["component"] = component
        if record.pathname and record.lineno:
            payload["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRIBUTES}
        if extra:
            payload["extra"] = extra

        return json.dumps(payload, default=str)


class HumanFormatter(logging.Formatter):
    """Compact terminal output; colours only when stdout is a TTY."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def _paint(self, text: str, *codes: str) -> str:
        if not self.use_colors:
            return text
        return "".join(codes) + text + self.RESET

    def format(self, record: logging.LogRecord) -> str:
        component, text = split_component(record.getMessage())
        level = record.levelname
        parts = [
            self._paint(datetime.now().strftime("%H:%M:%S"), self.DIM),
            self._paint(f"[{level:>8}]", self.LEVEL_COLORS.get(level, ""), self.BOLD),
        ]
        if component:
            parts.append(self._paint(f"{component}:", self.BOLD))
        parts.append(text)
        output = " ".join(parts)

        if record.exc_info:
            output += "\n" + self._paint(self.formatException(record.exc_info), self.LEVEL_COLORS["ERROR"])
        return output


class TextFormatter(logging.Formatter):
    def __init__(self):
        super().__init__(fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


_FORMATTERS = {
    LogFormat.JSON: JsonFormatter,
    LogFormat.HUMAN: HumanFormatter,
    LogFormat.TEXT: TextFormatter,
}


def get_log_level(level_str: str) -> int:
    """Convert a level name to its logging constant; unknown names mean INFO."""
    name = level_str.strip().upper()
    if name == "WARN":
        name = "WARNING"
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _install_handler(log: logging.Logger, level: int, log_format: LogFormat) -> None:
    log.setLevel(level)
    log.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(_FORMATTERS[log_format]())
    log.addHandler(handler)


def configure_logging(
    level: str = "INFO",
    log_format: LogFormat = LogFormat.JSON,
    human_readable: bool = False,
) -> None:
    """
    Reconfigure the package logger at runtime (used by the CLI).

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format
        human_readable: Force the human format regardless of log_format
    """
    _install_handler(logger, get_log_level(level), LogFormat.HUMAN if human_readable else log_format)


def setup_logger(name: str = "erpa", level: int = logging.INFO) -> logging.Logger:
    """Create a stdout logger, honouring ERPA_LOG_LEVEL and ERPA_LOG_FORMAT."""
    env_level = os.environ.get("ERPA_LOG_LEVEL")
    if env_level:
        level = get_log_level(env_level)

    log = logging.getLogger(name)
    _install_handler(log, level, LogFormat.parse(os.environ.get("ERPA_LOG_FORMAT")))
    return log


logger = setup_logger()
