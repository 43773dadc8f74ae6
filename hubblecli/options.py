"""Printer options and terminal colouring."""

from __future__ import annotations

import enum
import os
import sys
from dataclasses import dataclass
from typing import Any, TextIO

from hubblecli.timeutil import STAMP_MILLI


class Output(enum.Enum):
    """Output formats of the printer."""

    TAB = 0
    JSON = 1
    COMPACT = 2
    DICT = 3
    JSONPB = 4


@dataclass
class Options:
    """Settings of a printer; ``None`` writers mean stdout and stderr."""

    output: Output = Output.TAB
    writer: TextIO | None = None
    err_writer: TextIO | None = None
    enable_debug: bool = False
    enable_ip_translation: bool = False
    node_name: bool = False
    time_format: str = STAMP_MILLI
    color: str = ""


_RED, _GREEN, _YELLOW, _BLUE, _MAGENTA, _CYAN = 31, 32, 33, 34, 35, 36
_RESET = "\x1b[0m"


def _colors_unsupported(stream: TextIO) -> bool:
    if "NO_COLOR" in os.environ:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    isatty = getattr(stream, "isatty", None)
    return not (isatty is not None and isatty())


class Colorer:
    """Wraps values in ANSI colour sequences when colouring is enabled.

    ``when`` is "always", "never" or "auto"; anything else means "auto",
    which enables colour when ``stream`` (default stdout) is a terminal.
    """

    def __init__(self, when: str = "auto", stream: TextIO | None = None) -> None:
        self.enabled = False
        mode = when.lower()
        if mode == "always":
            self.enable()
        elif mode == "never":
            self.disable()
        else:
            self.enabled = not _colors_unsupported(stream or sys.stdout)

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    def _paint(self, code: int, value: Any) -> str:
        text = str(value)
        if not self.enabled:
            return text
        return f"\x1b[{code}m{text}{_RESET}"

    def port(self, value: Any) -> str:
        return self._paint(_YELLOW, value)

    def host(self, value: Any) -> str:
        return self._paint(_CYAN, value)

    def identity(self, value: Any) -> str:
        return self._paint(_MAGENTA, value)

    def verdict_forwarded(self, value: Any) -> str:
        return self._paint(_GREEN, value)

    def verdict_dropped(self, value: Any) -> str:
        return self._paint(_RED, value)

    def verdict_audit(self, value: Any) -> str:
        return self._paint(_YELLOW, value)