"""
Output - Console output formatting.

Human readable output goes to stdout with optional colors; in JSON mode
each command prints a single JSON document instead.
"""

import dataclasses
import json
import sys
from datetime import datetime
from enum import Enum
from typing import Any


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"


class Symbols:
    """Unicode symbols for terminal output."""

    CHECK = "✓"
    CROSS = "✗"
    ARROW = "→"
    DOT = "•"
    WARN = "⚠"
    INFO = "ℹ"


def to_jsonable(value: Any) -> Any:
    """Convert domain dataclasses (and containers of them) to JSON-ready values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            field.name: to_jsonable(getattr(value, field.name))
            for field in dataclasses.fields(value)
        }
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [to_jsonable(item) for item in value]
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


class Console:
    """
    Console output helper with colors and formatting.

    Attributes:
        color: Whether to use ANSI color codes.
        verbose: Whether to print debug messages.
        json_mode: Whether command results are printed as JSON.
    """

    def __init__(self, color: bool = True, verbose: bool = False, json_mode: bool = False):
        """
        Args:
            color: Enable colored output. Disabled if stdout is not a TTY.
            verbose: Enable verbose debug output.
            json_mode: Output JSON instead of text.
        """
        self.json_mode = json_mode
        self.color = color and sys.stdout.isatty() and not json_mode
        self.verbose = verbose and not json_mode

    def _c(self, text: str, *codes: str) -> str:
        if not self.color:
            return text
        return "".join(codes) + text + Colors.RESET

    def print(self, text: str = "", force: bool = False) -> None:
        """Print text to stdout (suppressed in JSON mode unless forced)."""
        if self.json_mode and not force:
            return
        print(text)

    def section(self, text: str) -> None:
        self.print()
        self.print(self._c(f"{Symbols.ARROW} {text}", Colors.BOLD, Colors.BLUE))

    def success(self, text: str) -> None:
        self.print(self._c(f"  {Symbols.CHECK} {text}", Colors.GREEN))

    def error(self, text: str) -> None:
        """
        Print an error message to stderr.

        Always prints; in JSON mode the error is a JSON object.
        """
        if self.json_mode:
            print(json.dumps({"error": text}), file=sys.stderr)
            return
        print(self._c(f"  {Symbols.CROSS} {text}", Colors.RED), file=sys.stderr)

    def config_errors(self, errors: list[str]) -> None:
        """Print configuration errors with a hint on where settings come from."""
        if self.json_mode:
            payload = {"error": "Invalid configuration", "details": errors}
            print(json.dumps(payload), file=sys.stderr)
            return
        self.error("Configuration errors:")
        for error in errors:
            print(f"    {Symbols.DOT} {error}", file=sys.stderr)
        print(
            "  Set VCS_API_ENDPOINT, VCS_TOKEN and VCS_PROJECT, use a .env file, "
            "or pass --config .vcsbridge.yaml",
            file=sys.stderr,
        )

    def warning(self, text: str) -> None:
        self.print(self._c(f"  {Symbols.WARN} {text}", Colors.YELLOW))

    def info(self, text: str) -> None:
        self.print(self._c(f"  {Symbols.INFO} {text}", Colors.CYAN))

    def detail(self, text: str) -> None:
        self.print(self._c(f"    {text}", Colors.DIM))

    def item(self, text: str) -> None:
        self.print(f"    {Symbols.DOT} {text}")

    def table(self, headers: list[str], rows: list[list[str]]) -> None:
        """
        Print a table with column widths fitted to the content.

        Args:
            headers: Column headers.
            rows: Row cells, one list per row.
        """
        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                if i < len(widths):
                    widths[i] = max(widths[i], len(str(cell)))

        cells = [self._c(h.ljust(widths[i]), Colors.BOLD) for i, h in enumerate(headers)]
        self.print("  " + "  ".join(cells))
        self.print("  " + "  ".join("-" * w for w in widths))
        for row in rows:
            self.print("  " + "  ".join(str(cell).ljust(widths[i]) for i, cell in enumerate(row)))

    def emit_json(self, data: Any) -> None:
        """Print a command result as JSON (JSON mode only)."""
        if self.json_mode:
            print(json.dumps(to_jsonable(data), indent=2))
