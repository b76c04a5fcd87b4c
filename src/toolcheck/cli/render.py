"""CLI renderer for toolcheck."""

from __future__ import annotations

import json
import threading
from typing import Any

from rich.console import Console
from rich.json import JSON
from rich.markup import escape
from rich.panel import Panel

from toolcheck.sink import NoticeLevel

HTML_HINT = "The server returned an HTML page. You may have entered a wrong API URL."
RAW_PREVIEW_LIMIT = 2000

_STATUS_STYLES = {"correct": "bold green", "incorrect": "bold red"}
_NOTICE_STYLES: dict[str, str] = {"info": "yellow", "success": "green"}


def format_duration(duration_ms: int) -> str:
    """``850ms`` below one second, ``1.25s`` above."""
    if duration_ms >= 1000:
        return f"{duration_ms / 1000:.2f}s"
    return f"{duration_ms}ms"


def _to_json(body: Any) -> str:
    return json.dumps(body, ensure_ascii=False, indent=2, default=str)


class Renderer:
    """Rich terminal sink for harness events."""

    def __init__(self, console: Console | None = None, *, show_bodies: bool = True) -> None:
        self.console: Console = console or Console()
        self.show_bodies = show_bodies
        self._print_lock = threading.Lock()

    def toggle_bodies(self) -> None:
        """Show or hide the raw request and response bodies."""
        self.show_bodies = not self.show_bodies
        status = "shown" if self.show_bodies else "hidden"
        self.info(f"[dim]Request/response bodies {status}[/dim]")

    def info(self, message: str) -> None:
        self._print(message)

    def welcome(self, message: str = "[bold blue]toolcheck[/bold blue] - tool calling checks for LLM APIs") -> None:
        self._print(message)

    def request_built(self, turn: int, body: Any) -> None:
        if not self.show_bodies:
            self._print(f"[dim]Turn {turn}: request sent[/dim]")
            return
        self._print(Panel(JSON(_to_json(body)), title=f"Request (turn {turn})", border_style="blue"))

    def response_received(self, turn: int, body: Any, duration_ms: int) -> None:
        title = f"Response (turn {turn}, {format_duration(duration_ms)})"
        if not self.show_bodies:
            self._print(f"[dim]{title}[/dim]")
            return
        self._print(Panel(JSON(_to_json(body)), title=title, border_style="cyan"))

    def assistant_turn(self, turn: int, content: Any) -> None:
        text = content if isinstance(content, str) else _to_json(content)
        self._print(f"[bold yellow]Assistant (turn {turn}):[/bold yellow] {escape(text)}")

    def tool_executed(self, turn: int, tool_name: str, result: dict[str, Any]) -> None:
        style = "red" if "error" in result or result.get("success") is False else "green"
        self._print(f"[{style}]Tool {escape(tool_name)}[/{style}] -> {escape(_to_json(result))}")

    def validation_outcome(self, status: str, message: str) -> None:
        style = _STATUS_STYLES.get(status, "bold")
        self._print(f"[{style}]{escape(message)}[/{style}]")

    def notice(self, level: NoticeLevel, message: str) -> None:
        style = _NOTICE_STYLES.get(level, "yellow")
        self._print(f"[{style}]{escape(message)}[/{style}]")

    def error(self, message: str, raw_body: str | None = None, content_type: str = "", html: bool = False) -> None:
        self._print(f"[bold red]{escape(message)}[/bold red]")
        if html:
            self._print(f"[red]{HTML_HINT}[/red]")
        if raw_body:
            preview = raw_body[:RAW_PREVIEW_LIMIT]
            if len(raw_body) > RAW_PREVIEW_LIMIT:
                preview += "..."
            title = f"Raw response ({content_type})" if content_type else "Raw response"
            self._print(Panel(escape(preview), title=title, border_style="red"))

    def _print(self, message: Any) -> None:
        with self._print_lock:
            self.console.print(message)
