"""Result sink interface and an in-memory implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

NoticeLevel = Literal["info", "success"]


class ResultSink(Protocol):
    """Receives every observable step of a run, in order."""

    def request_built(self, turn: int, body: Any) -> None: ...

    def response_received(self, turn: int, body: Any, duration_ms: int) -> None: ...

    def assistant_turn(self, turn: int, content: Any) -> None: ...

    def tool_executed(self, turn: int, tool_name: str, result: dict[str, Any]) -> None: ...

    def validation_outcome(self, status: str, message: str) -> None: ...

    def notice(self, level: NoticeLevel, message: str) -> None: ...

    def error(self, message: str, raw_body: str | None = None, content_type: str = "", html: bool = False) -> None: ...


@dataclass(frozen=True)
class SinkEvent:
    kind: str
    data: dict[str, Any]


@dataclass
class RecordingSink:
    """Keeps events in memory; used by tests and non-interactive callers."""

    events: list[SinkEvent] = field(default_factory=list)

    def kinds(self) -> list[str]:
        return [event.kind for event in self.events]

    def of_kind(self, kind: str) -> list[SinkEvent]:
        return [event for event in self.events if event.kind == kind]

    def clear(self) -> None:
        self.events.clear()

    def request_built(self, turn: int, body: Any) -> None:
        self._record("request_built", turn=turn, body=body)

    def response_received(self, turn: int, body: Any, duration_ms: int) -> None:
        self._record("response_received", turn=turn, body=body, duration_ms=duration_ms)

    def assistant_turn(self, turn: int, content: Any) -> None:
        self._record("assistant_turn", turn=turn, content=content)

    def tool_executed(self, turn: int, tool_name: str, result: dict[str, Any]) -> None:
        self._record("tool_executed", turn=turn, tool_name=tool_name, result=result)

    def validation_outcome(self, status: str, message: str) -> None:
        self._record("validation_outcome", status=status, message=message)

    def notice(self, level: NoticeLevel, message: str) -> None:
        self._record("notice", level=level, message=message)

    def error(self, message: str, raw_body: str | None = None, content_type: str = "", html: bool = False) -> None:
        self._record("error", message=message, raw_body=raw_body, content_type=content_type, html=html)

    def _record(self, kind: str, **data: Any) -> None:
        self.events.append(SinkEvent(kind=kind, data=data))
