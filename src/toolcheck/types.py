"""Shared dataclasses for the tool-calling harness."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Task:
    """One randomized base-conversion task and its expected answer."""

    prompt: str
    expected_answer: str
    given: str
    value: int
    from_base: int
    via_base: int
    to_base: int


@dataclass(frozen=True)
class ConnectionConfig:
    """Endpoint credentials read at loop start."""

    url: str
    key: str
    model: str


@dataclass(frozen=True)
class NormalizedToolCall:
    """Vendor-neutral tool call extracted from one response."""

    call_id: str
    name: str
    arguments_json: str
    arguments: dict[str, Any] | None = None

    def parsed_arguments(self) -> dict[str, Any]:
        if self.arguments is not None:
            return dict(self.arguments)
        parsed = json.loads(self.arguments_json or "{}")
        if not isinstance(parsed, dict):
            raise TypeError("tool arguments must be a JSON object")
        return parsed


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one local tool execution."""

    name: str
    success: bool | None = None
    result: str | None = None
    error: str | None = None
    message: str | None = None

    def payload(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.success is not None:
            data["success"] = self.success
        if self.result is not None:
            data["result"] = self.result
        if self.error is not None:
            data["error"] = self.error
        if self.message is not None:
            data["message"] = self.message
        return data

    def to_json(self) -> str:
        return json.dumps(self.payload(), ensure_ascii=False)


class ValidationStatus(str, Enum):
    PENDING = "pending"
    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass
class ValidationOutcome:
    """Tri-state verdict of a conversation, settable once."""

    status: ValidationStatus = ValidationStatus.PENDING
    message: str = ""

    @property
    def settled(self) -> bool:
        return self.status is not ValidationStatus.PENDING

    def settle(self, correct: bool, message: str) -> None:
        if self.settled:
            return
        self.status = ValidationStatus.CORRECT if correct else ValidationStatus.INCORRECT
        self.message = message


@dataclass(frozen=True)
class TransportResult:
    """Raw outcome of one HTTP call."""

    raw_text: str
    content_type: str
    http_status: int
    json: Any = None
    duration_ms: int = 0


@dataclass(frozen=True)
class ParsedResponse:
    """Adapter view of one vendor response."""

    display_content: Any
    tool_calls: list[NormalizedToolCall] = field(default_factory=list)
    raw_assistant_fragment: Any = None

    @property
    def empty(self) -> bool:
        return self.raw_assistant_fragment is None


@dataclass
class ConversationState:
    """Append-only vendor-shaped turn log owned by one loop."""

    entries: list[Any] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def snapshot(self) -> list[Any]:
        return json.loads(json.dumps(self.entries))
