"""Protocol adapter contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum
from typing import Any, ClassVar

from toolcheck.tools.schema import ToolSpec
from toolcheck.types import ConnectionConfig, ConversationState, NormalizedToolCall, ParsedResponse, ToolResult

JSON_HEADERS = {"Content-Type": "application/json"}


class GroundingKind(str, Enum):
    """Vendor-hosted tools checked by single-turn grounding probes."""

    WEB_SEARCH = "web_search"
    GOOGLE_SEARCH = "google_search"
    URL_CONTEXT = "url_context"


class ProtocolAdapter(ABC):
    """Translates between the vendor-neutral loop and one wire protocol.

    Every method that touches conversation state appends to it and returns
    the same :class:`ConversationState`; entries are never rewritten.
    """

    name: ClassVar[str]
    grounding_kinds: ClassVar[frozenset[GroundingKind]] = frozenset()

    @abstractmethod
    def endpoint(self, config: ConnectionConfig) -> str:
        """Full request URL for one call."""

    def headers(self, config: ConnectionConfig) -> dict[str, str]:
        return dict(JSON_HEADERS)

    @abstractmethod
    def user_entry(self, prompt: str) -> Any:
        """Vendor-shaped user turn holding ``prompt``."""

    def seed(self, prompt: str) -> ConversationState:
        return ConversationState(entries=[self.user_entry(prompt)])

    @abstractmethod
    def build_request(self, state: ConversationState, model: str, tools: Sequence[ToolSpec]) -> dict[str, Any]:
        """Request body for the next turn."""

    @abstractmethod
    def parse_response(self, body: Any) -> ParsedResponse:
        """Split a response into display content, tool calls and the fragment to keep."""

    def append_assistant(self, state: ConversationState, parsed: ParsedResponse) -> ConversationState:
        if not parsed.empty:
            state.entries.append(parsed.raw_assistant_fragment)
        return state

    @abstractmethod
    def append_tool_results(
        self,
        state: ConversationState,
        calls: Sequence[NormalizedToolCall],
        results: Sequence[ToolResult],
    ) -> ConversationState:
        """Append results in the vendor envelope, one entry per call."""

    def supports_grounding(self, kind: GroundingKind) -> bool:
        return kind in self.grounding_kinds

    def build_grounding_request(self, prompt: str, model: str, kind: GroundingKind) -> dict[str, Any]:
        raise NotImplementedError(f"{self.name} has no grounding probe for {kind.value}")

    def detect_grounding(self, body: Any, kind: GroundingKind) -> bool:
        raise NotImplementedError(f"{self.name} has no grounding probe for {kind.value}")


def paired(calls: Sequence[NormalizedToolCall], results: Sequence[ToolResult]) -> list[tuple[NormalizedToolCall, ToolResult]]:
    if len(calls) != len(results):
        raise ValueError(f"expected one result per tool call, got {len(results)} for {len(calls)}")
    return list(zip(calls, results))


def as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []
