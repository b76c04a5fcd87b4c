"""Scenario table: which vendor, adapter and probe each test uses."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from toolcheck.adapters import (
    AnthropicAdapter,
    GeminiAdapter,
    GroundingKind,
    OpenAIChatAdapter,
    OpenAIResponsesAdapter,
    ProtocolAdapter,
)
from toolcheck.config import Settings
from toolcheck.errors import UnknownScenarioError
from toolcheck.tasks import RANDOM_TASK_MARKER

SEARCH_PROMPT = "Search for the latest flagship Gemini model. Which one is it?"
URL_CONTEXT_PROMPT = "What are the features of this tool? https://ai.google.dev/gemini-api/docs/url-context"


class Vendor(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


class ScenarioKind(str, Enum):
    TOOLS = "tools"
    GROUNDING = "grounding"


@dataclass(frozen=True)
class Scenario:
    """One selectable test: a vendor, its adapter factory and default input."""

    id: str
    vendor: Vendor
    label: str
    kind: ScenarioKind
    adapter_factory: Callable[[Settings], ProtocolAdapter]
    default_input: str = RANDOM_TASK_MARKER
    grounding: GroundingKind | None = None

    def build_adapter(self, settings: Settings) -> ProtocolAdapter:
        return self.adapter_factory(settings)

    @property
    def uses_task(self) -> bool:
        return self.kind is ScenarioKind.TOOLS


def _openai_chat(_settings: Settings) -> ProtocolAdapter:
    return OpenAIChatAdapter()


def _openai_responses(_settings: Settings) -> ProtocolAdapter:
    return OpenAIResponsesAdapter()


def _anthropic(settings: Settings) -> ProtocolAdapter:
    return AnthropicAdapter(max_tokens=settings.anthropic_max_tokens, version=settings.anthropic_version)


def _gemini(_settings: Settings) -> ProtocolAdapter:
    return GeminiAdapter()


SCENARIOS: tuple[Scenario, ...] = (
    Scenario("openai_tools", Vendor.OPENAI, "Tool calling (Chat Completions)", ScenarioKind.TOOLS, _openai_chat),
    Scenario(
        "responses_tools", Vendor.OPENAI, "Tool calling (Responses)", ScenarioKind.TOOLS, _openai_responses
    ),
    Scenario(
        "responses_search",
        Vendor.OPENAI,
        "Search (Responses)",
        ScenarioKind.GROUNDING,
        _openai_responses,
        default_input=SEARCH_PROMPT,
        grounding=GroundingKind.WEB_SEARCH,
    ),
    Scenario("anthropic_tools", Vendor.ANTHROPIC, "Tool calling", ScenarioKind.TOOLS, _anthropic),
    Scenario("gemini_tools", Vendor.GOOGLE, "Tool calling", ScenarioKind.TOOLS, _gemini),
    Scenario(
        "gemini_search",
        Vendor.GOOGLE,
        "Search",
        ScenarioKind.GROUNDING,
        _gemini,
        default_input=SEARCH_PROMPT,
        grounding=GroundingKind.GOOGLE_SEARCH,
    ),
    Scenario(
        "gemini_url_context",
        Vendor.GOOGLE,
        "URL context",
        ScenarioKind.GROUNDING,
        _gemini,
        default_input=URL_CONTEXT_PROMPT,
        grounding=GroundingKind.URL_CONTEXT,
    ),
)


def scenarios_for(vendor: Vendor | str) -> list[Scenario]:
    vendor = Vendor(vendor)
    return [scenario for scenario in SCENARIOS if scenario.vendor is vendor]


def get_scenario(vendor: Vendor | str, scenario_id: str) -> Scenario:
    try:
        vendor = Vendor(vendor)
    except ValueError as exc:
        raise UnknownScenarioError(f"unknown vendor: {vendor}") from exc
    for scenario in SCENARIOS:
        if scenario.id == scenario_id and scenario.vendor is vendor:
            return scenario
    raise UnknownScenarioError(f"unknown scenario {scenario_id!r} for vendor {vendor.value}")


def default_scenario(vendor: Vendor | str) -> Scenario:
    return scenarios_for(vendor)[0]
