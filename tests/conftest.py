from __future__ import annotations

import copy
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from toolcheck.errors import LoopCancelled
from toolcheck.sink import RecordingSink
from toolcheck.transport import CancellationToken
from toolcheck.types import ConnectionConfig, TransportResult

BLOCK = object()


@dataclass
class SentRequest:
    url: str
    headers: dict[str, str]
    body: Any


@dataclass
class ScriptedTransport:
    """Replays queued response bodies; ``BLOCK`` waits until the token fires.

    A queued callable receives the request body and returns the response body.
    A queued exception is raised.
    """

    responses: list[Any] = field(default_factory=list)
    sent: list[SentRequest] = field(default_factory=list)
    repeat_last: bool = False

    async def send(
        self,
        url: str,
        *,
        headers: dict[str, str],
        body: Any,
        token: CancellationToken | None = None,
    ) -> TransportResult:
        if token is not None:
            token.raise_if_cancelled()
        self.sent.append(SentRequest(url=url, headers=dict(headers), body=copy.deepcopy(body)))
        if not self.responses:
            raise AssertionError("unexpected request")
        response = self.responses[0] if self.repeat_last and len(self.responses) == 1 else self.responses.pop(0)
        if response is BLOCK:
            assert token is not None
            await token.wait()
            raise LoopCancelled
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(body)
        return TransportResult(raw_text="", content_type="application/json", http_status=200, json=response)


@pytest.fixture(autouse=True)
def _isolated_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    home = tmp_path / "toolcheck-home"
    monkeypatch.setenv("TOOLCHECK_HOME", str(home))
    for name in ("TOOLCHECK_API_URL", "TOOLCHECK_API_KEY", "TOOLCHECK_MODEL"):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def connection() -> ConnectionConfig:
    return ConnectionConfig(url="https://api.example.com", key="sk-test", model="test-model")


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def scripted() -> Callable[..., ScriptedTransport]:
    def _make(*responses: Any, repeat_last: bool = False) -> ScriptedTransport:
        return ScriptedTransport(responses=list(responses), repeat_last=repeat_last)

    return _make
