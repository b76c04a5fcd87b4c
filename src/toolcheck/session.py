"""Harness session: one active run at a time, driven by UI actions."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from loguru import logger

from toolcheck.config import Settings
from toolcheck.grounding import GroundingProbe, GroundingResult
from toolcheck.loop import ConversationLoop, LoopResult
from toolcheck.scenarios import Scenario, Vendor, default_scenario, get_scenario
from toolcheck.sink import ResultSink
from toolcheck.tasks import TaskGenerator
from toolcheck.transport import RequestTransport
from toolcheck.types import ConnectionConfig, Task

RunResult = LoopResult | GroundingResult
Runner = ConversationLoop | GroundingProbe


class HarnessSession:
    """Owns the selected vendor/scenario, the current task and the active run.

    Starting a run, switching vendor or switching scenario first cancels the
    active run. Cancellation is cooperative and idempotent.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        sink: ResultSink,
        transport: RequestTransport,
        connection: Callable[[], ConnectionConfig],
        task_generator: TaskGenerator | None = None,
        vendor: Vendor | str = Vendor.OPENAI,
    ) -> None:
        self._settings = settings
        self._sink = sink
        self._transport = transport
        self._connection = connection
        self._tasks = task_generator or TaskGenerator()
        self._runner: Runner | None = None
        self._active: asyncio.Task[RunResult] | None = None
        self.vendor = Vendor(vendor)
        self.scenario: Scenario = default_scenario(self.vendor)
        self.task: Task | None = None
        self.last_result: RunResult | None = None
        self._refresh_task()

    @property
    def running(self) -> bool:
        return self._active is not None and not self._active.done()

    def select_vendor(self, vendor: Vendor | str) -> Scenario:
        self.cancel()
        self.vendor = Vendor(vendor)
        self.scenario = default_scenario(self.vendor)
        self._refresh_task()
        return self.scenario

    def select_scenario(self, scenario_id: str) -> Scenario:
        self.cancel()
        self.scenario = get_scenario(self.vendor, scenario_id)
        self._refresh_task()
        return self.scenario

    def default_prompt(self) -> str:
        if self.scenario.uses_task and self.task is not None:
            return self.task.prompt
        return self.scenario.default_input

    def start_scenario(self, vendor: Vendor | str, scenario_id: str, user_prompt: str = "") -> asyncio.Task[RunResult]:
        """Cancel any active run and launch a new one in the background.

        Tool scenarios always run a freshly generated task; ``user_prompt``
        only applies to grounding scenarios.
        """
        self.cancel()
        scenario = get_scenario(vendor, scenario_id)
        self.vendor, self.scenario = scenario.vendor, scenario
        config = self._connection()
        adapter = scenario.build_adapter(self._settings)

        runner: Runner
        if scenario.grounding is None:
            task = self.task = self._tasks.generate()
            runner = ConversationLoop(
                adapter=adapter,
                transport=self._transport,
                config=config,
                sink=self._sink,
                prompt=task.prompt,
                expected_answer=task.expected_answer,
                max_turns=self._settings.max_turns,
                continue_after_submit=self._settings.continue_after_submit,
            )
        else:
            self.task = None
            runner = GroundingProbe(
                adapter=adapter,
                transport=self._transport,
                config=config,
                sink=self._sink,
                kind=scenario.grounding,
                prompt=user_prompt.strip() or scenario.default_input,
            )

        logger.info("session.start vendor={} scenario={}", scenario.vendor.value, scenario.id)
        self._runner = runner
        self._active = asyncio.create_task(self._run(runner))
        return self._active

    async def run_scenario(self, vendor: Vendor | str, scenario_id: str, user_prompt: str = "") -> RunResult:
        return await self.start_scenario(vendor, scenario_id, user_prompt)

    def cancel(self) -> None:
        runner, self._runner = self._runner, None
        if runner is None:
            return
        logger.info("session.cancel scenario={}", self.scenario.id)
        runner.cancel()

    async def wait(self) -> RunResult | None:
        if self._active is None:
            return None
        return await self._active

    async def _run(self, runner: Runner) -> RunResult:
        result = await runner.run()
        if self._runner is runner:
            self._runner = None
            self.last_result = result
        return result

    def _refresh_task(self) -> None:
        self.task = self._tasks.generate() if self.scenario.uses_task else None
