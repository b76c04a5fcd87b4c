"""Interactive shell: pick vendor and scenario, start and stop runs."""

from __future__ import annotations

import shlex
from collections.abc import Callable

from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.patch_stdout import patch_stdout

from toolcheck.cli.render import Renderer
from toolcheck.errors import ToolcheckError
from toolcheck.scenarios import Vendor, scenarios_for
from toolcheck.session import HarnessSession

HELP_TEXT = """\
[bold]Commands[/bold]
  /vendor <openai|anthropic|google>  switch vendor (stops the active run)
  /scenario <id>                     switch scenario (stops the active run)
  /scenarios                         list scenarios for the current vendor
  /task                              show the current task prompt
  /run [prompt]                      start the current scenario
  /stop                              stop the active run
  /bodies                            toggle request/response bodies
  /quit                              leave the shell
Any other input starts the current scenario with that text as prompt."""

QUIT_COMMANDS = {"/quit", "/exit", "/q"}


class InteractiveShell:
    """Read commands with prompt_toolkit while runs proceed in the background."""

    def __init__(self, session: HarnessSession, renderer: Renderer) -> None:
        self._session = session
        self._renderer = renderer
        self._commands: dict[str, Callable[[list[str]], None]] = {
            "/vendor": self._cmd_vendor,
            "/scenario": self._cmd_scenario,
            "/scenarios": self._cmd_scenarios,
            "/task": self._cmd_task,
            "/run": self._cmd_run,
            "/stop": self._cmd_stop,
            "/bodies": self._cmd_bodies,
            "/help": self._cmd_help,
        }

    def _prompt_message(self) -> str:
        return f"{self._session.vendor.value}:{self._session.scenario.id}> "

    async def run(self) -> None:
        prompt: PromptSession[str] = PromptSession()
        self._renderer.welcome()
        self._renderer.info("Type /help for commands.")
        self._cmd_scenarios([])
        with patch_stdout(raw=True):
            while True:
                try:
                    line = await prompt.prompt_async(self._prompt_message())
                except (KeyboardInterrupt, EOFError):
                    break
                line = line.strip()
                if not line:
                    continue
                if line.lower() in QUIT_COMMANDS:
                    break
                self.handle(line)
        self._session.cancel()
        await self._session.wait()
        self._renderer.info("Goodbye!")

    def handle(self, line: str) -> None:
        """Dispatch one line of input."""
        if not line.startswith("/"):
            self._start(line)
            return
        try:
            name, *args = shlex.split(line)
        except ValueError as exc:
            self._renderer.info(f"[red]{exc}[/red]")
            return
        command = self._commands.get(name.lower())
        if command is None:
            self._renderer.info(f"[red]Unknown command: {name}[/red]")
            return
        try:
            command(args)
        except ToolcheckError as exc:
            logger.warning("shell.command.error command={} error={}", name, exc)
            self._renderer.info(f"[red]{exc}[/red]")

    def _start(self, prompt: str = "") -> None:
        session = self._session
        session.start_scenario(session.vendor, session.scenario.id, prompt)
        if session.task is not None:
            self._renderer.info(f"[bold cyan]Task:[/bold cyan] {session.task.prompt}")

    def _cmd_vendor(self, args: list[str]) -> None:
        if not args:
            self._renderer.info(f"Vendor: {self._session.vendor.value}")
            return
        try:
            vendor = Vendor(args[0].lower())
        except ValueError:
            self._renderer.info(f"[red]Unknown vendor: {args[0]}[/red]")
            return
        scenario = self._session.select_vendor(vendor)
        self._renderer.info(f"Vendor {vendor.value}, scenario {scenario.id}")

    def _cmd_scenario(self, args: list[str]) -> None:
        if not args:
            self._renderer.info(f"Scenario: {self._session.scenario.id}")
            return
        scenario = self._session.select_scenario(args[0])
        self._renderer.info(f"Scenario {scenario.id}: {scenario.label}")

    def _cmd_scenarios(self, _args: list[str]) -> None:
        for scenario in scenarios_for(self._session.vendor):
            marker = "*" if scenario.id == self._session.scenario.id else " "
            self._renderer.info(f"{marker} [cyan]{scenario.id}[/cyan]  {scenario.label}")

    def _cmd_task(self, _args: list[str]) -> None:
        self._renderer.info(self._session.default_prompt())

    def _cmd_run(self, args: list[str]) -> None:
        self._start(" ".join(args))

    def _cmd_stop(self, _args: list[str]) -> None:
        if not self._session.running:
            self._renderer.info("[dim]No active run.[/dim]")
            return
        self._session.cancel()
        self._renderer.info("[dim]Stopped.[/dim]")

    def _cmd_bodies(self, _args: list[str]) -> None:
        self._renderer.toggle_bodies()

    def _cmd_help(self, _args: list[str]) -> None:
        self._renderer.info(HELP_TEXT)
