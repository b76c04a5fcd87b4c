"""toolcheck command line interface."""

from __future__ import annotations

import asyncio
import random
from typing import NoReturn, Optional

import typer
from loguru import logger
from rich.table import Table

from toolcheck.cli.render import Renderer
from toolcheck.cli.shell import InteractiveShell
from toolcheck.config import Settings, get_settings, resolve_connection
from toolcheck.errors import ConfigurationError
from toolcheck.grounding import GroundingResult
from toolcheck.logging_utils import configure_logging
from toolcheck.scenarios import SCENARIOS, Vendor, default_scenario, scenarios_for
from toolcheck.session import HarnessSession, RunResult
from toolcheck.store import ApiConfig, ConfigStore
from toolcheck.tasks import TaskGenerator
from toolcheck.transport import RequestTransport
from toolcheck.types import ConnectionConfig, ValidationStatus

app = typer.Typer(
    name="toolcheck",
    help="Check tool calling against OpenAI, Anthropic and Gemini style APIs.",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Manage saved endpoint configs.", no_args_is_help=True)
app.add_typer(config_app, name="config")


@app.callback()
def main_callback() -> None:
    configure_logging(profile="cli", level=get_settings().log_level)


def _store(settings: Settings) -> ConfigStore:
    return ConfigStore(settings.store_path)


def _exit_with_error(renderer: Renderer, message: str) -> NoReturn:
    renderer.info(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(1)


def _mask(key: str) -> str:
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}...{key[-4:]}"


def _resolve(
    settings: Settings,
    renderer: Renderer,
    *,
    url: str | None,
    key: str | None,
    model: str | None,
    config_name: str | None,
) -> ConnectionConfig:
    try:
        store = _store(settings)
        saved = store.get(config_name) if config_name else store.default()
        return resolve_connection(
            settings,
            url=url,
            key=key,
            model=model,
            saved=saved.connection() if saved is not None else None,
        )
    except ConfigurationError as exc:
        _exit_with_error(renderer, str(exc))


def _failed(result: RunResult) -> bool:
    if isinstance(result, GroundingResult):
        return result.error is not None
    return result.error is not None or result.status is ValidationStatus.INCORRECT


async def _run_once(
    settings: Settings,
    renderer: Renderer,
    connection: ConnectionConfig,
    vendor: Vendor,
    scenario_id: str,
    prompt: str,
) -> RunResult:
    async with RequestTransport(timeout=settings.timeout_seconds) as transport:
        session = HarnessSession(
            settings=settings,
            sink=renderer,
            transport=transport,
            connection=lambda: connection,
            vendor=vendor,
        )
        task = session.start_scenario(vendor, scenario_id, prompt)
        if session.task is not None:
            renderer.info(f"[bold cyan]Task:[/bold cyan] {session.task.prompt}")
        return await task


@app.command()
def run(
    vendor: Vendor = typer.Argument(..., help="API family"),  # noqa: B008
    scenario: Optional[str] = typer.Option(None, "--scenario", "-s", help="Scenario id"),
    prompt: str = typer.Option("", "--prompt", "-p", help="Prompt for search and URL context scenarios"),
    url: Optional[str] = typer.Option(None, "--url", help="API base URL"),
    key: Optional[str] = typer.Option(None, "--key", help="API key"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model name"),
    config_name: Optional[str] = typer.Option(None, "--config", "-c", help="Saved config name"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Hide request/response bodies"),
) -> None:
    """Run one scenario and report the result."""
    settings = get_settings()
    renderer = Renderer(show_bodies=not quiet)
    connection = _resolve(settings, renderer, url=url, key=key, model=model, config_name=config_name)
    scenario_id = scenario or default_scenario(vendor).id
    if scenario_id not in {item.id for item in scenarios_for(vendor)}:
        _exit_with_error(renderer, f"unknown scenario {scenario_id!r} for vendor {vendor.value}")

    logger.info("cli.run vendor={} scenario={} model={}", vendor.value, scenario_id, connection.model)
    result = asyncio.run(_run_once(settings, renderer, connection, vendor, scenario_id, prompt))
    if _failed(result):
        raise typer.Exit(1)


@app.command()
def shell(
    vendor: Vendor = typer.Option(Vendor.OPENAI, "--vendor", help="Initial API family"),  # noqa: B008
    url: Optional[str] = typer.Option(None, "--url", help="API base URL"),
    key: Optional[str] = typer.Option(None, "--key", help="API key"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model name"),
    config_name: Optional[str] = typer.Option(None, "--config", "-c", help="Saved config name"),
) -> None:
    """Start the interactive shell."""
    settings = get_settings()
    renderer = Renderer()
    connection = _resolve(settings, renderer, url=url, key=key, model=model, config_name=config_name)
    renderer.info(f"[bold]Endpoint:[/bold] [cyan]{connection.url}[/cyan]")
    renderer.info(f"[bold]Model:[/bold] [magenta]{connection.model}[/magenta]")

    async def _main() -> None:
        async with RequestTransport(timeout=settings.timeout_seconds) as transport:
            session = HarnessSession(
                settings=settings,
                sink=renderer,
                transport=transport,
                connection=lambda: connection,
                vendor=vendor,
            )
            await InteractiveShell(session, renderer).run()

    asyncio.run(_main())


@app.command()
def scenarios(
    vendor: Optional[Vendor] = typer.Argument(None, help="Only list this API family"),  # noqa: B008
) -> None:
    """List the available scenarios."""
    table = Table("vendor", "id", "kind", "label")
    for item in SCENARIOS:
        if vendor is not None and item.vendor is not vendor:
            continue
        table.add_row(item.vendor.value, item.id, item.kind.value, item.label)
    Renderer().info(table)


@app.command()
def task(
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed"),
    show_answer: bool = typer.Option(False, "--answer", help="Also print the expected answer"),
) -> None:
    """Generate a conversion task."""
    generated = TaskGenerator(random.Random(seed)).generate()  # noqa: S311
    typer.echo(generated.prompt)
    if show_answer:
        typer.echo(f"expected: {generated.expected_answer}")


@config_app.command("list")
def config_list() -> None:
    """List saved configs."""
    configs = _store(get_settings()).list()
    if not configs:
        typer.echo("(no saved configs)")
        return
    table = Table("", "name", "url", "model", "key")
    for config in configs:
        table.add_row("*" if config.is_default else "", config.name, config.url, config.model, _mask(config.key))
    Renderer().info(table)


@config_app.command("add")
def config_add(
    name: str = typer.Argument(..., help="Config name"),
    url: str = typer.Option(..., "--url", help="API base URL"),
    key: str = typer.Option(..., "--key", help="API key"),
    model: str = typer.Option(..., "--model", "-m", help="Model name"),
    make_default: bool = typer.Option(False, "--default", help="Use this config by default"),
) -> None:
    """Add or replace a saved config."""
    renderer = Renderer()
    if not name.strip():
        _exit_with_error(renderer, "config name must not be empty")
    saved = _store(get_settings()).upsert(ApiConfig(name=name, url=url, key=key, model=model, is_default=make_default))
    typer.echo(f"saved {saved.name} ({saved.url})")


@config_app.command("remove")
def config_remove(name: str = typer.Argument(..., help="Config name")) -> None:
    """Remove a saved config."""
    renderer = Renderer()
    try:
        _store(get_settings()).remove(name)
    except ConfigurationError as exc:
        _exit_with_error(renderer, str(exc))
    typer.echo(f"removed {name}")


@config_app.command("default")
def config_default(name: str = typer.Argument(..., help="Config name")) -> None:
    """Mark a saved config as the default."""
    renderer = Renderer()
    try:
        _store(get_settings()).set_default(name)
    except ConfigurationError as exc:
        _exit_with_error(renderer, str(exc))
    typer.echo(f"default is now {name}")
