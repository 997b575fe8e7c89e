#!/usr/bin/env python3
"""
Calendar Secretary - Main Entry Point

Runs one chat message through the orchestrator from the terminal.

Usage:
    secretary "move team meeting to 3pm"
    secretary "what do I have tomorrow?" --dry-run --mode json
"""
import asyncio
import os
import sys
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from secretary.agents.calendar.orchestrator import OrchestrationResult
from secretary.ai.llm_constants import TOOL_MODES
from secretary.services import build_orchestrator
from secretary.tools.calendar.store import CalendarStore, InMemoryCalendarStore
from secretary.utils.config import Config, ConfigDefaults, load_config
from secretary.utils.logger import configure_from_config

console = Console()


def load_cli_config(config_path: str, mode: Optional[str], max_iterations: Optional[int]) -> Config:
    """Load YAML config when present (environment only otherwise) and apply CLI overrides"""
    if os.path.exists(config_path):
        config = load_config(config_path)
    else:
        console.print(f"[dim]No config at {config_path}, using environment variables[/dim]")
        config = Config.from_env()

    agent_updates = {}
    if mode:
        agent_updates["tool_mode"] = mode
    if max_iterations:
        agent_updates["max_iterations"] = max_iterations
    if agent_updates:
        config = config.model_copy(update={"agent": config.agent.model_copy(update=agent_updates)})
    return config


def build_store(config: Config, dry_run: bool) -> CalendarStore:
    if dry_run:
        console.print("[yellow]Dry run: using an in-memory calendar[/yellow]")
        return InMemoryCalendarStore()

    from secretary.integrations.google_calendar import GoogleCalendarStore
    return GoogleCalendarStore(config)


def print_result(result: OrchestrationResult, verbose: bool) -> None:
    style = "green" if result.success else "red"
    console.print(f"\n[bold {style}]{result.response}[/bold {style}]\n")

    if not verbose:
        return

    table = Table(title=f"{result.state.value} after {result.iterations} iteration(s), intent={result.intent}")
    table.add_column("Call", style="cyan")
    table.add_column("Tool")
    table.add_column("Result")
    for tool_result in result.results:
        call = tool_result.source_call
        outcome = "[green]ok[/green]" if tool_result.success else f"[red]{tool_result.error}[/red]"
        table.add_row(call.id, call.name, outcome)
    for rejected in result.rejected:
        table.add_row(rejected.id or "-", rejected.name or "?", f"[yellow]rejected: {rejected.reason}[/yellow]")
    console.print(table)


@click.command()
@click.argument('message')
@click.option('--config', 'config_path', default=ConfigDefaults.CONFIG_PATH_DEFAULT, help='Path to YAML config')
@click.option('--dry-run', is_flag=True, help='Use an in-memory calendar instead of Google Calendar')
@click.option('--mode', type=click.Choice(TOOL_MODES), default=None, help='Tool-calling mode')
@click.option('--max-iterations', type=click.IntRange(min=1), default=None, help='Iteration ceiling')
@click.option('--sender', default='User', help='Sender name shown to the model')
@click.option('--verbose', '-v', is_flag=True, help='Show executed tool calls')
def cli(
    message: str,
    config_path: str,
    dry_run: bool,
    mode: Optional[str],
    max_iterations: Optional[int],
    sender: str,
    verbose: bool
):
    """Send MESSAGE to the calendar secretary and print its reply"""
    try:
        config = load_cli_config(config_path, mode, max_iterations)
        configure_from_config(config)
        store = build_store(config, dry_run)
        orchestrator = build_orchestrator(config, store)
    except Exception as e:
        console.print(f"[bold red]Startup failed: {e}[/bold red]")
        sys.exit(1)

    with console.status("[bold blue]Thinking...", spinner="dots"):
        result = asyncio.run(orchestrator.run(message, sender=sender))

    print_result(result, verbose)
    if not result.success:
        sys.exit(1)


if __name__ == '__main__':
    cli()
