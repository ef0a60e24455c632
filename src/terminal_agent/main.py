"""CLI entrypoint for terminal-agent."""

import logging
from collections.abc import Callable
from pathlib import Path

import rich_click as click

from terminal_agent import __version__
from terminal_agent.controllers import (
    ActionsCommand,
    AgentCliController,
    AgentRunCommand,
    CommandsListCommand,
    ExecCommand,
    HistoryCommand,
    StatusCommand,
)

click.rich_click.USE_MARKDOWN = True
CONTROLLER = AgentCliController()
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@click.group()
@click.version_option(version=__version__, prog_name="terminal-agent")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Root logger level.",
)
def terminal_agent(log_level: str) -> None:
    """Autonomous terminal agent CLI."""

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@terminal_agent.command("run")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--max-actions",
    type=click.IntRange(min=1),
    default=None,
    help="Action budget for the session. Defaults to TERMINAL_AGENT_MAX_ACTIONS.",
)
@click.option(
    "--cooldown-seconds",
    type=click.FloatRange(min=0),
    default=None,
    help="Delay between actions. Defaults to TERMINAL_AGENT_ACTION_COOLDOWN_SECONDS.",
)
@click.option("--model", default=None, help="Model name passed to the CLI agent.")
@click.option(
    "--command-template",
    default=None,
    help=(
        "Run template for the CLI agent. Supports {model}, {prompt}, and {prompt_file}. "
        "If omitted, TERMINAL_AGENT_COMMAND_TEMPLATE is used."
    ),
)
@click.option("--personality", default=None, help="Personality line for the system prompt.")
@click.option(
    "--var",
    "variables",
    multiple=True,
    help="Extra KEY=VALUE context for the system prompt. Can be repeated.",
)
def run(  # noqa: PLR0913
    db_path: Path | None,
    max_actions: int | None,
    cooldown_seconds: float | None,
    model: str | None,
    command_template: str | None,
    personality: str | None,
    variables: tuple[str, ...],
) -> None:
    """Run one agent session until the action budget is spent."""

    _emit_lines(
        _guard(
            lambda: CONTROLLER.run(
                AgentRunCommand(
                    db_path=db_path,
                    max_actions=max_actions,
                    cooldown_seconds=cooldown_seconds,
                    model=model,
                    command_template=command_template,
                    personality=personality,
                    variables=variables,
                ),
            ),
        ),
    )


@terminal_agent.command("commands")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def commands(db_path: Path | None) -> None:
    """Print the help text the agent sees."""

    _emit_lines(_guard(lambda: CONTROLLER.list_commands(CommandsListCommand(db_path=db_path))))


@terminal_agent.command("exec")
@click.argument("command_line")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def exec_command(command_line: str, db_path: Path | None) -> None:
    """Dispatch one command line without inference, for example `notes list-notes`."""

    _emit_lines(
        _guard(
            lambda: CONTROLLER.exec_command(
                ExecCommand(db_path=db_path, command_line=command_line),
            ),
        ),
    )


@terminal_agent.command("history")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=200),
    default=None,
    help="Messages to show. Defaults to TERMINAL_AGENT_HISTORY_LIMIT.",
)
def history(db_path: Path | None, limit: int | None) -> None:
    """Show the short-term history of the running session."""

    _emit_lines(_guard(lambda: CONTROLLER.history(HistoryCommand(db_path=db_path, limit=limit))))


@terminal_agent.command("actions")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--session-id", default=None, help="Only show records of this session.")
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=500),
    default=20,
    show_default=True,
    help="Max number of records to print.",
)
def actions(db_path: Path | None, session_id: str | None, limit: int) -> None:
    """List persisted action records, newest first."""

    _emit_lines(
        _guard(
            lambda: CONTROLLER.actions(
                ActionsCommand(db_path=db_path, session_id=session_id, limit=limit),
            ),
        ),
    )


@terminal_agent.command("status")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def status(db_path: Path | None) -> None:
    """Show whether a session is currently active."""

    _emit_lines(_guard(lambda: CONTROLLER.status(StatusCommand(db_path=db_path))))


def _guard(call: Callable[[], list[str]]) -> list[str]:
    try:
        return call()
    except ValueError as error:
        raise click.ClickException(str(error)) from error


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    terminal_agent()
