"""Controllers for terminal agent CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from terminal_agent.agent import AgentLoop, EventBus, LoopEvent, SessionSummary
from terminal_agent.agent.backend import CliProposalBackend
from terminal_agent.commands import CommandExecutor, CommandRegistry, help_command
from terminal_agent.config import Settings
from terminal_agent.features import Feature, NotesFeature
from terminal_agent.sanitization import sanitize_preview
from terminal_agent.storage import NotesRepository, TerminalRepository


@dataclass(slots=True)
class AgentRunCommand:
    """CLI input for one agent session."""

    db_path: Path | None
    max_actions: int | None = None
    cooldown_seconds: float | None = None
    model: str | None = None
    command_template: str | None = None
    personality: str | None = None
    variables: tuple[str, ...] = ()


@dataclass(slots=True)
class CommandsListCommand:
    db_path: Path | None


@dataclass(slots=True)
class ExecCommand:
    """CLI input for dispatching one command line without inference."""

    db_path: Path | None
    command_line: str


@dataclass(slots=True)
class HistoryCommand:
    db_path: Path | None
    limit: int | None = None


@dataclass(slots=True)
class ActionsCommand:
    db_path: Path | None
    session_id: str | None = None
    limit: int = 20


@dataclass(slots=True)
class StatusCommand:
    db_path: Path | None


def build_registry(features: Iterable[Feature]) -> CommandRegistry:
    """Built-in ``help`` first, then every feature's commands in order."""

    registry = CommandRegistry()
    registry.register([help_command(registry)])
    for feature in features:
        registry.register(feature.load_commands())
    return registry


class AgentCliController:
    """Application service layer behind CLI commands."""

    def run(self, command: AgentRunCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        agent = settings.agent
        if command.max_actions is not None:
            agent.max_actions = command.max_actions
        if command.cooldown_seconds is not None:
            agent.action_cooldown_seconds = command.cooldown_seconds
        if command.model:
            agent.model = command.model
        if command.command_template:
            agent.command_template = command.command_template
        if command.personality:
            agent.personality = command.personality
        settings.validate_for_run()
        variables = parse_variables(command.variables)

        iterations: list[tuple[str, str]] = []
        with _repositories(settings) as (terminal_repository, notes_repository):
            events = EventBus()
            events.subscribe(
                LoopEvent.ITERATION,
                lambda assistant_text, user_text: iterations.append((assistant_text, user_text)),
            )
            loop = AgentLoop(
                registry=build_registry([NotesFeature(notes_repository)]),
                backend=CliProposalBackend(agent),
                store=terminal_repository,
                settings=agent,
                events=events,
            )
            loop.set_dynamic_variables(variables)
            summary = asyncio.run(loop.run_session())

        lines: list[str] = []
        for number, (assistant_text, user_text) in enumerate(iterations, start=1):
            lines.extend([f"=== Action {number} ===", assistant_text, user_text])
        lines.append(_summary_line(summary))
        return lines

    def list_commands(self, command: CommandsListCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repositories(settings) as (_, notes_repository):
            registry = build_registry([NotesFeature(notes_repository)])
            return registry.generate_help_text().splitlines()

    def exec_command(self, command: ExecCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repositories(settings) as (_, notes_repository):
            executor = CommandExecutor(
                build_registry([NotesFeature(notes_repository)]),
                timeout_seconds=settings.agent.command_timeout_seconds,
            )
            result = asyncio.run(executor.dispatch(command.command_line))
        return result.output.splitlines() or [result.output]

    def history(self, command: HistoryCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        limit = command.limit or settings.storage.history_limit
        with _repositories(settings) as (repository, _):
            rendered = repository.format_recent_history(limit=limit)
        if not rendered:
            return ["Short-term history is empty."]
        return rendered.splitlines()

    def actions(self, command: ActionsCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repositories(settings) as (repository, _):
            records = repository.list_action_records(
                session_id=command.session_id,
                limit=command.limit,
            )

        lines = [f"Action records: {len(records)}"]
        for record in records:
            command_line = sanitize_preview(record.command)
            lines.append(
                f"  #{record.record_id} session={record.session_id} "
                f"created={record.created_at.isoformat()} command={command_line!r}",
            )
            lines.append(f"    result: {_log_preview(record.terminal_log)}")
        return lines

    def status(self, command: StatusCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repositories(settings) as (repository, _):
            status = repository.get_status()
        if status is None:
            return ["Terminal status: unknown (no session has run yet)"]
        state = "active" if status.is_active else "inactive"
        return [f"Terminal status: {state} (last updated {status.last_updated.isoformat()})"]


def parse_variables(raw: Iterable[str]) -> dict[str, str]:
    """Parse repeated ``KEY=VALUE`` options into an ordered mapping."""

    variables: dict[str, str] = {}
    for item in raw:
        key, separator, value = item.partition("=")
        if not separator or not key.strip():
            raise ValueError(f"Invalid variable {item!r}: expected KEY=VALUE.")
        variables[key.strip()] = value
    return variables


def _log_preview(terminal_log: str | None) -> str:
    """First output line of a ``[timestamp - TERMINAL LOG]`` block."""

    if terminal_log is None:
        return "<pending>"
    _, _, output = terminal_log.partition("\n\n")
    body = output or terminal_log
    first_line = body.strip().splitlines()[0] if body.strip() else "<empty>"
    return sanitize_preview(first_line)


def _summary_line(summary: SessionSummary) -> str:
    return (
        f"Session {summary.session_id} finished: actions={summary.actions} "
        f"end_reason={summary.end_reason.value} records={len(summary.record_ids)}"
    )


@contextmanager
def _repositories(settings: Settings) -> Iterator[tuple[TerminalRepository, NotesRepository]]:
    terminal_repository = TerminalRepository(
        settings.db_path,
        busy_timeout_ms=settings.storage.busy_timeout_ms,
    )
    notes_repository = NotesRepository(
        settings.db_path,
        busy_timeout_ms=settings.storage.busy_timeout_ms,
    )
    terminal_repository.init_schema()
    try:
        yield terminal_repository, notes_repository
    finally:
        notes_repository.close()
        terminal_repository.close()
