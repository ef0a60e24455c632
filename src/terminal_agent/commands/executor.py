"""Fault-isolated execution of terminal command lines."""

from __future__ import annotations

import asyncio
import logging
import shlex
from collections.abc import Mapping, Sequence
from typing import Any

from terminal_agent.commands.binder import BindingError, bind
from terminal_agent.commands.models import CommandDefinition, CommandResult
from terminal_agent.commands.namespace import (
    HELP_SELECTOR,
    render_namespace_help,
    unknown_subcommand_message,
)
from terminal_agent.commands.registry import CommandRegistry, format_signature
from terminal_agent.sanitization import sanitize_preview

logger = logging.getLogger(__name__)

EMPTY_RESULT_TEXT = "Command completed successfully."


def tokenize(command_line: str) -> list[str]:
    """Split a command line shell-style, falling back to whitespace on bad quoting."""

    try:
        return shlex.split(command_line)
    except ValueError:
        return command_line.split()


class CommandExecutor:
    """Resolves, binds, and runs commands; every call returns a ``CommandResult``."""

    def __init__(
        self,
        registry: CommandRegistry,
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        self.registry = registry
        self.timeout_seconds = timeout_seconds

    async def dispatch(self, command_line: str) -> CommandResult:
        """Run one raw command line against the top-level registry."""

        tokens = tokenize(command_line)
        if not tokens:
            return CommandResult(
                f'No command provided. Use "{HELP_SELECTOR}" to list available commands.',
            )

        name, *rest = tokens
        definition = self.registry.lookup(name)
        if definition is None:
            return CommandResult(
                f'Unknown command: {name}. Use "{HELP_SELECTOR}" to list available commands.',
            )
        return await self.run(definition, rest)

    async def run(
        self,
        definition: CommandDefinition,
        tokens: Sequence[str],
        *,
        parent: str | None = None,
    ) -> CommandResult:
        """Bind ``tokens`` against ``definition`` and execute it, recursing into namespaces."""

        qualified_name = f"{parent} {definition.name}" if parent else definition.name
        if definition.subcommands is not None:
            return await self._route(definition, tokens, qualified_name=qualified_name)

        try:
            arguments = bind(definition, tokens)
        except BindingError as error:
            usage = format_signature(definition)
            if parent:
                usage = f"{parent} {usage}"
            return CommandResult(f"❌ {error}\nUsage: {usage}")
        return await self.execute(definition, arguments, qualified_name=qualified_name)

    async def execute(
        self,
        definition: CommandDefinition,
        arguments: Mapping[str, Any],
        *,
        qualified_name: str | None = None,
    ) -> CommandResult:
        """Invoke the handler inside a fault boundary; never raises."""

        label = qualified_name or definition.name
        if definition.handler is None:
            return CommandResult(f'❌ Command "{label}" cannot be executed directly.')

        deadline = asyncio.timeout(self.timeout_seconds)
        try:
            async with deadline:
                result = await definition.handler(arguments)
        except Exception as error:  # noqa: BLE001
            if isinstance(error, TimeoutError) and deadline.expired():
                logger.error("Command %s timed out after %ss", label, self.timeout_seconds)
                return CommandResult(
                    f'❌ Command "{label}" timed out after {self.timeout_seconds} seconds.',
                )
            logger.exception("Command %s failed", label)
            detail = sanitize_preview(str(error)) or type(error).__name__
            return CommandResult(f'❌ Error executing command "{label}": {detail}')
        return _normalize_result(result, label=label)

    async def _route(
        self,
        definition: CommandDefinition,
        tokens: Sequence[str],
        *,
        qualified_name: str,
    ) -> CommandResult:
        if definition.subcommands is None:
            raise RuntimeError(f"Command {definition.name!r} has no sub-commands.")

        selector = tokens[0] if tokens else HELP_SELECTOR
        rest = tokens[1:]
        if selector == HELP_SELECTOR:
            return CommandResult(
                render_namespace_help(definition, rest, qualified_name=qualified_name),
            )

        nested = definition.subcommands.lookup(selector)
        if nested is None:
            return CommandResult(unknown_subcommand_message(qualified_name, selector))
        return await self.run(nested, rest, parent=qualified_name)


def _normalize_result(result: object, *, label: str) -> CommandResult:
    if isinstance(result, str):
        result = CommandResult(result)
    if result is None:
        return CommandResult(EMPTY_RESULT_TEXT)
    if not isinstance(result, CommandResult):
        kind = type(result).__name__
        logger.error("Command %s returned unsupported result type %s", label, kind)
        return CommandResult(f'❌ Command "{label}" returned an invalid result: {kind}')
    if not result.output:
        return CommandResult(EMPTY_RESULT_TEXT)
    return result
