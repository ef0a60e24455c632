"""Commands available regardless of loaded features."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from terminal_agent.commands.models import CommandDefinition, CommandResult
from terminal_agent.commands.registry import CommandRegistry


def help_command(registry: CommandRegistry) -> CommandDefinition:
    """List every command registered in ``registry`` at call time."""

    async def _handler(_: Mapping[str, Any]) -> CommandResult:
        return CommandResult(
            "Available commands:\n"
            "(Commands with sub-commands accept '<command> help')\n\n"
            f"{registry.generate_help_text()}",
        )

    return CommandDefinition(
        name="help",
        description="Show all available terminal commands.",
        handler=_handler,
    )
