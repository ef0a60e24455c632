"""Sub-command namespaces: commands that route into a nested registry."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from terminal_agent.commands.models import CommandDefinition, ParameterSpec
from terminal_agent.commands.registry import (
    CommandRegistry,
    format_parameter,
    render_command_lines,
)

HELP_SELECTOR = "help"


def namespace(
    name: str,
    description: str,
    subcommands: CommandRegistry | Iterable[CommandDefinition],
) -> CommandDefinition:
    """Build a category command whose first token selects a nested command."""

    registry = (
        subcommands if isinstance(subcommands, CommandRegistry) else CommandRegistry(subcommands)
    )
    return CommandDefinition(
        name=name,
        description=description,
        parameters=(
            ParameterSpec(
                name="subcommand",
                description=f'Sub-command to run, or "{HELP_SELECTOR}"',
                required=False,
            ),
            ParameterSpec(
                name="args",
                description="Arguments for the sub-command (remaining tokens)",
                required=False,
            ),
        ),
        subcommands=registry,
    )


def render_namespace_help(
    definition: CommandDefinition,
    tokens: Sequence[str],
    *,
    qualified_name: str,
) -> str:
    """Render help for a namespace, or for one of its commands if named in ``tokens``."""

    if definition.subcommands is None:
        raise ValueError(f"Command {definition.name!r} is not a namespace.")

    if tokens:
        nested = definition.subcommands.lookup(tokens[0])
        if nested is None:
            return unknown_subcommand_message(qualified_name, tokens[0])
        return render_subcommand_help(nested, qualified_name=qualified_name)

    lines = [
        f'Available "{qualified_name}" sub-commands:',
        f'(Use "{qualified_name} {HELP_SELECTOR} <command>" for detailed parameter info)',
        "",
        *render_command_lines(definition.subcommands),
    ]
    return "\n".join(lines)


def render_subcommand_help(definition: CommandDefinition, *, qualified_name: str) -> str:
    signature = " ".join(format_parameter(param) for param in definition.parameters)
    usage = f"{qualified_name} {definition.name} {signature}".rstrip()
    lines = [
        f"Command: {qualified_name} {definition.name}",
        f"Description: {definition.description}",
        "",
        "Usage:",
        f"  {usage}",
    ]
    if definition.parameters:
        lines.extend(["", "Parameters:"])
        for param in definition.parameters:
            type_info = f" <{param.type.value}>" if param.type is not None else ""
            required = "(Required)" if param.required else "(Optional)"
            default = f" [default: {param.default}]" if param.default is not None else ""
            lines.append(f"  {param.name}{type_info}: {param.description} {required}{default}")
    return "\n".join(lines)


def unknown_subcommand_message(qualified_name: str, selector: str) -> str:
    return (
        f"Unknown {qualified_name} sub-command: {selector}. "
        f'Try "{qualified_name} {HELP_SELECTOR}" to see available commands.'
    )
