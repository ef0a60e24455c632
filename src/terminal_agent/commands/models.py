"""Domain models for terminal command definitions and results."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from terminal_agent.commands.registry import CommandRegistry


class ParameterType(str, Enum):
    """Type tags understood by the parameter binder."""

    STRING = "string"
    NUMBER = "number"


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    """One positional command parameter.

    ``default`` is documentation-only: it is rendered in help output but the
    binder never substitutes it for a missing token.
    """

    name: str
    description: str = ""
    required: bool = True
    type: ParameterType | None = ParameterType.STRING
    default: Any = None

    @property
    def is_text(self) -> bool:
        return self.type is None or self.type is ParameterType.STRING


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Text produced by a command; the executor never returns None."""

    output: str


BoundArguments = dict[str, Any]
CommandHandler = Callable[[Mapping[str, Any]], Awaitable[CommandResult | None]]


@dataclass(frozen=True, slots=True)
class CommandDefinition:
    """Named command with ordered parameters and either a handler or a nested registry."""

    name: str
    description: str
    parameters: tuple[ParameterSpec, ...] = ()
    handler: CommandHandler | None = None
    subcommands: CommandRegistry | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.name or any(char.isspace() for char in self.name):
            raise ValueError(f"Invalid command name: {self.name!r}")
        if (self.handler is None) == (self.subcommands is None):
            raise ValueError(
                f"Command {self.name!r} must define exactly one of handler or subcommands.",
            )
        seen: set[str] = set()
        for param in self.parameters:
            if param.name in seen:
                raise ValueError(f"Duplicate parameter {param.name!r} in command {self.name!r}.")
            seen.add(param.name)

    @property
    def is_namespace(self) -> bool:
        return self.subcommands is not None
