"""Process-wide registry of terminal commands and generated help text."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from terminal_agent.commands.models import CommandDefinition, ParameterSpec

HELP_COLUMN_WIDTH = 30


class DuplicateCommandError(ValueError):
    """Raised when a command name is registered twice in the same registry."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Command already registered: {name}")
        self.name = name


class CommandRegistry:
    """Insertion-ordered mapping of command name to definition."""

    def __init__(self, definitions: Iterable[CommandDefinition] = ()) -> None:
        self._commands: dict[str, CommandDefinition] = {}
        self.register(definitions)

    def register(self, definitions: Iterable[CommandDefinition]) -> None:
        """Register definitions, rejecting the whole batch if any name is taken."""

        batch = list(definitions)
        names: set[str] = set()
        for definition in batch:
            if definition.name in self._commands or definition.name in names:
                raise DuplicateCommandError(definition.name)
            names.add(definition.name)
        for definition in batch:
            self._commands[definition.name] = definition

    def lookup(self, name: str) -> CommandDefinition | None:
        return self._commands.get(name)

    def names(self) -> list[str]:
        return list(self._commands)

    def generate_help_text(self) -> str:
        """Render one aligned line per registered command, in registration order."""

        return "\n".join(render_command_lines(self._commands.values()))

    def __iter__(self) -> Iterator[CommandDefinition]:
        return iter(list(self._commands.values()))

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, name: object) -> bool:
        return name in self._commands


def format_parameter(param: ParameterSpec) -> str:
    return f"<{param.name}>" if param.required else f"[{param.name}]"


def format_signature(definition: CommandDefinition) -> str:
    """Return ``name <required> [optional]`` for a definition."""

    parts = [definition.name, *(format_parameter(param) for param in definition.parameters)]
    return " ".join(parts)


def render_command_lines(
    definitions: Iterable[CommandDefinition],
    *,
    min_width: int = HELP_COLUMN_WIDTH,
) -> list[str]:
    entries = [
        (format_signature(definition), definition.description) for definition in definitions
    ]
    if not entries:
        return []
    width = max(min_width, *(len(signature) + 1 for signature, _ in entries))
    return [f"{signature.ljust(width)} - {description}" for signature, description in entries]
