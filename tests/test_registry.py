from __future__ import annotations

import allure
import pytest

from terminal_agent.commands import (
    CommandDefinition,
    CommandRegistry,
    CommandResult,
    DuplicateCommandError,
    ParameterSpec,
    help_command,
    namespace,
)
from terminal_agent.commands.registry import format_signature

pytestmark = [
    allure.epic("Command Engine"),
    allure.feature("Command Registry"),
]


async def _noop(_args) -> CommandResult:
    return CommandResult("ok")


def _command(
    name: str,
    *parameters: ParameterSpec,
    description: str = "Does things",
) -> CommandDefinition:
    return CommandDefinition(
        name=name,
        description=description,
        parameters=parameters,
        handler=_noop,
    )


def test_lookup_returns_registered_definition_or_none() -> None:
    registry = CommandRegistry([_command("alpha")])

    assert registry.lookup("alpha") is not None
    assert registry.lookup("missing") is None
    assert "alpha" in registry
    assert len(registry) == 1


def test_duplicate_registration_rejects_whole_batch() -> None:
    registry = CommandRegistry([_command("alpha")])

    with pytest.raises(DuplicateCommandError, match="Command already registered: alpha"):
        registry.register([_command("beta"), _command("alpha")])

    assert registry.names() == ["alpha"]


def test_duplicate_names_within_one_batch_are_rejected() -> None:
    with pytest.raises(DuplicateCommandError):
        CommandRegistry([_command("alpha"), _command("alpha")])


def test_help_text_is_aligned_and_keeps_registration_order() -> None:
    registry = CommandRegistry(
        [
            _command("zeta", ParameterSpec("content"), description="Last letter"),
            _command("alpha", ParameterSpec("limit", required=False), description="First letter"),
        ],
    )

    assert registry.generate_help_text().splitlines() == [
        f"{'zeta <content>':<30} - Last letter",
        f"{'alpha [limit]':<30} - First letter",
    ]


def test_help_text_widens_for_long_signatures() -> None:
    long_name = "x" * 40
    registry = CommandRegistry([_command(long_name), _command("short")])

    lines = registry.generate_help_text().splitlines()

    assert lines[0] == f"{long_name}  - Does things"
    assert lines[1] == f"{'short':<41} - Does things"


def test_help_text_is_idempotent() -> None:
    registry = CommandRegistry([_command("alpha", ParameterSpec("x")), _command("beta")])

    assert registry.generate_help_text() == registry.generate_help_text()


def test_namespace_signature_shows_optional_selector_and_args() -> None:
    notes = namespace("notes", "Manage notes", [_command("list-notes")])

    assert format_signature(notes) == "notes [subcommand] [args]"


def test_help_command_sees_commands_registered_later() -> None:
    registry = CommandRegistry()
    registry.register([help_command(registry)])
    registry.register([_command("later")])

    assert [definition.name for definition in registry] == ["help", "later"]
    assert "later" in registry.generate_help_text()


@pytest.mark.parametrize("name", ["", "two words"])
def test_definition_rejects_invalid_names(name: str) -> None:
    with pytest.raises(ValueError, match="Invalid command name"):
        _command(name)


def test_definition_requires_exactly_one_of_handler_or_subcommands() -> None:
    with pytest.raises(ValueError, match="exactly one"):
        CommandDefinition(name="broken", description="No handler")


def test_definition_rejects_duplicate_parameter_names() -> None:
    with pytest.raises(ValueError, match="Duplicate parameter"):
        _command("dup", ParameterSpec("x"), ParameterSpec("x"))
