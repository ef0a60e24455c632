from __future__ import annotations

import asyncio

import allure

from terminal_agent.commands import (
    CommandDefinition,
    CommandExecutor,
    CommandRegistry,
    CommandResult,
    ParameterSpec,
    ParameterType,
    help_command,
    namespace,
    tokenize,
)
from terminal_agent.commands.executor import EMPTY_RESULT_TEXT

pytestmark = [
    allure.epic("Command Engine"),
    allure.feature("Command Executor"),
]


async def _echo(args) -> CommandResult:
    return CommandResult(f"echo: {args['text']}")


async def _boom(_args) -> CommandResult:
    raise RuntimeError("disk on fire")


async def _silent(_args) -> None:
    return None


async def _plain_string(_args) -> str:
    return "plain"


async def _slow(_args) -> CommandResult:
    await asyncio.sleep(5)
    return CommandResult("late")


async def _add(args) -> CommandResult:
    return CommandResult(f"sum={args['left'] + args['right']}")


def _build_registry() -> CommandRegistry:
    registry = CommandRegistry()
    registry.register([help_command(registry)])
    registry.register(
        [
            CommandDefinition(
                name="echo",
                description="Echo text",
                parameters=(ParameterSpec("text"),),
                handler=_echo,
            ),
            CommandDefinition(name="boom", description="Always fails", handler=_boom),
            CommandDefinition(name="silent", description="Returns nothing", handler=_silent),
            CommandDefinition(name="plain", description="Returns a string", handler=_plain_string),
            namespace(
                "notes",
                'Manage personal notes. Use "notes help" for sub-commands.',
                [
                    CommandDefinition(
                        name="add",
                        description="Add two numbers",
                        parameters=(
                            ParameterSpec("left", "Left operand", type=ParameterType.NUMBER),
                            ParameterSpec(
                                "right",
                                "Right operand",
                                type=ParameterType.NUMBER,
                                default=1,
                            ),
                        ),
                        handler=_add,
                    ),
                    CommandDefinition(
                        name="explode",
                        description="Nested failure",
                        handler=_boom,
                    ),
                ],
            ),
        ],
    )
    return registry


def _dispatch(command_line: str, *, timeout_seconds: float | None = None) -> str:
    executor = CommandExecutor(_build_registry(), timeout_seconds=timeout_seconds)
    return asyncio.run(executor.dispatch(command_line)).output


def test_tokenize_honours_quotes_and_falls_back_on_bad_quoting() -> None:
    assert tokenize('notes create-note "buy milk" today') == [
        "notes",
        "create-note",
        "buy milk",
        "today",
    ]
    assert tokenize('echo "unterminated text') == ["echo", '"unterminated', "text"]
    assert tokenize("   ") == []


def test_dispatch_runs_handler_with_bound_arguments() -> None:
    assert _dispatch("echo hello   there world") == "echo: hello there world"


def test_unknown_command_yields_result_text() -> None:
    output = _dispatch("frobnicate now")

    assert output == 'Unknown command: frobnicate. Use "help" to list available commands.'


def test_empty_command_line_yields_result_text() -> None:
    assert _dispatch("").startswith("No command provided.")


def test_handler_exception_becomes_failure_result() -> None:
    output = _dispatch("boom")

    assert output == '❌ Error executing command "boom": disk on fire'


def test_handler_returning_nothing_gets_default_text() -> None:
    assert _dispatch("silent") == EMPTY_RESULT_TEXT


def test_handler_returning_plain_string_is_wrapped() -> None:
    assert _dispatch("plain") == "plain"


def test_binding_failure_reports_parameter_and_usage() -> None:
    output = _dispatch("echo")

    assert output == "❌ Missing required parameter: text\nUsage: echo <text>"


def test_handler_timeout_becomes_failure_result() -> None:
    output = _dispatch("notes add 1 2", timeout_seconds=5)
    assert output == "sum=3"

    executor = CommandExecutor(
        CommandRegistry(
            [CommandDefinition(name="slow", description="Sleeps", handler=_slow)],
        ),
        timeout_seconds=0.05,
    )
    result = asyncio.run(executor.dispatch("slow"))

    assert result.output == '❌ Command "slow" timed out after 0.05 seconds.'


def test_help_lists_all_commands() -> None:
    output = _dispatch("help")

    assert output.startswith("Available commands:\n")
    for name in ("help", "echo", "boom", "silent", "plain", "notes"):
        assert f"\n{name}" in output


def test_unknown_subcommand_suggests_help() -> None:
    output = _dispatch("notes zzz")

    assert output == 'Unknown notes sub-command: zzz. Try "notes help" to see available commands.'


def test_namespace_without_tokens_shows_summary() -> None:
    assert _dispatch("notes") == _dispatch("notes help")


def test_namespace_help_summary_lists_every_nested_command() -> None:
    output = _dispatch("notes help")

    assert output.splitlines() == [
        'Available "notes" sub-commands:',
        '(Use "notes help <command>" for detailed parameter info)',
        "",
        f"{'add <left> <right>':<30} - Add two numbers",
        f"{'explode':<30} - Nested failure",
    ]


def test_namespace_help_for_one_command_lists_its_parameters() -> None:
    output = _dispatch("notes help add")

    assert output.splitlines() == [
        "Command: notes add",
        "Description: Add two numbers",
        "",
        "Usage:",
        "  notes add <left> <right>",
        "",
        "Parameters:",
        "  left <number>: Left operand (Required)",
        "  right <number>: Right operand (Required) [default: 1]",
    ]


def test_namespace_help_for_unknown_command() -> None:
    assert _dispatch("notes help nope").startswith("Unknown notes sub-command: nope.")


def test_nested_binding_failure_uses_qualified_usage() -> None:
    output = _dispatch("notes add one 2")

    assert output == "❌ Parameter 'left' must be a number.\nUsage: notes add <left> <right>"


def test_nested_handler_failure_is_annotated_with_nested_name() -> None:
    output = _dispatch("notes explode")

    assert output == '❌ Error executing command "notes explode": disk on fire'


def test_declared_default_is_not_applied() -> None:
    output = _dispatch("notes add 5")

    assert output == "❌ Missing required parameter: right\nUsage: notes add <left> <right>"


async def _dict_result(_args) -> dict:
    return {"output": "hi"}


async def _upstream_timeout(_args) -> CommandResult:
    raise TimeoutError("upstream API timed out")


def _single_command_executor(handler, *, timeout_seconds: float | None = None) -> CommandExecutor:
    registry = CommandRegistry(
        [CommandDefinition(name="fetch", description="Single command", handler=handler)],
    )
    return CommandExecutor(registry, timeout_seconds=timeout_seconds)


def test_unsupported_handler_result_becomes_failure_result(caplog) -> None:
    result = asyncio.run(_single_command_executor(_dict_result).dispatch("fetch"))

    assert result.output == '❌ Command "fetch" returned an invalid result: dict'
    assert "unsupported result type dict" in caplog.text


def test_handler_raised_timeout_is_a_handler_error(caplog) -> None:
    result = asyncio.run(_single_command_executor(_upstream_timeout).dispatch("fetch"))

    assert result.output == '❌ Error executing command "fetch": upstream API timed out'
    assert "Command fetch failed" in caplog.text
    assert "TimeoutError: upstream API timed out" in caplog.text


def test_handler_raised_timeout_within_deadline_is_a_handler_error() -> None:
    executor = _single_command_executor(_upstream_timeout, timeout_seconds=5)

    result = asyncio.run(executor.dispatch("fetch"))

    assert result.output == '❌ Error executing command "fetch": upstream API timed out'
