"""Command registry, parameter binding, and fault-isolated execution."""

from terminal_agent.commands.binder import BindingError, bind
from terminal_agent.commands.builtin import help_command
from terminal_agent.commands.executor import CommandExecutor, tokenize
from terminal_agent.commands.models import (
    BoundArguments,
    CommandDefinition,
    CommandHandler,
    CommandResult,
    ParameterSpec,
    ParameterType,
)
from terminal_agent.commands.namespace import namespace
from terminal_agent.commands.registry import CommandRegistry, DuplicateCommandError

__all__ = [
    "BindingError",
    "BoundArguments",
    "CommandDefinition",
    "CommandExecutor",
    "CommandHandler",
    "CommandRegistry",
    "CommandResult",
    "DuplicateCommandError",
    "ParameterSpec",
    "ParameterType",
    "bind",
    "help_command",
    "namespace",
    "tokenize",
]
