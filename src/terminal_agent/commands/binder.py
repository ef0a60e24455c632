"""Positional parameter binding for terminal commands."""

from __future__ import annotations

import math
import re
from collections.abc import Sequence

from terminal_agent.commands.models import (
    BoundArguments,
    CommandDefinition,
    ParameterSpec,
    ParameterType,
)

_INTEGER = re.compile(r"[+-]?[0-9]+")
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class BindingError(ValueError):
    """Token list does not satisfy a command's parameters."""

    def __init__(self, parameter: str, message: str) -> None:
        super().__init__(message)
        self.parameter = parameter


def bind(definition: CommandDefinition, tokens: Sequence[str]) -> BoundArguments:
    """Map raw tokens onto the definition's parameters in declaration order.

    The last parameter, when it is a required text parameter, takes every
    remaining token joined by single spaces, so free text needs no quoting.
    Every other parameter consumes exactly one token. Surplus tokens are
    ignored. Unfilled optional parameters bind to ``None``.

    Raises:
        BindingError: a required parameter has no token, or a number
            parameter received a token that is not a finite ASCII decimal literal.
    """

    values: BoundArguments = {}
    cursor = 0
    last_index = len(definition.parameters) - 1
    for index, param in enumerate(definition.parameters):
        if index == last_index and param.required and param.is_text:
            value: object = " ".join(tokens[cursor:])
            cursor = len(tokens)
            if not value:
                raise _missing(param)
            values[param.name] = value
            continue

        token = tokens[cursor] if cursor < len(tokens) else None
        cursor += 1
        if not token:
            if param.required:
                raise _missing(param)
            values[param.name] = None
            continue

        if param.type is ParameterType.NUMBER:
            values[param.name] = _parse_number(param, token)
        else:
            values[param.name] = token
    return values


def _missing(param: ParameterSpec) -> BindingError:
    return BindingError(param.name, f"Missing required parameter: {param.name}")


def _parse_number(param: ParameterSpec, token: str) -> int | float:
    if _INTEGER.fullmatch(token):
        return int(token)
    number = float(token) if _DECIMAL.fullmatch(token) else math.nan
    if not math.isfinite(number):
        raise BindingError(param.name, f"Parameter '{param.name}' must be a number.")
    return number
