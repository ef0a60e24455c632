"""Concrete command features loaded into the registry before the loop starts."""

from __future__ import annotations

from typing import Protocol

from terminal_agent.commands import CommandDefinition
from terminal_agent.features.notes import NotesFeature


class Feature(Protocol):
    def load_commands(self) -> list[CommandDefinition]: ...


__all__ = ["Feature", "NotesFeature"]
