"""SQLite persistence for action history, short-term context, status, and notes."""

from terminal_agent.storage.notes_repository import NotesRepository, NoteView
from terminal_agent.storage.repository import (
    ActionRecordView,
    StoredMessage,
    TerminalRepository,
    TerminalStatusView,
)

__all__ = [
    "ActionRecordView",
    "NoteView",
    "NotesRepository",
    "StoredMessage",
    "TerminalRepository",
    "TerminalStatusView",
]
