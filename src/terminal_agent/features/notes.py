"""``notes`` command namespace backed by ``NotesRepository``."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from terminal_agent.commands import (
    CommandDefinition,
    CommandResult,
    ParameterSpec,
    ParameterType,
    namespace,
)
from terminal_agent.storage import NotesRepository, NoteView

LIST_LIMIT = 50
SEARCH_LIMIT = 5


class NotesFeature:
    """Personal note CRUD exposed as ``notes <sub-command>``."""

    def __init__(self, repository: NotesRepository) -> None:
        self.repository = repository

    def load_commands(self) -> list[CommandDefinition]:
        return [
            namespace(
                "notes",
                'Manage personal notes. Use "notes help" for sub-commands.',
                [
                    CommandDefinition(
                        name="create-note",
                        description='Create a new note. Usage: notes create-note "<content>"',
                        parameters=(ParameterSpec("content", "Note content"),),
                        handler=self._create,
                    ),
                    CommandDefinition(
                        name="edit-note",
                        description=(
                            "Edit an existing note. Usage: notes edit-note <noteId> <content>"
                        ),
                        parameters=(
                            ParameterSpec(
                                "noteId",
                                "ID of the note to edit",
                                type=ParameterType.NUMBER,
                            ),
                            ParameterSpec("content", "New content"),
                        ),
                        handler=self._edit,
                    ),
                    CommandDefinition(
                        name="delete-note",
                        description="Delete a note by ID. Usage: notes delete-note <noteId>",
                        parameters=(
                            ParameterSpec(
                                "noteId",
                                "ID of the note to delete",
                                type=ParameterType.NUMBER,
                            ),
                        ),
                        handler=self._delete,
                    ),
                    CommandDefinition(
                        name="list-notes",
                        description=f"List all notes (up to {LIST_LIMIT})",
                        handler=self._list,
                    ),
                    CommandDefinition(
                        name="search-note",
                        description='Search notes by text. Usage: notes search-note "<query>"',
                        parameters=(ParameterSpec("query", "Text to look for"),),
                        handler=self._search,
                    ),
                ],
            ),
        ]

    async def _create(self, args: Mapping[str, Any]) -> CommandResult:
        note_id = await asyncio.to_thread(self.repository.create_note, args["content"])
        return CommandResult(f"✅ Note created with ID: {note_id}")

    async def _edit(self, args: Mapping[str, Any]) -> CommandResult:
        note_id = _note_id(args["noteId"])
        if note_id is None or not await asyncio.to_thread(
            self.repository.edit_note,
            note_id,
            args["content"],
        ):
            return CommandResult(f"❌ Failed to edit note #{_display(args['noteId'])}.")
        return CommandResult(f"✅ Successfully updated note #{note_id}")

    async def _delete(self, args: Mapping[str, Any]) -> CommandResult:
        note_id = _note_id(args["noteId"])
        if note_id is None or not await asyncio.to_thread(self.repository.delete_note, note_id):
            return CommandResult(f"❌ Failed to delete note #{_display(args['noteId'])}.")
        return CommandResult(f"✅ Note #{note_id} deleted successfully.")

    async def _list(self, _: Mapping[str, Any]) -> CommandResult:
        notes = await asyncio.to_thread(self.repository.list_notes, limit=LIST_LIMIT)
        if not notes:
            return CommandResult("No notes found.")
        return CommandResult(f"Here are your notes:\n{_format_notes(notes)}")

    async def _search(self, args: Mapping[str, Any]) -> CommandResult:
        query = args["query"]
        notes = await asyncio.to_thread(self.repository.search_notes, query, limit=SEARCH_LIMIT)
        if not notes:
            return CommandResult(f'No matching notes found for "{query}".')
        return CommandResult(f'Top matches for "{query}":\n{_format_notes(notes)}')


def _note_id(value: float) -> int | None:
    if isinstance(value, float) and not value.is_integer():
        return None
    return int(value)


def _display(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _format_notes(notes: list[NoteView]) -> str:
    return "\n".join(f'ID: {note.note_id} | Content: "{note.content}"' for note in notes)
