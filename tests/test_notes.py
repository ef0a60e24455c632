from __future__ import annotations

import asyncio
import threading
import time
from pathlib import Path

import allure
import pytest

from terminal_agent.commands import CommandExecutor
from terminal_agent.controllers import build_registry
from terminal_agent.features import NotesFeature
from terminal_agent.storage import NotesRepository

pytestmark = [
    allure.epic("Features"),
    allure.feature("Notes"),
]


@pytest.fixture()
def notes_repository(db_path: Path):
    repo = NotesRepository(db_path)
    repo.init_schema()
    yield repo
    repo.close()


@pytest.fixture()
def run_command(notes_repository: NotesRepository):
    executor = CommandExecutor(build_registry([NotesFeature(notes_repository)]))

    def _run(command_line: str) -> str:
        return asyncio.run(executor.dispatch(command_line)).output

    return _run


def test_repository_crud(notes_repository: NotesRepository) -> None:
    note_id = notes_repository.create_note("buy milk")

    assert notes_repository.edit_note(note_id, "buy oat milk") is True
    assert notes_repository.list_notes()[0].content == "buy oat milk"
    assert notes_repository.delete_note(note_id) is True
    assert notes_repository.delete_note(note_id) is False
    assert notes_repository.edit_note(note_id, "gone") is False
    assert notes_repository.list_notes() == []


def test_search_is_case_insensitive_substring_top_five(notes_repository: NotesRepository) -> None:
    for index in range(7):
        notes_repository.create_note(f"Meeting notes #{index}")
    notes_repository.create_note("groceries")

    results = notes_repository.search_notes("MEETING")

    assert len(results) == 5
    assert results[0].content == "Meeting notes #6"
    assert notes_repository.search_notes("   ") == []


def test_create_note_takes_free_text(run_command) -> None:
    output = run_command("notes create-note remember the   quarterly report")

    assert output == "✅ Note created with ID: 1"
    assert run_command("notes list-notes") == (
        'Here are your notes:\nID: 1 | Content: "remember the quarterly report"'
    )


def test_edit_and_delete_by_numeric_id(run_command) -> None:
    run_command('notes create-note "first draft"')

    assert run_command("notes edit-note 1 final version") == "✅ Successfully updated note #1"
    assert 'Content: "final version"' in run_command("notes list-notes")
    assert run_command("notes delete-note 1") == "✅ Note #1 deleted successfully."
    assert run_command("notes delete-note 1") == "❌ Failed to delete note #1."
    assert run_command("notes list-notes") == "No notes found."


def test_non_integer_note_id_is_rejected(run_command) -> None:
    assert run_command("notes delete-note 1.5") == "❌ Failed to delete note #1.5."


def test_non_numeric_note_id_is_a_binding_error(run_command) -> None:
    output = run_command("notes edit-note abc new text")

    assert output == (
        "❌ Parameter 'noteId' must be a number.\nUsage: notes edit-note <noteId> <content>"
    )


def test_search_note_output(run_command) -> None:
    run_command("notes create-note Call the dentist")

    assert run_command("notes search-note dentist") == (
        'Top matches for "dentist":\nID: 1 | Content: "Call the dentist"'
    )
    assert run_command("notes search-note plumber") == 'No matching notes found for "plumber".'


def test_notes_help_lists_every_sub_command(run_command) -> None:
    output = run_command("notes help")

    for name in ("create-note", "edit-note", "delete-note", "list-notes", "search-note"):
        assert f"\n{name}" in output
    assert "noteId <number>: ID of the note to edit (Required)" in run_command(
        "notes help edit-note",
    )


def test_storage_failure_surfaces_as_result_text(
    run_command,
    notes_repository: NotesRepository,
    monkeypatch,
) -> None:
    def locked(*_args, **_kwargs):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(notes_repository, "list_notes", locked)

    output = run_command("notes list-notes")

    assert output == '❌ Error executing command "notes list-notes": database is locked'


def test_repository_calls_run_off_the_event_loop_thread(
    run_command,
    notes_repository: NotesRepository,
    monkeypatch,
) -> None:
    loop_thread = threading.get_ident()
    seen: list[int] = []
    list_notes = notes_repository.list_notes

    def tracking(**kwargs):
        seen.append(threading.get_ident())
        return list_notes(**kwargs)

    monkeypatch.setattr(notes_repository, "list_notes", tracking)

    assert run_command("notes list-notes") == "No notes found."
    assert len(seen) == 1
    assert seen[0] != loop_thread


def test_slow_storage_is_cut_off_by_command_timeout(
    notes_repository: NotesRepository,
    monkeypatch,
) -> None:
    def slow_search(*_args, **_kwargs):
        time.sleep(0.5)
        return []

    monkeypatch.setattr(notes_repository, "search_notes", slow_search)
    executor = CommandExecutor(
        build_registry([NotesFeature(notes_repository)]),
        timeout_seconds=0.05,
    )

    result = asyncio.run(executor.dispatch("notes search-note dentist"))

    assert result.output == '❌ Command "notes search-note" timed out after 0.05 seconds.'
