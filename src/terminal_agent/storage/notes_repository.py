"""Note storage used by the ``notes`` command feature."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from sqlalchemy import func
from sqlmodel import Session, col, select

from terminal_agent.storage.alembic_runner import upgrade_head
from terminal_agent.storage.common import as_utc, build_sqlite_engine, utc_now
from terminal_agent.storage.sqlmodel_models import Note


@dataclass(slots=True)
class NoteView:
    note_id: int
    content: str
    created_at: datetime
    updated_at: datetime


class NotesRepository:
    """CRUD and substring search over notes."""

    def __init__(self, db_path: Path, *, busy_timeout_ms: int = 5_000) -> None:
        self.db_path = db_path
        self.engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=busy_timeout_ms)

    def close(self) -> None:
        self.engine.dispose()

    def init_schema(self) -> None:
        upgrade_head(self.db_path)

    def create_note(self, content: str) -> int:
        now = utc_now()
        with Session(self.engine) as session:
            row = Note(content=content, created_at=now, updated_at=now)
            session.add(row)
            session.commit()
            session.refresh(row)
            if row.id is None:
                raise RuntimeError("Note insert did not return an id.")
            return row.id

    def edit_note(self, note_id: int, content: str) -> bool:
        with Session(self.engine) as session:
            row = session.get(Note, note_id)
            if row is None:
                return False
            row.content = content
            row.updated_at = utc_now()
            session.add(row)
            session.commit()
            return True

    def delete_note(self, note_id: int) -> bool:
        with Session(self.engine) as session:
            row = session.get(Note, note_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    def list_notes(self, *, limit: int = 50) -> list[NoteView]:
        """Newest notes first."""

        with Session(self.engine) as session:
            rows = session.exec(select(Note).order_by(col(Note.id).desc()).limit(limit)).all()
            return [_to_view(row) for row in rows]

    def search_notes(self, query: str, *, limit: int = 5) -> list[NoteView]:
        """Case-insensitive substring match, newest first."""

        needle = query.strip().lower()
        if not needle:
            return []
        with Session(self.engine) as session:
            rows = session.exec(
                select(Note)
                .where(func.instr(func.lower(Note.content), needle) > 0)
                .order_by(col(Note.id).desc())
                .limit(limit),
            ).all()
            return [_to_view(row) for row in rows]


def _to_view(row: Note) -> NoteView:
    if row.id is None:
        raise RuntimeError("Persisted note is missing an id.")
    return NoteView(
        note_id=row.id,
        content=row.content,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )
