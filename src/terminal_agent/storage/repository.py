"""Persistent action history, short-term context, and status flag."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from sqlalchemy import delete as sa_delete
from sqlmodel import Session, col, select

from terminal_agent.storage.alembic_runner import upgrade_head
from terminal_agent.storage.common import as_utc, build_sqlite_engine, utc_now
from terminal_agent.storage.sqlmodel_models import (
    TERMINAL_STATUS_ROW_ID,
    ShortTermMessage,
    TerminalHistoryEntry,
    TerminalStatus,
)

STORED_ROLES = ("system", "assistant", "user")
ROLE_LABELS = {"assistant": "[YOU]", "user": "[TERMINAL]"}


@dataclass(slots=True)
class ActionRecordView:
    """Readable action record for CLI output."""

    record_id: int
    session_id: str
    thought: str | None
    plan: str | None
    command: str
    terminal_log: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(slots=True)
class StoredMessage:
    """Short-term history message."""

    role: str
    content: str
    session_id: str
    created_at: datetime


@dataclass(slots=True)
class TerminalStatusView:
    is_active: bool
    last_updated: datetime


class TerminalRepository:
    """Persistence facade backed by SQLModel + SQLite."""

    def __init__(self, db_path: Path, *, busy_timeout_ms: int = 5_000) -> None:
        self.db_path = db_path
        self.engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=busy_timeout_ms)

    def close(self) -> None:
        """Close underlying DB resources."""

        self.engine.dispose()

    def init_schema(self) -> None:
        """Run schema migrations."""

        upgrade_head(self.db_path)

    def create_action_record(
        self,
        *,
        session_id: str,
        thought: str,
        plan: str,
        command: str,
    ) -> int:
        """Insert a provisional record whose terminal log is filled in later."""

        now = utc_now()
        with Session(self.engine) as session:
            row = TerminalHistoryEntry(
                session_id=session_id,
                internal_thought=thought,
                plan=plan,
                command=command,
                terminal_log=None,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            if row.id is None:
                raise RuntimeError("Action record insert did not return an id.")
            return row.id

    def update_action_record(self, *, record_id: int, result_text: str) -> bool:
        """Attach the command output to an existing record."""

        with Session(self.engine) as session:
            row = session.get(TerminalHistoryEntry, record_id)
            if row is None:
                return False
            row.terminal_log = result_text
            row.updated_at = utc_now()
            session.add(row)
            session.commit()
            return True

    def append_short_term_message(self, *, role: str, content: str, session_id: str) -> None:
        """Store one message; ``function`` messages are not kept."""

        if role == "function":
            return
        if role not in STORED_ROLES:
            raise ValueError(f"Unsupported message role: {role!r}")
        with Session(self.engine) as session:
            session.add(
                ShortTermMessage(
                    session_id=session_id,
                    role=role,
                    content=content,
                    created_at=utc_now(),
                ),
            )
            session.commit()

    def clear_short_term_history(self) -> int:
        with Session(self.engine) as session:
            result = session.exec(sa_delete(ShortTermMessage))
            session.commit()
            return int(result.rowcount or 0)

    def set_active_status(self, is_active: bool) -> None:
        now = utc_now()
        with Session(self.engine) as session:
            row = session.get(TerminalStatus, TERMINAL_STATUS_ROW_ID)
            if row is None:
                row = TerminalStatus(
                    id=TERMINAL_STATUS_ROW_ID,
                    is_active=is_active,
                    last_updated=now,
                )
            else:
                row.is_active = is_active
                row.last_updated = now
            session.add(row)
            session.commit()

    def get_status(self) -> TerminalStatusView | None:
        with Session(self.engine) as session:
            row = session.get(TerminalStatus, TERMINAL_STATUS_ROW_ID)
            if row is None:
                return None
            return TerminalStatusView(
                is_active=row.is_active,
                last_updated=as_utc(row.last_updated),
            )

    def list_short_term_history(self, *, limit: int = 10) -> list[StoredMessage]:
        """Return the ``limit`` most recent messages, oldest first."""

        with Session(self.engine) as session:
            rows = session.exec(
                select(ShortTermMessage)
                .order_by(col(ShortTermMessage.id).desc())
                .limit(limit),
            ).all()
            return [
                StoredMessage(
                    role=row.role,
                    content=row.content,
                    session_id=row.session_id,
                    created_at=as_utc(row.created_at),
                )
                for row in reversed(rows)
            ]

    def format_recent_history(self, *, limit: int = 6) -> str:
        blocks: list[str] = []
        for message in self.list_short_term_history(limit=limit):
            label = ROLE_LABELS.get(message.role, f"[{message.role.upper()}]")
            blocks.append(f"{label}:\n{message.content}")
        return "\n-------------------\n".join(blocks)

    def list_action_records(
        self,
        *,
        session_id: str | None = None,
        limit: int = 50,
    ) -> list[ActionRecordView]:
        """Most recent records first, optionally scoped to one session."""

        with Session(self.engine) as session:
            query = select(TerminalHistoryEntry)
            if session_id is not None:
                query = query.where(TerminalHistoryEntry.session_id == session_id)
            rows = session.exec(
                query.order_by(col(TerminalHistoryEntry.id).desc()).limit(limit),
            ).all()
            return [_to_record_view(row) for row in rows]


def _to_record_view(row: TerminalHistoryEntry) -> ActionRecordView:
    if row.id is None:
        raise RuntimeError("Persisted action record is missing an id.")
    return ActionRecordView(
        record_id=row.id,
        session_id=row.session_id,
        thought=row.internal_thought,
        plan=row.plan,
        command=row.command,
        terminal_log=row.terminal_log,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )
