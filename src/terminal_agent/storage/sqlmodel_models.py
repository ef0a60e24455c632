"""SQLModel ORM tables for terminal agent storage."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Text
from sqlmodel import Field, SQLModel

TERMINAL_STATUS_ROW_ID = 1


class TerminalHistoryEntry(SQLModel, table=True):
    __tablename__ = "terminal_history"  # type: ignore[bad-override]
    __table_args__ = (Index("idx_terminal_history_session_time", "session_id", "created_at"),)

    id: int | None = Field(default=None, primary_key=True)
    session_id: str = Field(index=True)
    internal_thought: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    plan: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    command: str = Field(sa_column=Column(Text, nullable=False))
    terminal_log: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class ShortTermMessage(SQLModel, table=True):
    __tablename__ = "short_term_terminal_history"  # type: ignore[bad-override]

    id: int | None = Field(default=None, primary_key=True)
    session_id: str = Field(index=True)
    role: str
    content: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class TerminalStatus(SQLModel, table=True):
    __tablename__ = "terminal_status"  # type: ignore[bad-override]

    id: int = Field(default=TERMINAL_STATUS_ROW_ID, primary_key=True)
    is_active: bool = False
    last_updated: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class Note(SQLModel, table=True):
    __tablename__ = "notes"  # type: ignore[bad-override]

    id: int | None = Field(default=None, primary_key=True)
    content: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
