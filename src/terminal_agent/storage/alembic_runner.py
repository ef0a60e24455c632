"""Bring the terminal agent's SQLite file up to the latest Alembic revision."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[3]
HEAD_REVISION = "head"


def build_alembic_config(db_path: Path) -> Config:
    """Alembic config bound to the bundled migrations and ``db_path``."""

    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    return config


def upgrade_head(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.debug("Migrating %s to %s", db_path, HEAD_REVISION)
    command.upgrade(build_alembic_config(db_path), HEAD_REVISION)
