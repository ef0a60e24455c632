"""Runtime configuration for the terminal agent loop and its storage."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_COMMAND_TEMPLATE = "claude -p --model {model} -- {prompt}"
DEFAULT_PERSONALITY = "You are a helpful terminal assistant"


@dataclass(slots=True)
class AgentSettings:
    """Action loop and inference backend settings."""

    agent_name: str = "terminal-agent"
    personality: str = DEFAULT_PERSONALITY
    model: str = "sonnet"
    command_template: str = DEFAULT_COMMAND_TEMPLATE
    workdir_root: Path = Path(".terminal_agent_workdir")
    max_actions: int = 20
    action_cooldown_seconds: float = 120.0
    proposal_timeout_seconds: float | None = 300.0
    command_timeout_seconds: float | None = 120.0
    max_proposal_retries: int = 0


@dataclass(slots=True)
class StorageSettings:
    """SQLite persistence settings."""

    busy_timeout_ms: int = 5_000
    history_limit: int = 10


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    db_path: Path = Path(".terminal_agent.db")
    agent: AgentSettings = field(default_factory=AgentSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        return cls(
            db_path=db_path or Path(os.getenv("TERMINAL_AGENT_DB_PATH", ".terminal_agent.db")),
            agent=AgentSettings(
                agent_name=os.getenv("TERMINAL_AGENT_NAME", "terminal-agent"),
                personality=os.getenv("TERMINAL_AGENT_PERSONALITY", DEFAULT_PERSONALITY),
                model=os.getenv("TERMINAL_AGENT_MODEL", "sonnet"),
                command_template=os.getenv(
                    "TERMINAL_AGENT_COMMAND_TEMPLATE",
                    DEFAULT_COMMAND_TEMPLATE,
                ),
                workdir_root=Path(
                    os.getenv("TERMINAL_AGENT_WORKDIR_ROOT", ".terminal_agent_workdir"),
                ),
                max_actions=_env_int("TERMINAL_AGENT_MAX_ACTIONS", 20),
                action_cooldown_seconds=_env_float(
                    "TERMINAL_AGENT_ACTION_COOLDOWN_SECONDS",
                    120.0,
                ),
                proposal_timeout_seconds=_optional_timeout(
                    _env_float("TERMINAL_AGENT_PROPOSAL_TIMEOUT_SECONDS", 300.0),
                ),
                command_timeout_seconds=_optional_timeout(
                    _env_float("TERMINAL_AGENT_COMMAND_TIMEOUT_SECONDS", 120.0),
                ),
                max_proposal_retries=_env_int("TERMINAL_AGENT_MAX_PROPOSAL_RETRIES", 0),
            ),
            storage=StorageSettings(
                busy_timeout_ms=_env_int("TERMINAL_AGENT_BUSY_TIMEOUT_MS", 5_000),
                history_limit=_env_int("TERMINAL_AGENT_HISTORY_LIMIT", 10),
            ),
        )

    def validate_for_run(self) -> None:
        """Raise configuration error if the action loop cannot start with these settings."""

        agent = self.agent
        if agent.max_actions < 1:
            raise ValueError("TERMINAL_AGENT_MAX_ACTIONS must be >= 1.")
        if agent.action_cooldown_seconds < 0:
            raise ValueError("TERMINAL_AGENT_ACTION_COOLDOWN_SECONDS must be >= 0.")
        if agent.proposal_timeout_seconds is not None and agent.proposal_timeout_seconds <= 0:
            raise ValueError("TERMINAL_AGENT_PROPOSAL_TIMEOUT_SECONDS must be > 0.")
        if agent.command_timeout_seconds is not None and agent.command_timeout_seconds <= 0:
            raise ValueError("TERMINAL_AGENT_COMMAND_TIMEOUT_SECONDS must be > 0.")
        if agent.max_proposal_retries < 0:
            raise ValueError("TERMINAL_AGENT_MAX_PROPOSAL_RETRIES must be >= 0.")

        template = agent.command_template.strip()
        if not template:
            raise ValueError("TERMINAL_AGENT_COMMAND_TEMPLATE must not be empty.")
        if "{prompt}" not in template and "{prompt_file}" not in template:
            raise ValueError(
                "TERMINAL_AGENT_COMMAND_TEMPLATE must include {prompt} or {prompt_file}.",
            )
        if self.storage.history_limit < 1:
            raise ValueError("TERMINAL_AGENT_HISTORY_LIMIT must be >= 1.")


def _optional_timeout(value: float) -> float | None:
    if value == 0:
        return None
    return value


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {value!r}") from error


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value.strip())
    except ValueError as error:
        raise ValueError(f"Invalid number value for {name}: {value!r}") from error

