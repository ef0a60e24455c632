"""Shared test fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from terminal_agent.agent import AgentLoop

ECHO_AGENT_COMMAND_TEMPLATE = (
    f"{sys.executable} -m terminal_agent.agent.backend.echo_agent --prompt-file {{prompt_file}}"
)


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "terminal-agent.db"


@pytest.fixture()
def echo_agent(monkeypatch, tmp_path: Path) -> str:
    """Point the CLI backend at the local echo agent with no cooldown."""

    monkeypatch.setenv("TERMINAL_AGENT_COMMAND_TEMPLATE", ECHO_AGENT_COMMAND_TEMPLATE)
    monkeypatch.setenv("TERMINAL_AGENT_WORKDIR_ROOT", str(tmp_path / "workdir"))
    monkeypatch.setenv("TERMINAL_AGENT_ACTION_COOLDOWN_SECONDS", "0")
    monkeypatch.delenv("TERMINAL_AGENT_ECHO_COMMAND", raising=False)
    return ECHO_AGENT_COMMAND_TEMPLATE


@pytest.fixture(autouse=True)
def _release_session_guard():
    yield
    AgentLoop._active_session = None
