"""Backend interfaces for action proposal inference."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from terminal_agent.agent.models import ProposalRequest, ProposalResult


class ProposalBackend(Protocol):
    """Protocol implemented by inference collaborators."""

    async def propose(self, request: ProposalRequest) -> ProposalResult:
        """Return the next action payload or a failure description."""


@dataclass(slots=True)
class BackendRunRequest:
    """Inputs required to run the CLI agent once."""

    prompt: str
    prompt_file: Path
    stdout_path: Path
    stderr_path: Path
    model: str
    command_template: str
    timeout_seconds: float | None = None
    env: dict[str, str] | None = None


@dataclass(slots=True)
class BackendRunResult:
    """Execution outcome from the subprocess runner."""

    exit_code: int
    timed_out: bool
    stdout_path: Path
    stderr_path: Path
