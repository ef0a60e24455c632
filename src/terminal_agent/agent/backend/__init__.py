"""Inference backends that produce action proposals."""

from terminal_agent.agent.backend.base import BackendRunRequest, BackendRunResult, ProposalBackend
from terminal_agent.agent.backend.cli_backend import (
    BackendRunError,
    CliAgentBackend,
    CliProposalBackend,
)

__all__ = [
    "BackendRunError",
    "BackendRunRequest",
    "BackendRunResult",
    "CliAgentBackend",
    "CliProposalBackend",
    "ProposalBackend",
]
