"""Domain models for agent sessions, proposals, and the cycle state machine."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SessionState(str, Enum):
    """Process-level loop state."""

    IDLE = "idle"
    RUNNING = "running"


class CyclePhase(str, Enum):
    """Steps of one propose/execute cycle."""

    REQUEST_PROPOSAL = "request_proposal"
    VALIDATE = "validate"
    RECORD = "record"
    EXECUTE = "execute"
    PERSIST = "persist"
    FEEDBACK = "feedback"
    COOLDOWN = "cooldown"
    FINISHED = "finished"


TRANSITIONS: dict[CyclePhase, frozenset[CyclePhase]] = {
    CyclePhase.REQUEST_PROPOSAL: frozenset({CyclePhase.VALIDATE, CyclePhase.FINISHED}),
    CyclePhase.VALIDATE: frozenset(
        {CyclePhase.RECORD, CyclePhase.REQUEST_PROPOSAL, CyclePhase.FINISHED},
    ),
    CyclePhase.RECORD: frozenset({CyclePhase.EXECUTE}),
    CyclePhase.EXECUTE: frozenset({CyclePhase.PERSIST}),
    CyclePhase.PERSIST: frozenset({CyclePhase.FEEDBACK}),
    CyclePhase.FEEDBACK: frozenset({CyclePhase.COOLDOWN, CyclePhase.FINISHED}),
    CyclePhase.COOLDOWN: frozenset({CyclePhase.REQUEST_PROPOSAL}),
    CyclePhase.FINISHED: frozenset(),
}


def can_transition(source: CyclePhase, target: CyclePhase) -> bool:
    return target in TRANSITIONS[source]


class SessionEndReason(str, Enum):
    """Why a session returned to idle."""

    MAX_ACTIONS = "max_actions"
    INFERENCE_FAILURE = "inference_failure"
    INVALID_PROPOSAL = "invalid_proposal"


@dataclass(frozen=True, slots=True)
class ActionProposal:
    """Validated unit of intent for one cycle."""

    thought: str
    plan: str
    command: str


@dataclass(frozen=True, slots=True)
class ConversationMessage:
    role: str
    content: str


@dataclass(slots=True)
class ProposalRequest:
    """Everything an inference backend needs to propose the next action."""

    session_id: str
    cycle: int
    system_prompt: str
    messages: list[ConversationMessage] = field(default_factory=list)


@dataclass(slots=True)
class ProposalResult:
    """Raw backend output: a JSON-like payload or an error description."""

    payload: Mapping[str, Any] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.payload is not None and self.error is None

    @classmethod
    def failure(cls, error: str) -> ProposalResult:
        return cls(payload=None, error=error)


@dataclass(slots=True)
class Session:
    """Mutable per-session counters owned by the loop."""

    session_id: str
    max_actions: int
    cooldown_seconds: float
    action_count: int = 0
    proposal_requests: int = 0
    state: SessionState = SessionState.IDLE
    phase: CyclePhase = CyclePhase.REQUEST_PROPOSAL

    @property
    def budget_left(self) -> bool:
        return self.action_count < self.max_actions

    def advance(self, target: CyclePhase) -> None:
        """Move to ``target``; an illegal edge is a programming error."""

        if not can_transition(self.phase, target):
            raise RuntimeError(
                f"Illegal cycle transition: {self.phase.value} -> {target.value}",
            )
        self.phase = target


@dataclass(slots=True)
class SessionSummary:
    """Outcome returned by ``AgentLoop.run_session``."""

    session_id: str
    actions: int
    end_reason: SessionEndReason
    record_ids: list[int] = field(default_factory=list)
