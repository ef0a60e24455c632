"""Agent action loop: sessions, proposals, rolling context, and events."""

from terminal_agent.agent.context import AgentContext
from terminal_agent.agent.events import EventBus, LoopEvent
from terminal_agent.agent.loop import AgentLoop, AgentStore, SessionAlreadyRunningError
from terminal_agent.agent.models import (
    TRANSITIONS,
    ActionProposal,
    ConversationMessage,
    CyclePhase,
    ProposalRequest,
    ProposalResult,
    Session,
    SessionEndReason,
    SessionState,
    SessionSummary,
)
from terminal_agent.agent.proposals import ProposalError, parse_proposal_payload, validate_proposal

__all__ = [
    "TRANSITIONS",
    "ActionProposal",
    "AgentContext",
    "AgentLoop",
    "AgentStore",
    "ConversationMessage",
    "CyclePhase",
    "EventBus",
    "LoopEvent",
    "ProposalError",
    "ProposalRequest",
    "ProposalResult",
    "Session",
    "SessionAlreadyRunningError",
    "SessionEndReason",
    "SessionState",
    "SessionSummary",
    "parse_proposal_payload",
    "validate_proposal",
]
