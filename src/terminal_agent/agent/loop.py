"""Bounded propose/execute action loop driving the command pipeline."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, ClassVar, Protocol, TypeVar

from terminal_agent.agent.backend.base import ProposalBackend
from terminal_agent.agent.context import (
    AgentContext,
    format_assistant_message,
    format_proposal_error,
    format_terminal_log,
)
from terminal_agent.agent.events import EventBus, LoopEvent
from terminal_agent.agent.models import (
    ActionProposal,
    CyclePhase,
    ProposalResult,
    Session,
    SessionEndReason,
    SessionState,
    SessionSummary,
)
from terminal_agent.agent.proposals import ProposalError, validate_proposal
from terminal_agent.commands import CommandExecutor, CommandRegistry, CommandResult
from terminal_agent.config import AgentSettings
from terminal_agent.sanitization import sanitize_preview

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AgentStore(Protocol):
    """Narrow persistence interface the loop writes through."""

    def create_action_record(
        self,
        *,
        session_id: str,
        thought: str,
        plan: str,
        command: str,
    ) -> int: ...

    def update_action_record(self, *, record_id: int, result_text: str) -> bool: ...

    def append_short_term_message(self, *, role: str, content: str, session_id: str) -> None: ...

    def clear_short_term_history(self) -> int: ...

    def set_active_status(self, is_active: bool) -> None: ...


class SessionAlreadyRunningError(RuntimeError):
    """Another session is active in this process."""


@dataclass(slots=True)
class _CycleState:
    """Scratch values carried between phases of one cycle."""

    payload: Mapping[str, Any] | None = None
    proposal: ActionProposal | None = None
    record_id: int | None = None
    result: CommandResult | None = None
    assistant_text: str = ""
    user_text: str = ""
    retries_left: int = 0


def _utc_now() -> datetime:
    return datetime.now(UTC)


class AgentLoop:
    """Scheduler for one session at a time: propose, validate, execute, persist, feed back.

    Sessions are serialized process-wide; ``run_session`` raises
    ``SessionAlreadyRunningError`` while another one is in progress.
    """

    _active_session: ClassVar[str | None] = None

    def __init__(  # noqa: PLR0913
        self,
        *,
        registry: CommandRegistry,
        backend: ProposalBackend,
        store: AgentStore,
        settings: AgentSettings,
        events: EventBus | None = None,
        executor: CommandExecutor | None = None,
        context: AgentContext | None = None,
        clock: Callable[[], datetime] = _utc_now,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.registry = registry
        self.backend = backend
        self.store = store
        self.settings = settings
        self.events = events or EventBus()
        self.executor = executor or CommandExecutor(
            registry,
            timeout_seconds=settings.command_timeout_seconds,
        )
        self.context = context or AgentContext(personality=settings.personality)
        self.clock = clock
        self.sleep = sleep
        self.session: Session | None = None

    @property
    def state(self) -> SessionState:
        if self.session is None:
            return SessionState.IDLE
        return self.session.state

    def set_dynamic_variables(self, values: Mapping[str, str]) -> None:
        self.context.set_dynamic_variables(values)

    async def run_session(self) -> SessionSummary:
        """Run one session until the action budget is spent or a cycle fails."""

        if AgentLoop._active_session is not None:
            raise SessionAlreadyRunningError(
                f"Session {AgentLoop._active_session} is already running in this process.",
            )
        session = Session(
            session_id=str(uuid.uuid4()),
            max_actions=self.settings.max_actions,
            cooldown_seconds=self.settings.action_cooldown_seconds,
        )
        AgentLoop._active_session = session.session_id
        self.session = session
        try:
            return await self._run(session)
        finally:
            self._store_call("clear_short_term_history", self.store.clear_short_term_history)
            self._store_call("set_active_status", self.store.set_active_status, False)
            session.state = SessionState.IDLE
            AgentLoop._active_session = None
            logger.info(
                "Session %s going idle after %d action(s)",
                session.session_id,
                session.action_count,
            )

    async def _run(self, session: Session) -> SessionSummary:
        session.state = SessionState.RUNNING
        self.context.reset()
        self._store_call("set_active_status", self.store.set_active_status, True)
        logger.info(
            "Starting session %s (max_actions=%d, cooldown=%ss)",
            session.session_id,
            session.max_actions,
            session.cooldown_seconds,
        )

        end_reason = SessionEndReason.MAX_ACTIONS
        record_ids: list[int] = []
        cycle = _CycleState(retries_left=self.settings.max_proposal_retries)

        while session.phase is not CyclePhase.FINISHED:
            phase = session.phase
            if phase is CyclePhase.REQUEST_PROPOSAL:
                result = await self._request_proposal(session)
                if not result.ok:
                    logger.error(
                        "Inference failed in session %s: %s",
                        session.session_id,
                        result.error or "no proposal returned",
                    )
                    end_reason = SessionEndReason.INFERENCE_FAILURE
                    session.advance(CyclePhase.FINISHED)
                    continue
                cycle.payload = result.payload
                session.advance(CyclePhase.VALIDATE)

            elif phase is CyclePhase.VALIDATE:
                try:
                    cycle.proposal = validate_proposal(cycle.payload)
                except ProposalError as error:
                    logger.error("Rejected proposal in session %s: %s", session.session_id, error)
                    self.context.add_user_message(format_proposal_error(str(error)))
                    if cycle.retries_left > 0:
                        cycle.retries_left -= 1
                        session.advance(CyclePhase.REQUEST_PROPOSAL)
                    else:
                        end_reason = SessionEndReason.INVALID_PROPOSAL
                        session.advance(CyclePhase.FINISHED)
                    continue
                session.advance(CyclePhase.RECORD)

            elif phase is CyclePhase.RECORD:
                proposal = _require(cycle.proposal)
                cycle.record_id = self._store_call(
                    "create_action_record",
                    self.store.create_action_record,
                    session_id=session.session_id,
                    thought=proposal.thought,
                    plan=proposal.plan,
                    command=proposal.command,
                )
                if cycle.record_id is not None:
                    record_ids.append(cycle.record_id)
                session.advance(CyclePhase.EXECUTE)

            elif phase is CyclePhase.EXECUTE:
                command_line = _require(cycle.proposal).command
                logger.info(
                    "Session %s running: %s",
                    session.session_id,
                    sanitize_preview(command_line),
                )
                cycle.result = await self.executor.dispatch(command_line)
                session.advance(CyclePhase.PERSIST)

            elif phase is CyclePhase.PERSIST:
                self._persist(session, cycle)
                session.advance(CyclePhase.FEEDBACK)

            elif phase is CyclePhase.FEEDBACK:
                self.context.add_assistant_message(cycle.assistant_text)
                self.context.add_user_message(cycle.user_text)
                self.events.emit(LoopEvent.ITERATION, cycle.assistant_text, cycle.user_text)
                session.action_count += 1
                logger.info(
                    "Session %s completed action %d/%d",
                    session.session_id,
                    session.action_count,
                    session.max_actions,
                )
                cycle = _CycleState(retries_left=self.settings.max_proposal_retries)
                if session.budget_left:
                    session.advance(CyclePhase.COOLDOWN)
                else:
                    session.advance(CyclePhase.FINISHED)

            elif phase is CyclePhase.COOLDOWN:
                if session.cooldown_seconds > 0:
                    await self.sleep(session.cooldown_seconds)
                session.advance(CyclePhase.REQUEST_PROPOSAL)

        self.events.emit(LoopEvent.MAX_ACTIONS_REACHED, list(self.context.messages))
        logger.info("Session %s finished: %s", session.session_id, end_reason.value)
        return SessionSummary(
            session_id=session.session_id,
            actions=session.action_count,
            end_reason=end_reason,
            record_ids=record_ids,
        )

    async def _request_proposal(self, session: Session) -> ProposalResult:
        session.proposal_requests += 1
        request = self.context.build_request(
            help_text=self.registry.generate_help_text(),
            timestamp=self.clock(),
            session_id=session.session_id,
            cycle=session.proposal_requests,
        )
        timeout = self.settings.proposal_timeout_seconds
        try:
            if timeout is None:
                result = await self.backend.propose(request)
            else:
                result = await asyncio.wait_for(self.backend.propose(request), timeout=timeout)
        except TimeoutError:
            return ProposalResult.failure(f"Proposal timed out after {timeout} seconds.")
        except Exception as error:  # noqa: BLE001
            logger.debug("Proposal backend raised", exc_info=True)
            return ProposalResult.failure(sanitize_preview(str(error)) or type(error).__name__)
        if result is None:
            return ProposalResult.failure("Backend returned no proposal.")
        return result

    def _persist(self, session: Session, cycle: _CycleState) -> None:
        proposal = _require(cycle.proposal)
        output = _require(cycle.result).output
        cycle.assistant_text = format_assistant_message(proposal)
        cycle.user_text = format_terminal_log(output, timestamp=self.clock())

        if cycle.record_id is not None:
            self._store_call(
                "update_action_record",
                self.store.update_action_record,
                record_id=cycle.record_id,
                result_text=cycle.user_text,
            )
        for role, content in (("assistant", cycle.assistant_text), ("user", cycle.user_text)):
            self._store_call(
                "append_short_term_message",
                self.store.append_short_term_message,
                role=role,
                content=content,
                session_id=session.session_id,
            )

    def _store_call(
        self,
        operation: str,
        call: Callable[..., T],
        *args: Any,
        **kwargs: Any,
    ) -> T | None:
        try:
            return call(*args, **kwargs)
        except Exception:  # noqa: BLE001
            logger.warning("Store operation %s failed", operation, exc_info=True)
            return None


def _require(value: T | None) -> T:
    if value is None:
        raise RuntimeError("Cycle state is missing a value required by the current phase.")
    return value
