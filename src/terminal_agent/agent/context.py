"""Rolling conversation context and system prompt rendering."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

from terminal_agent.agent.models import ActionProposal, ConversationMessage, ProposalRequest
from terminal_agent.config import DEFAULT_PERSONALITY

SYSTEM_PROMPT_TEMPLATE = """\
{personality}

## CORE TERMINAL FUNCTIONALITY
You are connected to a terminal and can execute commands and manage system operations.
You have access to terminal commands and can execute them to accomplish tasks.
You should think carefully about what commands to execute and their potential impact.

## AVAILABLE TERMINAL COMMANDS
You only have access to these commands.
Commands with sub-commands must be called with 'help' first.
{help_text}

## Current Timestamp
{timestamp}

{dynamic_variables}

## OUTPUT FORMAT
Respond with exactly one action: think about what you want to do, plan how to do it
efficiently, then give the single terminal command to execute.
"""


def format_timestamp(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def format_assistant_message(proposal: ActionProposal) -> str:
    return (
        f"[THOUGHT]\n{proposal.thought}\n\n"
        f"[PLAN]\n{proposal.plan}\n\n"
        f"[COMMAND]\n{proposal.command}"
    )


def format_terminal_log(output: str, *, timestamp: datetime) -> str:
    return f"[{format_timestamp(timestamp)} - TERMINAL LOG]\n\n{output}"


def format_proposal_error(reason: str) -> str:
    return f"Error executing command: {reason}"


class AgentContext:
    """Personality, dynamic variables, and the message history of one session.

    Dynamic variables outlive sessions; ``reset`` only drops messages.
    """

    def __init__(self, *, personality: str = DEFAULT_PERSONALITY) -> None:
        self.personality = personality or DEFAULT_PERSONALITY
        self.dynamic_variables: dict[str, str] = {}
        self.messages: list[ConversationMessage] = []

    def set_dynamic_variables(self, values: Mapping[str, str]) -> None:
        self.dynamic_variables.update(values)

    def add_assistant_message(self, content: str) -> None:
        self.messages.append(ConversationMessage(role="assistant", content=content))

    def add_user_message(self, content: str) -> None:
        self.messages.append(ConversationMessage(role="user", content=content))

    def reset(self) -> None:
        self.messages.clear()

    def render_system_prompt(self, *, help_text: str, timestamp: datetime) -> str:
        return SYSTEM_PROMPT_TEMPLATE.format(
            personality=self.personality,
            help_text=help_text,
            timestamp=format_timestamp(timestamp),
            dynamic_variables="\n\n".join(self.dynamic_variables.values()),
        )

    def build_request(
        self,
        *,
        help_text: str,
        timestamp: datetime,
        session_id: str,
        cycle: int,
    ) -> ProposalRequest:
        """Snapshot the context into a request; later mutations do not leak into it."""

        return ProposalRequest(
            session_id=session_id,
            cycle=cycle,
            system_prompt=self.render_system_prompt(help_text=help_text, timestamp=timestamp),
            messages=list(self.messages),
        )
