"""Proposal validation and best-effort JSON recovery from backend stdout."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from terminal_agent.agent.models import ActionProposal

PROPOSAL_FIELDS = ("thought", "plan", "command")

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)


class ProposalError(ValueError):
    """Malformed or incomplete action proposal."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


def validate_proposal(payload: Mapping[str, Any] | None) -> ActionProposal:
    """Return an ``ActionProposal`` when every field is a non-empty string."""

    if payload is None:
        raise ProposalError("payload", "Proposal payload is empty.")
    values: dict[str, str] = {}
    for name in PROPOSAL_FIELDS:
        value = payload.get(name)
        if not isinstance(value, str) or not value.strip():
            raise ProposalError(name, f"Missing required field: {name}")
        values[name] = value.strip()
    return ActionProposal(**values)


def parse_proposal_payload(stdout_text: str) -> dict[str, Any] | None:
    """Recover a JSON object from plain stdout: whole text, fenced block, or outer braces."""

    text = stdout_text.strip()
    if not text:
        return None

    direct = _try_load_dict(text)
    if direct is not None:
        return direct

    fenced = _FENCED_JSON.search(text)
    if fenced is not None:
        payload = _try_load_dict(fenced.group(1))
        if payload is not None:
            return payload

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return _try_load_dict(text[start : end + 1])


def _try_load_dict(raw: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed
