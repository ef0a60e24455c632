"""Subprocess-based proposal backend for CLI agents."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shlex
import subprocess
import time
from pathlib import Path

from terminal_agent.agent.backend.base import BackendRunRequest, BackendRunResult
from terminal_agent.agent.models import ProposalRequest, ProposalResult
from terminal_agent.agent.proposals import parse_proposal_payload
from terminal_agent.config import AgentSettings
from terminal_agent.sanitization import sanitize_preview

logger = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE = 124
STDERR_TAIL_CHARS = 500

ROLE_LABELS = {"assistant": "[YOU]", "user": "[TERMINAL]"}

_OUTPUT_CONTRACT = json.dumps(
    {
        "thought": "<what you want to do and its implications>",
        "plan": "<how to execute the command efficiently>",
        "command": "<one terminal command from the list above>",
    },
    indent=2,
)


class BackendRunError(RuntimeError):
    """Backend execution error with retryability hint."""

    def __init__(self, message: str, *, transient: bool) -> None:
        super().__init__(message)
        self.transient = transient


class CliAgentBackend:
    """Run a CLI agent command template and capture its output to files."""

    def run(self, request: BackendRunRequest) -> BackendRunResult:
        request.stdout_path.parent.mkdir(parents=True, exist_ok=True)
        request.stderr_path.parent.mkdir(parents=True, exist_ok=True)

        run_args, command_head = _build_run_args(
            command_template=request.command_template,
            model=request.model,
            prompt=request.prompt,
            prompt_file=request.prompt_file,
        )

        env = os.environ.copy()
        env.update(request.env or {})

        try:
            with (
                request.stdout_path.open("w", encoding="utf-8") as stdout_handle,
                request.stderr_path.open("w", encoding="utf-8") as stderr_handle,
            ):
                return _run_subprocess(
                    run_args=run_args,
                    env=env,
                    timeout_seconds=request.timeout_seconds,
                    stdout_handle=stdout_handle,
                    stderr_handle=stderr_handle,
                    stdout_path=request.stdout_path,
                    stderr_path=request.stderr_path,
                )
        except FileNotFoundError as error:
            raise BackendRunError(
                f"CLI backend command not found: {command_head}",
                transient=False,
            ) from error
        except OSError as error:
            raise BackendRunError(
                f"CLI backend failed to start: {error}",
                transient=True,
            ) from error


class CliProposalBackend:
    """Obtain action proposals by running a CLI agent once per cycle."""

    def __init__(
        self,
        settings: AgentSettings,
        *,
        runner: CliAgentBackend | None = None,
    ) -> None:
        self.settings = settings
        self.runner = runner or CliAgentBackend()

    async def propose(self, request: ProposalRequest) -> ProposalResult:
        workdir = cycle_workdir(self.settings.workdir_root, request.session_id, request.cycle)
        workdir.mkdir(parents=True, exist_ok=True)
        prompt = render_prompt(request)
        prompt_file = workdir / "prompt.txt"
        prompt_file.write_text(prompt, "utf-8")

        run_request = BackendRunRequest(
            prompt=prompt,
            prompt_file=prompt_file,
            stdout_path=workdir / "stdout.log",
            stderr_path=workdir / "stderr.log",
            model=self.settings.model,
            command_template=self.settings.command_template,
            timeout_seconds=self.settings.proposal_timeout_seconds,
            env={
                "TERMINAL_AGENT_SESSION_ID": request.session_id,
                "TERMINAL_AGENT_CYCLE": str(request.cycle),
                "TERMINAL_AGENT_LLM_MODEL": self.settings.model,
            },
        )
        try:
            result = await asyncio.to_thread(self.runner.run, run_request)
        except BackendRunError as error:
            return ProposalResult.failure(str(error))

        if result.timed_out:
            return ProposalResult.failure(
                f"CLI agent timed out after {self.settings.proposal_timeout_seconds} seconds.",
            )
        if result.exit_code != 0:
            message = f"CLI agent exited with code {result.exit_code}."
            stderr_tail = _read_tail(result.stderr_path)
            if stderr_tail:
                message = f"{message} {stderr_tail}"
            return ProposalResult.failure(message)

        payload = parse_proposal_payload(_read_text(result.stdout_path))
        if payload is None:
            return ProposalResult.failure("CLI agent output contained no JSON object.")
        logger.debug("Proposal payload recovered from %s", result.stdout_path)
        return ProposalResult(payload=payload)


def cycle_workdir(root: Path, session_id: str, cycle: int) -> Path:
    return root / session_id / f"cycle-{cycle:04d}"


def render_prompt(request: ProposalRequest) -> str:
    """Flatten a proposal request into one prompt text for a CLI agent."""

    parts = [request.system_prompt.rstrip(), "", "## CONVERSATION"]
    if not request.messages:
        parts.append("(no previous actions in this session)")
    for message in request.messages:
        label = ROLE_LABELS.get(message.role, f"[{message.role.upper()}]")
        parts.append(f"{label}:\n{message.content}")
        parts.append("-------------------")
    parts.extend(
        [
            "",
            "## RESPONSE CONTRACT",
            "Reply with a single JSON object and nothing else:",
            _OUTPUT_CONTRACT,
        ],
    )
    return "\n".join(parts) + "\n"


def _build_run_args(
    *,
    command_template: str,
    model: str,
    prompt: str,
    prompt_file: Path,
) -> tuple[list[str], str]:
    stripped = command_template.strip()
    if not stripped:
        raise BackendRunError("CLI backend command template is empty.", transient=False)
    if "{prompt}" not in stripped and "{prompt_file}" not in stripped:
        raise BackendRunError(
            "CLI backend command template must include {prompt} or {prompt_file}.",
            transient=False,
        )

    try:
        rendered = stripped.format(
            model=shlex.quote(model),
            prompt=shlex.quote(prompt),
            prompt_file=shlex.quote(str(prompt_file)),
        )
    except (KeyError, IndexError) as error:
        raise BackendRunError(
            f"Unsupported command template placeholder: {error}",
            transient=False,
        ) from error

    argv = shlex.split(rendered)
    if not argv:
        raise BackendRunError(
            "CLI backend command template rendered empty command.",
            transient=False,
        )
    return argv, argv[0]


def _run_subprocess(  # noqa: PLR0913
    *,
    run_args: list[str],
    env: dict[str, str],
    timeout_seconds: float | None,
    stdout_handle,
    stderr_handle,
    stdout_path: Path,
    stderr_path: Path,
) -> BackendRunResult:
    process = subprocess.Popen(  # noqa: S603
        run_args,
        env=env,
        stdout=stdout_handle,
        stderr=stderr_handle,
        text=True,
    )
    start_monotonic = time.monotonic()

    while True:
        returncode = process.poll()
        if returncode is not None:
            return BackendRunResult(
                exit_code=returncode,
                timed_out=False,
                stdout_path=stdout_path,
                stderr_path=stderr_path,
            )

        if timeout_seconds is not None and time.monotonic() - start_monotonic >= timeout_seconds:
            _terminate_process(process)
            return BackendRunResult(
                exit_code=TIMEOUT_EXIT_CODE,
                timed_out=True,
                stdout_path=stdout_path,
                stderr_path=stderr_path,
            )

        time.sleep(0.05)


def _terminate_process(process: subprocess.Popen[str]) -> None:
    try:
        process.terminate()
    except OSError:
        return
    try:
        process.wait(timeout=2)
    except subprocess.TimeoutExpired:
        try:
            process.kill()
        except OSError:
            return
        process.wait(timeout=2)


def _read_text(path: Path) -> str:
    try:
        return path.read_text("utf-8")
    except OSError:
        return ""


def _read_tail(path: Path) -> str:
    return sanitize_preview(_read_text(path)[-STDERR_TAIL_CHARS:].strip())
