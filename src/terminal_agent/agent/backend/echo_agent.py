"""Local deterministic agent for CLI backend integration tests and demos."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path


def main(argv: list[str] | None = None) -> int:
    """Print one action proposal as JSON."""

    parser = argparse.ArgumentParser()
    parser.add_argument("--prompt-file")
    parser.add_argument(
        "--command",
        default=os.getenv("TERMINAL_AGENT_ECHO_COMMAND", "help"),
    )
    args = parser.parse_args(argv)

    prompt_chars = 0
    if args.prompt_file:
        prompt_chars = len(Path(args.prompt_file).read_text("utf-8"))

    payload = {
        "thought": f"Echo agent received a prompt of {prompt_chars} characters.",
        "plan": f"Run `{args.command}` and report the output.",
        "command": args.command,
    }
    sys.stdout.write(json.dumps(payload) + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
