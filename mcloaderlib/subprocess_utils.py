from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence
import logging
import subprocess

from .exceptions import WriteFailed

logger = logging.getLogger(__name__)

JAVA_TOKEN = "{java}"


def run_checked(command: list[str], cwd: Path) -> None:
    try:
        process = subprocess.run(
            command,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as exc:
        raise WriteFailed(
            f"Could not run {command[0]}: {exc}", context={"command": " ".join(command)}
        ) from exc
    if process.returncode != 0:
        details = process.stderr.strip() or process.stdout.strip()
        raise WriteFailed(
            "Command failed with exit code "
            f"{process.returncode}: {' '.join(command)}\n{details}",
            context={"command": " ".join(command), "exit_code": process.returncode},
        )


def substitute_java(tokens: Sequence[str], java_path: str) -> list[str]:
    return [java_path if token == JAVA_TOKEN else token for token in tokens]


def run_setup_commands(
    commands: Iterable[Sequence[str]], java_path: str, cwd: Path
) -> None:
    for tokens in commands:
        command = substitute_java(tokens, java_path)
        logger.info("Running %s", " ".join(command))
        run_checked(command, cwd=cwd)
