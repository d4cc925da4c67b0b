from __future__ import annotations

from pathlib import Path
import logging
import os
import shlex
import shutil
import subprocess
import tempfile

from .exceptions import WriteFailed
from .models import InstallPlan, ServerLayout, ServerOutput
from .subprocess_utils import JAVA_TOKEN, run_setup_commands
from .utils import atomic_write_text

logger = logging.getLogger(__name__)

POSIX_SCRIPT_NAME = "run.sh"
WINDOWS_SCRIPT_NAME = "run.bat"


def render_posix_script(tokens: list[str], java_path: str) -> str:
    args = " ".join(
        '"$JAVA"' if token == JAVA_TOKEN else shlex.quote(token) for token in tokens
    )
    return (
        "#!/usr/bin/env sh\n"
        'cd "$(dirname "$0")" || exit 1\n'
        f"JAVA=\"${{JAVA:-{java_path}}}\"\n"
        f'exec {args} "$@"\n'
    )


def render_windows_script(tokens: list[str], java_path: str) -> str:
    command = subprocess.list2cmdline(
        [java_path if token == JAVA_TOKEN else token for token in tokens]
    )
    return "@echo off\r\n" 'cd /d "%~dp0"\r\n' f"{command} %*\r\n"


class ServerBootstrapWriter:
    """Lays out a dedicated server directory and its launch script.

    Only files named by the plan and the launch script are written; anything
    else in the directory (worlds, configs) is left alone.
    """

    def __init__(self, java_path: str = "java", platform_name: str | None = None) -> None:
        self.java_path = java_path
        self.platform_name = platform_name or os.name

    @property
    def script_name(self) -> str:
        return WINDOWS_SCRIPT_NAME if self.platform_name == "nt" else POSIX_SCRIPT_NAME

    def write_server(self, plan: InstallPlan, target_dir: Path | None = None) -> ServerLayout:
        output = plan.output
        if not isinstance(output, ServerOutput):
            raise WriteFailed("Server layout requested for a client plan.")
        target = Path(target_dir or plan.destination).resolve()
        try:
            target.mkdir(parents=True, exist_ok=True)
            placed = [
                self._place(plan, artifact.destination, target) for artifact in plan.artifacts
            ]
            run_setup_commands(output.setup_commands, self.java_path, cwd=target)
            script = self._write_script(output, target)
        except OSError as exc:
            raise WriteFailed(
                f"Could not write server layout to {target}: {exc}",
                context={"path": str(target)},
            ) from exc

        logger.info("Server layout ready in %s (launch with %s)", target, script.name)
        return ServerLayout(directory=target, launch_script=script, files=tuple(placed))

    @staticmethod
    def _place(plan: InstallPlan, source: Path, target: Path) -> Path:
        try:
            relative = source.relative_to(plan.destination)
        except ValueError as exc:
            raise WriteFailed(
                f"Artifact {source} lies outside the planned server directory.",
                context={"path": str(source)},
            ) from exc
        destination = target / relative
        if destination == source:
            if not source.is_file():
                raise WriteFailed(
                    f"Artifact {source} has not been fetched.", context={"path": str(source)}
                )
            return destination
        destination.parent.mkdir(parents=True, exist_ok=True)
        handle, tmp_name = tempfile.mkstemp(
            dir=str(destination.parent), prefix=f".{destination.name}.", suffix=".part"
        )
        os.close(handle)
        tmp_path = Path(tmp_name)
        try:
            shutil.copyfile(source, tmp_path)
            tmp_path.replace(destination)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
        return destination

    def _write_script(self, output: ServerOutput, target: Path) -> Path:
        tokens = output.start.for_platform(self.platform_name)
        script = target / self.script_name
        if self.platform_name == "nt":
            atomic_write_text(script, render_windows_script(tokens, self.java_path))
        else:
            atomic_write_text(script, render_posix_script(tokens, self.java_path))
            script.chmod(0o755)
        return script
