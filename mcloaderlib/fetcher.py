from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence
import logging
import os
import tempfile
import threading
import time

from .config import InstallerSettings
from .exceptions import (
    ArtifactFetchFailed,
    CorruptArtifact,
    DownloadError,
    InstallCancelled,
)
from .http import HttpClient
from .integrity import is_intact, verify_artifact
from .models import Artifact
from .retry import call_with_retries, is_transient

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.1


@dataclass(frozen=True, slots=True)
class ArtifactProgress:
    identifier: str
    status: str
    received: int = 0
    total: int | None = None


ProgressCallback = Callable[[ArtifactProgress], None]


class ArtifactFetcher:
    """Downloads artifacts in parallel and only promotes verified files.

    ``on_progress`` is called from worker threads.
    """

    def __init__(
        self,
        http_client: HttpClient | None = None,
        settings: InstallerSettings | None = None,
        cancel_event: threading.Event | None = None,
        on_progress: ProgressCallback | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or InstallerSettings()
        self.http_client = http_client or HttpClient(self.settings)
        self.cancel_event = cancel_event or threading.Event()
        self.on_progress = on_progress
        self._sleep = sleep
        self._lock = threading.Lock()
        self.downloaded: list[str] = []
        self.skipped: list[str] = []

    def fetch(self, artifacts: Sequence[Artifact]) -> list[Path]:
        self.downloaded = []
        self.skipped = []
        if not artifacts:
            return []
        if self.cancel_event.is_set():
            raise InstallCancelled("Artifact download was cancelled.")

        stop = threading.Event()
        workers = min(self.settings.fetch_workers, len(artifacts))
        errors: list[BaseException] = []
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="mcloaderlib-fetch"
        ) as pool:
            pending: set[Future[Path]] = {
                pool.submit(self._fetch_one, artifact, stop) for artifact in artifacts
            }
            while pending:
                done, pending = wait(
                    pending, timeout=POLL_INTERVAL_SECONDS, return_when=FIRST_COMPLETED
                )
                if self.cancel_event.is_set():
                    stop.set()
                for future in done:
                    exc = future.exception()
                    if exc is not None:
                        errors.append(exc)
                        stop.set()

        if self.cancel_event.is_set():
            raise InstallCancelled("Artifact download was cancelled.")
        if errors:
            failures = [exc for exc in errors if not isinstance(exc, InstallCancelled)]
            raise (failures or errors)[0]
        return [artifact.destination for artifact in artifacts]

    def _fetch_one(self, artifact: Artifact, stop: threading.Event) -> Path:
        destination = artifact.destination
        if stop.is_set() or self.cancel_event.is_set():
            raise InstallCancelled(f"Skipped {artifact.identifier} after abort.")
        if destination.exists() and is_intact(artifact):
            logger.info("%s already present, skipping", artifact.identifier)
            with self._lock:
                self.skipped.append(artifact.identifier)
            self._report(ArtifactProgress(artifact.identifier, "skipped", total=artifact.size))
            return destination

        destination.parent.mkdir(parents=True, exist_ok=True)
        received = 0

        def on_chunk(size: int) -> None:
            nonlocal received
            received += size
            self._report(
                ArtifactProgress(artifact.identifier, "downloading", received, artifact.size)
            )

        def attempt() -> Path:
            nonlocal received
            received = 0
            handle, tmp_name = tempfile.mkstemp(
                dir=str(destination.parent), prefix=f".{destination.name}.", suffix=".part"
            )
            tmp_path = Path(tmp_name)
            try:
                os.close(handle)
                self.http_client.download_to(
                    artifact.url, tmp_path, on_chunk=on_chunk, cancel_event=stop
                )
                verify_artifact(artifact, tmp_path)
                tmp_path.replace(destination)
            finally:
                if tmp_path.exists():
                    tmp_path.unlink()
            return destination

        logger.info("Downloading %s", artifact.identifier)
        try:
            path = call_with_retries(
                attempt,
                attempts=self.settings.retry_attempts,
                backoff_seconds=self.settings.retry_backoff_seconds,
                retry_on=(DownloadError, CorruptArtifact),
                retry_if=is_transient,
                description=f"download of {artifact.identifier}",
                cancel_event=stop,
                sleep=self._sleep,
            )
        except (DownloadError, CorruptArtifact) as exc:
            raise ArtifactFetchFailed(artifact.identifier, exc.message) from exc

        with self._lock:
            self.downloaded.append(artifact.identifier)
        self._report(ArtifactProgress(artifact.identifier, "done", received, artifact.size))
        return path

    def _report(self, progress: ArtifactProgress) -> None:
        if self.on_progress is not None:
            self.on_progress(progress)
