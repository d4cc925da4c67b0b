from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Callable
import logging
import threading
import time

from .bootstrap import ServerBootstrapWriter
from .catalog import VersionCatalogClient
from .config import InstallerSettings
from .exceptions import InstallCancelled, McLoaderLibError
from .fetcher import ArtifactFetcher, ProgressCallback
from .http import HttpClient
from .integrity import verify_artifact
from .models import (
    InstallPlan,
    InstallRequest,
    InstallResult,
    InstallTarget,
    LoaderKind,
)
from .profiles import PROFILE_STORE_NAME, ClientProfileWriter
from .resolver import LoaderResolver

logger = logging.getLogger(__name__)


class InstallState(str, Enum):
    IDLE = "idle"
    RESOLVING_CATALOG = "resolving_catalog"
    RESOLVING_PLAN = "resolving_plan"
    FETCHING = "fetching"
    VERIFYING = "verifying"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


_ORDER = (
    InstallState.IDLE,
    InstallState.RESOLVING_CATALOG,
    InstallState.RESOLVING_PLAN,
    InstallState.FETCHING,
    InstallState.VERIFYING,
    InstallState.WRITING,
    InstallState.DONE,
)

StageCallback = Callable[[InstallState], None]


class InstallOrchestrator:
    """Runs one installation from catalog lookup to written output.

    An orchestrator is single-use: ``run`` may be called once and always
    returns exactly one InstallResult. Call ``cancel`` from another thread to
    abort; in-flight downloads stop and nothing half-written is promoted.
    """

    def __init__(
        self,
        settings: InstallerSettings | None = None,
        http_client: HttpClient | None = None,
        catalog_client: VersionCatalogClient | None = None,
        on_stage: StageCallback | None = None,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or InstallerSettings()
        self.http_client = http_client or HttpClient(self.settings)
        self.cancel_event = cancel_event or threading.Event()
        self.catalog_client = catalog_client or VersionCatalogClient(
            http_client=self.http_client,
            settings=self.settings,
            cancel_event=self.cancel_event,
            sleep=sleep,
        )
        self.resolver = LoaderResolver(self.catalog_client)
        self.fetcher = ArtifactFetcher(
            http_client=self.http_client,
            settings=self.settings,
            cancel_event=self.cancel_event,
            on_progress=on_progress,
            sleep=sleep,
        )
        self.on_stage = on_stage
        self._state = InstallState.IDLE
        self.history: list[InstallState] = [InstallState.IDLE]

    @property
    def state(self) -> InstallState:
        return self._state

    def cancel(self) -> None:
        logger.info("Cancellation requested")
        self.cancel_event.set()

    def run_request(self, request: InstallRequest) -> InstallResult:
        return self.run(
            loader=request.loader,
            target=request.target,
            destination=request.destination,
            game_version=request.game_version,
            loader_version=request.loader_version,
            java_path=request.java_path,
            profile_store=request.profile_store,
        )

    def run(
        self,
        loader: LoaderKind | str,
        target: InstallTarget | str,
        destination: Path,
        game_version: str | None = None,
        loader_version: str | None = None,
        java_path: str = "java",
        profile_store: Path | None = None,
    ) -> InstallResult:
        if self._state is not InstallState.IDLE:
            raise RuntimeError("InstallOrchestrator instances can only run once.")
        loader_kind = LoaderKind.parse(loader)
        install_target = InstallTarget.parse(target)
        destination = Path(destination).resolve()

        plan: InstallPlan | None = None
        try:
            self._advance(InstallState.RESOLVING_CATALOG)
            catalog = self.catalog_client.fetch_catalog(loader_kind)
            self._check_cancelled()

            self._advance(InstallState.RESOLVING_PLAN)
            plan = self.resolver.resolve(
                catalog, game_version, loader_version, install_target, destination
            )
            self._check_cancelled()

            self._advance(InstallState.FETCHING)
            self.fetcher.fetch(plan.artifacts)

            self._advance(InstallState.VERIFYING)
            for artifact in plan.artifacts:
                verify_artifact(artifact)
            self._check_cancelled()

            self._advance(InstallState.WRITING)
            paths, notes = self._write(plan, java_path, profile_store)
        except McLoaderLibError as exc:
            stage = self._state
            exc.context.setdefault("stage", stage.value)
            logger.error("Install failed during %s: %s", stage.value, exc.message)
            self._advance(InstallState.FAILED)
            return InstallResult(
                success=False,
                state=InstallState.FAILED.value,
                failure_reason=exc.message,
                error=exc,
                plan=plan,
            )

        self._advance(InstallState.DONE)
        logger.info(
            "Installed %s %s for Minecraft %s",
            plan.loader.value,
            plan.loader_version,
            plan.game_version,
        )
        return InstallResult(
            success=True,
            state=InstallState.DONE.value,
            paths=paths,
            plan=plan,
            notes=notes,
        )

    def _write(
        self, plan: InstallPlan, java_path: str, profile_store: Path | None
    ) -> tuple[tuple[Path, ...], tuple[str, ...]]:
        notes: list[str] = []
        if self.fetcher.skipped:
            notes.append(f"{len(self.fetcher.skipped)} artifact(s) were already present.")
        if plan.target is InstallTarget.CLIENT:
            store_dir = Path(profile_store or plan.destination)
            profile_key = ClientProfileWriter(java_path=java_path).write_profile(plan, store_dir)
            notes.append(f"Launcher profile '{profile_key}' written.")
            return (store_dir / PROFILE_STORE_NAME, plan.destination), tuple(notes)

        layout = ServerBootstrapWriter(java_path=java_path).write_server(plan)
        notes.append(f"Start the server with {layout.launch_script.name}.")
        return (layout.directory, layout.launch_script), tuple(notes)

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise InstallCancelled("Install was cancelled.")

    def _advance(self, new_state: InstallState) -> None:
        if new_state in self.history:
            raise RuntimeError(f"State {new_state.value} cannot be entered twice.")
        if new_state is not InstallState.FAILED:
            expected = _ORDER[_ORDER.index(self._state) + 1]
            if new_state is not expected:
                raise RuntimeError(
                    f"Invalid transition {self._state.value} -> {new_state.value}."
                )
        logger.debug("State %s -> %s", self._state.value, new_state.value)
        self._state = new_state
        self.history.append(new_state)
        if self.on_stage is not None:
            self.on_stage(new_state)
