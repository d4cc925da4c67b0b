from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable
import json
import logging

from .exceptions import WriteFailed
from .locking import exclusive_lock
from .models import ClientOutput, InstallPlan
from .subprocess_utils import run_setup_commands
from .utils import atomic_write_text

logger = logging.getLogger(__name__)

PROFILE_STORE_NAME = "launcher_profiles.json"
LOCK_SUFFIX = ".lock"


def empty_store() -> dict[str, Any]:
    return {"profiles": {}, "settings": {}, "version": 3}


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ClientProfileWriter:
    """Adds a launcher profile for an installed loader.

    The store is shared with the launcher and other installer runs, so every
    read-modify-write happens under an exclusive lock and unrelated keys are
    carried over untouched.
    """

    def __init__(self, java_path: str = "java", clock: Callable[[], str] = _utc_now) -> None:
        self.java_path = java_path
        self._clock = clock

    def write_profile(self, plan: InstallPlan, store_dir: Path | None = None) -> str:
        output = plan.output
        if not isinstance(output, ClientOutput):
            raise WriteFailed("Client profile requested for a server plan.")
        store_path = Path(store_dir or plan.destination) / PROFILE_STORE_NAME
        try:
            with exclusive_lock(self._lock_path(store_path)):
                self._ensure_store(store_path)
                # Installers such as Forge's refuse to run without a profile store
                # and edit it themselves, so they run under the same lock.
                run_setup_commands(output.setup_commands, self.java_path, cwd=plan.destination)
                self._write_version_files(plan.destination, output)
                store = self._load(store_path)
                profiles = store["profiles"]
                existing = profiles.get(output.profile_key)
                profiles[output.profile_key] = self._entry(output, existing)
                atomic_write_text(store_path, json.dumps(store, indent=2) + "\n")
        except OSError as exc:
            raise WriteFailed(
                f"Could not write launcher profile to {store_path}: {exc}",
                context={"path": str(store_path), "profile": output.profile_key},
            ) from exc

        logger.info("Wrote launcher profile %s to %s", output.profile_key, store_path)
        return output.profile_key

    def _ensure_store(self, store_path: Path) -> None:
        if not store_path.exists():
            logger.info("Creating empty launcher profile store at %s", store_path)
            atomic_write_text(store_path, json.dumps(empty_store(), indent=2) + "\n")
        else:
            self._load(store_path)

    @staticmethod
    def _lock_path(store_path: Path) -> Path:
        return store_path.with_name(store_path.name + LOCK_SUFFIX)

    @staticmethod
    def _load(store_path: Path) -> dict[str, Any]:
        try:
            data = json.loads(store_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise WriteFailed(
                f"Launcher profile store {store_path} is not valid JSON; refusing to overwrite it.",
                context={"path": str(store_path)},
            ) from exc
        if not isinstance(data, dict):
            raise WriteFailed(
                f"Launcher profile store {store_path} is not a JSON object.",
                context={"path": str(store_path)},
            )
        profiles = data.setdefault("profiles", {})
        if not isinstance(profiles, dict):
            raise WriteFailed(
                f"Launcher profile store {store_path} has a malformed 'profiles' entry.",
                context={"path": str(store_path)},
            )
        return data

    def _entry(self, output: ClientOutput, existing: Any) -> dict[str, Any]:
        entry: dict[str, Any] = dict(existing) if isinstance(existing, dict) else {}
        entry.update(
            {
                "name": output.display_name,
                "type": "custom",
                "created": entry.get("created") or self._clock(),
                "lastVersionId": output.version_id,
                "icon": output.icon,
            }
        )
        return entry

    @staticmethod
    def _write_version_files(root: Path, output: ClientOutput) -> None:
        if output.version_manifest is None:
            return
        version_dir = root / "versions" / output.version_id
        version_dir.mkdir(parents=True, exist_ok=True)
        atomic_write_text(
            version_dir / f"{output.version_id}.json",
            json.dumps(dict(output.version_manifest), indent=2) + "\n",
        )
        # The vanilla launcher expects a jar next to every version file.
        jar_path = version_dir / f"{output.version_id}.jar"
        if not jar_path.exists():
            jar_path.touch()
