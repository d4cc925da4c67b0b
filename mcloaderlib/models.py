from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping
import os


class LoaderKind(str, Enum):
    FABRIC = "fabric"
    FORGE = "forge"
    QUILT = "quilt"

    @classmethod
    def parse(cls, value: str | LoaderKind) -> LoaderKind:
        if isinstance(value, LoaderKind):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            supported = ", ".join(kind.value for kind in cls)
            raise ValueError(f"Unsupported loader '{value}'. Supported: {supported}.") from exc


class InstallTarget(str, Enum):
    CLIENT = "client"
    SERVER = "server"

    @classmethod
    def parse(cls, value: str | InstallTarget) -> InstallTarget:
        if isinstance(value, InstallTarget):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported install target '{value}'.") from exc


@dataclass(frozen=True, slots=True)
class GameVersion:
    version: str
    stable: bool = True


@dataclass(frozen=True, slots=True)
class LoaderRelease:
    version: str
    stable: bool = True
    # Set when the loader build only supports a single game version (Forge).
    game_version: str | None = None


@dataclass(frozen=True, slots=True)
class VersionCatalog:
    """Snapshot of one loader's published versions, newest first."""

    loader: LoaderKind
    game_versions: tuple[GameVersion, ...]
    loader_versions: tuple[LoaderRelease, ...]
    recommended_game: str | None = None
    recommended_loader: str | None = None
    promotions: Mapping[str, str] = field(default_factory=dict)

    def has_game_version(self, version: str) -> bool:
        return any(entry.version == version for entry in self.game_versions)

    def find_loader(self, version: str) -> LoaderRelease | None:
        for entry in self.loader_versions:
            if entry.version == version:
                return entry
        return None

    def loaders_for(self, game_version: str) -> list[LoaderRelease]:
        return [
            entry
            for entry in self.loader_versions
            if entry.game_version is None or entry.game_version == game_version
        ]


@dataclass(frozen=True, slots=True)
class Artifact:
    identifier: str
    url: str
    checksum: str
    destination: Path
    hash_algorithm: str = "sha1"
    size: int | None = None

    def __post_init__(self) -> None:
        if not self.checksum or not self.checksum.strip():
            raise ValueError(f"Artifact {self.identifier} has no checksum.")
        if self.size is not None and self.size < 0:
            raise ValueError(f"Artifact {self.identifier} has a negative size.")


@dataclass(frozen=True, slots=True)
class StartCommands:
    default: tuple[str, ...]
    windows: tuple[str, ...] | None = None
    posix: tuple[str, ...] | None = None

    def for_platform(self, platform_name: str | None = None) -> list[str]:
        name = platform_name or os.name
        if name == "nt" and self.windows:
            return list(self.windows)
        if name != "nt" and self.posix:
            return list(self.posix)
        return list(self.default)

    def to_dict(self) -> dict[str, Any]:
        return {
            "default": list(self.default),
            "windows": list(self.windows) if self.windows else None,
            "posix": list(self.posix) if self.posix else None,
        }


@dataclass(frozen=True, slots=True)
class ClientOutput:
    profile_key: str
    version_id: str
    display_name: str
    icon: str = "Furnace"
    version_manifest: Mapping[str, Any] | None = None
    setup_commands: tuple[tuple[str, ...], ...] = ()


@dataclass(frozen=True, slots=True)
class ServerOutput:
    start: StartCommands
    setup_commands: tuple[tuple[str, ...], ...] = ()


@dataclass(frozen=True, slots=True)
class InstallPlan:
    loader: LoaderKind
    target: InstallTarget
    game_version: str
    loader_version: str
    artifacts: tuple[Artifact, ...]
    output: ClientOutput | ServerOutput
    destination: Path

    def __post_init__(self) -> None:
        for artifact in self.artifacts:
            if not artifact.checksum:
                raise ValueError(f"Artifact {artifact.identifier} has no checksum.")
        expected = ClientOutput if self.target is InstallTarget.CLIENT else ServerOutput
        if not isinstance(self.output, expected):
            raise ValueError(
                f"{self.target.value} plan requires {expected.__name__}, "
                f"got {type(self.output).__name__}."
            )


@dataclass(slots=True)
class InstallRequest:
    loader: LoaderKind | str
    target: InstallTarget | str
    destination: Path
    game_version: str | None = None
    loader_version: str | None = None
    java_path: str = "java"
    profile_store: Path | None = None


@dataclass(frozen=True, slots=True)
class ServerLayout:
    directory: Path
    launch_script: Path
    files: tuple[Path, ...] = ()


@dataclass(frozen=True, slots=True)
class InstallResult:
    success: bool
    state: str
    paths: tuple[Path, ...] = ()
    failure_reason: str | None = None
    error: Exception | None = None
    plan: InstallPlan | None = None
    notes: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "state": self.state,
            "paths": [str(path) for path in self.paths],
            "failure_reason": self.failure_reason,
            "notes": list(self.notes),
        }
        if self.plan is not None:
            payload.update(
                {
                    "loader": self.plan.loader.value,
                    "target": self.plan.target.value,
                    "minecraft_version": self.plan.game_version,
                    "loader_version": self.plan.loader_version,
                }
            )
        if self.error is not None:
            payload["context"] = {
                key: str(value) for key, value in getattr(self.error, "context", {}).items()
            }
        return payload
