from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from ..exceptions import UnsupportedVersionCombination
from ..metadata import MetadataSource
from ..models import Artifact, InstallPlan, InstallTarget, LoaderKind, VersionCatalog
from ..utils import maven_path


@dataclass(frozen=True, slots=True)
class LibrarySpec:
    coordinate: str
    url: str
    checksum: str | None = None
    hash_algorithm: str = "sha1"
    size: int | None = None


@dataclass(frozen=True, slots=True)
class InstallerManifest:
    """Loader-specific description of what an install needs beyond the catalog."""

    version_id: str
    main_class: str | None
    libraries: tuple[LibrarySpec, ...] = ()
    document: Mapping[str, Any] | None = None


def library_artifacts(
    source: MetadataSource, libraries: tuple[LibrarySpec, ...], root: Path
) -> list[Artifact]:
    artifacts: list[Artifact] = []
    for library in libraries:
        checksum = library.checksum
        algorithm = library.hash_algorithm
        if not checksum:
            algorithm = "sha1"
            checksum = source.fetch_checksum(library.url, algorithm)
        artifacts.append(
            Artifact(
                identifier=library.coordinate,
                url=library.url,
                checksum=checksum,
                hash_algorithm=algorithm,
                size=library.size,
                destination=root / "libraries" / maven_path(library.coordinate),
            )
        )
    return artifacts


class LoaderProvider(ABC):
    """Per-loader policy: metadata format, defaulting and plan layout."""

    kind: LoaderKind
    profile_prefix: str
    icon: str = "Furnace"

    @abstractmethod
    def load_catalog(self, source: MetadataSource) -> VersionCatalog:
        raise NotImplementedError

    @abstractmethod
    def default_loader_version(self, catalog: VersionCatalog, game_version: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def fetch_installer_manifest(
        self,
        source: MetadataSource,
        game_version: str,
        loader_version: str,
        target: InstallTarget,
    ) -> InstallerManifest:
        raise NotImplementedError

    @abstractmethod
    def build_plan(
        self,
        source: MetadataSource,
        manifest: InstallerManifest,
        game_version: str,
        loader_version: str,
        target: InstallTarget,
        destination: Path,
    ) -> InstallPlan:
        raise NotImplementedError

    def canonical_loader_version(
        self, catalog: VersionCatalog, game_version: str, requested: str
    ) -> str:
        return requested

    def check_compatibility(
        self, catalog: VersionCatalog, game_version: str, loader_version: str
    ) -> None:
        release = catalog.find_loader(loader_version)
        if release is None:
            raise UnsupportedVersionCombination(
                game_version,
                loader_version,
                f"{self.kind.value} does not publish loader version {loader_version}",
            )
        if release.game_version is not None and release.game_version != game_version:
            raise UnsupportedVersionCombination(
                game_version,
                loader_version,
                f"{self.kind.value} {loader_version} only supports Minecraft "
                f"{release.game_version}",
            )

    def profile_key(self, game_version: str, loader_version: str) -> str:
        return f"{self.profile_prefix}-{loader_version}-{game_version}"
