from __future__ import annotations

from pathlib import Path
from typing import Any
import urllib.parse

from ..exceptions import CatalogParseError
from ..metadata import MetadataSource, parse_document
from ..minecraft import SERVER_JAR_NAME, server_jar_artifact
from ..models import (
    ClientOutput,
    GameVersion,
    InstallPlan,
    InstallTarget,
    LoaderRelease,
    ServerOutput,
    StartCommands,
    VersionCatalog,
)
from ..schema import (
    META_GAME_VERSIONS,
    META_LOADER_VERSIONS,
    MetaLibrary,
    MetaLoaderVersion,
    MetaProfile,
)
from ..utils import maven_url
from .base import InstallerManifest, LibrarySpec, LoaderProvider, library_artifacts


def _library_spec(library: MetaLibrary) -> LibrarySpec:
    full_url = maven_url(library.url, library.name)
    for algorithm in ("sha1", "sha256", "sha512", "md5"):
        checksum = getattr(library, algorithm)
        if checksum:
            return LibrarySpec(
                coordinate=library.name,
                url=full_url,
                checksum=checksum,
                hash_algorithm=algorithm,
                size=library.size,
            )
    return LibrarySpec(coordinate=library.name, url=full_url, size=library.size)


class MetaFamilyProvider(LoaderProvider):
    """Loaders published through a fabric-meta style API (Fabric and Quilt)."""

    game_jar_property: str

    def __init__(self, meta_url: str, mojang_manifest_url: str) -> None:
        self.meta_url = meta_url.rstrip("/")
        self.mojang_manifest_url = mojang_manifest_url

    def _is_stable_loader(self, entry: MetaLoaderVersion) -> bool:
        return bool(entry.stable)

    def _keep_library(self, library: MetaLibrary) -> bool:
        return True

    def load_catalog(self, source: MetadataSource) -> VersionCatalog:
        game_url = f"{self.meta_url}/game"
        loader_url = f"{self.meta_url}/loader"
        games = parse_document(META_GAME_VERSIONS, source.get_json(game_url), game_url)
        loaders = parse_document(META_LOADER_VERSIONS, source.get_json(loader_url), loader_url)
        if not games:
            raise CatalogParseError(
                f"{self.kind.value} returned no game versions.", context={"url": game_url}
            )
        if not loaders:
            raise CatalogParseError(
                f"{self.kind.value} returned no loader versions.", context={"url": loader_url}
            )

        game_versions = tuple(GameVersion(entry.version, entry.stable) for entry in games)
        loader_versions = tuple(
            LoaderRelease(entry.version, self._is_stable_loader(entry)) for entry in loaders
        )
        return VersionCatalog(
            loader=self.kind,
            game_versions=game_versions,
            loader_versions=loader_versions,
            recommended_game=next((g.version for g in game_versions if g.stable), None),
            recommended_loader=next((l.version for l in loader_versions if l.stable), None),
        )

    def default_loader_version(self, catalog: VersionCatalog, game_version: str) -> str | None:
        return catalog.recommended_loader

    def fetch_installer_manifest(
        self,
        source: MetadataSource,
        game_version: str,
        loader_version: str,
        target: InstallTarget,
    ) -> InstallerManifest:
        kind = "profile" if target is InstallTarget.CLIENT else "server"
        url = (
            f"{self.meta_url}/loader/{urllib.parse.quote(game_version, safe='')}/"
            f"{urllib.parse.quote(loader_version, safe='')}/{kind}/json"
        )
        data = source.get_json(url)
        profile = parse_document(MetaProfile, data, url)

        kept = [library for library in profile.libraries if self._keep_library(library)]
        document: dict[str, Any] = dict(data)
        document["libraries"] = [
            raw
            for raw in data.get("libraries", [])
            if any(raw.get("name") == library.name for library in kept)
        ]
        return InstallerManifest(
            version_id=profile.id,
            main_class=profile.main_class,
            libraries=tuple(_library_spec(library) for library in kept),
            document=document,
        )

    def build_plan(
        self,
        source: MetadataSource,
        manifest: InstallerManifest,
        game_version: str,
        loader_version: str,
        target: InstallTarget,
        destination: Path,
    ) -> InstallPlan:
        libraries = library_artifacts(source, manifest.libraries, destination)
        if target is InstallTarget.CLIENT:
            output: ClientOutput | ServerOutput = ClientOutput(
                profile_key=self.profile_key(game_version, loader_version),
                version_id=manifest.version_id,
                display_name=f"{self.profile_prefix}-{game_version}",
                icon=self.icon,
                version_manifest=manifest.document,
            )
            artifacts = tuple(libraries)
        else:
            server_jar = server_jar_artifact(
                source, self.mojang_manifest_url, game_version, destination
            )
            relative = [
                artifact.destination.relative_to(destination).as_posix()
                for artifact in libraries
            ]
            relative.append(SERVER_JAR_NAME)
            output = ServerOutput(start=self._start_commands(manifest, relative))
            artifacts = (server_jar, *libraries)

        return InstallPlan(
            loader=self.kind,
            target=target,
            game_version=game_version,
            loader_version=loader_version,
            artifacts=artifacts,
            output=output,
            destination=destination,
        )

    def _start_commands(self, manifest: InstallerManifest, classpath: list[str]) -> StartCommands:
        if not manifest.main_class:
            raise CatalogParseError(f"{self.kind.value} server profile has no main class.")

        def command(separator: str, entries: list[str]) -> tuple[str, ...]:
            return (
                "{java}",
                f"-D{self.game_jar_property}={SERVER_JAR_NAME}",
                "-cp",
                separator.join(entries),
                str(manifest.main_class),
                "nogui",
            )

        return StartCommands(
            default=command(":", classpath),
            windows=command(";", classpath),
            posix=command(":", classpath),
        )
