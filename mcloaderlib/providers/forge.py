from __future__ import annotations

from pathlib import Path
import xml.etree.ElementTree as ET

from ..config import InstallerSettings
from ..exceptions import CatalogParseError
from ..metadata import MetadataSource, parse_document
from ..models import (
    ClientOutput,
    GameVersion,
    InstallPlan,
    InstallTarget,
    LoaderKind,
    LoaderRelease,
    ServerOutput,
    StartCommands,
    VersionCatalog,
)
from ..schema import ForgePromotions
from ..utils import is_stable_version, maven_path, version_key
from .base import InstallerManifest, LibrarySpec, LoaderProvider, library_artifacts

# First game version whose Forge server starts from installer-generated argfiles.
ARGFILE_GAME_VERSION = "1.17"


def split_forge_version(version: str) -> tuple[str, str]:
    """Split ``1.20.1-47.2.0`` into the game version and the Forge build."""
    game, sep, build = version.partition("-")
    if not sep or not game or not build:
        raise ValueError(f"Not a Forge version: {version}")
    return game, build


class ForgeProvider(LoaderProvider):
    kind = LoaderKind.FORGE
    profile_prefix = "forge"
    icon = "Anvil"

    def __init__(self, settings: InstallerSettings | None = None) -> None:
        settings = settings or InstallerSettings()
        self.maven_url = settings.forge_maven.rstrip("/")
        self.promotions_url = settings.forge_promotions

    @property
    def metadata_url(self) -> str:
        return f"{self.maven_url}/maven-metadata.xml"

    def _metadata_versions(self, source: MetadataSource) -> list[str]:
        url = self.metadata_url
        try:
            root = ET.fromstring(source.get_text(url))
        except ET.ParseError as exc:
            raise CatalogParseError(
                f"Forge metadata from {url} is not valid XML: {exc}", context={"url": url}
            ) from exc
        versions = [
            item.text.strip()
            for item in root.findall("./versioning/versions/version")
            if item.text and item.text.strip()
        ]
        if not versions:
            raise CatalogParseError("Forge metadata returned no versions.", context={"url": url})
        return versions

    def load_catalog(self, source: MetadataSource) -> VersionCatalog:
        releases: list[LoaderRelease] = []
        for version in self._metadata_versions(source):
            try:
                game, _ = split_forge_version(version)
            except ValueError:
                continue
            releases.append(
                LoaderRelease(
                    version=version,
                    stable=is_stable_version(version),
                    game_version=game,
                )
            )
        if not releases:
            raise CatalogParseError(
                "Forge metadata contained no game-tied versions.",
                context={"url": self.metadata_url},
            )
        releases.sort(
            key=lambda r: (version_key(r.game_version or ""), version_key(r.version)),
            reverse=True,
        )

        games: list[str] = []
        for release in releases:
            if release.game_version not in games:
                games.append(str(release.game_version))
        game_versions = tuple(GameVersion(game, is_stable_version(game)) for game in games)

        data = source.get_json(self.promotions_url)
        promos = parse_document(ForgePromotions, data, self.promotions_url).promos
        promotions = self._promotions(promos, releases)

        recommended_game = next(
            (game for game in games if f"{game}-recommended" in promos), None
        )
        return VersionCatalog(
            loader=self.kind,
            game_versions=game_versions,
            loader_versions=tuple(releases),
            recommended_game=recommended_game,
            recommended_loader=None,
            promotions=promotions,
        )

    @staticmethod
    def _promotions(promos: dict[str, str], releases: list[LoaderRelease]) -> dict[str, str]:
        """Map each game version to its promoted full Forge version."""
        promoted: dict[str, str] = {}
        for kind in ("latest", "recommended"):
            for key, build in promos.items():
                game, sep, tag = key.rpartition("-")
                if not sep or tag != kind:
                    continue
                prefix = f"{game}-{build}"
                match = next(
                    (
                        r.version
                        for r in releases
                        if r.game_version == game
                        and (r.version == prefix or r.version.startswith(f"{prefix}-"))
                    ),
                    None,
                )
                if match:
                    promoted[game] = match
        return promoted

    def default_loader_version(self, catalog: VersionCatalog, game_version: str) -> str | None:
        promoted = catalog.promotions.get(game_version)
        if promoted:
            return promoted
        candidates = catalog.loaders_for(game_version)
        stable = [entry for entry in candidates if entry.stable]
        chosen = (stable or candidates)[:1]
        return chosen[0].version if chosen else None

    def canonical_loader_version(
        self, catalog: VersionCatalog, game_version: str, requested: str
    ) -> str:
        if catalog.find_loader(requested) is not None:
            return requested
        # Accept the short build number ("47.2.0") for the chosen game version.
        qualified = f"{game_version}-{requested}"
        if catalog.find_loader(qualified) is not None:
            return qualified
        return requested

    def profile_key(self, game_version: str, loader_version: str) -> str:
        _, build = split_forge_version(loader_version)
        return f"{self.profile_prefix}-{build}-{game_version}"

    def installer_url(self, loader_version: str) -> str:
        return f"{self.maven_url}/{loader_version}/forge-{loader_version}-installer.jar"

    def fetch_installer_manifest(
        self,
        source: MetadataSource,
        game_version: str,
        loader_version: str,
        target: InstallTarget,
    ) -> InstallerManifest:
        url = self.installer_url(loader_version)
        _, build = split_forge_version(loader_version)
        installer = LibrarySpec(
            coordinate=f"net.minecraftforge:forge:{loader_version}:installer",
            url=url,
            checksum=source.fetch_checksum(url, "sha1"),
        )
        return InstallerManifest(
            version_id=f"{game_version}-forge-{build}",
            main_class=None,
            libraries=(installer,),
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
        artifacts = library_artifacts(source, manifest.libraries, destination)
        installer = artifacts[0].destination
        if target is InstallTarget.CLIENT:
            output: ClientOutput | ServerOutput = ClientOutput(
                profile_key=self.profile_key(game_version, loader_version),
                version_id=manifest.version_id,
                display_name=f"{self.profile_prefix}-{game_version}",
                icon=self.icon,
                setup_commands=(
                    ("{java}", "-jar", str(installer), "--installClient", str(destination)),
                ),
            )
        else:
            output = ServerOutput(
                start=self._start_commands(game_version, loader_version),
                setup_commands=(
                    ("{java}", "-jar", str(installer), "--installServer", str(destination)),
                ),
            )
        return InstallPlan(
            loader=self.kind,
            target=target,
            game_version=game_version,
            loader_version=loader_version,
            artifacts=tuple(artifacts),
            output=output,
            destination=destination,
        )

    @staticmethod
    def _start_commands(game_version: str, loader_version: str) -> StartCommands:
        if version_key(game_version) < version_key(ARGFILE_GAME_VERSION):
            return StartCommands(default=("{java}", "-jar", f"forge-{loader_version}.jar", "nogui"))
        args_dir = Path(maven_path(f"net.minecraftforge:forge:{loader_version}")).parent
        libraries = f"libraries/{args_dir.as_posix()}"
        return StartCommands(
            default=("{java}", "@user_jvm_args.txt", f"@{libraries}/unix_args.txt", "nogui"),
            windows=("{java}", "@user_jvm_args.txt", f"@{libraries}/win_args.txt", "nogui"),
            posix=("{java}", "@user_jvm_args.txt", f"@{libraries}/unix_args.txt", "nogui"),
        )
