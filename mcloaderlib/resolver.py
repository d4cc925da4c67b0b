from __future__ import annotations

from pathlib import Path
import logging

from .catalog import VersionCatalogClient
from .exceptions import UnsupportedVersionCombination
from .models import InstallPlan, InstallTarget, VersionCatalog

logger = logging.getLogger(__name__)

LATEST = "latest"


class LoaderResolver:
    """Turns a catalog and a loose version request into a concrete InstallPlan."""

    def __init__(self, catalog_client: VersionCatalogClient) -> None:
        self.catalog_client = catalog_client

    def resolve(
        self,
        catalog: VersionCatalog,
        requested_game_version: str | None,
        requested_loader_version: str | None,
        target: InstallTarget,
        destination: Path,
    ) -> InstallPlan:
        provider = self.catalog_client.provider(catalog.loader)
        game_version = self.resolve_game_version(
            catalog, requested_game_version, requested_loader_version
        )

        if requested_loader_version and requested_loader_version != LATEST:
            loader_version = provider.canonical_loader_version(
                catalog, game_version, requested_loader_version
            )
        else:
            loader_version = provider.default_loader_version(catalog, game_version)
            if loader_version is None:
                candidates = catalog.loaders_for(game_version)
                if not candidates:
                    raise UnsupportedVersionCombination(
                        game_version,
                        None,
                        f"{catalog.loader.value} publishes no loader for this game version",
                    )
                loader_version = candidates[0].version
        provider.check_compatibility(catalog, game_version, loader_version)

        logger.info(
            "Resolved %s %s for Minecraft %s (%s)",
            catalog.loader.value,
            loader_version,
            game_version,
            target.value,
        )
        manifest = self.catalog_client.fetch_installer_manifest(
            catalog.loader, game_version, loader_version, target
        )
        return provider.build_plan(
            self.catalog_client,
            manifest,
            game_version,
            loader_version,
            target,
            Path(destination).resolve(),
        )

    @staticmethod
    def resolve_game_version(
        catalog: VersionCatalog, requested: str | None, requested_loader: str | None = None
    ) -> str:
        if not requested or requested == LATEST:
            # A loader build tied to one game version implies that game version.
            release = catalog.find_loader(requested_loader) if requested_loader else None
            if release is not None and release.game_version:
                return release.game_version
            if catalog.recommended_game:
                return catalog.recommended_game
            if not catalog.game_versions:
                raise UnsupportedVersionCombination(
                    None, None, f"{catalog.loader.value} publishes no game versions"
                )
            return catalog.game_versions[0].version
        if not catalog.has_game_version(requested):
            raise UnsupportedVersionCombination(
                requested,
                None,
                f"{catalog.loader.value} does not support Minecraft {requested}",
            )
        return requested
