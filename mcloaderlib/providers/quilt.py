from __future__ import annotations

from ..config import InstallerSettings
from ..models import LoaderKind
from ..schema import MetaLibrary, MetaLoaderVersion
from .meta_family import MetaFamilyProvider

HASHED_MAPPINGS_PREFIX = "org.quiltmc:hashed"


class QuiltProvider(MetaFamilyProvider):
    kind = LoaderKind.QUILT
    profile_prefix = "quilt-loader"
    game_jar_property = "loader.gameJarPath"
    icon = "Crafting_Table"

    def __init__(self, settings: InstallerSettings | None = None) -> None:
        settings = settings or InstallerSettings()
        super().__init__(
            meta_url=settings.quilt_meta,
            mojang_manifest_url=settings.mojang_manifest,
        )

    def _is_stable_loader(self, entry: MetaLoaderVersion) -> bool:
        # Quilt meta has no stability flag; betas are tagged in the version string.
        if entry.stable is not None:
            return entry.stable
        return "beta" not in entry.version

    def _keep_library(self, library: MetaLibrary) -> bool:
        # Quilt meta lists both hashed and intermediary mappings, and loader
        # fails to remap silently when both are on the classpath.
        return not library.name.startswith(HASHED_MAPPINGS_PREFIX)
