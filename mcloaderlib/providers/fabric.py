from __future__ import annotations

from ..config import InstallerSettings
from ..models import LoaderKind
from .meta_family import MetaFamilyProvider


class FabricProvider(MetaFamilyProvider):
    kind = LoaderKind.FABRIC
    profile_prefix = "fabric-loader"
    game_jar_property = "fabric.gameJarPath"
    icon = "Furnace"

    def __init__(self, settings: InstallerSettings | None = None) -> None:
        settings = settings or InstallerSettings()
        super().__init__(
            meta_url=settings.fabric_meta,
            mojang_manifest_url=settings.mojang_manifest,
        )
