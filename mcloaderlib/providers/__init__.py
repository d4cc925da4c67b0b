from __future__ import annotations

from ..config import InstallerSettings
from ..models import LoaderKind
from .base import InstallerManifest, LibrarySpec, LoaderProvider
from .fabric import FabricProvider
from .forge import ForgeProvider
from .quilt import QuiltProvider


def create_provider_registry(
    settings: InstallerSettings | None = None,
) -> dict[LoaderKind, LoaderProvider]:
    settings = settings or InstallerSettings()
    providers: list[LoaderProvider] = [
        FabricProvider(settings),
        ForgeProvider(settings),
        QuiltProvider(settings),
    ]
    return {provider.kind: provider for provider in providers}


__all__ = [
    "InstallerManifest",
    "LibrarySpec",
    "LoaderProvider",
    "create_provider_registry",
]
