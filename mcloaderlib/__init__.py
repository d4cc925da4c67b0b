from .bootstrap import ServerBootstrapWriter
from .catalog import VersionCatalogClient
from .fetcher import ArtifactFetcher
from .integrity import verify
from .models import (
    Artifact,
    InstallPlan,
    InstallRequest,
    InstallResult,
    InstallTarget,
    LoaderKind,
    VersionCatalog,
)
from .orchestrator import InstallOrchestrator, InstallState
from .profiles import ClientProfileWriter
from .resolver import LoaderResolver

__all__ = [
    "Artifact",
    "ArtifactFetcher",
    "ClientProfileWriter",
    "InstallOrchestrator",
    "InstallPlan",
    "InstallRequest",
    "InstallResult",
    "InstallState",
    "InstallTarget",
    "LoaderKind",
    "LoaderResolver",
    "ServerBootstrapWriter",
    "VersionCatalog",
    "VersionCatalogClient",
    "verify",
]
