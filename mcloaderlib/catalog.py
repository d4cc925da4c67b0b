from __future__ import annotations

from typing import Any, Callable
import logging
import re
import threading
import time

from .config import InstallerSettings
from .exceptions import (
    CatalogParseError,
    CatalogUnavailable,
    DownloadError,
    InvalidResponse,
)
from .http import HttpClient
from .models import InstallTarget, LoaderKind, VersionCatalog
from .providers import InstallerManifest, LoaderProvider, create_provider_registry
from .retry import call_with_retries, is_transient

logger = logging.getLogger(__name__)

_DIGEST_LENGTHS = {"md5": 32, "sha1": 40, "sha256": 64, "sha512": 128}
_HEX = re.compile(r"^[0-9a-fA-F]+$")


class VersionCatalogClient:
    """Fetches loader metadata with bounded retry and strict parsing."""

    def __init__(
        self,
        http_client: HttpClient | None = None,
        settings: InstallerSettings | None = None,
        providers: dict[LoaderKind, LoaderProvider] | None = None,
        cancel_event: threading.Event | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or InstallerSettings()
        self.http_client = http_client or HttpClient(self.settings)
        self.providers = providers or create_provider_registry(self.settings)
        self.cancel_event = cancel_event
        self._sleep = sleep

    def provider(self, loader: LoaderKind | str) -> LoaderProvider:
        return self.providers[LoaderKind.parse(loader)]

    def fetch_catalog(self, loader: LoaderKind | str) -> VersionCatalog:
        provider = self.provider(loader)
        catalog = provider.load_catalog(self)
        logger.info(
            "Loaded %s catalog: %d game versions, %d loader versions",
            catalog.loader.value,
            len(catalog.game_versions),
            len(catalog.loader_versions),
        )
        return catalog

    def fetch_installer_manifest(
        self,
        loader: LoaderKind | str,
        game_version: str,
        loader_version: str,
        target: InstallTarget,
    ) -> InstallerManifest:
        return self.provider(loader).fetch_installer_manifest(
            self, game_version, loader_version, target
        )

    def fetch_checksum(self, url: str, algorithm: str = "sha1") -> str:
        """Read the ``.sha1`` style sidecar a Maven repository publishes next to ``url``."""
        sidecar = f"{url}.{algorithm}"
        tokens = self.get_text(sidecar).split()
        checksum = tokens[0] if tokens else ""
        expected_length = _DIGEST_LENGTHS.get(algorithm)
        if not checksum or not _HEX.match(checksum) or len(checksum) != expected_length:
            raise CatalogParseError(
                f"Checksum file {sidecar} does not contain a {algorithm} digest.",
                context={"url": sidecar},
            )
        return checksum.lower()

    def get_json(self, url: str) -> Any:
        return self._with_retries(lambda: self.http_client.get_json(url), url)

    def get_text(self, url: str) -> str:
        return self._with_retries(lambda: self.http_client.get_text(url), url)

    def _with_retries(self, func: Callable[[], Any], url: str) -> Any:
        try:
            return call_with_retries(
                func,
                attempts=self.settings.retry_attempts,
                backoff_seconds=self.settings.retry_backoff_seconds,
                retry_on=(DownloadError,),
                retry_if=is_transient,
                description=f"GET {url}",
                cancel_event=self.cancel_event,
                sleep=self._sleep,
            )
        except DownloadError as exc:
            raise CatalogUnavailable(
                f"Metadata unavailable from {url}: {exc.message}",
                context={"url": url, **exc.context},
            ) from exc
        except InvalidResponse as exc:
            raise CatalogParseError(
                f"Malformed metadata from {url}: {exc.message}",
                context={"url": url},
            ) from exc

    def list_minecraft_versions(
        self, loader: LoaderKind | str, stable_only: bool = True, limit: int = 200
    ) -> list[str]:
        catalog = self.fetch_catalog(loader)
        versions = [
            entry.version
            for entry in catalog.game_versions
            if entry.stable or not stable_only
        ]
        return versions[:limit]

    def list_loader_versions(
        self,
        loader: LoaderKind | str,
        minecraft_version: str,
        stable_only: bool = True,
        limit: int = 200,
    ) -> list[str]:
        catalog = self.fetch_catalog(loader)
        versions = [
            entry.version
            for entry in catalog.loaders_for(minecraft_version)
            if entry.stable or not stable_only
        ]
        return versions[:limit]
