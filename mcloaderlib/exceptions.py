from __future__ import annotations

from typing import Any


class McLoaderLibError(Exception):
    """Base exception for mcloaderlib."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}


class DownloadError(McLoaderLibError):
    """Raised by the HTTP layer when a request or transfer fails."""


class InvalidResponse(McLoaderLibError):
    """Raised when a response arrived but its body cannot be decoded."""


class CatalogUnavailable(McLoaderLibError):
    """Raised when loader metadata cannot be fetched after retrying."""


class CatalogParseError(McLoaderLibError):
    """Raised when loader metadata does not have the expected shape."""


class UnsupportedVersionCombination(McLoaderLibError):
    """Raised when a game/loader version pair cannot be installed."""

    def __init__(
        self,
        game_version: str | None,
        loader_version: str | None,
        reason: str,
    ) -> None:
        super().__init__(
            f"Cannot install loader {loader_version or '<unresolved>'} for "
            f"Minecraft {game_version or '<unresolved>'}: {reason}",
            context={"game_version": game_version, "loader_version": loader_version},
        )
        self.game_version = game_version
        self.loader_version = loader_version


class ArtifactFetchFailed(McLoaderLibError):
    """Raised when an artifact could not be downloaded within the retry budget."""

    def __init__(self, identifier: str, reason: str) -> None:
        super().__init__(
            f"Failed to fetch {identifier}: {reason}",
            context={"artifact": identifier},
        )
        self.identifier = identifier


class CorruptArtifact(McLoaderLibError):
    """Raised when a file does not match its expected size or checksum."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Corrupt artifact {path}: {reason}", context={"path": path})
        self.path = path


class WriteFailed(McLoaderLibError):
    """Raised when a profile or server layout cannot be written."""


class InstallCancelled(McLoaderLibError):
    """Raised when the run was aborted from outside."""
