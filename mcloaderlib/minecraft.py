from __future__ import annotations

from pathlib import Path

from .exceptions import CatalogParseError, UnsupportedVersionCombination
from .metadata import MetadataSource, parse_document
from .models import Artifact
from .schema import MojangManifest, MojangVersion

SERVER_JAR_NAME = "server.jar"


def resolve_mojang_version(
    source: MetadataSource, manifest_url: str, requested_version: str
) -> MojangVersion:
    manifest = parse_document(MojangManifest, source.get_json(manifest_url), manifest_url)
    if requested_version == "latest":
        requested_version = manifest.latest.release

    version_url = None
    for version in manifest.versions:
        if version.id == requested_version:
            version_url = version.url
            break
    if version_url is None:
        raise UnsupportedVersionCombination(
            requested_version,
            None,
            f"Minecraft version '{requested_version}' was not found in Mojang metadata",
        )

    return parse_document(MojangVersion, source.get_json(version_url), version_url)


def server_jar_artifact(
    source: MetadataSource, manifest_url: str, game_version: str, destination: Path
) -> Artifact:
    version = resolve_mojang_version(source, manifest_url, game_version)
    server = version.downloads.server
    if server is None:
        raise CatalogParseError(
            f"Mojang metadata for {game_version} has no server download.",
            context={"game_version": game_version},
        )
    return Artifact(
        identifier=f"net.minecraft:server:{game_version}",
        url=server.url,
        checksum=server.sha1,
        hash_algorithm="sha1",
        size=server.size,
        destination=destination / SERVER_JAR_NAME,
    )
