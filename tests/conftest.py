from __future__ import annotations

import copy
import hashlib

import pytest

from mcloaderlib.catalog import VersionCatalogClient
from mcloaderlib.config import InstallerSettings
from mcloaderlib.exceptions import DownloadError

FABRIC_META = "https://meta.fabricmc.net/v2/versions"
QUILT_META = "https://meta.quiltmc.org/v3/versions"
FORGE_MAVEN = "https://maven.minecraftforge.net/net/minecraftforge/forge"
FORGE_PROMOTIONS = (
    "https://files.minecraftforge.net/net/minecraftforge/forge/promotions_slim.json"
)
MOJANG_MANIFEST = "https://piston-meta.mojang.com/mc/game/version_manifest_v2.json"
MOJANG_1_20_1 = "https://piston-meta.mojang.com/v1/packages/0a1b/1.20.1.json"
SERVER_JAR_URL = "https://piston-data.mojang.com/v1/objects/84194a2f/server.jar"

FABRIC_MAVEN = "https://maven.fabricmc.net/"
QUILT_MAVEN = "https://maven.quiltmc.org/repository/release/"

FABRIC_LOADER_URL = (
    "https://maven.fabricmc.net/net/fabricmc/fabric-loader/0.14.22/fabric-loader-0.14.22.jar"
)
ASM_URL = "https://maven.fabricmc.net/org/ow2/asm/asm/9.5/asm-9.5.jar"
QUILT_LOADER_URL = (
    "https://maven.quiltmc.org/repository/release/org/quiltmc/quilt-loader/0.19.2/"
    "quilt-loader-0.19.2.jar"
)
HASHED_URL = (
    "https://maven.quiltmc.org/repository/release/org/quiltmc/hashed/1.20.1/hashed-1.20.1.jar"
)
INTERMEDIARY_URL = (
    "https://maven.fabricmc.net/net/fabricmc/intermediary/1.20.1/intermediary-1.20.1.jar"
)
FORGE_INSTALLER_URL = (
    f"{FORGE_MAVEN}/1.20.1-47.2.0/forge-1.20.1-47.2.0-installer.jar"
)
OLDER_FORGE_INSTALLER_URL = (
    f"{FORGE_MAVEN}/1.20.1-47.1.0/forge-1.20.1-47.1.0-installer.jar"
)
FORGE_1_19_INSTALLER_URL = (
    f"{FORGE_MAVEN}/1.19.4-45.1.0/forge-1.19.4-45.1.0-installer.jar"
)

FILES = {
    SERVER_JAR_URL: b"minecraft dedicated server 1.20.1",
    FABRIC_LOADER_URL: b"fabric loader 0.14.22",
    ASM_URL: b"asm 9.5",
    QUILT_LOADER_URL: b"quilt loader 0.19.2",
    HASHED_URL: b"quilt hashed mappings",
    INTERMEDIARY_URL: b"intermediary mappings 1.20.1",
    FORGE_INSTALLER_URL: b"forge installer 47.2.0",
    OLDER_FORGE_INSTALLER_URL: b"forge installer 47.1.0",
    FORGE_1_19_INSTALLER_URL: b"forge installer 45.1.0",
}

FORGE_METADATA_XML = """\
<metadata>
  <groupId>net.minecraftforge</groupId>
  <artifactId>forge</artifactId>
  <versioning>
    <versions>
      <version>1.19.4-45.1.0</version>
      <version>1.20.1-47.1.0</version>
      <version>1.20.1-47.2.0</version>
      <version>1.20.1-47.2.20-beta</version>
    </versions>
  </versioning>
</metadata>
"""


def sha1(payload: bytes) -> str:
    return hashlib.sha1(payload).hexdigest()


class FakeHttp:
    """Serves canned upstream documents and files; unknown URLs answer 404."""

    def __init__(self, json_map=None, text_map=None, files=None):
        self.json_map = json_map or {}
        self.text_map = text_map or {}
        self.files = files or {}
        self.requests: list[str] = []
        self.downloads: list[str] = []

    @staticmethod
    def _missing(url):
        return DownloadError(f"HTTP 404 for {url}", context={"url": url, "status": 404})

    def get_json(self, url):
        self.requests.append(url)
        if url not in self.json_map:
            raise self._missing(url)
        return copy.deepcopy(self.json_map[url])

    def get_text(self, url):
        self.requests.append(url)
        if url not in self.text_map:
            raise self._missing(url)
        return self.text_map[url]

    def download_to(self, url, destination, on_chunk=None, cancel_event=None):
        self.downloads.append(url)
        if url not in self.files:
            raise self._missing(url)
        payload = self.files[url]
        destination.write_bytes(payload)
        if on_chunk is not None:
            on_chunk(len(payload))
        return len(payload)


def build_upstream() -> FakeHttp:
    json_map = {
        f"{FABRIC_META}/game": [
            {"version": "23w31a", "stable": False},
            {"version": "1.20.1", "stable": True},
            {"version": "1.20", "stable": True},
        ],
        f"{FABRIC_META}/loader": [
            {
                "separator": ".",
                "build": 1,
                "maven": "net.fabricmc:fabric-loader:0.15.0",
                "version": "0.15.0",
                "stable": False,
            },
            {
                "separator": ".",
                "build": 22,
                "maven": "net.fabricmc:fabric-loader:0.14.22",
                "version": "0.14.22",
                "stable": True,
            },
            {
                "separator": ".",
                "build": 21,
                "maven": "net.fabricmc:fabric-loader:0.14.21",
                "version": "0.14.21",
                "stable": True,
            },
        ],
        f"{FABRIC_META}/loader/1.20.1/0.14.22/profile/json": {
            "id": "fabric-loader-0.14.22-1.20.1",
            "inheritsFrom": "1.20.1",
            "type": "release",
            "mainClass": "net.fabricmc.loader.impl.launch.knot.KnotClient",
            "arguments": {"game": [], "jvm": ["-DFabricMcEmu= net.minecraft.client.main.Main "]},
            "libraries": [
                {"name": "net.fabricmc:fabric-loader:0.14.22", "url": FABRIC_MAVEN},
                {
                    "name": "org.ow2.asm:asm:9.5",
                    "url": FABRIC_MAVEN,
                    "sha1": sha1(FILES[ASM_URL]),
                    "size": len(FILES[ASM_URL]),
                },
            ],
        },
        f"{FABRIC_META}/loader/1.20.1/0.14.22/server/json": {
            "id": "fabric-loader-0.14.22-1.20.1",
            "inheritsFrom": "1.20.1",
            "mainClass": "net.fabricmc.loader.impl.launch.knot.KnotServer",
            "libraries": [
                {"name": "net.fabricmc:fabric-loader:0.14.22", "url": FABRIC_MAVEN},
                {"name": "org.ow2.asm:asm:9.5", "url": FABRIC_MAVEN, "sha1": sha1(FILES[ASM_URL])},
            ],
        },
        f"{QUILT_META}/game": [{"version": "1.20.1", "stable": True}],
        f"{QUILT_META}/loader": [
            {
                "separator": ".",
                "build": 5,
                "maven": "org.quiltmc:quilt-loader:0.20.0-beta.5",
                "version": "0.20.0-beta.5",
            },
            {
                "separator": ".",
                "build": 2,
                "maven": "org.quiltmc:quilt-loader:0.19.2",
                "version": "0.19.2",
            },
        ],
        f"{QUILT_META}/loader/1.20.1/0.19.2/server/json": {
            "id": "quilt-loader-0.19.2-1.20.1",
            "inheritsFrom": "1.20.1",
            "mainClass": "org.quiltmc.loader.impl.launch.server.QuiltServerLauncher",
            "libraries": [
                {
                    "name": "org.quiltmc:quilt-loader:0.19.2",
                    "url": QUILT_MAVEN,
                    "sha1": sha1(FILES[QUILT_LOADER_URL]),
                },
                {"name": "org.quiltmc:hashed:1.20.1", "url": QUILT_MAVEN},
                {
                    "name": "net.fabricmc:intermediary:1.20.1",
                    "url": FABRIC_MAVEN,
                    "sha1": sha1(FILES[INTERMEDIARY_URL]),
                },
            ],
        },
        f"{QUILT_META}/loader/1.20.1/0.19.2/profile/json": {
            "id": "quilt-loader-0.19.2-1.20.1",
            "inheritsFrom": "1.20.1",
            "mainClass": "org.quiltmc.loader.impl.launch.knot.KnotClient",
            "libraries": [
                {
                    "name": "org.quiltmc:quilt-loader:0.19.2",
                    "url": QUILT_MAVEN,
                    "sha1": sha1(FILES[QUILT_LOADER_URL]),
                },
                {"name": "org.quiltmc:hashed:1.20.1", "url": QUILT_MAVEN},
            ],
        },
        FORGE_PROMOTIONS: {
            "homepage": "https://files.minecraftforge.net/net/minecraftforge/forge/",
            "promos": {
                "1.19.4-latest": "45.1.0",
                "1.20.1-latest": "47.2.0",
                "1.20.1-recommended": "47.2.0",
            },
        },
        MOJANG_MANIFEST: {
            "latest": {"release": "1.20.1", "snapshot": "23w31a"},
            "versions": [
                {"id": "23w31a", "type": "snapshot", "url": "https://piston-meta.mojang.com/v1/packages/ff/23w31a.json"},
                {"id": "1.20.1", "type": "release", "url": MOJANG_1_20_1},
            ],
        },
        MOJANG_1_20_1: {
            "id": "1.20.1",
            "javaVersion": {"component": "java-runtime-gamma", "majorVersion": 17},
            "downloads": {
                "server": {
                    "sha1": sha1(FILES[SERVER_JAR_URL]),
                    "size": len(FILES[SERVER_JAR_URL]),
                    "url": SERVER_JAR_URL,
                }
            },
        },
    }
    text_map = {
        f"{FORGE_MAVEN}/maven-metadata.xml": FORGE_METADATA_XML,
        f"{FABRIC_LOADER_URL}.sha1": sha1(FILES[FABRIC_LOADER_URL]),
        f"{HASHED_URL}.sha1": sha1(FILES[HASHED_URL]),
        f"{FORGE_INSTALLER_URL}.sha1": f"{sha1(FILES[FORGE_INSTALLER_URL])}  forge-installer.jar\n",
        f"{OLDER_FORGE_INSTALLER_URL}.sha1": sha1(FILES[OLDER_FORGE_INSTALLER_URL]),
        f"{FORGE_1_19_INSTALLER_URL}.sha1": sha1(FILES[FORGE_1_19_INSTALLER_URL]),
    }
    return FakeHttp(json_map=json_map, text_map=text_map, files=dict(FILES))


@pytest.fixture
def settings():
    return InstallerSettings(retry_backoff_seconds=0, fetch_workers=2)


@pytest.fixture
def upstream():
    return build_upstream()


@pytest.fixture
def catalog_client(upstream, settings):
    return VersionCatalogClient(http_client=upstream, settings=settings, sleep=lambda _: None)
