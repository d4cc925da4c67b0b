"""Shapes of the upstream metadata documents.

Only the fields the installer relies on are declared. Unknown fields are
ignored; a missing required field fails validation.
"""

from __future__ import annotations

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import TypeAdapter


class _Upstream(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class MetaGameVersion(_Upstream):
    version: str = Field(min_length=1)
    stable: bool = False


class MetaLoaderVersion(_Upstream):
    version: str = Field(min_length=1)
    maven: str = Field(min_length=1)
    build: int | None = None
    separator: str = "."
    # Quilt does not publish a stability flag.
    stable: bool | None = None


# group:artifact:version[:classifier][@extension]
MAVEN_COORDINATE = r"^[^:\s@]+:[^:\s@]+:[^:\s@]+(:[^:\s@]*)?(@[^:\s@]+)?$"


class MetaLibrary(_Upstream):
    name: str = Field(pattern=MAVEN_COORDINATE)
    url: str = Field(min_length=1)
    sha1: str | None = None
    sha256: str | None = None
    sha512: str | None = None
    md5: str | None = None
    size: int | None = Field(default=None, ge=0)


class MetaProfile(_Upstream):
    """Launch profile returned by ``/loader/{game}/{loader}/profile|server/json``."""

    id: str = Field(min_length=1)
    inherits_from: str = Field(alias="inheritsFrom", min_length=1)
    main_class: str = Field(alias="mainClass", min_length=1)
    launcher_main_class: str | None = Field(default=None, alias="launcherMainClass")
    libraries: list[MetaLibrary]


class ForgePromotions(_Upstream):
    promos: dict[str, str]


class MojangLatest(_Upstream):
    release: str
    snapshot: str | None = None


class MojangVersionEntry(_Upstream):
    id: str = Field(min_length=1)
    type: str
    url: str = Field(min_length=1)


class MojangManifest(_Upstream):
    latest: MojangLatest
    versions: list[MojangVersionEntry]


class MojangDownload(_Upstream):
    sha1: str = Field(min_length=1)
    size: int = Field(ge=0)
    url: str = Field(min_length=1)


class MojangDownloads(_Upstream):
    server: MojangDownload | None = None
    client: MojangDownload | None = None


class MojangJavaVersion(_Upstream):
    major_version: int = Field(alias="majorVersion")


class MojangVersion(_Upstream):
    id: str
    downloads: MojangDownloads
    java_version: MojangJavaVersion | None = Field(default=None, alias="javaVersion")


META_GAME_VERSIONS = TypeAdapter(list[MetaGameVersion])
META_LOADER_VERSIONS = TypeAdapter(list[MetaLoaderVersion])
