from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Mapping
import os

ENV_PREFIX = "MCLOADER_"

MAX_FETCH_WORKERS = 8


@dataclass(frozen=True, slots=True)
class InstallerSettings:
    timeout_seconds: int = 30
    retry_attempts: int = 3
    retry_backoff_seconds: float = 0.5
    fetch_workers: int = 6
    user_agent: str = "mcloaderlib/0.1 (+https://github.com/)"
    fabric_meta: str = "https://meta.fabricmc.net/v2/versions"
    quilt_meta: str = "https://meta.quiltmc.org/v3/versions"
    forge_maven: str = "https://maven.minecraftforge.net/net/minecraftforge/forge"
    forge_promotions: str = (
        "https://files.minecraftforge.net/net/minecraftforge/forge/promotions_slim.json"
    )
    mojang_manifest: str = "https://piston-meta.mojang.com/mc/game/version_manifest_v2.json"

    def __post_init__(self) -> None:
        if self.retry_attempts < 1:
            raise ValueError("retry_attempts must be at least 1.")
        if not 1 <= self.fetch_workers <= MAX_FETCH_WORKERS:
            raise ValueError(f"fetch_workers must be between 1 and {MAX_FETCH_WORKERS}.")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive.")
        if self.retry_backoff_seconds < 0:
            raise ValueError("retry_backoff_seconds cannot be negative.")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> InstallerSettings:
        """Build settings from ``MCLOADER_*`` variables, e.g. ``MCLOADER_FETCH_WORKERS=4``."""
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for item in fields(cls):
            name = f"{ENV_PREFIX}{item.name.upper()}"
            raw = env.get(name)
            if raw is None or raw == "":
                continue
            overrides[item.name] = _coerce(name, raw, item.type)
        return replace(cls(), **overrides)


def _coerce(name: str, raw: str, type_name: object) -> object:
    # Annotations are strings because of the __future__ import.
    kind = str(type_name)
    try:
        if kind == "int":
            return int(raw)
        if kind == "float":
            return float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from exc
    return raw
