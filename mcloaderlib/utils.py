from __future__ import annotations

from pathlib import Path
import hashlib
import os
import re
import sys
import tempfile

_UNSTABLE_MARKERS = ("alpha", "beta", "rc", "pre", "snapshot", "experimental")
_SNAPSHOT_PATTERN = re.compile(r"^\d{2}w\d{2}[a-z]$")
_VERSION_SPLIT = re.compile(r"[.\-+_ ]")

HASH_ALGORITHMS = ("sha1", "sha256", "sha512", "md5")


def version_key(value: str) -> tuple[tuple[int, int, str], ...]:
    key: list[tuple[int, int, str]] = []
    for part in _VERSION_SPLIT.split(value):
        if not part:
            continue
        if part.isdigit():
            key.append((1, int(part), ""))
        else:
            key.append((0, 0, part))
    return tuple(key)


def is_stable_version(value: str) -> bool:
    lowered = value.lower()
    if _SNAPSHOT_PATTERN.match(lowered):
        return False
    return not any(marker in lowered for marker in _UNSTABLE_MARKERS)


def hash_file(path: Path, algorithm: str = "sha1") -> str:
    if algorithm not in HASH_ALGORITHMS:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")
    digest = hashlib.new(algorithm)
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def maven_path(coordinate: str) -> str:
    """Turn ``group:name:version[:classifier][@ext]`` into a repository path."""
    notation, _, extension = coordinate.partition("@")
    parts = notation.split(":")
    if len(parts) < 3 or not all(parts[:3]):
        raise ValueError(f"Invalid maven coordinate: {coordinate}")
    group, name, version = parts[:3]
    classifier = f"-{parts[3]}" if len(parts) > 3 and parts[3] else ""
    extension = extension or "jar"
    return (
        f"{group.replace('.', '/')}/{name}/{version}/"
        f"{name}-{version}{classifier}.{extension}"
    )


def maven_url(repository: str, coordinate: str) -> str:
    return f"{repository.rstrip('/')}/{maven_path(coordinate)}"


def atomic_write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        tmp_path.replace(path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def default_minecraft_dir() -> Path:
    if sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        return base / ".minecraft"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "minecraft"
    return Path.home() / ".minecraft"
