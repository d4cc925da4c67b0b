from __future__ import annotations

from pathlib import Path

from .exceptions import CorruptArtifact
from .models import Artifact
from .utils import hash_file


def verify(
    path: Path,
    expected_checksum: str,
    expected_size: int | None = None,
    algorithm: str = "sha1",
) -> None:
    """Raise CorruptArtifact unless ``path`` has the expected size and digest.

    Size is compared first so obviously truncated files skip the hash.
    """
    if not path.is_file():
        raise CorruptArtifact(str(path), "file is missing")
    if expected_size is not None:
        actual_size = path.stat().st_size
        if actual_size != expected_size:
            raise CorruptArtifact(
                str(path), f"expected {expected_size} bytes, found {actual_size}"
            )
    actual = hash_file(path, algorithm)
    if actual.lower() != expected_checksum.strip().lower():
        raise CorruptArtifact(
            str(path),
            f"{algorithm} mismatch, expected {expected_checksum}, got {actual}",
        )


def verify_artifact(artifact: Artifact, path: Path | None = None) -> None:
    verify(
        path or artifact.destination,
        artifact.checksum,
        artifact.size,
        artifact.hash_algorithm,
    )


def is_intact(artifact: Artifact) -> bool:
    try:
        verify_artifact(artifact)
    except CorruptArtifact:
        return False
    return True
