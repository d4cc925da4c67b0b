from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import portalocker

from .exceptions import WriteFailed

LOCK_TIMEOUT_SECONDS = 30.0


@contextmanager
def exclusive_lock(lock_path: Path, timeout: float = LOCK_TIMEOUT_SECONDS) -> Iterator[None]:
    """Hold an exclusive lock on ``lock_path`` for the block.

    Waits up to ``timeout`` seconds for other holders, then raises WriteFailed.
    The lock file is left in place.
    """
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = portalocker.Lock(str(lock_path), mode="a+b", timeout=timeout)
    try:
        lock.acquire()
    except portalocker.LockException as exc:
        raise WriteFailed(
            f"Timed out waiting for the lock on {lock_path}.",
            context={"path": str(lock_path)},
        ) from exc
    try:
        yield
    finally:
        lock.release()
