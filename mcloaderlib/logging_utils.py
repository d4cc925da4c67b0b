from __future__ import annotations

from pathlib import Path
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
FALLBACK_LOG_NAME = "mcloader.log"


def configure_logging(
    level: int = logging.INFO,
    log_path: str | Path | None = None,
    also_console: bool = True,
) -> Path | None:
    """Configure root logging for the command line front end.

    Calling it again is a no-op. When ``log_path`` cannot be opened the log
    goes to ``mcloader.log`` in the working directory instead. Returns the
    file actually used, if any.
    """
    root = logging.getLogger()
    if getattr(root, "_mcloader_configured", False):
        return getattr(root, "_mcloader_log_path", None)
    root.setLevel(level)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = []
    chosen: Path | None = None

    if log_path is not None:
        requested = Path(log_path)
        try:
            requested.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(requested, encoding="utf-8"))
            chosen = requested
        except OSError:
            chosen = Path.cwd() / FALLBACK_LOG_NAME
            handlers.append(logging.FileHandler(chosen, encoding="utf-8"))

    if also_console:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    setattr(root, "_mcloader_configured", True)
    setattr(root, "_mcloader_log_path", chosen)
    if chosen is not None:
        logging.getLogger(__name__).info(
            "Logging initialized (requested=%s, actual=%s)", log_path, chosen
        )
    return chosen
