from __future__ import annotations

from pathlib import Path
from typing import Any, Callable
import ipaddress
import json
import logging
import threading
import urllib.error
import urllib.parse
import urllib.request

from .config import InstallerSettings
from .exceptions import DownloadError, InstallCancelled, InvalidResponse

logger = logging.getLogger(__name__)

MAX_TEXT_RESPONSE_BYTES = 16 * 1024 * 1024
MAX_DOWNLOAD_BYTES = 512 * 1024 * 1024
CHUNK_SIZE = 256 * 1024

ChunkCallback = Callable[[int], None]


class HttpClient:
    def __init__(
        self,
        settings: InstallerSettings | None = None,
        max_text_response_bytes: int = MAX_TEXT_RESPONSE_BYTES,
        max_download_bytes: int = MAX_DOWNLOAD_BYTES,
    ) -> None:
        settings = settings or InstallerSettings()
        self.timeout_seconds = settings.timeout_seconds
        self.user_agent = settings.user_agent
        self.max_text_response_bytes = max_text_response_bytes
        self.max_download_bytes = max_download_bytes

    def _request(self, url: str) -> urllib.request.Request:
        self._validate_url(url)
        return urllib.request.Request(url, headers={"User-Agent": self.user_agent})

    def get_json(self, url: str) -> Any:
        payload = self.get_text(url)
        try:
            return json.loads(payload)
        except json.JSONDecodeError as exc:
            raise InvalidResponse(f"Invalid JSON from {url}: {exc}", context={"url": url}) from exc

    def get_text(self, url: str) -> str:
        logger.debug("GET %s", url)
        try:
            with urllib.request.urlopen(
                self._request(url), timeout=self.timeout_seconds
            ) as response:
                return self._read_limited(
                    response,
                    max_bytes=self.max_text_response_bytes,
                    url=url,
                ).decode("utf-8")
        except urllib.error.HTTPError as exc:
            raise DownloadError(
                f"Request failed for {url}: HTTP {exc.code}",
                context={"url": url, "status": exc.code},
            ) from exc
        except urllib.error.URLError as exc:
            raise DownloadError(f"Request failed for {url}: {exc}", context={"url": url}) from exc
        except UnicodeDecodeError as exc:
            raise InvalidResponse(
                f"Response from {url} is not UTF-8 text: {exc}", context={"url": url}
            ) from exc
        except OSError as exc:
            raise DownloadError(f"Request failed for {url}: {exc}", context={"url": url}) from exc

    def download_to(
        self,
        url: str,
        destination: Path,
        on_chunk: ChunkCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> int:
        """Stream ``url`` into ``destination`` and return the byte count.

        The caller owns ``destination``; nothing is verified or renamed here.
        """
        logger.debug("Downloading %s -> %s", url, destination)
        received_bytes = 0
        try:
            with urllib.request.urlopen(
                self._request(url), timeout=self.timeout_seconds
            ) as response, destination.open("wb") as handle:
                content_length = response.headers.get("Content-Length")
                if content_length:
                    try:
                        declared_size = int(content_length)
                    except ValueError:
                        declared_size = 0
                    if declared_size > self.max_download_bytes:
                        raise DownloadError(
                            f"Download for {destination.name} exceeds the size limit.",
                            context={"url": url},
                        )
                while True:
                    if cancel_event is not None and cancel_event.is_set():
                        raise InstallCancelled(
                            f"Download of {url} was cancelled.", context={"url": url}
                        )
                    chunk = response.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    received_bytes += len(chunk)
                    if received_bytes > self.max_download_bytes:
                        raise DownloadError(
                            f"Download for {destination.name} exceeded the allowed size limit.",
                            context={"url": url},
                        )
                    handle.write(chunk)
                    if on_chunk is not None:
                        on_chunk(len(chunk))
        except urllib.error.HTTPError as exc:
            raise DownloadError(
                f"Download failed for {url}: HTTP {exc.code}",
                context={"url": url, "status": exc.code},
            ) from exc
        except urllib.error.URLError as exc:
            raise DownloadError(f"Download failed for {url}: {exc}", context={"url": url}) from exc
        except OSError as exc:
            raise DownloadError(f"Download failed for {url}: {exc}", context={"url": url}) from exc
        return received_bytes

    @staticmethod
    def _validate_url(url: str) -> None:
        parsed = urllib.parse.urlparse(url)
        if parsed.scheme.lower() != "https":
            raise DownloadError(f"Blocked URL with unsupported scheme: {url}")
        host = parsed.hostname
        if not host:
            raise DownloadError(f"Blocked URL with missing host: {url}")
        try:
            ip = ipaddress.ip_address(host)
        except ValueError:
            return
        if (
            ip.is_private
            or ip.is_loopback
            or ip.is_link_local
            or ip.is_multicast
            or ip.is_reserved
        ):
            raise DownloadError(f"Blocked URL targeting disallowed address: {url}")

    @staticmethod
    def _read_limited(response, max_bytes: int, url: str) -> bytes:
        chunks: list[bytes] = []
        received = 0
        while True:
            chunk = response.read(1024 * 1024)
            if not chunk:
                break
            received += len(chunk)
            if received > max_bytes:
                raise DownloadError(
                    f"Response from {url} exceeded the allowed size limit."
                )
            chunks.append(chunk)
        return b"".join(chunks)
