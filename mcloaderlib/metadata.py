from __future__ import annotations

from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from .exceptions import CatalogParseError

T = TypeVar("T")


class MetadataSource(Protocol):
    """What providers need from the catalog client."""

    def get_json(self, url: str) -> Any: ...

    def get_text(self, url: str) -> str: ...

    def fetch_checksum(self, url: str, algorithm: str = "sha1") -> str: ...


def parse_document(schema: type[T] | TypeAdapter[T], data: Any, url: str) -> T:
    try:
        if isinstance(schema, TypeAdapter):
            return schema.validate_python(data)
        if isinstance(schema, type) and issubclass(schema, BaseModel):
            return schema.model_validate(data)
    except ValidationError as exc:
        raise CatalogParseError(
            f"Unexpected metadata shape from {url}: {exc.error_count()} error(s)",
            context={"url": url, "errors": exc.errors(include_url=False)},
        ) from exc
    raise TypeError(f"Unsupported schema: {schema!r}")
