"""Core models for request/response handling."""

from enum import StrEnum
from typing import Any, NamedTuple


class BodyType(StrEnum):
    """Body content type classification for request parsing."""

    PYDANTIC = "pydantic"
    JSONABLE = "jsonable"
    RAW = "raw"


class ContentType(NamedTuple):
    """Media type of a request body as a (primary, subtype) pair."""

    primary: str
    subtype: str

    @classmethod
    def parse(cls, header: str | None) -> "ContentType | None":
        """Parse a Content-Type header, dropping parameters. None if malformed."""
        if not header:
            return None
        mime = header.split(";", 1)[0].strip().lower()
        primary, sep, subtype = mime.partition("/")
        if not sep or not primary or not subtype:
            return None
        return cls(primary, subtype)

    @classmethod
    def from_request(cls, request: Any) -> "ContentType | None":
        """Resolve the content type of a Robyn request."""
        headers = getattr(request, "headers", None)
        if headers is None:
            return None
        return cls.parse(headers.get("content-type"))

    @property
    def is_form(self) -> bool:
        return self in FORM_CONTENT_TYPES

    def __str__(self) -> str:
        return f"{self.primary}/{self.subtype}"


MULTIPART_FORM = ContentType("multipart", "form-data")
URLENCODED_FORM = ContentType("application", "x-www-form-urlencoded")

# Compared by equality, so unhashable content types never raise
FORM_CONTENT_TYPES: tuple[ContentType, ...] = (MULTIPART_FORM, URLENCODED_FORM)
