"""Form body decoding with bracket-notation field names.

Field names follow the Rack convention: ``tags[]`` appends to a list and
``user[name]`` nests into a mapping. Brackets are consumed by the decoder, so
``tags[]=a&tags[]=b`` yields ``{"tags": ["a", "b"]}``; see
``formschema.normalizer.brackets`` for mapping those keys back to the schema.
"""

import re
from collections.abc import Iterable
from typing import Any
from urllib.parse import parse_qsl

from formschema.models.core import MULTIPART_FORM, URLENCODED_FORM, ContentType

FIELD_NAME = re.compile(r"(?P<base>[^\[\]]+)(?P<path>(?:\[[^\[\]]*\])*)")
PATH_SEGMENT = re.compile(r"\[([^\[\]]*)\]")


def split_field_name(name: str) -> list[str]:
    """Split ``a[b][]`` into ``["a", "b", ""]``. Irregular names stay whole."""
    match = FIELD_NAME.fullmatch(name)
    if not match:
        return [name]

    segments = [match["base"], *PATH_SEGMENT.findall(match["path"])]
    # A list marker is only meaningful at the end
    if "" in segments[:-1]:
        return [name]
    return segments


def assign_field(target: dict[str, Any], segments: list[str], value: Any) -> None:
    """Store ``value`` under the nested path described by ``segments``."""
    appending = len(segments) > 1 and segments[-1] == ""
    if appending:
        segments = segments[:-1]

    *parents, last = segments
    node = target
    for segment in parents:
        child = node.get(segment)
        if not isinstance(child, dict):
            child = node[segment] = {}
        node = child

    if appending:
        key = last
        current = node.get(key)
        if isinstance(current, list):
            current.append(value)
        else:
            node[key] = [value]
    else:
        node[last] = value


def decode_form(pairs: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Decode ordered ``(name, value)`` pairs into a nested body. Last write wins."""
    body: dict[str, Any] = {}
    for name, value in pairs:
        assign_field(body, split_field_name(name), value)
    return body


def decode_urlencoded(raw: str | bytes | None) -> dict[str, Any]:
    """Decode an ``application/x-www-form-urlencoded`` body."""
    if not raw:
        return {}
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return decode_form(parse_qsl(raw, keep_blank_values=True))


def decode_request_form(request: Any, content_type: ContentType | None) -> dict[str, Any]:
    """Decode the form fields of a Robyn request. Uploaded files are not included.

    Multipart fields come from Robyn's ``request.form_data``, which keeps one
    string per field name: a repeated ``texts[]`` part arrives as its last value
    only and decodes to a one-element list. URL-encoded bodies are decoded here
    and keep every repetition.
    """
    match content_type:
        case ContentType() if content_type == URLENCODED_FORM:
            return decode_urlencoded(getattr(request, "body", None))
        case ContentType() if content_type == MULTIPART_FORM:
            fields = getattr(request, "form_data", None) or {}
            return decode_form(fields.items())
        case _:
            return {}
