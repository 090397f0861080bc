"""Bracket-notation normalization for form request bodies.

HTML forms name multi-valued inputs ``texts[]``. The form decoder strips the
brackets (``texts[]=a&texts[]=b`` becomes ``{"texts": ["a", "b"]}``) while the
request schema still declares ``texts[]``. ``normalize`` maps the bracket-less
keys back to the names the schema declares, level by level, so the body
validates.

Nothing here raises: any shape that cannot be matched against the schema is
returned as-is and left for validation to report.
"""

from collections.abc import Mapping
from typing import Any

from formschema.core.logger import LogIcon, logger
from formschema.models.core import FORM_CONTENT_TYPES
from formschema.schema.node import SchemaLike

BRACKET_SUFFIX = "[]"
DEFAULT_MAX_DEPTH = 32


def normalize(
    body: Any,
    content_type: Any,
    schema: SchemaLike | None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Any:
    """Rename bracket-less keys of a form body to their ``name[]`` schema properties.

    Returns ``body`` unchanged unless ``content_type`` is one of the two form
    encodings, ``body`` is a mapping and ``schema`` declares object properties.
    Inputs are never mutated; rewritten levels are fresh dicts.
    """
    if content_type not in FORM_CONTENT_TYPES or not isinstance(body, Mapping):
        return body

    properties = properties_of(schema)
    if properties is None:
        return body

    return rewrite_object(body, properties, max_depth=max_depth)


def rewrite_object(
    body: Any,
    properties: Mapping[str, SchemaLike] | None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Any:
    """Rewrite the keys of one object level and descend into its values."""
    if properties is None or not isinstance(body, Mapping):
        return body
    if max_depth <= 0:
        _depth_exhausted("object", keys=sorted(map(str, body)))
        return body

    brackets = build_bracket_mapping(properties)
    result: dict[Any, Any] = {}

    for key, value in body.items():
        name = key if isinstance(key, str) else str(key)

        if name in properties:
            final_key, child = key, properties[name]
        elif name in brackets:
            final_key = brackets[name]
            child = properties[final_key]
        else:
            final_key, child = key, None

        result[final_key] = rewrite_value(value, child, max_depth=max_depth - 1)

    return result


def rewrite_value(value: Any, schema: SchemaLike | None, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Any:
    """Dispatch on the value shape: objects and arrays descend, scalars pass through."""
    if isinstance(value, Mapping):
        return rewrite_object(value, properties_of(schema), max_depth=max_depth)

    if isinstance(value, (list, tuple)):
        items = item_schema_of(schema)
        if items is None:
            return value
        if max_depth <= 0:
            _depth_exhausted("array", length=len(value))
            return value
        return type(value)(rewrite_value(item, items, max_depth=max_depth - 1) for item in value)

    return value


def _depth_exhausted(shape: str, **context: Any) -> None:
    # Unrewritten keys below this point will most likely fail validation
    logger.warning(
        "Form normalization depth limit reached",
        icon=LogIcon.NORMALIZE,
        shape=shape,
        **context,
    )


def build_bracket_mapping(properties: Mapping[str, Any]) -> dict[str, str]:
    """Map ``name`` to ``name[]`` for every bracket-suffixed property."""
    return {
        name[: -len(BRACKET_SUFFIX)]: name
        for name in properties
        if isinstance(name, str) and name.endswith(BRACKET_SUFFIX)
    }


def properties_of(schema: Any) -> Mapping[str, SchemaLike] | None:
    """Declared object properties of a schema node, or None."""
    if schema is None:
        return None
    getter = getattr(schema, "declared_properties", None)
    if not callable(getter):
        return None
    properties = getter()
    return properties if isinstance(properties, Mapping) else None


def item_schema_of(schema: Any) -> SchemaLike | None:
    """Item schema of an array schema node, or None."""
    if schema is None:
        return None
    getter = getattr(schema, "item_schema", None)
    return getter() if callable(getter) else None
