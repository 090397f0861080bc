"""Compiled view of a JSON Schema for structural traversal.

Only the facts the form normalizer needs are kept: the declared object
properties of a node and the item schema of an array node. References are
resolved once at compile time; a recursive schema compiles into a cyclic
graph of shared nodes.
"""

from collections.abc import Mapping
from functools import lru_cache
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from formschema.core.logger import LogIcon, logger

ROOT_POINTER = "#"


@runtime_checkable
class SchemaLike(Protocol):
    """Read-only structural capabilities of a schema node."""

    def declared_properties(self) -> Mapping[str, "SchemaLike"] | None: ...

    def item_schema(self) -> "SchemaLike | None": ...


class SchemaNode:
    """A node of a compiled schema graph."""

    __slots__ = ("pointer", "properties", "items")

    def __init__(
        self,
        pointer: str,
        properties: dict[str, "SchemaNode"] | None = None,
        items: "SchemaNode | None" = None,
    ) -> None:
        self.pointer = pointer
        self.properties = properties
        self.items = items

    def declared_properties(self) -> dict[str, "SchemaNode"] | None:
        return self.properties

    def item_schema(self) -> "SchemaNode | None":
        return self.items

    def __repr__(self) -> str:
        # Children are shown by name only; the graph may be cyclic
        props = sorted(self.properties) if self.properties is not None else None
        items = self.items.pointer if self.items is not None else None
        return f"SchemaNode({self.pointer!r}, properties={props}, items={items!r})"


class CompiledSchema:
    """Compiled schema graph addressable by JSON pointer."""

    __slots__ = ("root", "_nodes")

    def __init__(self, root: SchemaNode, nodes: dict[str, SchemaNode]) -> None:
        self.root = root
        self._nodes = nodes

    def get(self, pointer: str = ROOT_POINTER) -> SchemaNode | None:
        """Node compiled at ``pointer``, or None if the pointer is unknown."""
        return self._nodes.get(pointer)

    def __contains__(self, pointer: str) -> bool:
        return pointer in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)


def escape_pointer_token(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def unescape_pointer_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


class SchemaCompiler:
    """Build a ``CompiledSchema`` from a JSON Schema document."""

    def __init__(self, document: Mapping[str, Any]) -> None:
        self._document = document
        self._nodes: dict[str, SchemaNode] = {}
        self._following: set[str] = set()

    def compile(self) -> CompiledSchema:
        root = self._compile(self._document, ROOT_POINTER)
        return CompiledSchema(root, self._nodes)

    def _compile(self, schema: Any, pointer: str) -> SchemaNode:
        if pointer in self._nodes:
            return self._nodes[pointer]

        if isinstance(schema, Mapping) and pointer not in self._following:
            if (target := self._follow(schema, pointer)) is not None:
                # Aliases share the target node; a chain of aliases looping back
                # on itself ends in an unstructured node.
                self._following.add(pointer)
                try:
                    node = self._compile(*target)
                finally:
                    self._following.discard(pointer)
                self._nodes[pointer] = node
                return node

        node = SchemaNode(pointer)
        # Registered before children so that references back to it close the cycle
        self._nodes[pointer] = node

        if not isinstance(schema, Mapping) or pointer in self._following:
            return node

        properties = schema.get("properties")
        if isinstance(properties, Mapping):
            node.properties = {
                str(name): self._compile(sub, f"{pointer}/properties/{escape_pointer_token(str(name))}")
                for name, sub in properties.items()
            }

        items = schema.get("items")
        if isinstance(items, Mapping):
            node.items = self._compile(items, f"{pointer}/items")

        return node

    def _follow(self, schema: Mapping[str, Any], pointer: str) -> tuple[Any, str] | None:
        """Subschema this node stands for: a $ref target or a single-branch combinator."""
        ref = schema.get("$ref")
        if isinstance(ref, str):
            return self._resolve_ref(ref)

        all_of = schema.get("allOf")
        if isinstance(all_of, list) and len(all_of) == 1:
            return all_of[0], f"{pointer}/allOf/0"

        for keyword in ("anyOf", "oneOf"):
            branches = schema.get(keyword)
            if not isinstance(branches, list):
                continue
            candidates = [
                (index, branch) for index, branch in enumerate(branches) if not _is_null_schema(branch)
            ]
            if len(candidates) == 1:
                index, branch = candidates[0]
                return branch, f"{pointer}/{keyword}/{index}"

        return None

    def _resolve_ref(self, ref: str) -> tuple[Any, str] | None:
        if ref == ROOT_POINTER:
            return self._document, ROOT_POINTER
        if not ref.startswith(ROOT_POINTER + "/"):
            logger.warning("Unsupported schema reference", icon=LogIcon.WARNING, ref=ref)
            return None

        target: Any = self._document
        for token in ref[2:].split("/"):
            token = unescape_pointer_token(token)
            if isinstance(target, Mapping) and token in target:
                target = target[token]
            elif isinstance(target, list) and token.isdigit() and int(token) < len(target):
                target = target[int(token)]
            else:
                logger.warning("Unresolvable schema reference", icon=LogIcon.WARNING, ref=ref)
                return None
        return target, ref


def _is_null_schema(schema: Any) -> bool:
    return isinstance(schema, Mapping) and schema.get("type") == "null"


def compile_schema(document: Mapping[str, Any]) -> CompiledSchema:
    """Compile a JSON Schema document into a traversable node graph."""
    return SchemaCompiler(document).compile()


@lru_cache(maxsize=256)
def model_schema(model_cls: type[BaseModel]) -> CompiledSchema:
    """Compile and cache the by-alias validation schema of a pydantic model."""
    compiled = compile_schema(model_cls.model_json_schema(by_alias=True))
    logger.info(f"Compiled schema: {model_cls.__name__}", icon=LogIcon.VALIDATION, nodes=len(compiled))
    return compiled
