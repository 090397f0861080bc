"""OpenAPI patching for endpoints that accept form-encoded bodies."""

import orjson
from pydantic import BaseModel
from robyn import Request, Response

from formschema.core.logger import LogIcon, logger
from formschema.core.router import FORM_ENDPOINTS
from formschema.middlewares.base import BaseMiddleware
from formschema.models.core import FORM_CONTENT_TYPES

COMPONENTS_REF = "#/components/schemas/{model}"
BODY_METHODS = frozenset({"post", "put", "patch", "delete"})


def form_body_schema(model_cls: type[BaseModel], components: dict) -> dict:
    """By-alias schema of a body model, moving nested definitions into ``components``."""
    schema = model_cls.model_json_schema(by_alias=True, ref_template=COMPONENTS_REF)
    for name, definition in schema.pop("$defs", {}).items():
        components.setdefault(name, definition)
    return schema


def patch_openapi_spec(spec: dict, endpoints: dict[str, type[BaseModel]]) -> dict:
    """Declare form content types next to JSON for every endpoint taking a model body."""
    paths = spec.get("paths", {})
    components = spec.setdefault("components", {}).setdefault("schemas", {})

    for endpoint, model_cls in endpoints.items():
        operations = paths.get(endpoint)
        if not isinstance(operations, dict):
            continue

        schema = form_body_schema(model_cls, components)
        for method, operation in operations.items():
            if method not in BODY_METHODS or not isinstance(operation, dict):
                continue
            content = operation.setdefault("requestBody", {}).setdefault("content", {})
            content.setdefault("application/json", {"schema": schema})
            for content_type in FORM_CONTENT_TYPES:
                content[str(content_type)] = {"schema": schema}

    return spec


class FormOpenAPIMiddleware(BaseMiddleware):
    """Patches OpenAPI responses so form endpoints advertise their bracketed field names."""

    endpoints = frozenset(["/openapi.json"])

    def before(self, request: Request) -> Request:
        return request

    def after(self, response: Response) -> Response:
        """Patch OpenAPI spec with form content types for model body endpoints."""
        if not FORM_ENDPOINTS:
            return response

        try:
            spec = orjson.loads(response.description)
        except orjson.JSONDecodeError as ex:
            logger.warning("OpenAPI spec left unpatched", icon=LogIcon.WARNING, error=str(ex))
            return response

        if not isinstance(spec, dict):
            return response

        patch_openapi_spec(spec, FORM_ENDPOINTS)
        response.description = orjson.dumps(spec).decode()
        return response
