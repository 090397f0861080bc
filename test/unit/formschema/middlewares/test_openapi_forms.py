"""Tests for middleware registration and OpenAPI form patching."""

from unittest.mock import MagicMock

import orjson
import pytest
from pydantic import BaseModel, Field
from robyn import Response

from formschema.middlewares import forms as forms_module
from formschema.middlewares.base import BaseMiddleware, MiddlewareHandler
from formschema.middlewares.forms import FormOpenAPIMiddleware, form_body_schema, patch_openapi_spec


class Tag(BaseModel):
    label: str


class UploadForm(BaseModel):
    texts: list[str] = Field(alias="texts[]")
    tags: list[Tag] = Field(default_factory=list)


def openapi_spec() -> dict:
    return {
        "openapi": "3.0.0",
        "paths": {
            "/uploads": {"post": {"responses": {}}, "get": {"responses": {}}},
            "/health": {"get": {"responses": {}}},
        },
    }


# -----------------------------------------------------------------------------
# patch_openapi_spec Tests
# -----------------------------------------------------------------------------


class TestPatchOpenAPISpec:
    """Tests for OpenAPI spec patching."""

    def test_form_content_types_added(self) -> None:
        """Verify body methods advertise both form encodings and JSON."""
        spec = patch_openapi_spec(openapi_spec(), {"/uploads": UploadForm})

        content = spec["paths"]["/uploads"]["post"]["requestBody"]["content"]
        assert set(content) == {
            "application/json",
            "multipart/form-data",
            "application/x-www-form-urlencoded",
        }
        assert "texts[]" in content["multipart/form-data"]["schema"]["properties"]

    def test_get_and_unknown_paths_untouched(self) -> None:
        spec = patch_openapi_spec(openapi_spec(), {"/uploads": UploadForm, "/missing": UploadForm})

        assert "requestBody" not in spec["paths"]["/uploads"]["get"]
        assert "requestBody" not in spec["paths"]["/health"]["get"]
        assert "/missing" not in spec["paths"]

    def test_nested_definitions_moved_to_components(self) -> None:
        """Verify $defs are merged into components and refs point there."""
        components: dict = {}

        schema = form_body_schema(UploadForm, components)

        assert "$defs" not in schema
        assert "Tag" in components
        assert schema["properties"]["tags"]["items"]["$ref"] == "#/components/schemas/Tag"

    def test_existing_json_content_kept(self) -> None:
        spec = openapi_spec()
        spec["paths"]["/uploads"]["post"]["requestBody"] = {
            "content": {"application/json": {"schema": {"type": "object"}}}
        }

        patched = patch_openapi_spec(spec, {"/uploads": UploadForm})

        content = patched["paths"]["/uploads"]["post"]["requestBody"]["content"]
        assert content["application/json"] == {"schema": {"type": "object"}}


# -----------------------------------------------------------------------------
# FormOpenAPIMiddleware Tests
# -----------------------------------------------------------------------------


class TestFormOpenAPIMiddleware:
    """Tests for the OpenAPI after-hook."""

    @pytest.fixture
    def registered(self, monkeypatch) -> None:
        monkeypatch.setattr(forms_module, "FORM_ENDPOINTS", {"/uploads": UploadForm})

    def test_patches_response(self, registered) -> None:
        response = Response(status_code=200, headers={}, description=orjson.dumps(openapi_spec()).decode())

        result = FormOpenAPIMiddleware().after(response)

        spec = orjson.loads(result.description)
        assert "multipart/form-data" in spec["paths"]["/uploads"]["post"]["requestBody"]["content"]

    def test_invalid_json_left_unchanged(self, registered) -> None:
        response = Response(status_code=200, headers={}, description="not json")

        result = FormOpenAPIMiddleware().after(response)

        assert result.description == "not json"

    def test_no_endpoints_is_noop(self, monkeypatch) -> None:
        monkeypatch.setattr(forms_module, "FORM_ENDPOINTS", {})
        response = Response(status_code=200, headers={}, description="{}")

        assert FormOpenAPIMiddleware().after(response) is response

    def test_before_passes_request(self) -> None:
        request = object()
        assert FormOpenAPIMiddleware().before(request) is request


# -----------------------------------------------------------------------------
# MiddlewareHandler Tests
# -----------------------------------------------------------------------------


class TestMiddlewareHandler:
    """Tests for middleware registration."""

    def test_subclass_without_hooks_rejected(self) -> None:
        with pytest.raises(TypeError, match="must implement at least one of before/after"):

            class Empty(BaseMiddleware):
                pass

    def test_register_class_instantiates_and_chains(self) -> None:
        app = MagicMock()
        handler = MiddlewareHandler(app)

        assert handler.register(FormOpenAPIMiddleware) is handler
        assert isinstance(handler.middlewares[0], FormOpenAPIMiddleware)
        app.before_request.assert_called_once_with("/openapi.json")
        app.after_request.assert_called_once_with("/openapi.json")

    def test_register_uses_all_routes_without_endpoints(self) -> None:
        app = MagicMock()
        app.get_all_routes.return_value = [("POST", "/a", None), ("GET", "/b", None)]
        middleware = FormOpenAPIMiddleware()
        middleware.endpoints = frozenset()

        MiddlewareHandler(app).register(middleware)

        assert {call.args[0] for call in app.before_request.call_args_list} == {"/a", "/b"}
