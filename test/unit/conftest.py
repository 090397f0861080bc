"""Test fixtures for formschema unit tests."""

import json
from dataclasses import dataclass, field

import pytest

from formschema.schema.node import CompiledSchema, compile_schema


# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request."""

    _data: dict = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key.lower(), default)

    def set(self, key: str, value: str) -> None:
        self._data[key.lower()] = value

    def __getitem__(self, key: str) -> str:
        return self._data[key.lower()]

    def __setitem__(self, key: str, value: str) -> None:
        self._data[key.lower()] = value


@dataclass
class MockRequest:
    """Mock Request object for Robyn."""

    body: str | bytes = ""
    headers: MockHeaders = field(default_factory=MockHeaders)
    form_data: dict = field(default_factory=dict)
    method: str = "POST"
    path: str = "/"

    def json(self) -> dict:
        return json.loads(self.body)


# -----------------------------------------------------------------------------
# Schema fixtures
# -----------------------------------------------------------------------------


FORM_SCHEMA = {
    "type": "object",
    "properties": {
        "texts[]": {"type": "array", "items": {"type": "string"}},
        "name": {"type": "string"},
        "nested": {
            "type": "object",
            "properties": {
                "tags[]": {"type": "array", "items": {"type": "string"}},
            },
        },
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "ids[]": {"type": "array", "items": {"type": "integer"}},
                },
            },
        },
    },
}


@pytest.fixture
def form_schema() -> CompiledSchema:
    """Compiled schema with bracketed properties at several depths."""
    return compile_schema(FORM_SCHEMA)


@pytest.fixture
def make_mock_request():
    """Factory fixture to create mock requests."""

    def _make(
        body: str | bytes = "",
        content_type: str | None = None,
        form_data: dict | None = None,
    ) -> MockRequest:
        headers = MockHeaders()
        if content_type:
            headers["Content-Type"] = content_type
        return MockRequest(body=body, headers=headers, form_data=form_data or {})

    return _make
