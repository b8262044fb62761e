"""Unit tests for AppError hierarchy and the FastAPI handlers."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from errors import (
    AppError,
    StorageError,
    ValidationError,
    register_error_handlers,
)


class TestAppErrorSubclasses:
    def test_base_error(self):
        e = AppError("boom")
        assert e.status_code == 500
        assert e.error_code == "internal_error"

    def test_validation_error(self):
        e = ValidationError("bad input")
        assert e.status_code == 400
        assert e.error_code == "validation_error"
        assert e.message == "bad input"

    def test_storage_error(self):
        e = StorageError("mongo down")
        assert e.status_code == 503
        assert e.error_code == "storage_unavailable"
        assert isinstance(e, AppError)


class TestAppErrorToDict:
    def test_basic(self):
        e = StorageError("token store find failed")
        assert e.to_dict() == {
            "error": "token store find failed",
            "code": "storage_unavailable",
        }

    @pytest.mark.parametrize(
        "kwargs, key, value",
        [
            ({"field": "digit_count"}, "field", "digit_count"),
            ({"details": {"min": 0}}, "details", {"min": 0}),
        ],
        ids=["with_field", "with_details"],
    )
    def test_optional_key_present(self, kwargs, key, value):
        e = ValidationError("invalid", **kwargs)
        assert e.to_dict()[key] == value

    def test_no_optional_keys_when_absent(self):
        d = ValidationError("missing").to_dict()
        assert "field" not in d
        assert "details" not in d


class TestErrorHandlers:
    @pytest.fixture
    def client(self):
        app = FastAPI()
        register_error_handlers(app)

        @app.get("/storage")
        async def storage():
            raise StorageError("token store upsert failed")

        @app.get("/crash")
        async def crash():
            raise RuntimeError("unexpected")

        with TestClient(app, raise_server_exceptions=False) as c:
            yield c

    def test_app_error_rendered_as_json(self, client):
        resp = client.get("/storage")
        assert resp.status_code == 503
        assert resp.json() == {
            "error": "token store upsert failed",
            "code": "storage_unavailable",
        }

    def test_unhandled_error_is_500(self, client):
        resp = client.get("/crash")
        assert resp.status_code == 500
        assert resp.json()["code"] == "internal_error"
