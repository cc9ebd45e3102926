import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from rap_dashboard.config import settings
from rap_dashboard.core.exceptions import (
    ERROR_POLICY, ErrorKind, ValidationError, AuthError, NotFoundError, StoreError,
    StoreTimeoutError, UnsupportedTypeError, InternalError,
    register_exception_handlers, wrap_exception,
)


@pytest.mark.parametrize("error,status,retryable", [
    (ValidationError("bad"), 400, False),
    (UnsupportedTypeError("campaign type", "fax"), 400, False),
    (AuthError(), 401, False),
    (NotFoundError("Dataset", "x"), 404, False),
    (StoreError("Insert", "boom"), 500, True),
    (StoreTimeoutError("Insert", 10), 504, True),
    (InternalError(), 500, False),
])
def test_policy_is_carried_on_the_error(error, status, retryable):
    assert error.status_code == status
    assert error.retryable is retryable


def test_wrap_exception():
    wrapped = wrap_exception(KeyError("eventType"))
    assert wrapped.kind == ErrorKind.INTERNAL
    error = ValidationError("bad")
    assert wrap_exception(error) is error


def test_unsupported_type_lists_supported():
    error = UnsupportedTypeError("dataType", "leads", ["email_contacts", "raw_data"])
    assert "leads" in error.message
    assert "email_contacts, raw_data" in error.message


@pytest.fixture()
def error_app():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/validation")
    async def validation():
        raise ValidationError("name is missing", field="name")

    @app.get("/store")
    async def store():
        raise StoreError("Insert into datasets", "connection reset")

    return TestClient(app)


def test_4xx_keeps_message(error_app):
    resp = error_app.get("/validation")
    assert resp.status_code == 400
    body = resp.json()
    assert body["kind"] == "validation"
    assert body["retryable"] is False
    assert "name" in body["message"]


def test_5xx_detail_hidden_outside_dev_mode(error_app, monkeypatch):
    monkeypatch.setattr(settings, "DEV_MODE", False)
    resp = error_app.get("/store")
    assert resp.status_code == 500
    body = resp.json()
    assert body["retryable"] is True
    assert "connection reset" not in body["message"]


def test_5xx_detail_shown_in_dev_mode(error_app, monkeypatch):
    monkeypatch.setattr(settings, "DEV_MODE", True)
    resp = error_app.get("/store")
    assert "connection reset" in resp.json()["message"]


def test_documented_error_statuses_match_policy(client):
    emitted = {str(status) for status, _, _ in ERROR_POLICY.values()}
    paths = client.get("/openapi.json").json()["paths"]

    webhook = paths["/api/webhook/linkedin"]["post"]["responses"]
    assert {"400", "401", "500", "504"} <= set(webhook)
    assert "404" in paths["/api/data/datasets/{dataset_id}"]["delete"]["responses"]

    for path in paths.values():
        for operation in path.values():
            errors = {code for code in operation["responses"] if code >= "400" and code != "422"}
            assert errors <= emitted
