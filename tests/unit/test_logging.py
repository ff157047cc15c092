"""Unit tests for request-id tagging of log records"""

import logging
import pytest
from fastapi.testclient import TestClient

from library_lending.api.main import create_app
from library_lending.infrastructure.observability.logging import RequestIdFilter, request_id_ctx


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("library_lending", logging.INFO, __file__, 1, "Loan borrowed", None, None)
    record.__dict__.update(extra)
    return record


def test_filter_fills_request_id_from_context():
    token = request_id_ctx.set("req-42")
    try:
        record = make_record()
        assert RequestIdFilter().filter(record)
    finally:
        request_id_ctx.reset(token)
    assert record.request_id == "req-42"


def test_filter_keeps_explicit_request_id():
    token = request_id_ctx.set("req-42")
    try:
        record = make_record(request_id="overdue-sweep")
        RequestIdFilter().filter(record)
    finally:
        request_id_ctx.reset(token)
    assert record.request_id == "overdue-sweep"


def test_filter_outside_a_request_leaves_none():
    record = make_record()
    RequestIdFilter().filter(record)
    assert record.request_id is None


class CollectingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def collected():
    handler = CollectingHandler()
    handler.addFilter(RequestIdFilter())
    target = logging.getLogger("library_lending.tests")
    target.addHandler(handler)
    target.setLevel(logging.INFO)
    try:
        yield handler.records
    finally:
        target.removeHandler(handler)


def test_middleware_tags_records_logged_during_request(collected):
    app = create_app()

    @app.get("/log-something")
    async def log_something():
        logging.getLogger("library_lending.tests").info("inside request")
        return {"ok": True}

    client = TestClient(app)
    response = client.get("/log-something", headers={"X-Request-ID": "abc-123"})

    assert response.status_code == 200
    assert [r.request_id for r in collected] == ["abc-123"]
    assert request_id_ctx.get() is None
