import pytest
import structlog

from core.logging import add_service, bind_request_context, clear_request_context


def test_request_context_reaches_log_events():
	bind_request_context("req-1", method="GET", path="/health")
	try:
		event = structlog.contextvars.merge_contextvars(None, "info", {"event": "request"})
	finally:
		clear_request_context()

	assert event == {"event": "request", "request_id": "req-1", "method": "GET", "path": "/health"}
	assert structlog.contextvars.get_contextvars() == {}


def test_binding_replaces_previous_request():
	bind_request_context("old", path="/a")
	bind_request_context("new")
	try:
		assert structlog.contextvars.get_contextvars() == {"request_id": "new"}
	finally:
		clear_request_context()


def test_service_name_is_stamped():
	assert add_service(None, "info", {"event": "x"}) == {"event": "x", "service": "medalbank"}


@pytest.mark.django_db
def test_middleware_echoes_request_id_and_clears_context(client):
	resp = client.get("/health", HTTP_X_REQUEST_ID="abc-123")
	assert resp["X-Request-ID"] == "abc-123"
	assert structlog.contextvars.get_contextvars() == {}
