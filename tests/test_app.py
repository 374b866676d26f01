"""Tests for the sysdash Flask application."""

import pytest
from flask import Flask
from werkzeug.serving import WSGIRequestHandler

from conftest import StubProvider, next_data_event
from sysdash import app as app_module
from sysdash.app import SAMPLER_KEY, create_app, parse_args, request_handler_with_timeout
from sysdash.config import Settings
from sysdash.stream import FailurePolicy


@pytest.fixture
def app():
    application = create_app(Settings(tick_interval=0.1), provider=StubProvider())
    yield application
    application.extensions[SAMPLER_KEY].stop()


@pytest.fixture
def client(app):
    return app.test_client()


def read_first_event(client) -> tuple:
    response = client.get("/stats", buffered=False)
    try:
        event = next_data_event(iter(response.response))
    finally:
        response.close()
    return response, event


class TestIndex:
    """Tests for the shell page."""

    def test_index_served(self, client):
        """Test GET / returns the HTML shell."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.mimetype == "text/html"
        assert b'sse-connect="/stats"' in response.data


class TestStats:
    """Tests for the SSE endpoint."""

    def test_stream_headers(self, client):
        """Test the stream is served with event-stream headers."""
        response, _ = read_first_event(client)

        assert response.status_code == 200
        assert response.headers["Content-Type"] == "text/event-stream"
        assert response.headers["Cache-Control"] == "no-cache"
        assert response.headers["Connection"] == "keep-alive"
        assert response.headers["X-Accel-Buffering"] == "no"

    def test_first_event_framing(self, client):
        """Test the first event is a single data line with the snapshot."""
        _, event = read_first_event(client)

        assert event.startswith("data: ")
        assert event.endswith("\n\n")
        assert "\n" not in event[:-2]
        assert "host1" in event
        assert "01:01:01" in event

    def test_disconnect_releases_subscription(self, app, client):
        """Test closing the response removes the subscriber."""
        sampler = app.extensions[SAMPLER_KEY]

        read_first_event(client)

        assert sampler.subscriber_count == 0

    def test_independent_clients(self, app):
        """Test two clients each get their own stream."""
        first = app.test_client().get("/stats", buffered=False)
        second = app.test_client().get("/stats", buffered=False)
        try:
            first_event = next_data_event(iter(first.response))
            second_event = next_data_event(iter(second.response))
        finally:
            first.close()
            second.close()

        assert first_event.startswith("data: ")
        assert second_event.startswith("data: ")

    def test_failed_tick_skipped(self):
        """Test a provider failure is skipped and the stream resumes."""
        provider = StubProvider()
        provider.fail_cpu_calls = {1}
        application = create_app(
            Settings(tick_interval=0.1, failure_policy=FailurePolicy.SKIP),
            provider=provider,
        )
        try:
            _, event = read_first_event(application.test_client())
        finally:
            application.extensions[SAMPLER_KEY].stop()

        assert "host1" in event
        assert provider.calls.count("cpu_percent") >= 2


def test_healthz(app, client):
    """Test the health endpoint reports sampler state."""
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "sampler_running": True, "subscribers": 0}


def test_create_app_starts_sampler(app):
    """Test the shared sampler is running once the app exists."""
    assert app.extensions[SAMPLER_KEY].is_running


def test_request_handler_timeout():
    """Test the request handler carries the write timeout."""
    handler = request_handler_with_timeout(2.5)

    assert issubclass(handler, WSGIRequestHandler)
    assert handler.timeout == 2.5


def test_parse_args():
    """Test CLI arguments are parsed."""
    args = parse_args(["--host", "127.0.0.1", "--port", "9001", "--log-level", "debug"])

    assert args.host == "127.0.0.1"
    assert args.port == 9001
    assert args.log_level == "DEBUG"


def test_main_runs_server(monkeypatch):
    """Test main wires settings into the server and stops the sampler."""
    calls = {}
    apps = []
    real_create_app = app_module.create_app

    def fake_run(self, **kwargs):
        calls.update(kwargs)

    def create_with_stub(settings):
        application = real_create_app(settings, provider=StubProvider())
        apps.append(application)
        return application

    monkeypatch.setattr(Flask, "run", fake_run)
    monkeypatch.setattr(app_module, "create_app", create_with_stub)
    monkeypatch.setenv("SYSDASH_WRITE_TIMEOUT", "4")

    app_module.main(["--port", "9002"])

    assert calls["port"] == 9002
    assert calls["threaded"] is True
    assert calls["request_handler"].timeout == 4.0
    assert not apps[0].extensions[SAMPLER_KEY].is_running
