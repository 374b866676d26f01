"""sysdash - Flask application serving the dashboard and its event stream."""

import argparse
import dataclasses
import logging

from flask import Flask, Response, current_app, jsonify, url_for
from werkzeug.serving import WSGIRequestHandler

from sysdash.config import LOG_LEVELS, Settings
from sysdash.monitor import SnapshotSampler
from sysdash.provider import MetricsProvider, PsutilProvider
from sysdash.render import render_index
from sysdash.stream import event_stream

logger = logging.getLogger(__name__)

SAMPLER_KEY = "sysdash.sampler"
SETTINGS_KEY = "sysdash.settings"

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Stop nginx and friends from buffering events
}


def create_app(
    settings: Settings | None = None,
    provider: MetricsProvider | None = None,
    sampler: SnapshotSampler | None = None,
) -> Flask:
    """
    Create the Flask application and start its shared sampler.

    Args:
        settings: Runtime settings. Defaults to Settings.from_env().
        provider: Metrics source. Defaults to a PsutilProvider.
        sampler: Pre-built sampler, mostly for tests. Built from the other
            arguments when omitted.
    """
    settings = settings or Settings.from_env()
    if sampler is None:
        provider = provider or PsutilProvider(cpu_interval=settings.cpu_interval)
        sampler = SnapshotSampler(
            provider,
            disk_path=settings.disk_path,
            interval=settings.tick_interval,
        )

    app = Flask(__name__)
    app.extensions[SETTINGS_KEY] = settings
    app.extensions[SAMPLER_KEY] = sampler

    @app.get("/")
    def index() -> Response:
        return Response(render_index(url_for("stats")), mimetype="text/html")

    @app.get("/stats")
    def stats() -> Response:
        subscription = current_app.extensions[SAMPLER_KEY].subscribe()
        policy = current_app.extensions[SETTINGS_KEY].failure_policy
        return Response(
            event_stream(subscription, policy),
            content_type="text/event-stream",
            headers=STREAM_HEADERS,
        )

    @app.get("/healthz")
    def healthz() -> Response:
        current = current_app.extensions[SAMPLER_KEY]
        return jsonify(
            status="ok",
            sampler_running=current.is_running,
            subscribers=current.subscriber_count,
        )

    sampler.start()
    return app


def request_handler_with_timeout(timeout: float) -> type[WSGIRequestHandler]:
    """Request handler whose socket operations give up after timeout seconds."""
    return type("TimeoutRequestHandler", (WSGIRequestHandler,), {"timeout": timeout})


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="sysdash", description="Live host metrics dashboard.")
    parser.add_argument("--host", help="Interface to bind (env SYSDASH_HOST)")
    parser.add_argument("--port", type=int, help="TCP port to listen on (env SYSDASH_PORT)")
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        help="Logging level (env SYSDASH_LOG_LEVEL)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the sysdash server."""
    args = parse_args(argv)
    settings = Settings.from_env()
    overrides = {
        "host": args.host,
        "port": args.port,
        "log_level": args.log_level,
    }
    settings = dataclasses.replace(settings, **{k: v for k, v in overrides.items() if v is not None})

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    app = create_app(settings)
    sampler: SnapshotSampler = app.extensions[SAMPLER_KEY]
    logger.info("Listening on http://%s:%d", settings.host, settings.port)
    try:
        app.run(
            host=settings.host,
            port=settings.port,
            threaded=True,
            use_reloader=False,
            request_handler=request_handler_with_timeout(settings.write_timeout),
        )
    finally:
        sampler.stop()


if __name__ == "__main__":
    main()
