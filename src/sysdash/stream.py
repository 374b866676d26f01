"""Server-Sent Events publishing for sysdash."""

import logging
import os
from collections.abc import Callable, Iterator
from enum import Enum

from sysdash.errors import DashboardError, RenderError
from sysdash.models import Snapshot
from sysdash.monitor import Subscription
from sysdash.render import render_stats

logger = logging.getLogger(__name__)


class FailurePolicy(Enum):
    """What a stream does when a tick fails."""

    SKIP = "skip"  # Log, drop the tick, keep streaming
    CLOSE = "close"  # End this stream only
    EXIT = "exit"  # Terminate the whole process


def format_event(fragment: str) -> str:
    """Frame a markup fragment as one SSE event with a single data line."""
    line = fragment.replace("\r", "").replace("\n", "")
    return f"data: {line}\n\n"


# SSE comment frame, ignored by EventSource. Gives the server a write on
# quiet ticks so a vanished client is noticed.
KEEPALIVE = ": keepalive\n\n"


def _terminate_process(status: int) -> None:
    os._exit(status)


def event_stream(
    subscription: Subscription,
    policy: FailurePolicy = FailurePolicy.SKIP,
    poll_timeout: float = 1.0,
    renderer: Callable[[Snapshot], str] = render_stats,
) -> Iterator[str]:
    """
    Yield one SSE event per successful tick delivered to the subscription.

    Quiet polls and skipped ticks yield KEEPALIVE instead, so the consumer
    writes at least once per tick or poll_timeout and finds out when the
    client is gone. The generator ends when the subscription is closed, when
    the policy says so, or when the consumer closes it (werkzeug does this
    once a write to a disconnected client fails). The subscription is always
    released.
    """
    try:
        while not subscription.closed:
            result = subscription.get(timeout=poll_timeout)
            if result is None:
                if subscription.closed:
                    break
                yield KEEPALIVE
                continue

            error = result.error
            if result.ok:
                try:
                    fragment = renderer(result.snapshot)
                except RenderError as exc:
                    error = exc
                except (AttributeError, TypeError, ValueError) as exc:
                    error = RenderError(f"cannot render snapshot: {exc}")
                else:
                    yield format_event(fragment)
                    continue

            if error is None:
                error = DashboardError(f"tick {result.sequence} carried no snapshot")

            if policy is FailurePolicy.SKIP:
                # The sampler already logged provider failures
                if error is result.error:
                    logger.debug("Skipping tick %d: %s", result.sequence, error)
                else:
                    logger.warning("Skipping tick %d: %s", result.sequence, error)
                yield KEEPALIVE
                continue
            if policy is FailurePolicy.CLOSE:
                logger.error("Closing stream after tick %d: %s", result.sequence, error)
                return
            logger.critical("Exiting after tick %d: %s", result.sequence, error)
            _terminate_process(1)
            return
    finally:
        subscription.close()
        logger.debug("Stream closed")
