"""HTML rendering for sysdash."""

from markupsafe import escape

from sysdash.errors import RenderError
from sysdash.models import Snapshot

# Shared by CPU load and temperature coloring
GREEN_LIMIT = 50.0
ORANGE_LIMIT = 90.0


def _threshold_color(value: float) -> str:
    if value <= GREEN_LIMIT:
        return "green"
    if value <= ORANGE_LIMIT:
        return "orange"
    return "red"


def cpu_color(percent: float) -> str:
    """Color for a CPU load percentage."""
    return _threshold_color(percent)


def temperature_color(celsius: float) -> str:
    """Color for a sensor temperature in Celsius."""
    return _threshold_color(celsius)


def inc(n: int) -> int:
    """Turn a zero-based index into a display number."""
    return n + 1


def _usage_row(title: str, used_gb: float, total_gb: float, percent: float) -> str:
    return (
        f'<div class="usage">\n'
        f"  <h3>{title}</h3>\n"
        f'  <progress max="100" value="{percent}"></progress>\n'
        f"  <span>{used_gb:.2f} GB / {total_gb:.2f} GB ({percent:.2f}%)</span>\n"
        f"</div>"
    )


def _cpu_rows(loads: tuple[float, ...]) -> str:
    lines = []
    for i, load in enumerate(loads):
        lines.append(
            f'<div class="cpu">'
            f"<span>CPU {inc(i)}</span> "
            f'<div class="bar"><div class="fill" style="width: {load}%; background: {cpu_color(load)}"></div></div> '
            f"<span>{load:.2f}%</span>"
            f"</div>"
        )
    return "\n".join(lines)


def _temperature_rows(snapshot: Snapshot) -> str:
    if not snapshot.temperatures:
        return '<p class="muted">No sensors</p>'

    lines = ["<table>", "<tr><th>#</th><th>Sensor</th><th>Temperature</th></tr>"]
    for i, reading in enumerate(snapshot.temperatures):
        lines.append(
            f"<tr><td>{inc(i)}</td><td>{escape(reading.label)}</td>"
            f'<td style="color: {temperature_color(reading.celsius)}">{reading.celsius:.1f} &deg;C</td></tr>'
        )
    lines.append("</table>")
    return "\n".join(lines)


def render_stats(snapshot: Snapshot) -> str:
    """
    Render a snapshot as the HTML fragment swapped into the dashboard.

    The fragment may span several lines; callers framing it as an event are
    expected to collapse it.

    Raises:
        RenderError: If the snapshot cannot be rendered.
    """
    try:
        return "\n".join(
            [
                '<section class="host">',
                f"<h2>{escape(snapshot.hostname)}</h2>",
                f"<p>OS: {escape(snapshot.os_name)} &middot; Uptime: {escape(snapshot.uptime)}</p>",
                "</section>",
                '<section class="memory">',
                _usage_row(
                    "Memory",
                    snapshot.used_memory_gb,
                    snapshot.total_memory_gb,
                    snapshot.memory_used_percent,
                ),
                "</section>",
                '<section class="disk">',
                _usage_row(
                    "Disk",
                    snapshot.used_disk_gb,
                    snapshot.total_disk_gb,
                    snapshot.disk_used_percent,
                ),
                "</section>",
                '<section class="cpus">',
                "<h3>CPU</h3>",
                _cpu_rows(snapshot.cpu_loads),
                "</section>",
                '<section class="temperatures">',
                "<h3>Temperatures</h3>",
                _temperature_rows(snapshot),
                "</section>",
            ]
        )
    except (AttributeError, TypeError, ValueError) as exc:
        raise RenderError(f"cannot render snapshot: {exc}") from exc


INDEX_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>sysdash</title>
  <script src="https://unpkg.com/htmx.org@1.9.12"></script>
  <script src="https://unpkg.com/htmx.org@1.9.12/dist/ext/sse.js"></script>
  <style>
    body { font-family: sans-serif; margin: 2rem; background: #111; color: #eee; }
    section { margin-bottom: 1.5rem; }
    progress { width: 20rem; }
    .cpu { display: flex; align-items: center; gap: 0.5rem; }
    .bar { width: 20rem; height: 0.8rem; background: #333; }
    .fill { height: 100%; }
    .muted { color: #888; }
    td, th { padding: 0.2rem 0.8rem; text-align: left; }
  </style>
</head>
<body>
  <h1>System stats</h1>
  <div hx-ext="sse" sse-connect="{stream_url}" sse-swap="message">
    <p class="muted">Waiting for the first sample...</p>
  </div>
</body>
</html>
"""


def render_index(stream_url: str = "/stats") -> str:
    """Render the static shell page that subscribes to the stats stream."""
    return INDEX_TEMPLATE.replace("{stream_url}", str(escape(stream_url)))
