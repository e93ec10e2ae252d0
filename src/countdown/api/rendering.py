"""HTML fragments for the human-facing countdown pages."""

from html import escape
from typing import Iterable, List, Tuple

from countdown.core.status import status_css_class
from countdown.model.job import Job, StatusView
from countdown.utils.misc import datetime_to_str

NAV_BAR_HTML = """
<style>
    body { font-family: sans-serif; margin: 0; padding: 0; }
    nav { background-color: #333; color: white; padding: 10px; margin-bottom: 20px; }
    nav a { color: white; margin-right: 15px; text-decoration: none; }
    nav a:hover { text-decoration: underline; }
    .content { padding: 0 20px; }
    table { border-collapse: collapse; width: 100%; margin-top: 10px; }
    th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }
    tr:nth-child(even) { background-color: #f2f2f2; }
    .status-complete { color: green; font-weight: bold; }
    .status-progress { color: orange; font-weight: bold; }
    .form-group { display: flex; align-items: center; margin-bottom: 10px; }
    .form-group label { flex-basis: 200px; margin-right: 20px; text-align: right; }
    .form-group input { flex-grow: 1; padding: 5px; max-width: 300px; }
</style>
<nav>
    <a href="/">Home (/)</a>
    <a href="/start">Start Timer (/start)</a>
    <a href="/status">View Statuses (/status)</a>
    | API:
    <a href="/api/status">All Statuses</a>
</nav>
<div class="content">
"""

NAV_BAR_END_HTML = "</div>"

START_FORM_HTML = """
<h1>Add A Countdown</h1>
<p>Use the form below to activate a new, independent delayed rule.</p>
<form method="POST" action="/start">
    <div class="form-group">
        <label for="name">Countdown Job Name:</label>
        <input type="text" id="name" name="name" required>
    </div>
    <div class="form-group">
        <label for="delay">Countdown Delay (in secs):</label>
        <input type="number" id="delay" name="delay" required min="1">
    </div>
    <button type="submit">Activate Rule</button>
</form>"""

HISTORY_HEADER_HTML = """<table>
    <tr>
        <th>ID</th>
        <th>Name</th>
        <th>Date/Time Added</th>
        <th>Expected Completion Time</th>
        <th>Completed Time</th>
        <th>Total Delay (Secs)</th>
        <th>Elapsed Time (Secs)</th>
        <th>Current Status</th>
    </tr>"""


def with_nav(content: str) -> str:
    return NAV_BAR_HTML + content + NAV_BAR_END_HTML


def render_home(rows: Iterable[Tuple[Job, StatusView]], max_history: int) -> str:
    """History table of the most recent countdowns, oldest first."""
    rows = list(rows)
    content = "<h1>Countdown As A Service</h1>"
    content += f"<h2>Countdown History (Last {max_history})</h2>"
    if not rows:
        return with_nav(content + "<p>No delays recorded yet.</p>")

    cells: List[str] = [HISTORY_HEADER_HTML]
    for job, view in rows:
        cells.append(
            f"""
    <tr>
        <td><a href="/status/{job.id}">{job.id}</a></td>
        <td>{escape(job.name)}</td>
        <td>{datetime_to_str(job.created_at)}</td>
        <td>{datetime_to_str(job.expected_completion)}</td>
        <td>{datetime_to_str(job.completed_at)}</td>
        <td>{job.total_delay_seconds}</td>
        <td>{view.elapsed_seconds}</td>
        <td class="{status_css_class(view)}">{view.status}</td>
    </tr>"""
        )
    cells.append("</table>")
    return with_nav(content + "".join(cells))


def render_start_form() -> str:
    return with_nav(START_FORM_HTML)


def render_status_index(rows: Iterable[Tuple[Job, float]], active_count: int, total: int) -> str:
    content = "<h1>Active Countdown Status</h1>"
    for job, remaining in rows:
        content += (
            f'<p><a href="/status/{job.id}"><strong>{job.id} - {escape(job.name)}</strong></a>'
            f" - in-progress, remaining time {remaining:.0f} seconds</p>"
        )

    if total == 0:
        content += "<p>No countdowns activated.</p>"
    elif active_count == 0:
        content += "<p>All queued tasks are completed.</p>"
    return with_nav(content)


def render_status_detail(job: Job, view: StatusView) -> str:
    content = f"<h1>Status for Job ID: {job.id} ({escape(job.name)})</h1>"
    content += f"<p>Status: <strong>{view.status}</strong></p>"
    if not view.is_completed:
        content += f"<p>Remaining Time: {view.remaining_seconds} seconds</p>"
    content += f"<p>Total Delay Requested: {job.total_delay_seconds} seconds</p>"
    content += f"<p>Time Added: {datetime_to_str(job.created_at)}</p>"
    if job.completed_at is not None:
        content += f"<p>Completed Time: {datetime_to_str(job.completed_at)}</p>"
    return with_nav(content)
