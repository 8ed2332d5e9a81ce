"""Rich renderables for the results table and the details view."""

from __future__ import annotations

from typing import Optional

from rich.console import Group
from rich.table import Table
from rich.text import Text

from dashboard.models import Record, RecordStatus
from dashboard.selection import SelectionTracker
from dashboard.view import PageView, SortDirection, ViewState

# (field, header) in display order
_COLUMNS = [
    ("url", "URL"),
    ("title", "Title"),
    ("html_version", "HTML Version"),
    ("internal_links", "Internal"),
    ("external_links", "External"),
    ("accessible_links", "Accessible"),
    ("has_login_form", "Login"),
    ("status", "Status"),
]

_STATUS_STYLE = {
    RecordStatus.ERROR: "red",
    RecordStatus.STOPPED: "yellow",
    RecordStatus.RUNNING: "cyan",
    RecordStatus.QUEUED: "dim",
}


def _sort_indicator(view: ViewState, key: str) -> str:
    if view.sort_key != key:
        return ""
    return " ▲" if view.sort_direction == SortDirection.ASC else " ▼"


def _actions(record: Record) -> str:
    actions = []
    if record.can_start:
        actions.append("start")
    if record.can_stop:
        actions.append("stop")
    actions.append("delete")
    return " ".join(actions)


def build_table(
    page: PageView,
    view: ViewState,
    selection: Optional[SelectionTracker] = None,
) -> Table:
    """Render one page of records as a table."""
    table = Table(show_lines=False, header_style="bold")
    if selection is not None:
        header = "[x]" if selection.all_selected_on_page(page.ids) else "[ ]"
        table.add_column(Text(header), no_wrap=True)
    table.add_column("ID", no_wrap=True, style="dim")
    for key, label in _COLUMNS:
        table.add_column(Text(label + _sort_indicator(view, key)), no_wrap=key == "url")
    table.add_column("Actions", no_wrap=True)

    for record in page.rows:
        cells: list[Text] = []
        if selection is not None:
            cells.append(Text("[x]" if selection.is_selected(record.id) else "[ ]"))
        cells.extend([
            Text(record.id[:8]),
            Text(record.url),
            Text(record.title) if record.title else Text("(no title)", style="italic dim"),
            Text(record.html_version or "–"),
            Text(str(record.internal_links)),
            Text(str(record.external_links)),
            Text(str(record.accessible_links)),
            Text("yes" if record.has_login_form else "no"),
            Text(record.status.value, style=_STATUS_STYLE.get(record.status, "green")),
            Text(_actions(record)),
        ])
        table.add_row(*cells)
    return table


def page_summary(page: PageView) -> str:
    return (
        f"Page {page.page} of {page.total_pages}  ·  "
        f"Showing {len(page.rows)} of {page.filtered_count} filtered links"
        f" ({page.total_count} total)"
    )


def render_page(
    page: PageView,
    view: ViewState,
    selection: Optional[SelectionTracker] = None,
) -> Group:
    parts: list = [build_table(page, view, selection), Text(page_summary(page))]
    if view.search_term:
        parts.insert(0, Text(f"Filter: {view.search_term!r}"))
    if selection is not None and len(selection):
        parts.append(Text(f"{len(selection)} selected"))
    return Group(*parts)


def render_details(record: Record) -> Group:
    """Details view: link distribution and broken links of one record."""
    total = record.internal_links + record.external_links
    dist = Table(title="Link Distribution", show_header=True, header_style="bold")
    dist.add_column("Kind")
    dist.add_column("Count", justify="right")
    dist.add_column("Share", justify="right")
    for label, count in (("Internal", record.internal_links), ("External", record.external_links)):
        share = f"{count / total:.0%}" if total else "–"
        dist.add_row(label, str(count), share)

    lines: list = [
        Text(f"Details for {record.url}", style="bold"),
        Text(f"Status: {record.status.value}   Title: {record.title or '(no title)'}"
             f"   HTML: {record.html_version or '–'}"),
        Text(f"Accessible links: {record.accessible_links}   "
             f"Login form: {'yes' if record.has_login_form else 'no'}"),
        dist,
    ]
    if record.headings:
        headings = ", ".join(f"{level}: {count}" for level, count in sorted(record.headings.items()))
        lines.append(Text(f"Headings: {headings}"))

    lines.append(Text("Broken Links", style="bold"))
    if not record.broken_links:
        lines.append(Text("No broken links found.", style="dim"))
    for link in record.broken_links:
        lines.append(Text.assemble((str(link.status), "red"), " - ", link.url))
    return Group(*lines)
