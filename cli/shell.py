"""Interactive results shell for ``dashboard watch``.

The session keeps polling in the background while the prompt waits for
input; every command redraws the table from the latest store contents.
Polling only ever rewrites records, so the user's filter, sort, page and
selection stay where they left them.
"""

from __future__ import annotations

import asyncio
import shlex
from typing import Awaitable, Callable, Optional

import typer
from rich.console import Console

from dashboard.api.client import CrawlerClient
from dashboard.config import Settings
from dashboard.errors import DashboardError
from dashboard.session import DashboardSession
from dashboard.view import SortDirection

from cli.rendering import render_details, render_page

HELP = """\
Commands:
  search [TEXT]          filter on URL or title (no text clears it)
  sort COLUMN [asc|desc] sort by a column; repeating a column flips direction
  rows N                 rows per page
  page N | next | prev   move between pages
  select ID...           toggle selection of rows
  select-page            select / unselect every row on this page
  clear                  clear the selection
  add URL                submit a URL
  start ID | stop ID     start (reanalyze) or stop an analysis
  delete ID              delete one row
  delete-selected        delete all selected rows
  reanalyze-selected     reanalyze all selected rows
  show ID                details for one row
  refresh                fetch now
  help                   this text
  quit                   leave
Press Enter on an empty line to redraw."""


class ShellController:
    """Maps one line of user input onto session operations."""

    def __init__(
        self,
        session: DashboardSession,
        console: Console,
        confirm: Callable[[str], bool],
    ) -> None:
        self.session = session
        self.console = console
        self._confirm = confirm
        self._commands: dict[str, Callable[[list[str]], Awaitable[None]]] = {
            "search": self._search,
            "sort": self._sort,
            "rows": self._rows,
            "page": self._page,
            "next": self._next,
            "prev": self._prev,
            "select": self._select,
            "select-page": self._select_page,
            "clear": self._clear,
            "add": self._add,
            "start": self._start,
            "stop": self._stop,
            "delete": self._delete,
            "delete-selected": self._delete_selected,
            "reanalyze-selected": self._reanalyze_selected,
            "show": self._show,
            "refresh": self._refresh,
            "help": self._help,
        }

    def _say(self, message: str) -> None:
        self.console.print(message, markup=False, highlight=False)

    def render(self) -> None:
        s = self.session
        self.console.print(render_page(s.page(), s.view, s.selection))

    def _resolve(self, token: str) -> str:
        """Accept a full id or an unambiguous prefix of one."""
        if token in self.session.store:
            return token
        matches = [i for i in self.session.store.ids() if i.startswith(token)]
        if len(matches) == 1:
            return matches[0]
        return token

    async def handle(self, line: str) -> bool:
        """Run one command.  Returns ``False`` when the shell should exit."""
        try:
            words = shlex.split(line)
        except ValueError as exc:
            self._say(f"❌ {exc}")
            return True
        if not words:
            self.render()
            return True

        name, args = words[0].lower(), words[1:]
        if name in ("quit", "exit", "q"):
            return False
        command = self._commands.get(name)
        if command is None:
            self._say(f"❌ Unknown command {name!r}. Type 'help'.")
            return True

        try:
            await command(args)
        except (DashboardError, ValueError) as exc:
            self._say(f"❌ {exc}")
        return True

    # ------------------------------------------------------------------
    # View state
    # ------------------------------------------------------------------
    async def _search(self, args: list[str]) -> None:
        self.session.search(" ".join(args))
        self.render()

    async def _sort(self, args: list[str]) -> None:
        if not args:
            raise ValueError("usage: sort COLUMN [asc|desc]")
        if len(args) > 1:
            self.session.set_sort(args[0], SortDirection(args[1].lower()))
        else:
            self.session.sort_by(args[0])
        self.render()

    async def _rows(self, args: list[str]) -> None:
        if len(args) != 1 or not args[0].isdigit():
            raise ValueError("usage: rows N")
        self.session.set_rows_per_page(int(args[0]))
        self.render()

    async def _page(self, args: list[str]) -> None:
        if len(args) != 1 or not args[0].isdigit():
            raise ValueError("usage: page N")
        self.session.go_to_page(int(args[0]))
        self.render()

    async def _next(self, args: list[str]) -> None:
        if not self.session.page().has_next:
            self._say("Already on the last page.")
            return
        self.session.next_page()
        self.render()

    async def _prev(self, args: list[str]) -> None:
        if not self.session.page().has_prev:
            self._say("Already on the first page.")
            return
        self.session.prev_page()
        self.render()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    async def _select(self, args: list[str]) -> None:
        if not args:
            raise ValueError("usage: select ID...")
        for token in args:
            self.session.toggle(self._resolve(token))
        self.render()

    async def _select_page(self, args: list[str]) -> None:
        self.session.toggle_all_on_page()
        self.render()

    async def _clear(self, args: list[str]) -> None:
        self.session.selection.clear()
        self.render()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def _add(self, args: list[str]) -> None:
        if len(args) != 1:
            raise ValueError("usage: add URL")
        record = await self.session.add(args[0])
        self._say(f"✅ Queued {record.url} [{record.id}]")
        self.render()

    async def _start(self, args: list[str]) -> None:
        for token in args:
            record = await self.session.start_analysis(self._resolve(token))
            self._say(f"✅ {record.url} is {record.status.value}")
        self.render()

    async def _stop(self, args: list[str]) -> None:
        for token in args:
            await self.session.stop_analysis(self._resolve(token))
        self.render()

    async def _delete(self, args: list[str]) -> None:
        for token in args:
            await self.session.delete(self._resolve(token))
        self.render()

    async def _ask(self, verb: str) -> bool:
        """Confirm a bulk action off the event loop so polling keeps running."""
        count = len(self.session.selection)
        if not count:
            return False
        return await asyncio.to_thread(
            self._confirm, f"Are you sure you want to {verb} {count} selected URL(s)?"
        )

    async def _delete_selected(self, args: list[str]) -> None:
        answer = await self._ask("delete")
        result = await self.session.bulk_delete(lambda n: answer)
        if result is None:
            self._say("Cancelled.")
            return
        self._say(f"🗑️ Deleted {len(result.succeeded)} URL(s)")
        for record_id, exc in result.failed.items():
            self._say(f"❌ Failed to delete {record_id}: {exc}")
        self.render()

    async def _reanalyze_selected(self, args: list[str]) -> None:
        answer = await self._ask("reanalyze")
        tasks = self.session.bulk_reanalyze(lambda n: answer)
        if tasks is None:
            self._say("Cancelled.")
            return
        self._say(f"🔁 Reanalyze requested for {len(tasks)} URL(s)")
        self.render()

    async def _show(self, args: list[str]) -> None:
        if len(args) != 1:
            raise ValueError("usage: show ID")
        record = await self.session.details(self._resolve(args[0]))
        self.console.print(render_details(record))

    async def _refresh(self, args: list[str]) -> None:
        if not await self.session.refresh():
            self._say("⚠️ Backend did not answer; showing the last known data.")
        self.render()

    async def _help(self, args: list[str]) -> None:
        self._say(HELP)


async def run_shell(
    config: Settings,
    console: Console,
    rows_per_page: Optional[int] = None,
    confirm: Optional[Callable[[str], bool]] = None,
) -> None:
    """Run the interactive loop until ``quit`` or end of input."""
    async with CrawlerClient(config) as client, DashboardSession(client, config) as session:
        if rows_per_page is not None:
            session.set_rows_per_page(rows_per_page)
        controller = ShellController(session, console, confirm or typer.confirm)
        await session.refresh()
        controller.render()
        while True:
            try:
                line = await asyncio.to_thread(input, "dashboard> ")
            except EOFError:
                break
            if not await controller.handle(line):
                break
