"""Live progress feedback while an operation holds the status slot.

The loop pushes a spinner row immediately, polls the status slot, and once
the slot is idle replaces the spinner with the real reply for the query
that started it. Only one loop runs per plugin instance; starting a new one
cancels the previous.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from hpm.commands import parse
from hpm.models.reply import RemoveDirective, ReplyItem

if TYPE_CHECKING:
    from collections.abc import Callable

    from hpm.commands import CommandRouter
    from hpm.status import OperationStatus

    ReplyCallback = Callable[[list[ReplyItem] | RemoveDirective], None]

log = structlog.get_logger()

SPINNER_ID = "**"
SPINNER_ICON = "#fa fa-spinner fa-spin"


class ProgressReplyLoop:
    def __init__(
        self,
        status: OperationStatus,
        router: CommandRouter,
        poll_interval: float,
        desc: str,
    ) -> None:
        self._status = status
        self._router = router
        self._interval = poll_interval
        self._desc = desc
        self._task: asyncio.Task[None] | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def start(self, query: str, reply: ReplyCallback) -> asyncio.Task[None]:
        self.cancel()
        reply(
            [
                ReplyItem(
                    id=SPINNER_ID,
                    title=self._status.status_message(),
                    desc=self._desc,
                    icon=SPINNER_ICON,
                )
            ]
        )
        self._task = asyncio.get_running_loop().create_task(self._poll(query, reply))
        return self._task

    async def _poll(self, query: str, reply: ReplyCallback) -> None:
        while not self._status.is_idle():
            await asyncio.sleep(self._interval)

        reply(RemoveDirective(remove=SPINNER_ID))
        try:
            items = await self._router.build_reply(parse(query), query)
        except Exception:
            log.exception("progress_reply_failed", query=query)
            return
        reply(items)
