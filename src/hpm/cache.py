"""In-memory snapshot of remotely available packages with stale-while-revalidate.

Readers always get the current snapshot immediately, even while it is stale
or being refreshed. A refresh is started only when the snapshot is older
than the TTL *and* the shared status slot is idle, so at most one registry
query is ever in flight.

Registry failures are recovered here: the previous snapshot is kept, the
refresh timestamp is not advanced (the next stale check retries), and the
error is logged rather than surfaced to the user.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

import structlog

from hpm.errors import TransportError
from hpm.status import Fetching

if TYPE_CHECKING:
    from collections.abc import Callable

    from hpm.models.packages import PackageDescriptor
    from hpm.registry import PackageRegistry
    from hpm.status import OperationStatus

log = structlog.get_logger()


class AvailablePackagesCache:
    def __init__(
        self,
        registry: PackageRegistry,
        status: OperationStatus,
        topic: str,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._registry = registry
        self._status = status
        self._topic = topic
        self._ttl = ttl_seconds
        self._clock = clock
        self._items: tuple[PackageDescriptor, ...] = ()
        # None means never refreshed, which is always stale
        self._last_refreshed_at: float | None = None

    @property
    def last_refreshed_at(self) -> float | None:
        return self._last_refreshed_at

    def current_snapshot(self) -> tuple[PackageDescriptor, ...]:
        return self._items

    def is_stale(self) -> bool:
        if self._last_refreshed_at is None:
            return True
        return self._clock() - self._last_refreshed_at > self._ttl

    def ensure_fresh(self) -> asyncio.Task[None] | None:
        """Schedule a background refresh if the snapshot is stale and nothing is running.

        Returns the refresh task, or ``None`` when no refresh was started.
        Must be called from within a running event loop.
        """
        if not self._status.is_idle() or not self.is_stale():
            return None
        # Claim the slot before the task is scheduled so a second caller
        # in the same tick sees it busy.
        self._status.begin(Fetching())
        return asyncio.get_running_loop().create_task(self._refresh_claimed())

    async def refresh(self) -> None:
        """Refresh in the foreground. Raises ``OperationBusyError`` if the slot is taken."""
        self._status.begin(Fetching())
        await self._refresh_claimed()

    async def _refresh_claimed(self) -> None:
        state = Fetching()
        try:
            items = await self._registry.search(self._topic)
        except TransportError as exc:
            log.warning("registry_refresh_failed", topic=self._topic, error=str(exc))
        else:
            self._items = tuple(items)
            self._last_refreshed_at = self._clock()
            log.info("registry_refresh_complete", topic=self._topic, count=len(self._items))
        finally:
            self._status.finish(state)
