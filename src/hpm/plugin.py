"""Host-facing entry points: ``startup``, ``search`` and ``execute``.

``search`` answers synchronously from the cached snapshot and the local
store unless an operation holds the status slot, in which case it hands the
query to the progress loop and pushes the real reply once the operation
finishes. ``execute`` starts installs and removals as detached tasks; their
outcome is observed through the status slot, toasts, and logs.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

import structlog

from hpm.cache import AvailablePackagesCache
from hpm.commands import INSTALL_PAYLOAD, REMOVE_PAYLOAD, CommandRouter, parse
from hpm.config import Settings
from hpm.logging_config import configure_logging
from hpm.matcher import SubsequenceMatcher
from hpm.progress import ProgressReplyLoop
from hpm.registry import RegistryClient, build_http_client
from hpm.state import AppState
from hpm.status import Installing, OperationStatus, Removing
from hpm.store import TimeoutPackageStore

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from typing import Any

    from hpm.matcher import Matcher
    from hpm.models.reply import ReplyItem
    from hpm.progress import ReplyCallback
    from hpm.registry import PackageRegistry
    from hpm.state import Notifier
    from hpm.status import BusyState
    from hpm.store import PackageStore

log = structlog.get_logger()

TOAST_DURATION_MS = 3000


class PackageManagerPlugin:
    def __init__(self, state: AppState) -> None:
        self._state = state
        plugin_settings = state.settings.plugin
        self._router = CommandRouter(state.cache, state.store, state.matcher, plugin_settings)
        self._progress = ProgressReplyLoop(
            state.status,
            self._router,
            state.settings.progress.poll_interval_seconds,
            plugin_settings.name,
        )
        self._tasks: set[asyncio.Task[Any]] = set()
        self._operation_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def router(self) -> CommandRouter:
        return self._router

    @property
    def operation_task(self) -> asyncio.Task[None] | None:
        """The most recent install/remove task started by ``execute``."""
        return self._operation_task

    # ------------------------------------------------------------------
    # Host entry points
    # ------------------------------------------------------------------

    async def startup(self) -> None:
        installed = await self._state.store.list()
        log.info("startup", installed=len(installed))
        self._track(self._state.cache.ensure_fresh())

    async def search(self, query: str, reply: ReplyCallback) -> list[ReplyItem]:
        self._track(self._state.cache.ensure_fresh())
        self._progress.cancel()
        if not self._state.status.is_idle():
            self._progress.start(query, reply)
            return []
        return await self._router.build_reply(parse(query), query)

    async def execute(self, id: str, payload: str | None) -> str | None:
        prefix = self._state.settings.plugin.prefix
        version_range = self._state.settings.store.version_range
        if payload == INSTALL_PAYLOAD:
            self._start_operation(Installing(id), lambda: self._install(id, version_range))
            return f"{prefix} install "
        if payload == REMOVE_PAYLOAD:
            self._start_operation(Removing(id), lambda: self._remove(id))
            return f"{prefix} remove "
        return None

    async def aclose(self) -> None:
        """Cancel background work and release the HTTP client if owned."""
        self._progress.cancel()
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        if self._state.http_client is not None:
            await self._state.http_client.aclose()

    # ------------------------------------------------------------------
    # Foreground operations
    # ------------------------------------------------------------------

    async def install_package(self, name: str, version_range: str = "latest") -> None:
        """Install and wait for completion. Raises ``OperationBusyError`` if busy."""
        async with self._state.status.operation(Installing(name)):
            await self._install(name, version_range)

    async def remove_package(self, name: str) -> None:
        """Remove and wait for completion. Raises ``OperationBusyError`` if busy."""
        async with self._state.status.operation(Removing(name)):
            await self._remove(name)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _start_operation(
        self, state: BusyState, run: Callable[[], Coroutine[Any, Any, None]]
    ) -> None:
        status = self._state.status
        if not status.is_idle():
            log.info("operation_rejected", requested=repr(state), active=repr(status.state))
            self._state.notifier.toast(
                f"Busy: {status.status_message()}, try again later", TOAST_DURATION_MS
            )
            return
        status.begin(state)
        task = asyncio.get_running_loop().create_task(self._run_claimed(state, run))
        self._operation_task = task
        self._track(task)

    async def _run_claimed(
        self, state: BusyState, run: Callable[[], Coroutine[Any, Any, None]]
    ) -> None:
        try:
            await run()
        finally:
            self._state.status.finish(state)

    async def _install(self, name: str, version_range: str) -> None:
        log.info("package_installing", name=name, version_range=version_range)
        try:
            await self._state.store.install(name, version_range)
        except Exception as exc:
            log.warning("package_install_failed", name=name, error=str(exc))
            self._state.notifier.toast(f"Failed to install {name}: {exc}")
            raise
        log.info("package_installed", name=name)
        self._state.notifier.toast(
            f"{name} installed, <b>Restart</b> to take effect", TOAST_DURATION_MS
        )

    async def _remove(self, name: str) -> None:
        log.info("package_removing", name=name)
        try:
            await self._state.store.remove(name)
        except Exception as exc:
            log.warning("package_remove_failed", name=name, error=str(exc))
            self._state.notifier.toast(f"Failed to remove {name}: {exc}")
            raise
        log.info("package_removed", name=name)
        self._state.notifier.toast(
            f"{name} removed, <b>Restart</b> to take effect", TOAST_DURATION_MS
        )

    def _track(self, task: asyncio.Task[Any] | None) -> None:
        if task is None:
            return
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error("background_task_failed", error=str(exc), exc_info=exc)


def create_plugin(
    store: PackageStore,
    notifier: Notifier,
    settings: Settings | None = None,
    *,
    registry: PackageRegistry | None = None,
    matcher: Matcher | None = None,
    clock: Callable[[], float] = time.monotonic,
    configure_logs: bool = True,
) -> PackageManagerPlugin:
    """Wire an ``AppState`` and return a ready plugin.

    When ``registry`` is omitted an httpx client is created for the npm
    registry and closed by ``PackageManagerPlugin.aclose``. Pass
    ``configure_logs=False`` when the host already configured structlog.
    """
    settings = settings or Settings()
    if configure_logs:
        configure_logging(settings.logging)

    http_client = None
    if registry is None:
        http_client = build_http_client(settings.registry)
        registry = RegistryClient(http_client, settings.registry)

    status = OperationStatus()
    cache = AvailablePackagesCache(
        registry,
        status,
        topic=settings.registry.topic,
        ttl_seconds=settings.cache.ttl_seconds,
        clock=clock,
    )
    state = AppState(
        settings=settings,
        status=status,
        cache=cache,
        store=TimeoutPackageStore(store, settings.store.timeout_seconds),
        matcher=matcher or SubsequenceMatcher(),
        notifier=notifier,
        http_client=http_client,
    )
    return PackageManagerPlugin(state)
