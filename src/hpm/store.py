"""Local package store boundary.

The store performs the actual filesystem work (download, extraction,
deletion) and is supplied by the host. The engine only relies on this
protocol. Implementations raise ``InstallError`` / ``RemoveError`` on
failure; anything else they raise is treated the same way by the engine.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

import structlog

from hpm.errors import InstallError, RemoveError

if TYPE_CHECKING:
    from hpm.models.packages import InstalledPackage

log = structlog.get_logger()


class PackageStore(Protocol):
    async def list(self) -> list[InstalledPackage]: ...

    async def install(self, name: str, version_range: str) -> None: ...

    async def remove(self, name: str) -> None: ...


class TimeoutPackageStore:
    """Wraps a store so every call is bounded by ``timeout_seconds``.

    ``None`` disables the bound. A timed-out install or remove is reported
    as ``InstallError`` / ``RemoveError``.
    """

    def __init__(self, inner: PackageStore, timeout_seconds: float | None) -> None:
        self._inner = inner
        self._timeout = timeout_seconds

    async def list(self) -> list[InstalledPackage]:
        async with asyncio.timeout(self._timeout):
            return await self._inner.list()

    async def install(self, name: str, version_range: str) -> None:
        try:
            async with asyncio.timeout(self._timeout):
                await self._inner.install(name, version_range)
        except TimeoutError as exc:
            log.warning("store_install_timeout", name=name, timeout=self._timeout)
            raise InstallError(f"installing {name} timed out after {self._timeout}s") from exc

    async def remove(self, name: str) -> None:
        try:
            async with asyncio.timeout(self._timeout):
                await self._inner.remove(name)
        except TimeoutError as exc:
            log.warning("store_remove_timeout", name=name, timeout=self._timeout)
            raise RemoveError(f"removing {name} timed out after {self._timeout}s") from exc
