"""Explicitly owned runtime state shared by the engine's components."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    import httpx

    from hpm.cache import AvailablePackagesCache
    from hpm.config import Settings
    from hpm.matcher import Matcher
    from hpm.status import OperationStatus
    from hpm.store import PackageStore


class Notifier(Protocol):
    """Host-provided transient notification sink."""

    def toast(self, message: str, duration: int | None = None) -> None: ...


@dataclass
class AppState:
    settings: Settings
    status: OperationStatus
    cache: AvailablePackagesCache
    store: PackageStore
    matcher: Matcher
    notifier: Notifier

    # Only set when the plugin built its own client and must close it
    http_client: httpx.AsyncClient | None = None
