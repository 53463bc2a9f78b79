"""Shared fixtures: in-memory fakes for the store, registry, notifier and clock."""

from __future__ import annotations

import asyncio

import pytest

from hpm.cache import AvailablePackagesCache
from hpm.config import Settings
from hpm.models.packages import InstalledPackage, PackageDescriptor
from hpm.plugin import PackageManagerPlugin, create_plugin
from hpm.status import OperationStatus


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRegistry:
    """Returns canned results; ``gate`` holds the call open until set."""

    def __init__(self, results: list[PackageDescriptor] | None = None) -> None:
        self.results = list(results or [])
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.topics: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.topics)

    async def search(self, topic: str) -> list[PackageDescriptor]:
        self.topics.append(topic)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.results)


class FakeStore:
    def __init__(self, installed: list[InstalledPackage] | None = None) -> None:
        self.installed = list(installed or [])
        self.install_error: Exception | None = None
        self.remove_error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.install_calls: list[tuple[str, str]] = []
        self.remove_calls: list[str] = []
        self.list_calls = 0

    async def list(self) -> list[InstalledPackage]:
        self.list_calls += 1
        return list(self.installed)

    async def install(self, name: str, version_range: str) -> None:
        self.install_calls.append((name, version_range))
        if self.gate is not None:
            await self.gate.wait()
        if self.install_error is not None:
            raise self.install_error
        self.installed.append(InstalledPackage(name=name, version="1.0.0"))

    async def remove(self, name: str) -> None:
        self.remove_calls.append(name)
        if self.gate is not None:
            await self.gate.wait()
        if self.remove_error is not None:
            raise self.remove_error
        self.installed = [p for p in self.installed if p.name != name]


class FakeNotifier:
    def __init__(self) -> None:
        self.toasts: list[tuple[str, int | None]] = []

    def toast(self, message: str, duration: int | None = None) -> None:
        self.toasts.append((message, duration))

    @property
    def messages(self) -> list[str]:
        return [message for message, _ in self.toasts]


@pytest.fixture()
def sample_packages() -> list[PackageDescriptor]:
    return [
        PackageDescriptor(name="hain-plugin-translate", version="0.3.1", description="Translate text"),
        PackageDescriptor(name="hain-plugin-github", version="1.2.0", description="Search GitHub"),
        PackageDescriptor(name="hain-plugin-npm", version="0.1.0", description=""),
    ]


@pytest.fixture()
def installed_packages() -> list[InstalledPackage]:
    return [
        InstalledPackage(name="hain-plugin-clock", version="0.0.4"),
        InstalledPackage(name="hain-plugin-math", version="2.1.0"),
    ]


@pytest.fixture()
def settings() -> Settings:
    return Settings(progress={"poll_interval_seconds": 0.01})


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def registry(sample_packages: list[PackageDescriptor]) -> FakeRegistry:
    return FakeRegistry(sample_packages)


@pytest.fixture()
def store(installed_packages: list[InstalledPackage]) -> FakeStore:
    return FakeStore(installed_packages)


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def status() -> OperationStatus:
    return OperationStatus()


@pytest.fixture()
def cache(
    registry: FakeRegistry, status: OperationStatus, clock: FakeClock
) -> AvailablePackagesCache:
    return AvailablePackagesCache(registry, status, topic="hain-plugin", ttl_seconds=300, clock=clock)


@pytest.fixture()
async def plugin(
    store: FakeStore,
    notifier: FakeNotifier,
    settings: Settings,
    registry: FakeRegistry,
    clock: FakeClock,
) -> PackageManagerPlugin:
    p = create_plugin(
        store, notifier, settings, registry=registry, clock=clock, configure_logs=False
    )
    yield p
    await p.aclose()
