"""Single-slot operation status.

At most one long-running operation (registry refresh, install, remove) is
outstanding per plugin instance. The slot is owned by ``AppState`` and every
mutation goes through ``begin``/``finish``, which are synchronous so the
check-and-set happens before the operation's first suspension point.

    Idle -> Fetching -> Idle
    Idle -> Installing(name) -> Idle
    Idle -> Removing(name) -> Idle
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from hpm.errors import OperationBusyError, StatusInvariantError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

log = structlog.get_logger()


@dataclass(frozen=True)
class Idle:
    def message(self) -> str:
        return ""


@dataclass(frozen=True)
class Fetching:
    def message(self) -> str:
        return "fetching available packages..."


@dataclass(frozen=True)
class Installing:
    name: str

    def message(self) -> str:
        return f"installing <b>{self.name}</b>"


@dataclass(frozen=True)
class Removing:
    name: str

    def message(self) -> str:
        return f"removing <b>{self.name}</b>"


State = Idle | Fetching | Installing | Removing
BusyState = Fetching | Installing | Removing

IDLE = Idle()


class OperationStatus:
    def __init__(self) -> None:
        self._state: State = IDLE

    @property
    def state(self) -> State:
        return self._state

    def is_idle(self) -> bool:
        return isinstance(self._state, Idle)

    def status_message(self) -> str:
        return self._state.message()

    def begin(self, state: BusyState) -> None:
        """Enter a busy state. Only legal from ``Idle``."""
        if isinstance(state, Idle):
            raise ValueError("begin() requires a busy state")
        if not self.is_idle():
            raise OperationBusyError(
                f"cannot start {state.message()!r} while {self.status_message()!r} is active"
            )
        self._state = state
        log.debug("operation_started", state=repr(state))

    def finish(self, expected: BusyState) -> None:
        """Return to ``Idle`` from ``expected``.

        Finding any other state means the single-flight gate was bypassed.
        """
        if self._state != expected:
            raise StatusInvariantError(
                f"status slot holds {self._state!r}, expected {expected!r}"
            )
        self._state = IDLE
        log.debug("operation_finished", state=repr(expected))

    @asynccontextmanager
    async def operation(self, state: BusyState) -> AsyncIterator[None]:
        """Hold ``state`` for the duration of the block, resetting on any exit."""
        self.begin(state)
        try:
            yield
        finally:
            self.finish(state)

    def __repr__(self) -> str:
        return f"OperationStatus({self._state!r})"
