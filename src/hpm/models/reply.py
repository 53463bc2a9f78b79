from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class Command(StrEnum):
    INSTALL = "install"
    REMOVE = "remove"
    LIST = "list"
    NONE = "none"


class ParsedCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    command: Command
    argument: str | None = None


class ReplyItem(BaseModel):
    """Single result row rendered by the host.

    ``title`` and ``desc`` may carry ``<b>`` highlight markup. Rows with a
    ``payload`` trigger ``execute``; rows with a ``redirect`` rewrite the
    active query instead.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    title: str
    desc: str
    icon: str | None = None
    payload: str | None = None  # "install" | "remove"
    redirect: str | None = None


class RemoveDirective(BaseModel):
    """Push-channel instruction to drop a previously emitted row."""

    model_config = ConfigDict(frozen=True)

    remove: str
