"""Query parsing and reply construction.

Grammar (case-insensitive, keyword preceded by whitespace or the start of
the query)::

    install [<fragment>]
    remove  [<ignored>]
    list

Anything else falls back to prefix-matched command suggestions.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from hpm.models.reply import Command, ParsedCommand, ReplyItem

if TYPE_CHECKING:
    from hpm.cache import AvailablePackagesCache
    from hpm.config import PluginSettings
    from hpm.matcher import Matcher
    from hpm.models.packages import PackageDescriptor
    from hpm.store import PackageStore

_COMMAND_RE = re.compile(r"(?:^|\s)(install|remove|list)\b(?:\s+(\S+))?", re.IGNORECASE)

INSTALL_PAYLOAD = "install"
REMOVE_PAYLOAD = "remove"


def parse(query: str) -> ParsedCommand:
    m = _COMMAND_RE.search(query)
    if m is None:
        return ParsedCommand(command=Command.NONE)
    argument = m.group(2).strip() if m.group(2) else None
    return ParsedCommand(command=Command(m.group(1).lower()), argument=argument or None)


class CommandRouter:
    def __init__(
        self,
        cache: AvailablePackagesCache,
        store: PackageStore,
        matcher: Matcher,
        settings: PluginSettings,
    ) -> None:
        self._cache = cache
        self._store = store
        self._matcher = matcher
        self._settings = settings

    @property
    def command_strings(self) -> list[str]:
        prefix = self._settings.prefix
        return [f"{prefix} install ", f"{prefix} remove ", f"{prefix} list "]

    async def build_reply(self, parsed: ParsedCommand, query: str) -> list[ReplyItem]:
        if parsed.command is Command.INSTALL:
            return self._install_rows(parsed.argument)
        if parsed.command is Command.REMOVE:
            # the argument is accepted by the grammar but does not filter this list
            installed = await self._store.list()
            return [
                ReplyItem(
                    id=pkg.name,
                    payload=REMOVE_PAYLOAD,
                    title=f"remove <b>{pkg.name}</b> {pkg.version}",
                    desc=self._settings.name,
                )
                for pkg in installed
            ]
        if parsed.command is Command.LIST:
            installed = await self._store.list()
            return [
                ReplyItem(
                    id=pkg.name,
                    title=f"<b>{pkg.name}</b> {pkg.version}",
                    desc=self._settings.name,
                )
                for pkg in installed
            ]
        return self.suggestions(query)

    def _install_rows(self, argument: str | None) -> list[ReplyItem]:
        snapshot = self._cache.current_snapshot()
        if not argument:
            return [self._install_row(pkg, f"<b>{pkg.name}</b>") for pkg in snapshot]
        matches = self._matcher.fuzzy(snapshot, argument, lambda p: p.name)
        return [
            self._install_row(m.elem, self._matcher.bold_html(m.elem.name, m.matches))
            for m in matches
        ]

    def _install_row(self, pkg: PackageDescriptor, name_markup: str) -> ReplyItem:
        return ReplyItem(
            id=pkg.name,
            payload=INSTALL_PAYLOAD,
            title=f"install {name_markup} {pkg.version}",
            desc=pkg.description or self._settings.name,
        )

    def suggestions(self, query: str) -> list[ReplyItem]:
        """Redirect rows for the commands that ``query`` is a prefix of."""
        typed = f"{self._settings.prefix} {query.lstrip()}"
        return [
            ReplyItem(
                redirect=m.elem,
                title=self._matcher.bold_html(m.elem, m.matches),
                desc=self._settings.name,
            )
            for m in self._matcher.head(self.command_strings, typed, lambda x: x)
        ]
