"""Fuzzy filtering and highlight markup for reply rows.

``Matcher`` is the interface the router consumes; hosts with their own
matching utility can pass any object satisfying it. ``SubsequenceMatcher``
is the default: a query matches when its characters appear in order in the
key (case-insensitive), and candidates are ranked by how tightly and how
early the characters land.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, Protocol, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

T = TypeVar("T")


@dataclass(frozen=True)
class Match(Generic[T]):
    elem: T
    # indices into key(elem) of the matched characters, ascending
    matches: tuple[int, ...] = field(default_factory=tuple)
    score: float = 0.0


class Matcher(Protocol):
    def fuzzy(self, items: Sequence[T], query: str, key: Callable[[T], str]) -> list[Match[T]]: ...

    def head(self, items: Sequence[T], prefix: str, key: Callable[[T], str]) -> list[Match[T]]: ...

    def bold_html(self, text: str, matches: Sequence[int]) -> str: ...


def _subsequence_indices(text: str, query: str) -> tuple[int, ...] | None:
    """Indices of ``query`` characters in ``text``.

    A contiguous occurrence wins; otherwise characters are matched greedily
    left to right.
    """
    start = text.find(query)
    if start >= 0:
        return tuple(range(start, start + len(query)))

    indices: list[int] = []
    pos = 0
    for ch in query:
        found = text.find(ch, pos)
        if found < 0:
            return None
        indices.append(found)
        pos = found + 1
    return tuple(indices)


def _score(text: str, indices: tuple[int, ...]) -> float:
    if not indices:
        return 0.0
    span = indices[-1] - indices[0] + 1
    gaps = span - len(indices)
    # Tight spans and early starts rank higher; shorter keys break ties.
    return 100.0 - gaps * 2.0 - indices[0] - len(text) * 0.01


class SubsequenceMatcher:
    def fuzzy(self, items: Sequence[T], query: str, key: Callable[[T], str]) -> list[Match[T]]:
        needle = query.strip().lower()
        if not needle:
            return [Match(elem=item) for item in items]

        results: list[Match[T]] = []
        for item in items:
            text = key(item).lower()
            indices = _subsequence_indices(text, needle)
            if indices is None:
                continue
            results.append(Match(elem=item, matches=indices, score=_score(text, indices)))
        # sorted() is stable, so equal scores keep input order
        return sorted(results, key=lambda m: m.score, reverse=True)

    def head(self, items: Sequence[T], prefix: str, key: Callable[[T], str]) -> list[Match[T]]:
        needle = prefix.lower()
        return [
            Match(elem=item, matches=tuple(range(len(needle))), score=float(len(needle)))
            for item in items
            if key(item).lower().startswith(needle)
        ]

    def bold_html(self, text: str, matches: Sequence[int]) -> str:
        """Wrap matched characters in ``<b>`` tags, merging adjacent runs."""
        marked = set(matches)
        out: list[str] = []
        in_bold = False
        for i, ch in enumerate(text):
            if i in marked and not in_bold:
                out.append("<b>")
                in_bold = True
            elif i not in marked and in_bold:
                out.append("</b>")
                in_bold = False
            out.append(html.escape(ch, quote=False))
        if in_bold:
            out.append("</b>")
        return "".join(out)
