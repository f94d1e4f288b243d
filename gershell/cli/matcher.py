"""Prefix search over a flat vocabulary of command words."""

from __future__ import annotations

from bisect import bisect_left
from typing import Iterable, Protocol


class PrefixMatcher(Protocol):
    """Anything that can answer "which entries start with X"."""

    def matches(self, prefix: str) -> set[str]:
        ...


class SortedPrefixIndex:
    """Sorted word list; every entry sharing a prefix sits in one contiguous run."""

    def __init__(self, vocabulary: Iterable[str]) -> None:
        self._words = sorted(set(vocabulary))

    def matches(self, prefix: str) -> set[str]:
        found: set[str] = set()
        for word in self._words[bisect_left(self._words, prefix) :]:
            if not word.startswith(prefix):
                break
            found.add(word)
        return found


def build(vocabulary: Iterable[str]) -> SortedPrefixIndex:
    return SortedPrefixIndex(vocabulary)
