"""Order-preserving set of permission verbs.

Example:
    >>> verbs = VerbSet(["get", "list"])
    >>> verbs.merge(["list", "watch"]).to_list()
    ['get', 'list', 'watch']
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, MutableSet


class VerbSet(MutableSet[str]):
    """A set of verb strings that remembers first-insertion order.

    Merging is a set union: adding the same verb from several rules keeps a
    single entry, and the contents do not depend on merge order. Iteration
    order follows first insertion so results are deterministic.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[str] = ()) -> None:
        self._items: dict[str, None] = dict.fromkeys(items)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._items)!r})"

    def add(self, value: str) -> None:
        self._items.setdefault(value, None)

    def discard(self, value: str) -> None:
        self._items.pop(value, None)

    def merge(self, *others: Iterable[str]) -> VerbSet:
        """Add every verb from ``others`` in place and return self."""
        for other in others:
            for item in other:
                self._items.setdefault(item, None)
        return self

    def union(self, *others: Iterable[str]) -> VerbSet:
        """Return a new VerbSet holding this set's verbs and those of ``others``."""
        return VerbSet(self).merge(*others)

    def copy(self) -> VerbSet:
        return VerbSet(self)

    def to_list(self) -> list[str]:
        return list(self._items)


__all__ = ["VerbSet"]
