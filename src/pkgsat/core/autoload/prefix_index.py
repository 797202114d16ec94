"""Longest-prefix lookup of source locations.

A ``PrefixIndex`` maps symbol prefixes (``"Acme\\Http"``, ``"Swift_"``) to
the directories that hold their sources. Lookups walk a character trie and
return the paths of the longest registered prefix of the symbol, so a more
specific registration always wins over a broader one. The empty prefix is
a fallback that matches every symbol.
"""

from __future__ import annotations

from collections.abc import Iterable


class _Node:
    __slots__ = ("children", "paths", "registered")

    def __init__(self) -> None:
        self.children: dict[str, _Node] = {}
        self.paths: list[str] = []
        self.registered = False


class PrefixIndex:
    """Character trie of registered prefixes and their paths."""

    def __init__(self) -> None:
        self._root = _Node()
        self._size = 0

    def register(self, prefix: str, paths: str | Iterable[str]) -> None:
        """Append *paths* to the entry for *prefix*, creating it if needed."""
        if isinstance(paths, str):
            paths = [paths]
        node = self._root
        for char in prefix:
            node = node.children.setdefault(char, _Node())
        if not node.registered:
            node.registered = True
            self._size += 1
        for path in paths:
            if path not in node.paths:
                node.paths.append(path)

    def longest_prefix(self, symbol: str) -> str | None:
        """Return the longest registered prefix of *symbol*, or None."""
        node = self._root
        best = "" if node.registered else None
        for depth, char in enumerate(symbol, start=1):
            node = node.children.get(char)
            if node is None:
                break
            if node.registered:
                best = symbol[:depth]
        return best

    def lookup(self, symbol: str) -> list[str]:
        """Paths registered for the longest prefix of *symbol*; empty if none."""
        node = self._root
        best = node.paths if node.registered else []
        for char in symbol:
            node = node.children.get(char)
            if node is None:
                break
            if node.registered:
                best = node.paths
        return list(best)

    def items(self) -> list[tuple[str, list[str]]]:
        """Every (prefix, paths) entry, sorted by prefix."""
        entries: list[tuple[str, list[str]]] = []
        stack = [("", self._root)]
        while stack:
            prefix, node = stack.pop()
            if node.registered:
                entries.append((prefix, list(node.paths)))
            for char, child in node.children.items():
                stack.append((prefix + char, child))
        return sorted(entries)

    def __contains__(self, prefix: object) -> bool:
        if not isinstance(prefix, str):
            return False
        node = self._root
        for char in prefix:
            node = node.children.get(char)
            if node is None:
                return False
        return node.registered

    def __len__(self) -> int:
        return self._size
