"""Module name patterns used to classify modules for a MockLoader."""

from __future__ import annotations

from typing import Iterable

# Pass this pattern to match every module name
WILDCARD = "*"


def normalize_pattern(pattern: str) -> str:
    """
    Reduce a pattern to a module prefix.

    >>> normalize_pattern("example.*")
    'example'
    >>> normalize_pattern("example.")
    'example'
    >>> normalize_pattern("example.widget")
    'example.widget'
    """
    pattern = pattern.strip()
    if pattern == WILDCARD:
        return pattern
    if pattern.endswith(".*"):
        pattern = pattern[:-2]
    return pattern.rstrip(".")


class NamePatternSet:
    """
    Immutable, ordered set of module name patterns.

    A pattern matches the module it names and every module below it:
    ``example`` (or ``example.`` / ``example.*``) matches ``example`` and
    ``example.widget`` but not ``examples``. The wildcard ``*`` matches
    everything.
    """

    def __init__(self, patterns: Iterable[str] = ()):
        ordered = {}
        for pattern in patterns:
            if not pattern or not pattern.strip():
                continue
            ordered[normalize_pattern(pattern)] = None
        self._patterns = tuple(ordered)
        self._frozen = frozenset(self._patterns)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    @property
    def is_wildcard(self) -> bool:
        return WILDCARD in self._frozen

    def matches(self, name: str) -> bool:
        if self.is_wildcard:
            return True
        if name in self._frozen:
            return True
        # walk up the parents: "a.b.c" -> "a.b" -> "a"
        while "." in name:
            name = name.rpartition(".")[0]
            if name in self._frozen:
                return True
        return False

    def union(self, patterns: Iterable[str]) -> NamePatternSet:
        return NamePatternSet(self._patterns + tuple(patterns))

    def __contains__(self, name: str) -> bool:
        return self.matches(name)

    def __iter__(self):
        return iter(self._patterns)

    def __len__(self):
        return len(self._patterns)

    def __eq__(self, other):
        if not isinstance(other, NamePatternSet):
            return NotImplemented
        return self._patterns == other._patterns

    def __hash__(self):
        return hash(self._patterns)

    def __repr__(self):
        return f"NamePatternSet({list(self._patterns)!r})"
