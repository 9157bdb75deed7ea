"""Entry table shared by the window limiters.

The registry maps a limiter key to its current fixed-window entry. It keeps
keys in least-recently-used order so the table can be bounded, and exposes a
sweep that drops entries whose window has already ended (an expired entry is
indistinguishable from a missing one, so removing it never changes a
decision).
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterator, Union


@dataclass(frozen=True, order=True)
class LimiterKey:
    """Composite key identifying one (subject, operation) budget.

    Compared field by field, so identifiers containing separator characters
    never collide the way concatenated strings would.
    """

    subject: str
    operation: str

    def __str__(self) -> str:
        return f"{self.subject}:{self.operation}"


KeyLike = Union[str, LimiterKey]


@dataclass
class RateLimitEntry:
    """Counter for a single fixed window.

    Attributes:
        count: Requests counted in the current window.
        reset_at: UNIX time (seconds) at which the window ends.
    """

    count: int
    reset_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.reset_at


class LimiterRegistry:
    """Mapping of limiter keys to entries with optional LRU bound."""

    def __init__(self, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._max_entries = max_entries
        self._entries: OrderedDict[KeyLike, RateLimitEntry] = OrderedDict()
        self.evictions = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def items(self) -> Iterator[tuple[KeyLike, RateLimitEntry]]:
        return iter(list(self._entries.items()))

    def get(self, key: KeyLike) -> RateLimitEntry | None:
        return self._entries.get(key)

    def touch(self, key: KeyLike) -> None:
        """Mark key as most recently used."""
        if key in self._entries:
            self._entries.move_to_end(key)

    def put(self, key: KeyLike, entry: RateLimitEntry, *, now: float) -> None:
        """Insert or replace the entry for key, evicting if over capacity.

        Expired entries go first; only when the table is still full is the
        least recently used live entry dropped.
        """

        self._entries[key] = entry
        self._entries.move_to_end(key)

        if self._max_entries is None or len(self._entries) <= self._max_entries:
            return

        self.prune_expired(now)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
            self.evictions += 1

    def prune_expired(self, now: float) -> int:
        """Remove entries whose window ended before now.

        Returns:
            Number of entries removed.
        """

        expired = [k for k, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        self.evictions += len(expired)
        return len(expired)
