"""Canonical sets of non-negative integers stored as inclusive ranges.

A :class:`MultiRange` keeps its ranges sorted, disjoint and non-touching, so
``"80,81,82"`` and ``"82,80-81"`` produce the same value.  It is used to model
the TCP ports a security group exposes.
"""
from __future__ import annotations

from bisect import bisect_left, bisect_right
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple

from .errors import ParseError

_SINGLE_RE = re.compile(r"^([0-9]+)$")
_RANGE_RE = re.compile(r"^([0-9]+)-([0-9]+)$")


@dataclass(frozen=True)
class PortRange:
    """Inclusive range ``[start, end]``."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid range {self.start}-{self.end}")

    def __len__(self) -> int:
        return self.end - self.start + 1

    def humanize(self) -> str:
        if self.start == self.end:
            return str(self.start)
        return f"{self.start}-{self.end}"


class MultiRange:
    """Set of integers represented by canonical inclusive ranges."""

    def __init__(self, ranges: Iterable[Tuple[int, int]] = ()) -> None:
        self._ranges: List[PortRange] = []
        for start, end in ranges:
            self._insert(start, end)

    @classmethod
    def from_string(cls, text: str) -> "MultiRange":
        """Parse ``text`` such as ``"22, 80, 8000-8080"``.

        Whitespace-only text is the empty set.  Every comma-separated token must
        be ``N`` or ``N-M`` with ``N <= M``; anything else raises
        :class:`ParseError`.
        """

        result = cls()
        if not text.strip():
            return result
        for raw_token in text.split(","):
            token = raw_token.strip()
            match = _SINGLE_RE.match(token)
            if match:
                value = int(match.group(1))
                result._insert(value, value)
                continue
            match = _RANGE_RE.match(token)
            if not match:
                raise ParseError(f"Invalid port range token {raw_token!r} in {text!r}")
            start, end = int(match.group(1)), int(match.group(2))
            if start > end:
                raise ParseError(f"Range start exceeds end in token {token!r}")
            result._insert(start, end)
        return result

    def _insert(self, start: int, end: int) -> None:
        # Absorb every range overlapping or touching [start, end].
        lo = bisect_left([r.end for r in self._ranges], start - 1)
        hi = bisect_right([r.start for r in self._ranges], end + 1)
        if lo < hi:
            start = min(start, self._ranges[lo].start)
            end = max(end, self._ranges[hi - 1].end)
        self._ranges[lo:hi] = [PortRange(start, end)]

    def _index_of(self, value: int) -> int:
        index = bisect_right([r.start for r in self._ranges], value) - 1
        if index >= 0 and self._ranges[index].end >= value:
            return index
        return -1

    def remove_element(self, value: int) -> None:
        """Remove ``value`` from the set, splitting a range when needed."""

        index = self._index_of(value)
        if index < 0:
            return
        current = self._ranges[index]
        pieces = []
        if current.start <= value - 1:
            pieces.append(PortRange(current.start, value - 1))
        if value + 1 <= current.end:
            pieces.append(PortRange(value + 1, current.end))
        self._ranges[index : index + 1] = pieces

    def size(self) -> int:
        """Return how many integers the set covers."""

        return sum(len(r) for r in self._ranges)

    def humanize(self) -> str:
        """Render as ``"20-21, 23-25"``; the empty set renders as ``""``."""

        return ", ".join(r.humanize() for r in self._ranges)

    @property
    def ranges(self) -> Tuple[PortRange, ...]:
        return tuple(self._ranges)

    def __len__(self) -> int:
        return self.size()

    def __bool__(self) -> bool:
        return bool(self._ranges)

    def __iter__(self) -> Iterator[int]:
        for port_range in self._ranges:
            yield from range(port_range.start, port_range.end + 1)

    def __contains__(self, value: object) -> bool:
        return isinstance(value, int) and self._index_of(value) >= 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MultiRange):
            return NotImplemented
        return self._ranges == other._ranges

    def __repr__(self) -> str:
        return f"MultiRange({self.humanize()!r})"


__all__ = ["MultiRange", "PortRange"]
