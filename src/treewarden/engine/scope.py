from __future__ import annotations

from collections import Counter
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from itertools import count


class ScopeError(RuntimeError):
    """Raised when a scope token is left out of order or twice."""


@dataclass(frozen=True, slots=True)
class ScopeToken:
    name: str
    depth: int
    serial: int


class ScopeTracker:
    """
    Stack of named lexical contexts entered during a walk.

    `is_active(name)` answers "am I inside construct `name`, at any depth?"
    without looking at ancestors. Re-entering an active name nests; the name
    stays active until its outermost entry is left.
    """

    __slots__ = ("_stack", "_active", "_serials")

    def __init__(self) -> None:
        self._stack: list[ScopeToken] = []
        self._active: Counter[str] = Counter()
        self._serials = count()

    def enter(self, name: str) -> ScopeToken:
        token = ScopeToken(name=name, depth=len(self._stack), serial=next(self._serials))
        self._stack.append(token)
        self._active[name] += 1
        return token

    def leave(self, token: ScopeToken) -> None:
        # Serials are never reused, so a stale token cannot close a later entry.
        if token.depth >= len(self._stack) or self._stack[token.depth] != token:
            raise ScopeError(f"Scope {token.name!r} at depth {token.depth} is not on the stack.")
        # Leaving an outer token also closes anything still open inside it.
        self.unwind(token.depth)

    def is_active(self, name: str) -> bool:
        return self._active[name] > 0

    @property
    def depth(self) -> int:
        return len(self._stack)

    def mark(self) -> int:
        return len(self._stack)

    def unwind(self, mark: int) -> None:
        while len(self._stack) > mark:
            name = self._stack.pop().name
            self._active[name] -= 1
            if self._active[name] <= 0:
                del self._active[name]

    @contextmanager
    def entered(self, name: str) -> Iterator[ScopeToken]:
        token = self.enter(name)
        try:
            yield token
        finally:
            self.leave(token)
