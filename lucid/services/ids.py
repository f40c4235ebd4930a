"""Block id generators.

Generators are plain callables returning a new id and are always passed to the
code that needs them, so their state is scoped to whoever created them.
"""

import itertools
from collections.abc import Callable

from cuid2 import cuid_wrapper

BlockIdGenerator = Callable[[], str]


class CuidIdGenerator:
    """Collision-resistant ids backed by cuid2."""

    def __init__(self, prefix: str = "block"):
        self.prefix = prefix
        self._cuid = cuid_wrapper()

    def __call__(self) -> str:
        return f"{self.prefix}-{self._cuid()}"


class CounterIdGenerator:
    """Monotonic, predictable ids (``block-1``, ``block-2``, ...)."""

    def __init__(self, prefix: str = "block", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"
