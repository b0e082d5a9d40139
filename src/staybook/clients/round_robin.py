"""Round-robin selection over a pool of peer-service base URLs."""

from __future__ import annotations

import itertools
import threading
from typing import Iterable


class RoundRobin:
    """Thread-safe cyclic iterator over base URLs."""

    def __init__(self, urls: Iterable[str]) -> None:
        self._urls = tuple(urls)
        if not self._urls:
            raise ValueError("RoundRobin needs at least one URL")
        self._cycle = itertools.cycle(self._urls)
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            return next(self._cycle)
