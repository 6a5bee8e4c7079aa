from __future__ import annotations

import heapq
import itertools
from typing import Iterator, List, Tuple

from .models import Process


class ReadyQueue:
    """
    Ready queue that always yields the process with the least remaining work.

    Ties on remaining duration go to the earlier arrival, then to whichever
    process was pushed first. The key is captured on push, so a process must
    not be modified while it sits in the queue.
    """

    def __init__(self) -> None:
        self._heap: List[Tuple[int, int, int, Process]] = []
        self._counter = itertools.count()

    def push(self, process: Process) -> None:
        heapq.heappush(self._heap, (process.duration, process.arrival, next(self._counter), process))

    def pop(self) -> Process:
        if not self._heap:
            raise IndexError("pop from an empty ready queue")
        return heapq.heappop(self._heap)[-1]

    def peek(self) -> Process:
        if not self._heap:
            raise IndexError("peek at an empty ready queue")
        return self._heap[0][-1]

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def __iter__(self) -> Iterator[Process]:
        # Priority order, without disturbing the heap.
        return (entry[-1] for entry in sorted(self._heap))
