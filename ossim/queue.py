"""Bounded queue of processes ordered by priority on removal."""

from typing import Callable, Iterator, Optional

MAX_QUEUE_SIZE = 10


class ProcessQueue:
    """Holds up to MAX_QUEUE_SIZE processes; removal picks the lowest ``prio``."""

    def __init__(self):
        self._procs: list = []

    def __len__(self) -> int:
        return len(self._procs)

    def __bool__(self) -> bool:
        return bool(self._procs)

    def __iter__(self) -> Iterator:
        return iter(list(self._procs))

    def __contains__(self, proc) -> bool:
        return any(item is proc for item in self._procs)

    def enqueue(self, proc) -> None:
        """Append ``proc``; a full queue ignores it."""
        if len(self._procs) < MAX_QUEUE_SIZE:
            self._procs.append(proc)

    def dequeue(self) -> Optional[object]:
        """Remove and return the process with the smallest ``prio``, or None if empty."""
        if not self._procs:
            return None
        best = min(range(len(self._procs)), key=lambda i: self._procs[i].prio)
        return self._procs.pop(best)

    def remove_if(self, predicate: Callable[[object], bool]) -> list:
        """Remove every process matching ``predicate`` and return them in order."""
        removed = [proc for proc in self._procs if predicate(proc)]
        self._procs = [proc for proc in self._procs if not predicate(proc)]
        return removed