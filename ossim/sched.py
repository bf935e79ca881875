"""Multi-level queue scheduler: one ready queue per priority level."""

import threading
from typing import Optional

from .queue import ProcessQueue

MAX_PRIO = 140


class Scheduler:
    """Picks processes from the lowest-numbered non-empty priority queue."""

    def __init__(self):
        self.ready_queue = ProcessQueue()
        self.run_queue = ProcessQueue()
        self.running_list = ProcessQueue()
        self.mlq_ready_queue = [ProcessQueue() for _ in range(MAX_PRIO)]
        self.slots = [MAX_PRIO - prio for prio in range(MAX_PRIO)]
        self._lock = threading.Lock()

    def queue_empty(self) -> bool:
        """Whether no process waits in any queue."""
        with self._lock:
            if any(self.mlq_ready_queue):
                return False
            return not self.ready_queue and not self.run_queue

    def get_proc(self) -> Optional[object]:
        """Take the next process from the highest-priority non-empty queue, or None."""
        with self._lock:
            queue = next((q for q in self.mlq_ready_queue if q), None)
            return queue.dequeue() if queue is not None else None

    def _bind(self, proc) -> ProcessQueue:
        if not 0 <= proc.prio < MAX_PRIO:
            raise ValueError(f"priority {proc.prio} outside 0..{MAX_PRIO - 1}")
        proc.ready_queue = self.ready_queue
        proc.mlq_ready_queue = self.mlq_ready_queue
        proc.running_list = self.running_list
        return self.mlq_ready_queue[proc.prio]

    def _enlist(self, proc) -> None:
        queue = self._bind(proc)
        with self._lock:
            self.running_list.enqueue(proc)
            queue.enqueue(proc)

    def put_proc(self, proc) -> None:
        """Return a process whose time slot ended to its priority queue."""
        self._enlist(proc)

    def add_proc(self, proc) -> None:
        """Admit a newly loaded process to its priority queue."""
        self._enlist(proc)