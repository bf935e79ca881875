"""Discrete time slots shared by the simulated CPUs and the loader."""

import threading
from typing import Optional


class TimerEvent:
    """A device's handle on the timer: it reports the end of its work in each slot."""

    def __init__(self):
        self._cond = threading.Condition()
        self.done = False
        self.finished = False

    def next_slot(self) -> None:
        """Report this slot's work as done and wait until the next slot begins."""
        with self._cond:
            self.done = True
            self._cond.notify_all()
            self._cond.wait_for(lambda: not self.done)

    def detach(self) -> None:
        """Tell the timer that this device has no more work."""
        with self._cond:
            self.finished = True
            self._cond.notify_all()

    def _await_slot_end(self) -> bool:
        with self._cond:
            self._cond.wait_for(lambda: self.done or self.finished)
            return self.finished

    def _release(self) -> None:
        with self._cond:
            self.done = False
            self._cond.notify_all()


class Timer:
    """Advances time one slot at a time once every attached device is done with it.

    The timer stops on its own after a slot in which every device had detached.
    """

    def __init__(self):
        self._events: list[TimerEvent] = []
        self._time = 0
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    def attach_event(self) -> TimerEvent:
        """Register a new device; only possible before the timer starts."""
        if self._thread is not None:
            raise RuntimeError("cannot attach a device to a running timer")
        event = TimerEvent()
        self._events.insert(0, event)
        return event

    def start(self) -> None:
        """Start counting time slots in a background thread."""
        if self._thread is not None:
            raise RuntimeError("timer already started")
        self._thread = threading.Thread(target=self._run, name="timer", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.is_set():
            print(f"Time slot {self._time:3d}")
            finished = sum(event._await_slot_end() for event in self._events)
            self._time += 1
            for event in self._events:
                event._release()
            if finished == len(self._events):
                break

    def stop(self) -> None:
        """Ask the timer to stop, wait for its thread and forget every device."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
        self._events.clear()

    def current_time(self) -> int:
        """Number of slots that have passed."""
        return self._time