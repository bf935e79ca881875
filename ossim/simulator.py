"""The operating system simulation: configuration, loader and CPU threads."""

import os
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path

from .cpu import run
from .memphy import MemPhy, OutOfFramesError, SequentialAccessError
from .process import load_process
from .program import ProgramFormatError
from .sched import Scheduler
from .timer import Timer, TimerEvent
from .vm import PAGING_MAX_MMSWP, MemoryMap, OutOfMemoryError, OverlapError

# Failures of a single instruction; the process simply moves on, as a failed
# instruction does not stop the machine.
_INSTRUCTION_ERRORS = (
    LookupError,
    ValueError,
    OutOfMemoryError,
    OverlapError,
    OutOfFramesError,
    SequentialAccessError,
)


class ConfigError(ValueError):
    """Raised when a simulation configuration is missing or malformed."""


@dataclass(frozen=True)
class ProcessSpec:
    """A process to load: when, from which program file, and at which priority."""

    start_time: int
    name: str
    prio: int


@dataclass
class SimConfig:
    """Time slice, CPU count, memory sizes and the processes to run."""

    time_slot: int
    num_cpus: int
    memramsz: int
    memswpsz: list[int] = field(default_factory=lambda: [0] * PAGING_MAX_MMSWP)
    processes: list[ProcessSpec] = field(default_factory=list)


def parse_config(text: str) -> SimConfig:
    """Parse a configuration.

    The format is ``time_slot num_cpus num_processes``, then the RAM size and
    four swap sizes, then one ``start_time name priority`` line per process.
    """
    tokens = iter(text.split())

    def token(what: str) -> str:
        try:
            return next(tokens)
        except StopIteration:
            raise ConfigError(f"configuration ends before the {what}") from None

    def number(what: str) -> int:
        value = token(what)
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"{what} must be an integer, got {value!r}") from None

    time_slot = number("time slot")
    num_cpus = number("number of CPUs")
    num_processes = number("number of processes")
    if num_cpus < 0 or num_processes < 0:
        raise ConfigError("counts of CPUs and processes cannot be negative")
    memramsz = number("RAM size")
    memswpsz = [number(f"size of swap {i}") for i in range(PAGING_MAX_MMSWP)]
    processes = []
    for _ in range(num_processes):
        start_time = number("start time")
        name = token("process name")
        prio = number("priority")
        processes.append(ProcessSpec(start_time, name, prio))
    return SimConfig(time_slot, num_cpus, memramsz, memswpsz, processes)


def read_config(path) -> SimConfig:
    """Read and parse the configuration file at ``path``."""
    try:
        text = Path(path).read_text()
    except FileNotFoundError:
        raise ConfigError(f"Cannot find configure file at {path}") from None
    return parse_config(text)


class _Simulation:
    def __init__(self, config: SimConfig, proc_dir):
        self.config = config
        self.proc_dir = str(proc_dir)
        self.timer = Timer()
        self.scheduler = Scheduler()
        self.loading_done = threading.Event()
        self.finished: list[int] = []
        self.errors: list[BaseException] = []
        self._lock = threading.Lock()
        self.mram = None
        self.mswp: list[MemPhy] = []

    def _record_finished(self, proc) -> None:
        with self._lock:
            self.finished.append(proc.pid)

    def cpu_routine(self, cpu_id: int, event: TimerEvent) -> None:
        try:
            time_left = 0
            proc = None
            while True:
                if proc is None:
                    proc = self.scheduler.get_proc()
                    if proc is None:
                        if self.loading_done.is_set():
                            print(f"\tCPU {cpu_id} stopped")
                            break
                        event.next_slot()
                        continue
                elif proc.finished:
                    print(f"\tCPU {cpu_id}: Processed {proc.pid:2d} has finished")
                    self._record_finished(proc)
                    proc = self.scheduler.get_proc()
                    time_left = 0
                elif time_left == 0:
                    print(f"\tCPU {cpu_id}: Put process {proc.pid:2d} to run queue")
                    self.scheduler.put_proc(proc)
                    proc = self.scheduler.get_proc()

                if proc is None and self.loading_done.is_set():
                    print(f"\tCPU {cpu_id} stopped")
                    break
                if proc is None:
                    event.next_slot()
                    continue
                if time_left == 0:
                    print(f"\tCPU {cpu_id}: Dispatched process {proc.pid:2d}")
                    time_left = self.config.time_slot

                try:
                    run(proc)
                except _INSTRUCTION_ERRORS:
                    pass
                time_left -= 1
                event.next_slot()
        finally:
            event.detach()

    def loader_routine(self, event: TimerEvent) -> None:
        print("ld_routine")
        try:
            for spec in self.config.processes:
                path = os.path.join(self.proc_dir, spec.name)
                try:
                    proc = load_process(path)
                except FileNotFoundError:
                    raise ConfigError(
                        f"Cannot find process description at '{path}'"
                    ) from None
                proc.prio = spec.prio
                while self.timer.current_time() < spec.start_time:
                    event.next_slot()
                proc.mm = MemoryMap()
                proc.mram = self.mram
                proc.mswp = self.mswp
                proc.active_mswp = self.mswp[0]
                proc.active_mswp_id = 0
                print(f"\tLoaded a process at {path}, PID: {proc.pid} PRIO: {spec.prio}")
                self.scheduler.add_proc(proc)
                event.next_slot()
        except Exception as exc:  # handed back to the caller of run_simulation
            self.errors.append(exc)
        finally:
            self.loading_done.set()
            event.detach()

    def run(self) -> list[int]:
        cpu_events = [self.timer.attach_event() for _ in range(self.config.num_cpus)]
        ld_event = self.timer.attach_event()
        self.timer.start()

        self.mram = MemPhy(self.config.memramsz, True)
        self.mswp = [MemPhy(size, True) for size in self.config.memswpsz]

        loader = threading.Thread(
            target=self.loader_routine, args=(ld_event,), name="loader", daemon=True
        )
        cpus = [
            threading.Thread(
                target=self.cpu_routine, args=(cpu_id, event),
                name=f"cpu-{cpu_id}", daemon=True,
            )
            for cpu_id, event in enumerate(cpu_events)
        ]
        loader.start()
        for cpu in cpus:
            cpu.start()
        for cpu in cpus:
            cpu.join()
        loader.join()
        self.timer.stop()

        if self.errors:
            raise self.errors[0]
        return list(self.finished)


def run_simulation(config: SimConfig, proc_dir="input/proc") -> list[int]:
    """Run the simulation to completion and return the pids in the order they finished.

    Program files are looked up by name in ``proc_dir``. An error met while
    loading processes is raised once every CPU has stopped.
    """
    return _Simulation(config, proc_dir).run()


def main(argv=None) -> int:
    """Run the simulation described by ``input/<config>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("Usage: ossim [path to configure file]")
        return 1
    try:
        config = read_config(os.path.join("input", args[0]))
        run_simulation(config, os.path.join("input", "proc"))
    except (ConfigError, ProgramFormatError, ValueError) as exc:
        print(exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())