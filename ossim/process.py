"""Process control blocks and loading processes from program files."""

import itertools
from dataclasses import dataclass, field
from typing import Any, Optional

from .program import Program, read_program

PAGE_SIZE = 1 << 10
NUM_REGISTERS = 10
_NAME_LENGTH = 16

_pids = itertools.count(1)


@dataclass(eq=False)
class Process:
    """State of one process: its program, registers and memory bindings."""

    pid: int
    priority: int
    path: str
    program: Program
    prio: Optional[int] = None
    regs: list[int] = field(default_factory=lambda: [0] * NUM_REGISTERS)
    pc: int = 0
    bp: int = PAGE_SIZE
    ready_queue: Any = None
    running_list: Any = None
    mlq_ready_queue: Any = None
    mm: Any = None
    mram: Any = None
    mswp: Any = None
    active_mswp: Any = None
    active_mswp_id: int = 0

    def __post_init__(self):
        if self.prio is None:
            self.prio = self.priority

    @property
    def name(self) -> str:
        """The path as recorded in the process table, cut to its first 16 characters."""
        return self.path[:_NAME_LENGTH]

    @property
    def finished(self) -> bool:
        """Whether the program counter has passed the last instruction."""
        return self.pc >= self.program.size


def load_process(path) -> Process:
    """Create a process, with the next free pid, from the program at ``path``."""
    program = read_program(path)
    return Process(
        pid=next(_pids),
        priority=program.priority,
        path=str(path),
        program=program,
    )