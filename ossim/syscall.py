"""System call table and dispatch, with the process-level system calls."""

from typing import Callable

from . import libmem
from .sched import MAX_PRIO
from .sysmem import SyscallRegs, memmap

_NAME_CAPACITY = 100


def sys_ni_syscall(caller, regs: SyscallRegs) -> int:
    """Handle a system call number that has no entry: leave all state alone
    and report success with status 0."""
    status = 0
    return status


def sys_listsyscall(caller, regs: SyscallRegs) -> None:
    """Print the name of every system call in the table."""
    for name in syscall_names():
        print(name)


def sys_xxxhandler(caller, regs: SyscallRegs) -> None:
    """Print the first system call argument."""
    print(f"The first system call parameter {regs.a1}")


def _read_name(caller, rgid: int) -> str:
    chars = []
    for offset in range(_NAME_CAPACITY - 1):
        value = libmem.libread(caller, rgid, offset)
        if value == -1:
            break
        chars.append(chr(value & 0xFF))
    return "".join(chars).split("\0", 1)[0]


def sys_killall(caller, regs: SyscallRegs) -> list:
    """Terminate every queued process whose name is stored in region ``regs.a1``.

    The name is read byte by byte up to a byte of -1. Matching processes are
    removed from the running list and from every priority queue; the removed
    processes are returned in the order they were taken out.
    """
    rgid = regs.a1
    name = _read_name(caller, rgid)
    print(f'The procname retrieved from memregionid {rgid} is "{name}"')

    def matches(proc) -> bool:
        return proc.name == name

    terminated = []
    if caller.running_list is not None:
        for proc in caller.running_list.remove_if(matches):
            print(f"Terminating process {proc.pid} with name {name} from running list")
            terminated.append(proc)
    if caller.mlq_ready_queue is not None:
        for queue in caller.mlq_ready_queue[:MAX_PRIO]:
            for proc in queue.remove_if(matches):
                print(f"Terminating process {proc.pid} with name {name} from ready queue")
                terminated.append(proc)
    return terminated


_SYSCALLS: dict[int, tuple[str, Callable]] = {
    0: ("sys_listsyscall", sys_listsyscall),
    17: ("sys_memmap", memmap),
    101: ("sys_killall", sys_killall),
    440: ("sys_xxxhandler", sys_xxxhandler),
}


def syscall_names() -> list[str]:
    """Return the table entries as ``number-name`` strings."""
    return [f"{nr}-{name}" for nr, (name, _) in _SYSCALLS.items()]


def syscall(caller, nr: int, regs: SyscallRegs):
    """Dispatch system call ``nr`` for ``caller`` and return the handler's result."""
    _, handler = _SYSCALLS.get(nr, ("sys_ni_syscall", sys_ni_syscall))
    return handler(caller, regs)


def libsyscall(caller, nr: int, a1: int, a2: int, a3: int):
    """Issue system call ``nr`` with the three given arguments."""
    return syscall(caller, nr, SyscallRegs(a1=a1, a2=a2, a3=a3))