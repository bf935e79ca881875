"""Execution of a process's instructions, one at a time."""

from . import libmem
from .program import Opcode
from .syscall import libsyscall


def calc(proc) -> int:
    """A pure computation step: it uses only the CPU, changes no state and
    yields status 0."""
    status = 0
    return status


def run(proc) -> bool:
    """Execute the instruction at the program counter and advance it.

    Returns False, doing nothing, once the program has no instruction left.
    Errors raised by the memory library or system calls propagate after the
    program counter has moved on.
    """
    if proc.pc >= proc.program.size:
        return False
    ins = proc.program.instructions[proc.pc]
    proc.pc += 1
    opcode = ins.opcode
    if opcode is Opcode.CALC:
        calc(proc)
    elif opcode is Opcode.ALLOC:
        libmem.liballoc(proc, ins.arg_0, ins.arg_1)
    elif opcode is Opcode.FREE:
        libmem.libfree(proc, ins.arg_0)
    elif opcode is Opcode.READ:
        # The value read is reported but not kept in any register.
        libmem.libread(proc, ins.arg_0, ins.arg_1)
    elif opcode is Opcode.WRITE:
        libmem.libwrite(proc, ins.arg_0, ins.arg_1, ins.arg_2)
    elif opcode is Opcode.SYSCALL:
        libsyscall(proc, ins.arg_0, ins.arg_1, ins.arg_2, ins.arg_3)
    return True