"""The memory system call: mapping, growth, swapping and physical byte I/O."""

import enum
from dataclasses import dataclass

from .vm import inc_vma_limit, swap_page

_UINT32_MASK = 0xFFFFFFFF


class MemOp(enum.IntEnum):
    """Operations understood by the memory system call."""

    MAP = 1
    INC = 2
    SWP = 3
    IO_READ = 4
    IO_WRITE = 5


@dataclass
class SyscallRegs:
    """Argument registers handed to a system call."""

    a1: int = 0
    a2: int = 0
    a3: int = 0
    a4: int = 0
    a5: int = 0
    a6: int = 0
    orig_ax: int = 0
    flags: int = 0


def memmap(caller, regs: SyscallRegs) -> None:
    """Carry out the memory operation named by ``regs.a1`` for ``caller``.

    ``INC`` grows area ``a2`` by ``a3`` bytes, ``SWP`` copies RAM frame ``a2``
    to swap frame ``a3``, ``IO_READ`` stores the byte at physical address
    ``a2`` into ``a3`` and ``IO_WRITE`` stores ``a3`` at ``a2``.
    """
    try:
        op = MemOp(regs.a1)
    except ValueError:
        print(f"Memop code: {regs.a1}")
        return
    if op is MemOp.INC:
        inc_vma_limit(caller, regs.a2, regs.a3)
    elif op is MemOp.SWP:
        swap_page(caller, regs.a2, regs.a3)
    elif op is MemOp.IO_READ:
        regs.a3 = caller.mram.read(regs.a2) & _UINT32_MASK
    elif op is MemOp.IO_WRITE:
        caller.mram.write(regs.a2, regs.a3)