"""Paging-based memory library: region allocation and byte access for processes."""

import itertools
import threading
from typing import Optional

from .paging import (
    PAGING_ADDR_FPN_LOBIT,
    PAGING_MAX_PGN,
    PAGING_PTE_SWAPPED_MASK,
    PAGING_PTE_SWPOFF_MASK,
    page_align,
    page_number,
    page_offset,
    pte_fpn,
    pte_present,
    pte_swpoff,
)
from .sysmem import MemOp, SyscallRegs, memmap
from .vm import PAGING_MAX_SYMTBL_SZ, Region, format_page_table, swap_page

_FRAME_FIELD = 0x1FFF
_SEPARATOR = "=" * 64

_mmvm_lock = threading.Lock()
_victims = itertools.cycle(range(PAGING_MAX_PGN))


class RegionError(LookupError):
    """Raised for an unknown region id, memory area or an empty region."""


def _signed_byte(value: int) -> int:
    value &= 0xFF
    return value - 256 if value >= 128 else value


def _check_rgid(rgid: int) -> None:
    if not 0 <= rgid < PAGING_MAX_SYMTBL_SZ:
        raise RegionError(f"region id {rgid} outside the symbol table")


def _page_listing(mm) -> list[str]:
    entries = itertools.takewhile(lambda item: item[1] != 0, enumerate(mm.pgd))
    return [
        f"Page Number: {pgn} -> Frame Number: {pte & _FRAME_FIELD}"
        for pgn, pte in entries
    ]


def _emit(lines) -> None:
    with _mmvm_lock:
        print("\n".join(lines))


def _lookup(caller, vmaid: int, rgid: int) -> Region:
    _check_rgid(rgid)
    if caller.mm.get_vma(vmaid) is None:
        raise RegionError(f"no memory area with id {vmaid}")
    return caller.mm.symbol(rgid)


def find_victim_page(mm) -> int:
    """Return the first page not present, or else the next page in round-robin order."""
    free_page = next(
        (pgn for pgn, pte in enumerate(mm.pgd) if not pte_present(pte)), None
    )
    if free_page is not None:
        return free_page
    return next(_victims)


def get_free_vmrg_area(caller, vmaid: int, size: int) -> Optional[Region]:
    """Take ``size`` bytes from the first fitting free region, or return None."""
    vma = caller.mm.get_vma(vmaid)
    if vma is None:
        raise RegionError(f"no memory area with id {vmaid}")
    if not vma.free_regions:
        return None
    free_list = caller.mm.mmap[0].free_regions
    for index, candidate in enumerate(free_list):
        if candidate.vmaid != vmaid or candidate.size < size:
            continue
        found = Region(candidate.start, candidate.start + size, vmaid)
        if candidate.size == size:
            del free_list[index]
        else:
            candidate.start += size
        return found
    return None


def alloc(caller, vmaid: int, rgid: int, size: int) -> int:
    """Allocate ``size`` bytes in area ``vmaid`` for region ``rgid``; return its address."""
    _check_rgid(rgid)
    mm = caller.mm
    region = get_free_vmrg_area(caller, vmaid, size)
    if region is None:
        vma = mm.get_vma(vmaid)
        inc_sz = page_align(size)
        old_sbrk = vma.sbrk
        memmap(caller, SyscallRegs(a1=MemOp.INC, a2=vmaid, a3=inc_sz))
        # The break has already moved while growing the area; it moves again here.
        vma.sbrk += inc_sz
        region = Region(old_sbrk, old_sbrk + size, vmaid)
    symbol = mm.symbol(rgid)
    symbol.start, symbol.end = region.start, region.end
    _emit([
        "===== PHYSICAL MEMORY AFTER ALLOCATION =====",
        f"PID={caller.pid} - Region={rgid} - Address={region.start:08x} - Size={size} byte",
        format_page_table(mm, region.start, -1),
        *_page_listing(mm),
        _SEPARATOR,
    ])
    return region.start


def free(caller, vmaid: int, rgid: int) -> None:
    """Release region ``rgid`` to the free list and clear its symbol entry."""
    _check_rgid(rgid)
    mm = caller.mm
    symbol = mm.symbol(rgid)
    freed = Region(symbol.start, symbol.end, vmaid)
    _emit([
        "===== PHYSICAL MEMORY AFTER DEALLOCATION =====",
        f"PID={caller.pid} - Region={rgid}",
        format_page_table(mm, 0, -1),
        *_page_listing(mm),
        _SEPARATOR,
    ])
    try:
        mm.enlist_free_region(freed)
    except ValueError as exc:
        raise RegionError(f"region {rgid} holds no memory") from exc
    symbol.start = symbol.end = 0


def pg_getpage(mm, pgn: int, caller) -> int:
    """Return the frame number of page ``pgn``, swapping its frame when marked swapped."""
    pte = mm.pgd[pgn]
    if not pte_present(pte):
        victim = find_victim_page(caller.mm)
        if pte & PAGING_PTE_SWAPPED_MASK:
            swap_page(caller, victim, pte & PAGING_PTE_SWPOFF_MASK)
    return pte_fpn(mm.pgd[pgn])


def pg_getval(mm, addr: int, caller) -> int:
    """Return the signed byte at virtual address ``addr``."""
    fpn = pg_getpage(mm, page_number(addr), caller)
    phyaddr = (fpn << PAGING_ADDR_FPN_LOBIT) + page_offset(addr)
    regs = SyscallRegs(a1=MemOp.IO_READ, a2=phyaddr)
    memmap(caller, regs)
    return _signed_byte(regs.a3)


def pg_setval(mm, addr: int, value: int, caller) -> None:
    """Store ``value`` at virtual address ``addr``."""
    fpn = pg_getpage(mm, page_number(addr), caller)
    phyaddr = (fpn << PAGING_ADDR_FPN_LOBIT) + page_offset(addr)
    caller.mram.write(phyaddr, value)


def read(caller, vmaid: int, rgid: int, offset: int) -> int:
    """Return the byte at ``offset`` inside region ``rgid``."""
    region = _lookup(caller, vmaid, rgid)
    return pg_getval(caller.mm, region.start + offset, caller)


def write(caller, vmaid: int, rgid: int, offset: int, value: int) -> None:
    """Store ``value`` at ``offset`` inside region ``rgid``."""
    region = _lookup(caller, vmaid, rgid)
    pg_setval(caller.mm, region.start + offset, value, caller)
    _emit([*_page_listing(caller.mm), _SEPARATOR])


def liballoc(proc, size: int, reg_index: int) -> int:
    """Allocate ``size`` bytes for region ``reg_index`` in the first area."""
    return alloc(proc, 0, reg_index, size)


def libfree(proc, reg_index: int) -> None:
    """Free region ``reg_index`` of the first area."""
    free(proc, 0, reg_index)


def libread(proc, source: int, offset: int) -> int:
    """Read and report the byte at ``offset`` in region ``source``."""
    value = read(proc, 0, source, offset)
    _emit([
        "===== PHYSICAL MEMORY AFTER READING =====",
        f"read region={source} offset={offset} value={value}",
        format_page_table(proc.mm, 0, -1),
        *_page_listing(proc.mm),
        proc.mram.dump(),
        _SEPARATOR,
    ])
    return value


def libwrite(proc, data: int, destination: int, offset: int) -> None:
    """Report and then write byte ``data`` at ``offset`` in region ``destination``."""
    value = _signed_byte(data)
    _emit([
        "===== PHYSICAL MEMORY AFTER WRITING =====",
        f"write region={destination} offset={offset} value={value}",
        format_page_table(proc.mm, 0, -1),
        proc.mram.dump(),
    ])
    write(proc, 0, destination, offset, value)


def free_pcb_memph(caller) -> None:
    """Hand every page's frame of the caller back to the free lists."""
    for pte in caller.mm.pgd:
        if not pte_present(pte):
            caller.mram.put_free_frame(pte_fpn(pte))
        else:
            caller.active_mswp.put_free_frame(pte_swpoff(pte))