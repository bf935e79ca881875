"""Virtual memory areas, regions and page mapping for a process."""

from collections import deque
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .memphy import MemPhy, OutOfFramesError
from .paging import (
    PAGING_MAX_PGN,
    PAGING_PAGESZ,
    page_align,
    page_number,
    pte_set_fpn,
)

PAGING_MAX_MMSWP = 4
PAGING_MAX_SYMTBL_SZ = 30


class OutOfMemoryError(RuntimeError):
    """Raised when physical memory cannot supply the frames a mapping needs."""


class OverlapError(RuntimeError):
    """Raised when a planned memory area overlaps an existing one."""


@dataclass
class Region:
    """A half-open range ``[start, end)`` of virtual addresses."""

    start: int = 0
    end: int = 0
    vmaid: int = 0

    @property
    def size(self) -> int:
        return self.end - self.start


@dataclass
class VmArea:
    """A virtual memory area with its break pointer and free regions."""

    vm_id: int
    vm_start: int = 0
    vm_end: int = 0
    sbrk: int = 0
    free_regions: list[Region] = field(default_factory=list)


class MemoryMap:
    """Page table, memory areas, symbol table and page usage list of a process."""

    def __init__(self):
        self.pgd: list[int] = [0] * PAGING_MAX_PGN
        vma0 = VmArea(vm_id=0)
        vma0.sbrk = vma0.vm_start
        vma0.free_regions.insert(0, Region(vma0.vm_start, vma0.vm_end))
        self.mmap: list[VmArea] = [vma0]
        self.symrgtbl: list[Region] = [Region() for _ in range(PAGING_MAX_SYMTBL_SZ)]
        self.fifo_pgn: deque[int] = deque()

    def get_vma(self, vmaid: int) -> Optional[VmArea]:
        """Return the first area, in list order, whose id reaches ``vmaid``, or None."""
        return next((vma for vma in self.mmap if vma.vm_id >= vmaid), None)

    def vmas_from(self, vmaid: int) -> Iterator[VmArea]:
        """Yield the area found for ``vmaid`` and every area listed after it."""
        vma = self.get_vma(vmaid)
        if vma is None:
            return
        start = next(i for i, area in enumerate(self.mmap) if area is vma)
        yield from self.mmap[start:]

    def symbol(self, rgid: int) -> Region:
        """Return the symbol table entry for region id ``rgid``."""
        if not 0 <= rgid < PAGING_MAX_SYMTBL_SZ:
            raise IndexError(f"region id {rgid} outside the symbol table")
        return self.symrgtbl[rgid]

    def enlist_page(self, pgn: int) -> None:
        """Record page ``pgn`` as most recently put to use."""
        self.fifo_pgn.appendleft(pgn)

    def enlist_free_region(self, region: Region) -> None:
        """Put ``region`` at the head of the first area's free list."""
        if region.start >= region.end:
            raise ValueError("cannot enlist an empty region")
        self.mmap[0].free_regions.insert(0, region)


def alloc_pages_range(caller, req_pgnum: int) -> list[int]:
    """Take ``req_pgnum`` frames from the caller's RAM, most recent first."""
    taken: list[int] = []
    try:
        for _ in range(req_pgnum):
            taken.append(caller.mram.get_free_frame())
    except OutOfFramesError:
        for fpn in reversed(taken):
            caller.mram.put_free_frame(fpn)
        raise OutOfMemoryError(f"cannot obtain {req_pgnum} frames") from None
    taken.reverse()
    return taken


def vmap_page_range(caller, addr: int, pgnum: int, frames: list[int]) -> Region:
    """Map ``pgnum`` pages starting at page-aligned ``addr`` onto ``frames``."""
    mm = caller.mm
    pgn = page_number(addr)
    region = Region(addr, addr + pgnum * PAGING_PAGESZ)
    for offset, fpn in enumerate(frames[:pgnum]):
        mm.pgd[pgn + offset] = pte_set_fpn(mm.pgd[pgn + offset], fpn)
        mm.enlist_page(pgn + offset)
    if len(frames) < pgnum:
        raise OutOfMemoryError(f"only {len(frames)} frames for {pgnum} pages")
    return region


def vm_map_ram(caller, astart: int, aend: int, mapstart: int, incpgnum: int) -> Region:
    """Allocate ``incpgnum`` frames in RAM and map them from ``mapstart``."""
    frames = alloc_pages_range(caller, incpgnum)
    return vmap_page_range(caller, mapstart, incpgnum, frames)


def swap_copy_page(src: MemPhy, srcfpn: int, dst: MemPhy, dstfpn: int) -> None:
    """Copy the content of frame ``srcfpn`` of ``src`` into frame ``dstfpn`` of ``dst``."""
    for cell in range(PAGING_PAGESZ):
        value = src.read(srcfpn * PAGING_PAGESZ + cell)
        dst.write(dstfpn * PAGING_PAGESZ + cell, value)


def swap_page(caller, vicfpn: int, swpfpn: int) -> None:
    """Copy RAM frame ``vicfpn`` to frame ``swpfpn`` of the active swap device."""
    swap_copy_page(caller.mram, vicfpn, caller.active_mswp, swpfpn)


def get_vm_area_node_at_brk(caller, vmaid: int, size: int, alignedsz: int) -> Region:
    """Carve a region of ``alignedsz`` bytes at the area's break and move the break."""
    vma = caller.mm.get_vma(vmaid)
    if vma is None:
        raise LookupError(f"no memory area with id {vmaid}")
    region = Region(vma.sbrk, vma.sbrk + alignedsz, vmaid)
    vma.sbrk += alignedsz
    return region


def validate_overlap_vm_area(caller, vmaid: int, vmastart: int, vmaend: int) -> None:
    """Raise OverlapError if ``[vmastart, vmaend]`` clashes with a non-empty area."""
    for vma in caller.mm.vmas_from(vmaid):
        if vma.vm_start == vma.vm_end:
            continue
        starts_inside = vma.vm_start <= vmastart <= vma.vm_end
        ends_before = vma.vm_start >= vmaend and vmaend <= vma.vm_end
        if starts_inside or ends_before:
            raise OverlapError(
                f"area [{vmastart}, {vmaend}] overlaps [{vma.vm_start}, {vma.vm_end}]"
            )


def inc_vma_limit(caller, vmaid: int, inc_sz: int) -> Region:
    """Grow area ``vmaid`` by ``inc_sz`` bytes and map new pages into RAM."""
    inc_amt = page_align(inc_sz)
    incnumpage = inc_amt // PAGING_PAGESZ
    area = get_vm_area_node_at_brk(caller, vmaid, inc_sz, inc_amt)
    vma = caller.mm.get_vma(vmaid)
    old_end = vma.vm_end
    validate_overlap_vm_area(caller, vmaid, area.start, area.end)
    vma.vm_end += inc_sz
    return vm_map_ram(caller, area.start, area.end, old_end, incnumpage)


def format_page_table(mm: MemoryMap, start: int = 0, end: Optional[int] = -1) -> str:
    """Describe the page table entries for pages from ``start`` up to ``end``.

    An ``end`` of -1 or None means the end of the first memory area.
    """
    if end is None or end == -1:
        end = mm.get_vma(0).vm_end
    lines = [f"print_pgtbl: {start} - {end}"]
    lines.extend(
        f"{pgn * 4:08d}: {mm.pgd[pgn]:08x}"
        for pgn in range(page_number(start), page_number(end))
    )
    return "\n".join(lines)