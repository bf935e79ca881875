import pytest

from ossim import libmem
from ossim.memphy import MemPhy
from ossim.paging import (
    PAGING_MAX_PGN,
    PAGING_PAGESZ,
    PAGING_PTE_PRESENT_MASK,
    PAGING_PTE_SWAPPED_MASK,
    PAGING_PTE_SWPOFF_LOBIT,
    pte_fpn,
    pte_set_fpn,
    pte_swpoff,
)
from ossim.process import Process
from ossim.program import Program
from ossim.vm import PAGING_MAX_SYMTBL_SZ, MemoryMap, OutOfMemoryError, Region


def make_proc(ram_frames=8, swap_frames=64):
    proc = Process(pid=1, priority=0, path="input/proc/p0", program=Program(0, []))
    proc.mm = MemoryMap()
    proc.mram = MemPhy(ram_frames * PAGING_PAGESZ)
    proc.active_mswp = MemPhy(swap_frames * PAGING_PAGESZ)
    proc.mswp = [proc.active_mswp]
    return proc


def test_first_allocation_starts_at_zero():
    proc = make_proc()
    addr = libmem.liballoc(proc, 300, 0)
    assert addr == 0
    symbol = proc.mm.symbol(0)
    assert (symbol.start, symbol.end) == (0, 300)


def test_allocation_report(capsys):
    proc = make_proc()
    libmem.liballoc(proc, 300, 0)
    out = capsys.readouterr().out
    assert "===== PHYSICAL MEMORY AFTER ALLOCATION =====" in out
    assert "PID=1 - Region=0 - Address=00000000 - Size=300 byte" in out


def test_write_then_read_round_trip(capsys):
    proc = make_proc()
    libmem.liballoc(proc, 300, 0)
    libmem.libwrite(proc, 65, 0, 10)
    assert libmem.libread(proc, 0, 10) == 65
    assert "read region=0 offset=10 value=65" in capsys.readouterr().out


def test_write_high_byte_reads_back_as_signed():
    proc = make_proc()
    libmem.liballoc(proc, 300, 0)
    libmem.libwrite(proc, 200, 0, 11)
    value = libmem.libread(proc, 0, 11)
    assert value < 0
    assert value & 0xFF == 200


def test_second_allocation_does_not_overlap_first():
    proc = make_proc()
    libmem.liballoc(proc, 300, 0)
    libmem.liballoc(proc, 100, 1)
    first, second = proc.mm.symbol(0), proc.mm.symbol(1)
    assert second.start >= first.end
    assert second.end - second.start == 100


def test_free_then_exact_fit_reuses_region():
    proc = make_proc()
    libmem.liballoc(proc, 300, 0)
    libmem.libfree(proc, 0)
    symbol = proc.mm.symbol(0)
    assert (symbol.start, symbol.end) == (0, 0)
    assert proc.mm.mmap[0].free_regions[0] == Region(0, 300, 0)
    assert libmem.liballoc(proc, 300, 2) == 0
    assert Region(0, 300, 0) not in proc.mm.mmap[0].free_regions


def test_partial_fit_shrinks_free_region():
    proc = make_proc()
    libmem.liballoc(proc, 300, 0)
    libmem.libfree(proc, 0)
    assert libmem.liballoc(proc, 100, 3) == 0
    head = proc.mm.mmap[0].free_regions[0]
    assert (head.start, head.end) == (100, 300)


def test_free_of_empty_region_raises():
    proc = make_proc()
    with pytest.raises(libmem.RegionError):
        libmem.libfree(proc, 4)


@pytest.mark.parametrize("rgid", [-1, PAGING_MAX_SYMTBL_SZ])
def test_region_id_out_of_range(rgid):
    proc = make_proc()
    with pytest.raises(libmem.RegionError):
        libmem.alloc(proc, 0, rgid, 10)


def test_read_from_unknown_area_raises():
    proc = make_proc()
    with pytest.raises(libmem.RegionError):
        libmem.read(proc, 5, 0, 0)


def test_allocation_without_frames_raises():
    proc = make_proc(ram_frames=1)
    with pytest.raises(OutOfMemoryError):
        libmem.liballoc(proc, 2 * PAGING_PAGESZ, 0)


def test_free_region_of_other_area_is_skipped():
    proc = make_proc()
    proc.mm.enlist_free_region(Region(0, 100, vmaid=1))
    assert libmem.get_free_vmrg_area(proc, 0, 50) is None
    assert proc.mm.mmap[0].free_regions[0] == Region(0, 100, vmaid=1)


def test_free_region_too_small_is_skipped():
    proc = make_proc()
    proc.mm.enlist_free_region(Region(0, 40))
    assert libmem.get_free_vmrg_area(proc, 0, 50) is None


def test_find_victim_prefers_page_not_present():
    proc = make_proc()
    assert libmem.find_victim_page(proc.mm) == 0
    proc.mm.pgd[0] = pte_set_fpn(proc.mm.pgd[0], 2)
    assert libmem.find_victim_page(proc.mm) == 1


def test_find_victim_cycles_when_all_present():
    proc = make_proc()
    proc.mm.pgd = [PAGING_PTE_PRESENT_MASK] * PAGING_MAX_PGN
    first = libmem.find_victim_page(proc.mm)
    second = libmem.find_victim_page(proc.mm)
    assert 0 <= first < PAGING_MAX_PGN
    assert (second - first) % PAGING_MAX_PGN == 1


def test_getpage_of_present_page_returns_its_frame():
    proc = make_proc()
    proc.mm.pgd[3] = pte_set_fpn(0, 6)
    assert libmem.pg_getpage(proc.mm, 3, proc) == 6


def test_getpage_of_swapped_page_copies_victim_frame():
    proc = make_proc()
    pte = PAGING_PTE_SWAPPED_MASK | (1 << PAGING_PTE_SWPOFF_LOBIT)
    proc.mm.pgd[5] = pte
    proc.mram.write(3, 77)
    fpn = libmem.pg_getpage(proc.mm, 5, proc)
    assert fpn == pte_fpn(pte)
    assert proc.mm.pgd[5] == pte
    swap_frame = pte & ((1 << 26) - (1 << 5))
    assert proc.active_mswp.read(swap_frame * PAGING_PAGESZ + 3) == 77


def test_setval_getval_round_trip():
    proc = make_proc()
    proc.mm.pgd[2] = pte_set_fpn(0, 4)
    addr = 2 * PAGING_PAGESZ + 9
    libmem.pg_setval(proc.mm, addr, 33, proc)
    assert libmem.pg_getval(proc.mm, addr, proc) == 33
    assert proc.mram.read(4 * PAGING_PAGESZ + 9) == 33


def test_free_pcb_memph_returns_frames():
    proc = make_proc(ram_frames=8, swap_frames=64)
    proc.mm.pgd[0] = pte_set_fpn(0, 3)
    libmem.free_pcb_memph(proc)
    assert len(proc.mram.free_frames) == 8 + PAGING_MAX_PGN - 1
    assert len(proc.active_mswp.free_frames) == 64 + 1
    assert proc.active_mswp.free_frames[0] == pte_swpoff(proc.mm.pgd[0])