from types import SimpleNamespace

import pytest

from ossim.memphy import MemPhy
from ossim.paging import PAGING_MAX_PGN, PAGING_PAGESZ, pte_fpn, pte_present
from ossim.vm import (
    PAGING_MAX_SYMTBL_SZ,
    MemoryMap,
    OutOfMemoryError,
    OverlapError,
    Region,
    alloc_pages_range,
    format_page_table,
    get_vm_area_node_at_brk,
    inc_vma_limit,
    swap_copy_page,
    swap_page,
    validate_overlap_vm_area,
    vm_map_ram,
    vmap_page_range,
)


def make_caller(ram_size=4 * PAGING_PAGESZ, swap_size=4 * PAGING_PAGESZ):
    return SimpleNamespace(
        mm=MemoryMap(),
        mram=MemPhy(ram_size, True),
        active_mswp=MemPhy(swap_size, True),
    )


def test_memory_map_starts_with_empty_area():
    mm = MemoryMap()
    vma = mm.get_vma(0)
    assert (vma.vm_start, vma.vm_end, vma.sbrk) == (0, 0, 0)
    assert vma.free_regions == [Region(0, 0)]
    assert len(mm.pgd) == PAGING_MAX_PGN
    assert not any(mm.pgd)
    assert len(mm.fifo_pgn) == 0


def test_get_vma_unknown_id_is_none():
    assert MemoryMap().get_vma(3) is None


def test_symbol_table_bounds_and_mutation():
    mm = MemoryMap()
    mm.symbol(1).start = 42
    assert mm.symrgtbl[1].start == 42
    with pytest.raises(IndexError):
        mm.symbol(PAGING_MAX_SYMTBL_SZ)
    with pytest.raises(IndexError):
        mm.symbol(-1)


def test_enlist_page_prepends():
    mm = MemoryMap()
    mm.enlist_page(1)
    mm.enlist_page(2)
    assert list(mm.fifo_pgn) == [2, 1]


def test_enlist_free_region():
    mm = MemoryMap()
    with pytest.raises(ValueError):
        mm.enlist_free_region(Region(10, 10))
    region = Region(0, 100)
    mm.enlist_free_region(region)
    assert mm.get_vma(0).free_regions[0] is region


def test_alloc_pages_range_returns_most_recent_first():
    caller = make_caller()
    frames = alloc_pages_range(caller, 2)
    assert sorted(frames) == [0, 1]
    assert frames == sorted(frames, reverse=True)
    assert list(caller.mram.free_frames) == [2, 3]


def test_alloc_pages_range_out_of_memory_keeps_frames():
    caller = make_caller()
    with pytest.raises(OutOfMemoryError):
        alloc_pages_range(caller, 5)
    assert list(caller.mram.free_frames) == [0, 1, 2, 3]


def test_vmap_page_range_maps_frames():
    caller = make_caller()
    region = vmap_page_range(caller, 2 * PAGING_PAGESZ, 2, [3, 1])
    assert region.start == 2 * PAGING_PAGESZ
    assert region.size == 2 * PAGING_PAGESZ
    assert pte_present(caller.mm.pgd[2]) and pte_fpn(caller.mm.pgd[2]) == 3
    assert pte_present(caller.mm.pgd[3]) and pte_fpn(caller.mm.pgd[3]) == 1
    assert list(caller.mm.fifo_pgn) == [3, 2]


def test_vmap_page_range_short_of_frames():
    caller = make_caller()
    with pytest.raises(OutOfMemoryError):
        vmap_page_range(caller, 0, 2, [1])


def test_vm_map_ram_uses_ram_frames():
    caller = make_caller()
    region = vm_map_ram(caller, 0, PAGING_PAGESZ, 0, 1)
    assert region.size == PAGING_PAGESZ
    assert pte_present(caller.mm.pgd[0])
    assert pte_fpn(caller.mm.pgd[0]) not in caller.mram.free_frames


def test_get_vm_area_node_at_brk_advances_break():
    caller = make_caller()
    first = get_vm_area_node_at_brk(caller, 0, 10, PAGING_PAGESZ)
    second = get_vm_area_node_at_brk(caller, 0, 10, PAGING_PAGESZ)
    assert first.end == second.start
    assert caller.mm.get_vma(0).sbrk == second.end
    with pytest.raises(LookupError):
        get_vm_area_node_at_brk(caller, 9, 10, PAGING_PAGESZ)


def test_validate_overlap():
    caller = make_caller()
    vma = caller.mm.get_vma(0)
    vma.vm_end = 1000
    with pytest.raises(OverlapError):
        validate_overlap_vm_area(caller, 0, 500, 700)


def test_inc_vma_limit_grows_area_and_maps_pages():
    caller = make_caller()
    region = inc_vma_limit(caller, 0, 300)
    vma = caller.mm.get_vma(0)
    assert vma.vm_end == 300
    assert vma.sbrk == 2 * PAGING_PAGESZ
    assert region.start == 0
    assert region.size == 2 * PAGING_PAGESZ
    assert {pte_fpn(caller.mm.pgd[0]), pte_fpn(caller.mm.pgd[1])} == {0, 1}
    assert all(pte_present(caller.mm.pgd[pgn]) for pgn in (0, 1))


def test_inc_vma_limit_out_of_memory():
    caller = make_caller(ram_size=PAGING_PAGESZ)
    with pytest.raises(OutOfMemoryError):
        inc_vma_limit(caller, 0, 600)


def test_swap_copy_page():
    src = MemPhy(4 * PAGING_PAGESZ)
    dst = MemPhy(4 * PAGING_PAGESZ)
    for cell in range(PAGING_PAGESZ):
        src.write(PAGING_PAGESZ + cell, cell)
    swap_copy_page(src, 1, dst, 2)
    assert dst.storage[2 * PAGING_PAGESZ:3 * PAGING_PAGESZ] == src.storage[PAGING_PAGESZ:2 * PAGING_PAGESZ]
    assert not any(dst.storage[:2 * PAGING_PAGESZ])


def test_swap_page_copies_ram_to_swap():
    caller = make_caller()
    caller.mram.write(5, 77)
    swap_page(caller, 0, 3)
    assert caller.active_mswp.read(3 * PAGING_PAGESZ + 5) == 77


def test_format_page_table_lists_entries():
    caller = make_caller()
    inc_vma_limit(caller, 0, 300)
    lines = format_page_table(caller.mm, 0, -1).splitlines()
    assert lines[0] == "print_pgtbl: 0 - 300"
    assert lines[1] == f"00000000: {caller.mm.pgd[0]:08x}"
    assert len(lines) == 2