"""Paging constants, address decoding and page table entry helpers."""

from .bitops import bit, div_round_up, genmask, nbits, WORD_MASK

PAGING_CPU_BUS_WIDTH = 22
PAGING_PAGESZ = 256
PAGING_MEMRAMSZ = bit(21)
PAGING_MEMSWPSZ = bit(29)
PAGING_SWPFPN_OFFSET = 5
PAGING_MAX_PGN = div_round_up(bit(PAGING_CPU_BUS_WIDTH), PAGING_PAGESZ)
PAGING_SBRK_INIT_SZ = PAGING_PAGESZ

PAGING_PTE_PRESENT_MASK = bit(31)
PAGING_PTE_SWAPPED_MASK = bit(30)
PAGING_PTE_RESERVE_MASK = bit(29)
PAGING_PTE_DIRTY_MASK = bit(28)
PAGING_PTE_EMPTY01_MASK = bit(14)
PAGING_PTE_EMPTY02_MASK = bit(13)

PAGING_PTE_USRNUM_LOBIT = 15
PAGING_PTE_USRNUM_HIBIT = 27
PAGING_PTE_FPN_LOBIT = 0
PAGING_PTE_FPN_HIBIT = 12
PAGING_PTE_SWPTYP_LOBIT = 0
PAGING_PTE_SWPTYP_HIBIT = 4
PAGING_PTE_SWPOFF_LOBIT = 5
PAGING_PTE_SWPOFF_HIBIT = 25

PAGING_PTE_USRNUM_MASK = genmask(PAGING_PTE_USRNUM_HIBIT, PAGING_PTE_USRNUM_LOBIT)
PAGING_PTE_FPN_MASK = genmask(PAGING_PTE_FPN_HIBIT, PAGING_PTE_FPN_LOBIT)
PAGING_PTE_SWPTYP_MASK = genmask(PAGING_PTE_SWPTYP_HIBIT, PAGING_PTE_SWPTYP_LOBIT)
PAGING_PTE_SWPOFF_MASK = genmask(PAGING_PTE_SWPOFF_HIBIT, PAGING_PTE_SWPOFF_LOBIT)

PAGING_ADDR_OFFST_LOBIT = 0
PAGING_ADDR_OFFST_HIBIT = nbits(PAGING_PAGESZ) - 1
PAGING_ADDR_PGN_LOBIT = nbits(PAGING_PAGESZ)
PAGING_ADDR_PGN_HIBIT = PAGING_CPU_BUS_WIDTH - 1
PAGING_ADDR_FPN_LOBIT = nbits(PAGING_PAGESZ)
PAGING_ADDR_FPN_HIBIT = nbits(PAGING_MEMRAMSZ) - 1
PAGING_SWP_LOBIT = nbits(PAGING_PAGESZ)
PAGING_SWP_HIBIT = nbits(PAGING_MEMSWPSZ) - 1

PAGING_OFFST_MASK = genmask(PAGING_ADDR_OFFST_HIBIT, PAGING_ADDR_OFFST_LOBIT)
PAGING_PGN_MASK = genmask(PAGING_ADDR_PGN_HIBIT, PAGING_ADDR_PGN_LOBIT)
PAGING_FPN_MASK = genmask(PAGING_ADDR_FPN_HIBIT, PAGING_ADDR_FPN_LOBIT)
PAGING_SWP_MASK = genmask(PAGING_SWP_HIBIT, PAGING_SWP_LOBIT)


class InvalidPteError(ValueError):
    """Raised when a page table entry is requested with an inconsistent setting."""


def _getval(value: int, mask: int, offset: int) -> int:
    return (value & mask) >> offset


def _setval(value: int, field: int, mask: int, offset: int) -> int:
    return ((value & ~mask) | ((field << offset) & mask)) & WORD_MASK


def page_align(size: int) -> int:
    """Round ``size`` up to a whole number of pages."""
    return div_round_up(size, PAGING_PAGESZ) * PAGING_PAGESZ


def page_number(addr: int) -> int:
    """Page number of a virtual address."""
    return _getval(addr, PAGING_PGN_MASK, PAGING_ADDR_PGN_LOBIT)


def page_offset(addr: int) -> int:
    """Offset of a virtual address within its page."""
    return _getval(addr, PAGING_OFFST_MASK, PAGING_ADDR_OFFST_LOBIT)


def pte_present(pte: int) -> bool:
    """Whether the entry has its present bit set."""
    return bool(pte & PAGING_PTE_PRESENT_MASK)


def pte_fpn(pte: int) -> int:
    """Frame number held in the entry."""
    return _getval(pte, PAGING_PTE_FPN_MASK, PAGING_PTE_FPN_LOBIT)


def pte_swpoff(pte: int) -> int:
    """Swap offset held in the entry."""
    return _getval(pte, PAGING_PTE_SWPOFF_MASK, PAGING_SWPFPN_OFFSET)


def init_pte(pte: int, pre: int, fpn: int, drt: int, swp: int,
             swptyp: int, swpoff: int) -> int:
    """Return ``pte`` initialised as an online or a swapped page.

    Nothing changes unless ``pre`` is set. An online page needs a non-zero
    frame number. The dirty bit is always cleared, whatever ``drt`` says.
    """
    if not pre:
        return pte
    if not swp:
        if fpn == 0:
            raise InvalidPteError("an online page needs a non-zero frame number")
        pte |= PAGING_PTE_PRESENT_MASK
        pte &= ~PAGING_PTE_SWAPPED_MASK
        pte &= ~PAGING_PTE_DIRTY_MASK
        return _setval(pte, fpn, PAGING_PTE_FPN_MASK, PAGING_PTE_FPN_LOBIT)
    pte |= PAGING_PTE_PRESENT_MASK | PAGING_PTE_SWAPPED_MASK
    pte &= ~PAGING_PTE_DIRTY_MASK
    pte = _setval(pte, swptyp, PAGING_PTE_SWPTYP_MASK, PAGING_PTE_SWPTYP_LOBIT)
    return _setval(pte, swpoff, PAGING_PTE_SWPOFF_MASK, PAGING_PTE_SWPOFF_LOBIT)


def pte_set_swap(pte: int, swptyp: int, swpoff: int) -> int:
    """Return ``pte`` marked as a swapped page at the given swap location."""
    pte |= PAGING_PTE_PRESENT_MASK | PAGING_PTE_SWAPPED_MASK
    pte = _setval(pte, swptyp, PAGING_PTE_SWPTYP_MASK, PAGING_PTE_SWPTYP_LOBIT)
    return _setval(pte, swpoff, PAGING_PTE_SWPOFF_MASK, PAGING_PTE_SWPOFF_LOBIT)


def pte_set_fpn(pte: int, fpn: int) -> int:
    """Return ``pte`` marked as an online page held in frame ``fpn``."""
    pte |= PAGING_PTE_PRESENT_MASK
    pte &= ~PAGING_PTE_SWAPPED_MASK
    return _setval(pte, fpn, PAGING_PTE_FPN_MASK, PAGING_PTE_FPN_LOBIT)