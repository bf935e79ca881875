"""Bit manipulation helpers working on 32-bit words."""

BITS_PER_LONG = 32
BITS_PER_BYTE = 8
WORD_MASK = (1 << BITS_PER_LONG) - 1


def _check_position(nr: int) -> None:
    if not 0 <= nr < BITS_PER_LONG:
        raise ValueError(f"bit position {nr} outside a {BITS_PER_LONG}-bit word")


def bit(nr: int) -> int:
    """Return a word with only bit ``nr`` set."""
    _check_position(nr)
    return 1 << nr


def genmask(h: int, l: int) -> int:
    """Return a contiguous mask covering bits ``l`` through ``h`` inclusive."""
    _check_position(h)
    _check_position(l)
    low = (WORD_MASK << l) & WORD_MASK
    high = WORD_MASK >> (BITS_PER_LONG - h - 1)
    return low & high


def nbits(n: int) -> int:
    """Return the index of the highest set bit of ``n`` (0 for 0)."""
    if not 0 <= n <= WORD_MASK:
        raise ValueError(f"{n} does not fit in a {BITS_PER_LONG}-bit word")
    if n == 0:
        return 0
    return n.bit_length() - 1


def extract_nbits(nr: int, h: int, l: int) -> int:
    """Return the field held in bits ``l`` through ``h`` of ``nr``."""
    return (nr & genmask(h, l)) >> l


def div_round_up(n: int, d: int) -> int:
    """Divide ``n`` by ``d``, rounding up."""
    if d <= 0:
        raise ValueError("divisor must be positive")
    return (n + d - 1) // d