"""Physical memory devices split into page frames."""

from collections import deque

from .paging import PAGING_PAGESZ


class OutOfFramesError(RuntimeError):
    """Raised when no free frame is left on a device."""


class SequentialAccessError(RuntimeError):
    """Raised when a sequential device is accessed directly."""


def _signed_byte(value: int) -> int:
    return value - 256 if value >= 128 else value


class MemPhy:
    """A byte-addressed memory device with a list of free frames."""

    def __init__(self, max_size: int, random_access: bool = True):
        if max_size < 0:
            raise ValueError("memory size cannot be negative")
        self.max_size = max_size
        self.storage = bytearray(max_size)
        self.random_access = bool(random_access)
        self.cursor = 0
        self.free_frames: deque[int] = deque()
        if max_size // PAGING_PAGESZ > 0:
            self.format(PAGING_PAGESZ)

    def _check_address(self, addr: int) -> None:
        if not 0 <= addr < self.max_size:
            raise IndexError(f"address {addr} outside device of {self.max_size} bytes")

    def move_cursor(self, offset: int) -> None:
        """Move the cursor of a sequential device from its start by ``offset`` steps."""
        steps = max(0, min(offset, self.max_size))
        self.cursor = steps % self.max_size if self.max_size else 0

    def read(self, addr: int) -> int:
        """Return the signed byte stored at ``addr``."""
        if not self.random_access:
            raise SequentialAccessError("device does not support direct reads")
        self._check_address(addr)
        return _signed_byte(self.storage[addr])

    def write(self, addr: int, value: int) -> None:
        """Store the low byte of ``value`` at ``addr``."""
        if not self.random_access:
            raise SequentialAccessError("device does not support direct writes")
        self._check_address(addr)
        self.storage[addr] = value & 0xFF

    def format(self, page_size: int) -> int:
        """Split the device into frames of ``page_size`` and mark them all free."""
        count = self.max_size // page_size if page_size > 0 else 0
        if count <= 0:
            raise ValueError("device is smaller than one frame")
        self.free_frames = deque(range(count))
        return count

    def get_free_frame(self) -> int:
        """Take the first free frame."""
        if not self.free_frames:
            raise OutOfFramesError("no free frame left")
        return self.free_frames.popleft()

    def put_free_frame(self, fpn: int) -> None:
        """Return frame ``fpn`` to the front of the free list."""
        self.free_frames.appendleft(fpn)

    def dump(self) -> str:
        """Describe every non-zero byte of the device."""
        lines = ["===== PHYSICAL MEMORY DUMP ====="]
        lines.extend(
            f"BYTE {addr:08x}: {_signed_byte(value)}"
            for addr, value in enumerate(self.storage)
            if value
        )
        lines.append("===== PHYSICAL MEMORY END-DUMP =====")
        lines.append("=" * 64)
        return "\n".join(lines)