"""
Segmented 32-bit address space that an ARM image is loaded into.

A :class:`Segment` is a contiguous half-open range ``[start, end)`` backed by
a zero-filled numpy byte buffer.  :class:`AddressSpace` keeps an ordered list
of non-overlapping segments and routes reads and writes to them.
"""

from __future__ import annotations

import bisect
import logging
from typing import List, Optional

import numpy as np

from ndsldr.core.errors import SegmentCreationError

logger = logging.getLogger(__name__)


class Segment:
    """A mapped range of the address space.

    Attributes:
        name:      Segment name (e.g. ``"RAM"``).
        start:     First address.
        end:       First address past the segment.
        seg_class: Segment class; loaded images are ``"CODE"``.
        bitness:   Addressing width, 16 until marked 32-bit.
    """

    def __init__(self, name: str, start: int, end: int, seg_class: str = "CODE") -> None:
        if end <= start:
            raise SegmentCreationError(
                f"Empty or inverted segment {name!r}: 0x{start:08X}-0x{end:08X}"
            )
        self.name: str = name
        self.start: int = start
        self.end: int = end
        self.seg_class: str = seg_class
        self.bitness: int = 16
        self._data: np.ndarray = np.zeros(end - start, dtype=np.uint8)

    @property
    def size(self) -> int:
        return self.end - self.start

    def contains(self, addr: int) -> bool:
        return self.start <= addr < self.end

    def __getitem__(self, addr: int) -> int:
        return int(self._data[addr - self.start])

    def __setitem__(self, addr: int, value: int) -> None:
        self._data[addr - self.start] = value & 0xFF

    def read(self, addr: int, length: int) -> bytes:
        """Return *length* bytes from *addr*, clipped to the segment."""
        lo = addr - self.start
        return self._data[lo:lo + length].tobytes()

    def write(self, addr: int, data: bytes) -> None:
        """Copy *data* to *addr*.  The whole range must lie inside the segment."""
        lo = addr - self.start
        self._data[lo:lo + len(data)] = np.frombuffer(data, dtype=np.uint8)

    def __repr__(self) -> str:
        return (
            f"Segment({self.name!r}, 0x{self.start:08X}-0x{self.end:08X}, "
            f"{self.seg_class}, {self.bitness}-bit)"
        )


class AddressSpace:
    """Ordered collection of non-overlapping segments."""

    def __init__(self) -> None:
        self._segments: List[Segment] = []
        self._starts: List[int] = []

    @property
    def segments(self) -> tuple[Segment, ...]:
        return tuple(self._segments)

    def add_segment(self, name: str, start: int, end: int, seg_class: str = "CODE") -> Segment:
        """Create and map a new segment ``[start, end)``.

        Raises:
            SegmentCreationError: If the range is empty or overlaps an
                existing segment.
        """
        seg = Segment(name, start, end, seg_class)
        i = bisect.bisect_left(self._starts, start)
        if i > 0 and self._segments[i - 1].end > start:
            raise SegmentCreationError(
                f"Segment {name!r} at 0x{start:08X} overlaps {self._segments[i - 1]!r}"
            )
        if i < len(self._segments) and self._segments[i].start < end:
            raise SegmentCreationError(
                f"Segment {name!r} ending 0x{end:08X} overlaps {self._segments[i]!r}"
            )
        self._segments.insert(i, seg)
        self._starts.insert(i, start)
        logger.debug("Added %r", seg)
        return seg

    def find_segment(self, addr: int) -> Optional[Segment]:
        """Return the segment containing *addr*, or ``None``."""
        i = bisect.bisect_right(self._starts, addr) - 1
        if i >= 0 and self._segments[i].contains(addr):
            return self._segments[i]
        return None

    def set_addressing(self, addr: int, bitness: int = 32) -> bool:
        """Set the addressing width of the segment holding *addr*.

        Returns ``False`` if *addr* is unmapped.
        """
        seg = self.find_segment(addr)
        if seg is None:
            return False
        seg.bitness = bitness
        return True

    def write(self, addr: int, data: bytes) -> int:
        """Copy *data* to *addr*, spanning segments as needed.

        Bytes that fall outside every segment are skipped.

        Returns:
            The number of bytes actually stored.
        """
        view = memoryview(data)
        stored = 0
        for seg in self._segments:
            lo = max(addr, seg.start)
            hi = min(addr + len(view), seg.end)
            if lo >= hi:
                continue
            seg.write(lo, view[lo - addr:hi - addr])
            stored += hi - lo
        if stored != len(view):
            logger.warning(
                "%d of %d bytes at 0x%08X fell outside mapped segments",
                len(view) - stored, len(view), addr,
            )
        return stored

    def read(self, addr: int, length: int) -> bytes:
        """Read *length* bytes from *addr*; unmapped bytes read as zero."""
        out = bytearray(length)
        for seg in self._segments:
            lo = max(addr, seg.start)
            hi = min(addr + length, seg.end)
            if lo < hi:
                out[lo - addr:hi - addr] = seg.read(lo, hi - lo)
        return bytes(out)

    def __getitem__(self, addr: int) -> int:
        seg = self.find_segment(addr)
        return seg[addr] if seg is not None else 0

    def __len__(self) -> int:
        return len(self._segments)

    def __repr__(self) -> str:
        return f"AddressSpace(segments={len(self._segments)})"
