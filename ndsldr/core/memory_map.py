"""
Static table of the RAM blocks an NDS executable may be loaded into.

The table is built once at import time and never changes.  Region ends are
inclusive (the last valid address of the block).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MemoryRegion:
    """A legal placement window ``[start, end]``."""

    name: str
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start + 1

    def __repr__(self) -> str:
        return f"MemoryRegion({self.name!r}, 0x{self.start:08X}-0x{self.end:08X})"


MEMORY_REGIONS: tuple[MemoryRegion, ...] = (
    MemoryRegion("RAM", 0x02000000, 0x023FFFFF),      # 4 MB main memory
    MemoryRegion("SWRAM", 0x037F8000, 0x037FFFFF),    # shared WRAM, ARM7 view
    MemoryRegion("ARM7RAM", 0x03800000, 0x0380FFFF),  # ARM7 private WRAM
)
