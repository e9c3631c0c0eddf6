"""
Layout resolution for the ARM9 / ARM7 images of an NDS ROM.

:func:`resolve` turns a decoded header plus a variant choice into a
:class:`LoadPlan`, checking that the image lies inside the file and that its
RAM window passes the region test.  :func:`map_image` then builds the
address space (one segment per legal RAM block) and copies the image in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import BinaryIO, Sequence, Union

from ndsldr.core.address_space import AddressSpace
from ndsldr.core.errors import (
    IllegalMemoryWindowError,
    LoadAbortedError,
    SegmentCreationError,
    TruncatedImageError,
)
from ndsldr.core.header import NdsHeader
from ndsldr.core.memory_map import MEMORY_REGIONS, MemoryRegion
from ndsldr.core.types import PROCESSOR_TAGS, Variant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadPlan:
    """Where the selected image comes from, where it goes, and where it starts."""

    variant: Variant
    processor_tag: str
    start_address: int
    end_address: int
    rom_offset: int
    size: int
    entry_address: int


def is_legal_window(start: int, end: int, regions: Sequence[MemoryRegion] = MEMORY_REGIONS) -> bool:
    """Return ``True`` if the window passes the region test for any block.

    A block accepts the window when ``start >= block.start`` *or*
    ``end <= block.end``.  This is looser than a containment test: any
    window starting at or above the lowest block start is accepted.
    """
    for region in regions:
        if start >= region.start or end <= region.end:
            return True
    return False


def resolve(
    header: NdsHeader,
    variant: Variant,
    file_length: int,
    regions: Sequence[MemoryRegion] = MEMORY_REGIONS,
) -> LoadPlan:
    """Compute the load plan for *variant*.

    The entry address is taken verbatim from the header and is not checked
    against the RAM window.

    Raises:
        LoadAbortedError: If *variant* is :attr:`Variant.Abort`.
        TruncatedImageError: If the image runs past *file_length*.
        IllegalMemoryWindowError: If the window fails :func:`is_legal_window`.
    """
    if not Variant.is_loadable(variant):
        raise LoadAbortedError("Load cancelled: no image selected")

    variant = Variant(variant)
    image = header.image(variant)

    if file_length < image.rom_end:
        raise TruncatedImageError(image.rom_offset, image.size, file_length)

    start = image.ram_address
    end = image.end_address
    if not is_legal_window(start, end, regions):
        raise IllegalMemoryWindowError(start, end)

    plan = LoadPlan(
        variant=variant,
        processor_tag=PROCESSOR_TAGS[variant],
        start_address=start,
        end_address=end,
        rom_offset=image.rom_offset,
        size=image.size,
        entry_address=image.entry_address,
    )
    logger.debug("Resolved %s: %r", variant.name, plan)
    return plan


def build_address_space(regions: Sequence[MemoryRegion] = MEMORY_REGIONS) -> AddressSpace:
    """Create an address space with one CODE segment per region.

    Every region is mapped, not only the one the image lands in.

    Raises:
        SegmentCreationError: If any segment cannot be created.
    """
    space = AddressSpace()
    for region in regions:
        try:
            space.add_segment(region.name, region.start, region.end + 1, "CODE")
        except MemoryError as exc:
            raise SegmentCreationError(
                f"Cannot create segment for {region!r}: {exc}"
            ) from exc
    return space


def _read_range(rom: Union[bytes, bytearray, memoryview, BinaryIO], offset: int, size: int) -> bytes:
    if isinstance(rom, (bytes, bytearray, memoryview)):
        return bytes(rom[offset:offset + size])
    rom.seek(offset)
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = rom.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def map_image(
    plan: LoadPlan,
    rom: Union[bytes, bytearray, memoryview, BinaryIO],
    regions: Sequence[MemoryRegion] = MEMORY_REGIONS,
) -> AddressSpace:
    """Build the address space for *plan* and copy the image into it.

    Args:
        plan:    A plan returned by :func:`resolve`.
        rom:     The ROM contents, or a seekable binary file object.
        regions: The legal RAM blocks to map.

    Returns:
        A fresh :class:`AddressSpace`.  Nothing is kept by this module.

    Raises:
        SegmentCreationError: If the segments cannot be created.
        TruncatedImageError: If *rom* yields fewer bytes than the plan needs.
    """
    space = build_address_space(regions)

    if not space.set_addressing(plan.start_address, 32):
        logger.warning(
            "Load address 0x%08X is not inside any segment", plan.start_address
        )

    data = _read_range(rom, plan.rom_offset, plan.size)
    if len(data) != plan.size:
        raise TruncatedImageError(
            plan.rom_offset, plan.size, plan.rom_offset + len(data)
        )

    # Copy last, once all segments exist.
    stored = space.write(plan.start_address, data)
    logger.info(
        "Mapped %d bytes from ROM 0x%08X to 0x%08X-0x%08X",
        stored, plan.rom_offset, plan.start_address, plan.end_address,
    )
    return space
