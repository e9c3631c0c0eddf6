"""
ROM recognition and loading service for the NDS loader.

Responsibilities:
  - Sniff a file and report whether it is an NDS ROM (silently, no errors).
  - Read and validate the header, ask a selector which image to load,
    resolve the layout and map the image into a fresh address space.
  - Produce the descriptive header fields consumers print or annotate with.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional, Sequence

from ndsldr.core.address_space import AddressSpace
from ndsldr.core.errors import FormatError
from ndsldr.core.header import HEADER_SIZE, NdsHeader, parse
from ndsldr.core.layout import LoadPlan, map_image, resolve
from ndsldr.core.memory_map import MEMORY_REGIONS, MemoryRegion
from ndsldr.core.types import DEFAULT_PROCESSOR, Variant

logger = logging.getLogger(__name__)

FORMAT_NAME: str = "Nintendo DS ROM"

VariantSelector = Callable[[NdsHeader], Variant]


@dataclass(frozen=True)
class AcceptResult:
    """A recognised file: its format name and the processor to start with."""

    format_name: str
    processor: str


@dataclass(frozen=True)
class LoadResult:
    """Everything a completed load hands back to the caller."""

    header: NdsHeader
    plan: LoadPlan
    address_space: AddressSpace


def fixed_selector(variant: Variant) -> VariantSelector:
    """Return a selector that always answers *variant*."""
    def _select(header: NdsHeader) -> Variant:
        return variant
    return _select


def _file_length(fh: BinaryIO) -> int:
    pos = fh.tell()
    fh.seek(0, os.SEEK_END)
    length = fh.tell()
    fh.seek(pos)
    return length


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class RomLoaderService:
    """Static utility for recognising and loading NDS ROM files."""

    # -- recognition -------------------------------------------------------

    @staticmethod
    def accept(fh: BinaryIO) -> Optional[AcceptResult]:
        """Recognise an NDS ROM in *fh*; ``None`` if it is not one.

        A recognised file selects :data:`DEFAULT_PROCESSOR` until a variant
        is chosen at load time.

        A bad or short header just means "not this format", so format
        errors are not raised from here.
        """
        try:
            RomLoaderService.read_header(fh)
        except FormatError as exc:
            logger.debug("Not an NDS ROM: %s", exc)
            return None
        return AcceptResult(FORMAT_NAME, DEFAULT_PROCESSOR)

    @staticmethod
    def accept_path(path: str) -> Optional[AcceptResult]:
        """Like :meth:`accept`, from a path.  Unreadable files give ``None``."""
        try:
            with open(path, "rb") as fh:
                return RomLoaderService.accept(fh)
        except OSError as exc:
            logger.debug("Cannot read %s: %s", path, exc)
            return None

    @staticmethod
    def read_header(fh: BinaryIO) -> NdsHeader:
        """Read and validate the header at the start of *fh*.

        Raises:
            TruncatedHeaderError: If the file is shorter than the header.
            ChecksumMismatchError: If the header CRC is wrong.
        """
        fh.seek(0)
        return parse(fh.read(HEADER_SIZE))

    # -- loading -----------------------------------------------------------

    @staticmethod
    def load(
        fh: BinaryIO,
        selector: VariantSelector,
        regions: Sequence[MemoryRegion] = MEMORY_REGIONS,
    ) -> LoadResult:
        """Load the image *selector* picks from *fh*.

        Parameters:
            fh:       Seekable binary file object positioned anywhere.
            selector: Called once with the decoded header; answers ARM9,
                      ARM7 or Abort.
            regions:  Legal RAM blocks; defaults to :data:`MEMORY_REGIONS`.

        Raises:
            FormatError: If the header is short or fails its CRC.
            LoadAbortedError: If the selector answers Abort.
            LayoutError: If the image cannot be placed.
        """
        header = RomLoaderService.read_header(fh)
        logger.info("Header OK: %r (%s)", header.title, header.game_code)

        variant = selector(header)
        logger.info("Selected image: %r", variant)

        plan = resolve(header, variant, _file_length(fh), regions)
        space = map_image(plan, fh, regions)
        return LoadResult(header=header, plan=plan, address_space=space)

    @staticmethod
    def load_path(
        path: str,
        selector: VariantSelector,
        regions: Sequence[MemoryRegion] = MEMORY_REGIONS,
    ) -> LoadResult:
        """Open *path* and :meth:`load` it."""
        logger.info("Loading ROM: %s", path)
        with open(path, "rb") as fh:
            return RomLoaderService.load(fh, selector, regions)

    # -- description -------------------------------------------------------

    @staticmethod
    def describe(header: NdsHeader, plan: Optional[LoadPlan] = None) -> dict[str, str]:
        """Return human-readable header fields, plus load details for *plan*."""
        info = {
            "title": header.title,
            "game_code": header.game_code,
            "maker_code": header.maker_code,
            "unit_code": f"0x{header.unit_code:02X}",
            "rom_version": str(header.rom_version),
            "header_size": f"0x{header.header_size:08X}",
            "header_crc": f"0x{header.header_crc16:04X}",
        }
        if plan is not None:
            info.update({
                "processor": plan.processor_tag,
                "core": plan.variant.name,
                "rom_offset": f"0x{plan.rom_offset:08X}",
                "window": (
                    f"0x{plan.start_address:08X} - 0x{plan.end_address:08X} "
                    f"({plan.size} bytes)"
                ),
                "entry_point": f"0x{plan.entry_address:08X}",
            })
        return info
