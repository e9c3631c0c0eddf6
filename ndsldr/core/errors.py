"""
Exception taxonomy for the NDS loader.

Format errors mean "this is not an NDS ROM" and are swallowed by format
sniffing.  Layout errors abort a load outright; there is no partial load.
"""

from __future__ import annotations


class NdsLoaderError(Exception):
    """Base class for every error raised by ndsldr."""


# ---------------------------------------------------------------------------
# Format detection
# ---------------------------------------------------------------------------

class FormatError(NdsLoaderError):
    """The input is not a recognisable NDS ROM."""


class TruncatedHeaderError(FormatError):
    """Fewer bytes are available than the fixed header size."""

    def __init__(self, available: int, required: int) -> None:
        super().__init__(
            f"Header truncated: need {required} bytes, got {available}"
        )
        self.available = available
        self.required = required


class ChecksumMismatchError(FormatError):
    """The stored header CRC16 disagrees with the computed one."""

    def __init__(self, stored: int, computed: int) -> None:
        super().__init__(
            f"Header CRC mismatch: stored 0x{stored:04X}, computed 0x{computed:04X}"
        )
        self.stored = stored
        self.computed = computed


# ---------------------------------------------------------------------------
# Layout resolution
# ---------------------------------------------------------------------------

class LayoutError(NdsLoaderError):
    """The selected image cannot be placed; the load is aborted."""


class TruncatedImageError(LayoutError):
    """The image's ROM range runs past the end of the file."""

    def __init__(self, rom_offset: int, size: int, file_length: int) -> None:
        super().__init__(
            f"Image at ROM offset 0x{rom_offset:08X} ({size} bytes) exceeds "
            f"file length 0x{file_length:08X}"
        )
        self.rom_offset = rom_offset
        self.size = size
        self.file_length = file_length


class IllegalMemoryWindowError(LayoutError):
    """The destination window matches no permitted memory region."""

    def __init__(self, start: int, end: int) -> None:
        super().__init__(
            f"Window 0x{start:08X}-0x{end:08X} lies outside every legal RAM block"
        )
        self.start = start
        self.end = end


class SegmentCreationError(LayoutError):
    """The address space refused to create a required segment."""


class LoadAbortedError(NdsLoaderError):
    """The variant selector declined to pick an image."""
