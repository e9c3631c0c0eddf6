"""
NDS cartridge header codec.

Responsibilities:
  - Decode the fixed 512-byte little-endian header into an :class:`NdsHeader`.
  - Compute the header CRC16 over the first 350 raw bytes.
  - Validate the stored CRC16, which is the only format acceptance test
    (there is no magic number).

Every call is independent: the decoded header is a value owned by the
caller, nothing is cached between calls.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from ndsldr.core.crc16 import crc16
from ndsldr.core.errors import ChecksumMismatchError, TruncatedHeaderError
from ndsldr.core.types import Variant


# ---------------------------------------------------------------------------
# Layout constants
# ---------------------------------------------------------------------------

# Field order mirrors the on-cartridge layout; "<" means no padding.
_HEADER_STRUCT = struct.Struct(
    "<"
    "12s4s2sBBB9sBB"    # 0x000 title .. flags
    "IIII"              # 0x020 ARM9 rom_offset, entry, ram_address, size
    "IIII"              # 0x030 ARM7 rom_offset, entry, ram_address, size
    "IIII"              # 0x040 FNT offset/size, FAT offset/size
    "IIII"              # 0x050 ARM9/ARM7 overlay offset/size
    "II"                # 0x060 ROM control (normal, KEY1)
    "I"                 # 0x068 banner offset
    "HH"                # 0x06C secure area CRC, secure transfer timeout
    "II"                # 0x070 ARM9/ARM7 autoload hooks
    "Q"                 # 0x078 secure area disable
    "II"                # 0x080 application end offset, header size
    "56s"               # 0x088 reserved
    "156s"              # 0x0C0 logo
    "HH"                # 0x15C logo CRC, header CRC
    "IIII"              # 0x160 debug rom_offset, size, ram_address, reserved
    "144s"              # 0x170 reserved
)

HEADER_SIZE: int = _HEADER_STRUCT.size  # 0x200
HEADER_CRC_LENGTH: int = 350
HEADER_CRC_OFFSET: int = 0x15E


# ---------------------------------------------------------------------------
# Parsed header data-classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ArmImage:
    """One embedded executable: where it sits in the ROM and where it runs."""

    rom_offset: int
    entry_address: int
    ram_address: int
    size: int

    @property
    def end_address(self) -> int:
        """First address past the RAM window."""
        return self.ram_address + self.size

    @property
    def rom_end(self) -> int:
        """First file offset past the image bytes."""
        return self.rom_offset + self.size


@dataclass(frozen=True)
class NdsHeader:
    """Parsed contents of an NDS ROM header."""

    title: str
    game_code: str
    maker_code: str
    unit_code: int
    device_type: int
    device_capacity: int
    rom_version: int
    flags: int
    arm9: ArmImage
    arm7: ArmImage
    fnt_offset: int
    fnt_size: int
    fat_offset: int
    fat_size: int
    arm9_overlay_offset: int
    arm9_overlay_size: int
    arm7_overlay_offset: int
    arm7_overlay_size: int
    rom_control_normal: int
    rom_control_key1: int
    banner_offset: int
    secure_area_crc16: int
    secure_transfer_timeout: int
    arm9_autoload: int
    arm7_autoload: int
    secure_area_disable: int
    application_end_offset: int
    header_size: int
    logo: bytes
    logo_crc16: int
    header_crc16: int
    debug_rom_offset: int
    debug_size: int
    debug_ram_address: int

    def image(self, variant: Variant) -> ArmImage:
        """Return the image descriptor for *variant*.

        Raises:
            ValueError: If *variant* does not name an image (e.g. ``Abort``).
        """
        if variant == Variant.ARM9:
            return self.arm9
        if variant == Variant.ARM7:
            return self.arm7
        raise ValueError(f"No image for variant {variant!r}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def _text(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("ascii", errors="replace")


def decode(data: bytes) -> NdsHeader:
    """Decode the first :data:`HEADER_SIZE` bytes of *data*.

    Trailing bytes beyond the header are ignored.  The CRC is not checked
    here; see :func:`validate` and :func:`parse`.

    Raises:
        TruncatedHeaderError: If *data* is shorter than the header.
    """
    if len(data) < HEADER_SIZE:
        raise TruncatedHeaderError(len(data), HEADER_SIZE)

    (
        title, game_code, maker_code, unit_code, device_type, device_capacity,
        _reserved1, rom_version, flags,
        arm9_rom_offset, arm9_entry, arm9_ram, arm9_size,
        arm7_rom_offset, arm7_entry, arm7_ram, arm7_size,
        fnt_offset, fnt_size, fat_offset, fat_size,
        arm9_ovl_offset, arm9_ovl_size, arm7_ovl_offset, arm7_ovl_size,
        rom_control_normal, rom_control_key1,
        banner_offset,
        secure_area_crc16, secure_transfer_timeout,
        arm9_autoload, arm7_autoload,
        secure_area_disable,
        application_end_offset, header_size,
        _reserved2,
        logo,
        logo_crc16, header_crc16,
        debug_rom_offset, debug_size, debug_ram_address, _reserved3,
        _reserved4,
    ) = _HEADER_STRUCT.unpack_from(data, 0)

    return NdsHeader(
        title=_text(title),
        game_code=_text(game_code),
        maker_code=_text(maker_code),
        unit_code=unit_code,
        device_type=device_type,
        device_capacity=device_capacity,
        rom_version=rom_version,
        flags=flags,
        arm9=ArmImage(arm9_rom_offset, arm9_entry, arm9_ram, arm9_size),
        arm7=ArmImage(arm7_rom_offset, arm7_entry, arm7_ram, arm7_size),
        fnt_offset=fnt_offset,
        fnt_size=fnt_size,
        fat_offset=fat_offset,
        fat_size=fat_size,
        arm9_overlay_offset=arm9_ovl_offset,
        arm9_overlay_size=arm9_ovl_size,
        arm7_overlay_offset=arm7_ovl_offset,
        arm7_overlay_size=arm7_ovl_size,
        rom_control_normal=rom_control_normal,
        rom_control_key1=rom_control_key1,
        banner_offset=banner_offset,
        secure_area_crc16=secure_area_crc16,
        secure_transfer_timeout=secure_transfer_timeout,
        arm9_autoload=arm9_autoload,
        arm7_autoload=arm7_autoload,
        secure_area_disable=secure_area_disable,
        application_end_offset=application_end_offset,
        header_size=header_size,
        logo=bytes(logo),
        logo_crc16=logo_crc16,
        header_crc16=header_crc16,
        debug_rom_offset=debug_rom_offset,
        debug_size=debug_size,
        debug_ram_address=debug_ram_address,
    )


def checksum(header_bytes: bytes) -> int:
    """CRC16 over exactly the first 350 raw header bytes.

    Reserved and padding bytes take part, which is why this works on the
    raw buffer rather than on a decoded :class:`NdsHeader`.

    Raises:
        TruncatedHeaderError: If fewer than 350 bytes are given.
    """
    if len(header_bytes) < HEADER_CRC_LENGTH:
        raise TruncatedHeaderError(len(header_bytes), HEADER_CRC_LENGTH)
    return crc16(memoryview(header_bytes)[:HEADER_CRC_LENGTH])


def validate(header: NdsHeader, raw: bytes) -> bool:
    """Return ``True`` if the stored header CRC matches *raw*.

    A random 512-byte blob passes with probability 1/65536; that is a
    limitation of the format.
    """
    return checksum(raw) == header.header_crc16


def parse(data: bytes) -> NdsHeader:
    """Decode and validate *data* in one step.

    Raises:
        TruncatedHeaderError: If *data* is shorter than the header.
        ChecksumMismatchError: If the stored CRC does not match.
    """
    header = decode(data)
    computed = checksum(data)
    if computed != header.header_crc16:
        raise ChecksumMismatchError(header.header_crc16, computed)
    return header
