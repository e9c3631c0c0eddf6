"""
Builders for synthetic NDS headers and ROM images used across the tests.
"""

import struct

from ndsldr.core.header import HEADER_CRC_OFFSET, HEADER_SIZE, checksum

# (rom_offset, entry_address, ram_address, size), in header field order
ARM9_IMAGE = (0x4000, 0x02004000, 0x02000000, 0x1000)
ARM7_IMAGE = (0x5000, 0x037F8000, 0x037F8000, 0x800)
ROM_LENGTH = 0x6000


def build_header(
    title=b"TESTGAME",
    game_code=b"ATSE",
    maker_code=b"01",
    arm9=ARM9_IMAGE,
    arm7=ARM7_IMAGE,
    header_size=0x4000,
    crc=None,
):
    """Return a 512-byte header; the CRC is computed unless *crc* is given."""
    buf = bytearray(HEADER_SIZE)
    buf[0:len(title)] = title
    buf[0x0C:0x10] = game_code
    buf[0x10:0x12] = maker_code
    buf[0x1E] = 2  # rom version
    struct.pack_into("<IIII", buf, 0x20, *arm9)
    struct.pack_into("<IIII", buf, 0x30, *arm7)
    struct.pack_into("<I", buf, 0x80, ROM_LENGTH)
    struct.pack_into("<I", buf, 0x84, header_size)
    if crc is None:
        crc = checksum(buf)
    struct.pack_into("<H", buf, HEADER_CRC_OFFSET, crc)
    return buf


def build_rom(length=ROM_LENGTH, **header_kwargs):
    """Return a ROM of *length* bytes: a valid header then a byte ramp."""
    rom = bytearray((bytes(range(256)) * (length // 256 + 1))[:length])
    rom[:HEADER_SIZE] = build_header(**header_kwargs)
    return rom
