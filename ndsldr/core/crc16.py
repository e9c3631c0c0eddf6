"""
CRC16 lookup table and table-driven checksum used by the NDS header.

The table is the reflected form of polynomial 0x8005 (0xA001), the same
256 entries ndstool ships.  The register starts at 0xFFFF and there is no
final xor, so the check value for b"123456789" is 0x4B37.
"""

from __future__ import annotations

from typing import List

CRC16_POLY_REFLECTED: int = 0xA001
CRC16_INIT: int = 0xFFFF


def _build_crc16_table(poly: int) -> List[int]:
    """Pre-compute the 256-entry table for a reflected polynomial."""
    table: List[int] = [0] * 256
    for i in range(256):
        crc = i
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ poly
            else:
                crc >>= 1
        table[i] = crc
    return table


CRC16_TABLE: tuple[int, ...] = tuple(_build_crc16_table(CRC16_POLY_REFLECTED))


def crc16(data: bytes, crc: int = CRC16_INIT) -> int:
    """Run the table-driven CRC16 over *data*, one byte at a time.

    Args:
        data: Any bytes-like object.
        crc:  Starting register value.  Pass a previous result to continue
              a running checksum.

    Returns:
        The 16-bit register after the last byte.
    """
    table = CRC16_TABLE
    for byte in data:
        crc = (crc >> 8) ^ table[(crc ^ byte) & 0xFF]
    return crc & 0xFFFF
