"""CRC-16/CCITT-FALSE.

Polynomial 0x1021, initial value 0xFFFF, no input or output reflection,
no final XOR. The check value for ``b"123456789"`` is 0x29B1.
"""

from __future__ import annotations

CRC16_POLY = 0x1021
CRC16_INIT = 0xFFFF


def _build_table(poly: int) -> list[int]:
    """Build the 256-entry MSB-first lookup table."""
    table = []
    for i in range(256):
        r = i << 8
        for _ in range(8):
            if r & 0x8000:
                r = ((r << 1) ^ poly) & 0xFFFF
            else:
                r = (r << 1) & 0xFFFF
        table.append(r)
    return table


_TABLE = _build_table(CRC16_POLY)


def crc16_update(crc: int, byte: int) -> int:
    """Fold one byte into a running CRC accumulator."""
    return ((crc << 8) & 0xFFFF) ^ _TABLE[((crc >> 8) ^ byte) & 0xFF]


def crc16(data: bytes, init: int = CRC16_INIT) -> int:
    """Compute the CRC over a whole buffer."""
    crc = init
    for b in data:
        crc = crc16_update(crc, b)
    return crc
