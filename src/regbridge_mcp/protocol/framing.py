"""Packet frame builder and whole-buffer parser.

Frame layout::

    +------+-------+--------+-----------------+--------+--------+
    | SOF  |  LEN  |  TYPE  |     Payload     | CRC lo | CRC hi |
    | 0xA5 | 1 byte| 1 byte |    LEN bytes    | 1 byte | 1 byte |
    +------+-------+--------+-----------------+--------+--------+

- LEN: payload length 0-255
- CRC: CRC-16/CCITT-FALSE over LEN + TYPE + payload, little-endian.
  The start marker is not covered.

The streaming decoder that runs inside the slave lives in
:mod:`regbridge_mcp.device.decoder`; this module is the host-side view.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..utils.crc import crc16

SOF = 0xA5
MAX_PAYLOAD = 255
FRAME_OVERHEAD = 5  # SOF + LEN + TYPE + 2 CRC bytes


@dataclass
class Frame:
    """A parsed packet frame."""

    type: int
    payload: bytes

    def __repr__(self) -> str:
        return (
            f"Frame(type=0x{self.type:02X}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


def frame_crc(ptype: int, payload: bytes) -> int:
    """CRC of the covered region of a frame."""
    return crc16(bytes([len(payload), ptype]) + payload)


def build_frame(ptype: int, payload: bytes = b"") -> bytes:
    """Build a complete packet frame.

    Args:
        ptype: Single-byte type tag.
        payload: 0-255 payload bytes.

    Returns:
        ``SOF + LEN + TYPE + payload + CRC`` as bytes.
    """
    if not 0 <= ptype <= 0xFF:
        raise ValueError(f"Packet type must be 0-255, got {ptype}")
    if len(payload) > MAX_PAYLOAD:
        raise ValueError(f"Payload must be at most {MAX_PAYLOAD} bytes, got {len(payload)}")
    body = bytes([len(payload), ptype]) + payload
    checksum = crc16(body).to_bytes(2, "little")
    return bytes([SOF]) + body + checksum


def parse_frame(data: bytes) -> Frame | None:
    """Parse a single frame from the start of ``data``.

    Returns:
        A ``Frame`` if the buffer starts with a complete, valid frame,
        or ``None`` if the marker is missing, the buffer is short, or the
        checksum fails.
    """
    if len(data) < FRAME_OVERHEAD:
        return None
    if data[0] != SOF:
        return None

    length = data[1]
    if len(data) < FRAME_OVERHEAD + length:
        return None

    ptype = data[2]
    payload = bytes(data[3 : 3 + length])
    expected = int.from_bytes(data[3 + length : 5 + length], "little")
    if crc16(data[1 : 3 + length]) != expected:
        return None

    return Frame(type=ptype, payload=payload)
