"""Register map, flag bits, and command builders.

Every transaction is a single command byte followed by four data bytes::

    write:  host -> [CMD][DATA0][DATA1][DATA2][DATA3]
    read:   host -> [CMD][dummy][dummy][dummy][dummy]
            slave <- [dummy][DATA0][DATA1][DATA2][DATA3]

- CMD bit 7: direction (1 = write, 0 = read)
- CMD bits 6:0: register index
- DATA0 carries bits 7:0 of the 32-bit word, DATA3 bits 31:24
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, IntFlag

WRITE_BIT = 0x80
INDEX_MASK = 0x7F
WORD_MASK = 0xFFFFFFFF
WORD_BYTES = 4
TRANSACTION_LENGTH = 1 + WORD_BYTES


class Register(IntEnum):
    """Register indices. Byte address is ``index * 4``."""

    STATUS = 0
    RX_COUNT = 1
    TX_COUNT = 2
    CTRL = 3
    RX_DATA = 4
    TX_DATA = 5
    RX_TYPE = 6


class StatusFlag(IntFlag):
    """STATUS register bits."""

    RX_READY = 1 << 0   # live: inbound FIFO non-empty
    PKT_OK = 1 << 1     # sticky
    CRC_ERR = 1 << 2    # sticky
    RX_OVF = 1 << 3     # sticky
    BAD_CMD = 1 << 4    # sticky, optional
    TX_OVF = 1 << 5     # sticky, optional


STICKY_FLAGS = (
    StatusFlag.PKT_OK
    | StatusFlag.CRC_ERR
    | StatusFlag.RX_OVF
    | StatusFlag.BAD_CMD
    | StatusFlag.TX_OVF
)


class CtrlFlag(IntFlag):
    """CTRL register bits."""

    CLEAR_FLAGS = 1 << 0   # strobe
    FLUSH_RX = 1 << 1      # strobe
    FLUSH_TX = 1 << 2      # strobe
    IRQ_ENABLE = 1 << 3    # level
    SOFT_RESET = 1 << 4    # strobe


CTRL_STROBES = (
    CtrlFlag.CLEAR_FLAGS | CtrlFlag.FLUSH_RX | CtrlFlag.FLUSH_TX | CtrlFlag.SOFT_RESET
)
CTRL_LEVELS = CtrlFlag.IRQ_ENABLE

# Human-readable register names for tool arguments
REGISTER_NAMES: dict[str, Register] = {r.name.lower(): r for r in Register}


@dataclass(frozen=True)
class CommandByte:
    """A decoded command byte."""

    write: bool
    index: int

    def __repr__(self) -> str:
        direction = "write" if self.write else "read"
        return f"CommandByte({direction}, index={self.index})"


def encode_command(index: int, write: bool) -> int:
    """Encode a command byte for a register index."""
    if not 0 <= index <= INDEX_MASK:
        raise ValueError(f"Register index must be 0-127, got {index}")
    return (WRITE_BIT if write else 0) | index


def decode_command(byte: int) -> CommandByte:
    """Split a command byte into direction and register index."""
    return CommandByte(write=bool(byte & WRITE_BIT), index=byte & INDEX_MASK)


def word_to_bytes(word: int) -> bytes:
    """Serialize a 32-bit word, least significant byte first."""
    return (word & WORD_MASK).to_bytes(WORD_BYTES, "little")


def bytes_to_word(data: bytes) -> int:
    """Assemble a 32-bit word from little-endian bytes."""
    if len(data) != WORD_BYTES:
        raise ValueError(f"Word must be 4 bytes, got {len(data)}")
    return int.from_bytes(data, "little")


def build_write_command(index: int, value: int) -> bytes:
    """Build the five host bytes of a register write.

    Args:
        index: Register index 0-127.
        value: 32-bit value to write.
    """
    if not 0 <= value <= WORD_MASK:
        raise ValueError(f"Register value must be a 32-bit unsigned, got {value}")
    return bytes([encode_command(index, write=True)]) + word_to_bytes(value)


def build_read_command(index: int, dummy: int = 0x00) -> bytes:
    """Build the five host bytes of a register read.

    The four trailing bytes are turnaround fillers that clock the
    response out of the slave.
    """
    return bytes([encode_command(index, write=False)]) + bytes([dummy]) * WORD_BYTES


def resolve_register(name_or_index: str | int) -> int:
    """Resolve a register name (``"rx_count"``) or numeric index."""
    if isinstance(name_or_index, int):
        if not 0 <= name_or_index <= INDEX_MASK:
            raise ValueError(f"Register index must be 0-127, got {name_or_index}")
        return name_or_index
    key = name_or_index.strip().lower()
    if key in REGISTER_NAMES:
        return int(REGISTER_NAMES[key])
    try:
        return resolve_register(int(key, 0))
    except ValueError:
        raise ValueError(
            f"Unknown register '{name_or_index}'. Valid: {list(REGISTER_NAMES)}"
        ) from None
