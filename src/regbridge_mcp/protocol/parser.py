"""Parsing of slave responses as seen by the host."""

from __future__ import annotations

from dataclasses import dataclass

from .commands import (
    TRANSACTION_LENGTH,
    CtrlFlag,
    StatusFlag,
    bytes_to_word,
)


@dataclass
class StatusReport:
    """Decoded STATUS register."""

    rx_ready: bool
    pkt_ok: bool
    crc_err: bool
    rx_ovf: bool
    bad_cmd: bool
    tx_ovf: bool
    raw: int

    def to_dict(self) -> dict:
        return {
            "rx_ready": self.rx_ready,
            "pkt_ok": self.pkt_ok,
            "crc_err": self.crc_err,
            "rx_ovf": self.rx_ovf,
            "bad_cmd": self.bad_cmd,
            "tx_ovf": self.tx_ovf,
            "raw": f"0x{self.raw:08X}",
        }


def parse_read_response(response: bytes) -> int | None:
    """Extract the register word from the slave side of a read session.

    The first byte is the turnaround dummy; the next four carry the word.
    Returns ``None`` if the session was too short.
    """
    if len(response) < TRANSACTION_LENGTH:
        return None
    return bytes_to_word(bytes(response[1:TRANSACTION_LENGTH]))


def parse_status(word: int) -> StatusReport:
    """Decode a STATUS word into individual flags."""
    flags = StatusFlag(word & 0x3F)
    return StatusReport(
        rx_ready=StatusFlag.RX_READY in flags,
        pkt_ok=StatusFlag.PKT_OK in flags,
        crc_err=StatusFlag.CRC_ERR in flags,
        rx_ovf=StatusFlag.RX_OVF in flags,
        bad_cmd=StatusFlag.BAD_CMD in flags,
        tx_ovf=StatusFlag.TX_OVF in flags,
        raw=word,
    )


def describe_ctrl(word: int) -> list[str]:
    """Names of the CTRL bits set in ``word``."""
    return [f.name for f in CtrlFlag if word & f]
