"""Flow control: the two byte FIFOs plus the shared status bank.

This is the only state shared between the command domain and the packet
domain. Every access goes through ``self._lock`` so a flag or byte count
set from one side is never lost to a concurrent update from the other.
"""

from __future__ import annotations

import logging
import threading

from ..models.config import EngineConfig
from ..models.fifo import ByteFifo
from ..models.flags import StickyFlags
from ..protocol.commands import StatusFlag

logger = logging.getLogger(__name__)


class FlowController:
    """Inbound/outbound FIFOs, sticky flags, and the last committed type."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or EngineConfig()
        self._lock = threading.Lock()
        self._inbound = ByteFifo(self._config.fifo_depth)
        self._outbound = ByteFifo(self._config.fifo_depth)
        self._flags = StickyFlags()
        self._rx_type = 0

    @property
    def depth(self) -> int:
        return self._config.fifo_depth

    # ── packet domain ────────────────────────────────────────────────

    def commit_packet(self, payload: bytes, ptype: int) -> bool:
        """Atomically deliver a verified packet.

        Either every payload byte is appended, RX_TYPE takes ``ptype``
        and PKT_OK is raised, or nothing is written and RX_OVF is raised.
        """
        with self._lock:
            if not self._inbound.extend(payload):
                self._flags.set(StatusFlag.RX_OVF)
                logger.debug(
                    "Packet refused: %d bytes, %d free",
                    len(payload),
                    self._inbound.free,
                )
                return False
            self._rx_type = ptype & 0xFF
            self._flags.set(StatusFlag.PKT_OK)
            return True

    # ── command domain ───────────────────────────────────────────────

    def pop_inbound(self) -> int | None:
        """Pop one inbound byte; raises BAD_CMD on underflow if configured."""
        with self._lock:
            byte = self._inbound.pop()
            if byte is None and self._config.bad_cmd_on_underflow:
                self._flags.set(StatusFlag.BAD_CMD)
            return byte

    def push_outbound(self, byte: int) -> bool:
        """Queue one byte for the external sink; dropped when full."""
        with self._lock:
            if self._outbound.push(byte):
                return True
            if self._config.report_tx_overflow:
                self._flags.set(StatusFlag.TX_OVF)
            logger.debug("Outbound FIFO full, dropped 0x%02X", byte & 0xFF)
            return False

    def drain_outbound(self, max_bytes: int | None = None) -> bytes:
        """Remove up to ``max_bytes`` queued outbound bytes (all by default)."""
        out = bytearray()
        with self._lock:
            while max_bytes is None or len(out) < max_bytes:
                byte = self._outbound.pop()
                if byte is None:
                    break
                out.append(byte)
        return bytes(out)

    def flush_inbound(self) -> None:
        with self._lock:
            dropped = self._inbound.clear()
        logger.debug("Inbound FIFO flushed (%d bytes)", dropped)

    def flush_outbound(self) -> None:
        with self._lock:
            dropped = self._outbound.clear()
        logger.debug("Outbound FIFO flushed (%d bytes)", dropped)

    # ── shared status ────────────────────────────────────────────────

    def set_flag(self, flag: StatusFlag) -> None:
        with self._lock:
            self._flags.set(flag)

    def clear_flags(self) -> None:
        with self._lock:
            self._flags.clear()

    def status_word(self) -> int:
        """Sticky flags with the live RX_READY bit merged in."""
        with self._lock:
            word = int(self._flags)
            if self._inbound.count:
                word |= StatusFlag.RX_READY
            return word

    @property
    def rx_count(self) -> int:
        with self._lock:
            return self._inbound.count

    @property
    def tx_free(self) -> int:
        with self._lock:
            return self._outbound.free

    @property
    def tx_count(self) -> int:
        with self._lock:
            return self._outbound.count

    @property
    def rx_type(self) -> int:
        with self._lock:
            return self._rx_type

    def inbound_snapshot(self) -> bytes:
        with self._lock:
            return self._inbound.snapshot()

    def reset(self) -> None:
        """Return to power-on state: empty FIFOs, no flags, RX_TYPE 0."""
        with self._lock:
            self._inbound.clear()
            self._outbound.clear()
            self._flags.clear()
            self._rx_type = 0
