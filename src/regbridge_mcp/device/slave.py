"""The complete slave device: both domains wired to one flow controller.

Usage::

    dev = SlaveDevice()
    dev.session_start()
    for b in build_read_command(Register.STATUS):
        dev.on_command_byte(b)
    dev.session_end()

    dev.on_packet_byte(0xA5)          # packet domain, synchronous
    dev.start()                       # or run it on its own thread
    dev.feed_packet_bytes(frame)
    dev.stop()
"""

from __future__ import annotations

import logging
import queue
import threading

from ..models.config import EngineConfig
from ..protocol.commands import CtrlFlag, Register, StatusFlag
from .decoder import PacketDecoder
from .flow import FlowController
from .register_file import RegisterFile
from .transaction import TransactionEngine

logger = logging.getLogger(__name__)

_STOP = object()


class SlaveDevice:
    """Register bridge with packet ingestion.

    The command domain is driven by the caller through
    :meth:`session_start`, :meth:`on_command_byte` and
    :meth:`session_end`. The packet domain is driven either directly
    through :meth:`on_packet_byte` or by a background thread started
    with :meth:`start` and fed by :meth:`feed_packet_bytes`. Use one
    or the other, not both at once.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()
        self.flow = FlowController(self.config)
        self.decoder = PacketDecoder(self.flow, self.config)
        self.registers = RegisterFile(self.flow, self.config, on_strobe=self._on_strobe)
        self.engine = TransactionEngine(
            self.registers, self.config, on_malformed=self._on_malformed
        )

        self._packet_queue: queue.Queue = queue.Queue(maxsize=self.config.packet_queue_size)
        self._packet_thread: threading.Thread | None = None

    # ── wiring ───────────────────────────────────────────────────────

    def _on_strobe(self, flag: CtrlFlag) -> None:
        if flag == CtrlFlag.SOFT_RESET:
            logger.debug("Soft reset requested")
            self.decoder.request_reset()

    def _on_malformed(self) -> None:
        self.flow.set_flag(StatusFlag.BAD_CMD)

    # ── command domain ───────────────────────────────────────────────

    def session_start(self) -> int:
        return self.engine.session_start()

    def on_command_byte(self, byte: int) -> int | None:
        return self.engine.on_byte_received(byte)

    def session_end(self) -> bool:
        return self.engine.session_end()

    # ── packet domain ────────────────────────────────────────────────

    def on_packet_byte(self, byte: int) -> None:
        self.decoder.on_byte_received(byte)

    @property
    def running(self) -> bool:
        return self._packet_thread is not None and self._packet_thread.is_alive()

    def start(self) -> None:
        """Run the packet domain on a background thread."""
        if self.running:
            return
        self._packet_thread = threading.Thread(
            target=self._packet_loop, name="packet-domain", daemon=True
        )
        self._packet_thread.start()
        logger.info("Packet domain started")

    def stop(self, timeout: float | None = 5.0) -> bool:
        """Process everything already queued, then stop the thread.

        Returns:
            True if the thread has stopped, False if it was still busy
            when ``timeout`` ran out.
        """
        if self._packet_thread is None:
            return True
        try:
            self._packet_queue.put(_STOP, timeout=timeout)
        except queue.Full:
            logger.warning("Packet queue still full after %ss, thread not stopped", timeout)
            return False
        self._packet_thread.join(timeout)
        if self._packet_thread.is_alive():
            logger.warning("Packet domain did not stop within %ss", timeout)
            return False
        self._packet_thread = None
        logger.info("Packet domain stopped")
        return True

    def feed_packet_bytes(self, data: bytes, timeout: float | None = None) -> None:
        """Queue bytes for the packet-domain thread.

        Raises:
            RuntimeError: If the packet domain is not running.
            queue.Full: If the bounded queue stays full past ``timeout``.
        """
        if not self.running:
            raise RuntimeError("Packet domain is not running. Call start() first.")
        for b in data:
            self._packet_queue.put(b, timeout=timeout)

    def wait_idle(self) -> None:
        """Block until every queued packet byte has been processed."""
        self._packet_queue.join()

    def _packet_loop(self) -> None:
        while True:
            item = self._packet_queue.get()
            try:
                if item is _STOP:
                    return
                self.decoder.on_byte_received(item)
            except ValueError as e:
                logger.warning("Packet byte rejected: %s", e)
            finally:
                self._packet_queue.task_done()

    # ── outputs ──────────────────────────────────────────────────────

    @property
    def irq(self) -> bool:
        """Level interrupt: IRQ_ENABLE set and any STATUS bit raised."""
        if not self.config.irq_enabled:
            return False
        return self.registers.irq_enable and self.flow.status_word() != 0

    def drain_tx(self, max_bytes: int | None = None) -> bytes:
        """External sink side of the outbound FIFO."""
        return self.flow.drain_outbound(max_bytes)

    def reset(self) -> None:
        """System reset: registers, FIFOs, flags and both state machines."""
        if self.running:
            raise RuntimeError("Stop the packet domain before a system reset")
        self.flow.reset()
        self.registers.reset()
        self.decoder.reset()
        self.engine.reset()
        logger.info("Device reset")

    def snapshot(self) -> dict:
        """Diagnostic view of the whole device."""
        return {
            "status": self.flow.status_word(),
            "rx_count": self.flow.rx_count,
            "tx_count": self.flow.tx_count,
            "tx_free": self.flow.tx_free,
            "rx_type": self.flow.rx_type,
            "ctrl": self.registers.read(Register.CTRL),
            "irq": self.irq,
            "engine_state": self.engine.state.value,
            "decoder_state": self.decoder.state.value,
            "frames_accepted": self.decoder.frames_accepted,
            "frames_dropped_crc": self.decoder.frames_dropped_crc,
            "frames_dropped_overflow": self.decoder.frames_dropped_overflow,
            "frames_aborted": self.decoder.frames_aborted,
            "completed_reads": self.engine.completed_reads,
            "completed_writes": self.engine.completed_writes,
            "aborted_sessions": self.engine.aborted,
        }
