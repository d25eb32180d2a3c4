"""Streaming packet decoder for the packet domain.

Consumes one byte at a time from the packet source, tracks the frame
state, keeps a running CRC over LEN, TYPE and payload, and hands
verified payloads to the flow controller for an all-or-nothing commit.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum

from ..models.config import EngineConfig
from ..protocol.commands import StatusFlag
from ..protocol.framing import SOF
from ..utils.crc import CRC16_INIT, crc16_update
from .flow import FlowController

logger = logging.getLogger(__name__)


class DecoderState(Enum):
    WAIT_START = "wait_start"
    READ_LEN = "read_len"
    READ_TYPE = "read_type"
    READ_PAYLOAD = "read_payload"
    READ_CRC_LOW = "read_crc_low"
    READ_CRC_HIGH = "read_crc_high"


class PacketDecoder:
    """Frame reassembly with commit-or-drop semantics.

    Only the packet domain calls :meth:`on_byte_received`. The command
    domain asks for a soft reset through :meth:`request_reset`, which is
    honoured before the next byte is processed.
    """

    def __init__(self, flow: FlowController, config: EngineConfig | None = None) -> None:
        self._flow = flow
        self._config = config or EngineConfig()
        self._reset_requested = threading.Event()

        self.frames_accepted = 0
        self.frames_dropped_crc = 0
        self.frames_dropped_overflow = 0
        self.frames_aborted = 0

        self._restart(DecoderState.WAIT_START)

    @property
    def state(self) -> DecoderState:
        return self._state

    @property
    def in_frame(self) -> bool:
        return self._state is not DecoderState.WAIT_START

    def _restart(self, state: DecoderState) -> None:
        self._state = state
        self._crc = CRC16_INIT
        self._length = 0
        self._type = 0
        self._payload = bytearray()
        self._crc_low = 0

    def request_reset(self) -> None:
        """Discard any in-progress frame before the next byte."""
        self._reset_requested.set()

    def reset(self) -> None:
        """Drop the in-progress frame and CRC accumulator immediately.

        Only safe from the packet domain or while it is stopped.
        """
        self._reset_requested.clear()
        self._restart(DecoderState.WAIT_START)

    def feed(self, data: bytes) -> None:
        for b in data:
            self.on_byte_received(b)

    def on_byte_received(self, byte: int) -> None:
        """Advance the frame state machine by one byte."""
        if not 0 <= byte <= 0xFF:
            raise ValueError(f"Byte must be 0-255, got {byte}")

        if self._reset_requested.is_set():
            self._reset_requested.clear()
            if self.in_frame:
                self.frames_aborted += 1
                logger.debug("Soft reset discarded frame in %s", self._state.value)
            self._restart(DecoderState.WAIT_START)

        if byte == SOF and (
            self._state is DecoderState.WAIT_START or self._config.resync_on_sof
        ):
            if self.in_frame:
                self.frames_aborted += 1
                logger.debug("Start marker restarted frame in %s", self._state.value)
            self._restart(DecoderState.READ_LEN)
            return

        state = self._state
        if state is DecoderState.WAIT_START:
            return

        if state is DecoderState.READ_LEN:
            self._length = byte
            self._crc = crc16_update(self._crc, byte)
            self._state = DecoderState.READ_TYPE

        elif state is DecoderState.READ_TYPE:
            self._type = byte
            self._crc = crc16_update(self._crc, byte)
            if self._length == 0:
                self._state = DecoderState.READ_CRC_LOW
            else:
                self._state = DecoderState.READ_PAYLOAD

        elif state is DecoderState.READ_PAYLOAD:
            self._payload.append(byte)
            self._crc = crc16_update(self._crc, byte)
            if len(self._payload) == self._length:
                self._state = DecoderState.READ_CRC_LOW

        elif state is DecoderState.READ_CRC_LOW:
            self._crc_low = byte
            self._state = DecoderState.READ_CRC_HIGH

        elif state is DecoderState.READ_CRC_HIGH:
            received = self._crc_low | (byte << 8)
            self._finish(received)
            self._restart(DecoderState.WAIT_START)

    def _finish(self, received: int) -> None:
        if received != self._crc:
            self.frames_dropped_crc += 1
            self._flow.set_flag(StatusFlag.CRC_ERR)
            logger.debug(
                "CRC mismatch: got 0x%04X, expected 0x%04X (type 0x%02X, len %d)",
                received,
                self._crc,
                self._type,
                self._length,
            )
            return

        if self._flow.commit_packet(bytes(self._payload), self._type):
            self.frames_accepted += 1
        else:
            self.frames_dropped_overflow += 1
