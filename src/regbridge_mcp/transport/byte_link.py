"""Host-side byte link to an in-process slave device.

Plays the role of the physical transport: it frames each exchange as a
session (select asserted, bytes swapped in lock step, select released)
and feeds packet frames into the device's packet port.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..device.slave import SlaveDevice
from ..models.config import EngineConfig
from ..protocol.commands import build_read_command, build_write_command, bytes_to_word

logger = logging.getLogger(__name__)


@dataclass
class LinkInfo:
    """Description of the attached device."""

    fifo_depth: int = 0
    dummy_byte: int = 0
    threaded_packets: bool = False


class ByteLink:
    """Drives sessions against a :class:`SlaveDevice`.

    Usage::

        link = ByteLink()
        link.open()
        link.write_register(Register.CTRL, CtrlFlag.CLEAR_FLAGS)
        status = link.read_register(Register.STATUS)
        link.close()
    """

    def __init__(
        self,
        device: SlaveDevice | None = None,
        config: EngineConfig | None = None,
        threaded_packets: bool = False,
    ) -> None:
        self._device = device
        self._config = config
        self._threaded = threaded_packets
        self._connected = False
        self._info = LinkInfo()

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def info(self) -> LinkInfo:
        return self._info

    @property
    def device(self) -> SlaveDevice:
        if self._device is None:
            raise ConnectionError("No device attached")
        return self._device

    def open(self) -> LinkInfo:
        """Attach to the device, creating one if none was given."""
        if self._device is None:
            self._device = SlaveDevice(self._config)
        if self._threaded:
            self._device.start()

        self._connected = True
        cfg = self._device.config
        self._info = LinkInfo(
            fifo_depth=cfg.fifo_depth,
            dummy_byte=cfg.dummy_byte,
            threaded_packets=self._threaded,
        )
        logger.info(
            "Link open: fifo depth %d, packet domain %s",
            cfg.fifo_depth,
            "threaded" if self._threaded else "inline",
        )
        return self._info

    def close(self) -> None:
        """Release the device, stopping its packet thread if we started it."""
        if not self._connected:
            return
        if self._threaded and not self._device.stop():
            logger.warning("Link closed with the packet domain still running")
        self._connected = False
        logger.info("Link closed")

    def _require(self) -> SlaveDevice:
        if not self._connected:
            raise ConnectionError("Link is not open")
        return self._device

    def transfer(self, data: bytes) -> bytes:
        """Run one session and return the bytes the slave drove back.

        The returned bytes line up one-for-one with ``data``: byte ``i``
        is what the slave shifted out while byte ``i`` was shifted in.
        """
        dev = self._require()
        out = bytearray()
        staged = dev.session_start()
        try:
            for b in data:
                out.append(staged)
                nxt = dev.on_command_byte(b)
                staged = dev.config.dummy_byte if nxt is None else nxt
        finally:
            if dev.session_end():
                logger.debug("Session of %d bytes ended mid-command", len(data))
        return bytes(out)

    def read_register(self, index: int) -> int:
        """Read one 32-bit register."""
        response = self.transfer(build_read_command(int(index), self.device.config.dummy_byte))
        # transfer() answers byte for byte, so the word is always complete
        return bytes_to_word(response[1:])

    def write_register(self, index: int, value: int) -> None:
        """Write one 32-bit register."""
        self.transfer(build_write_command(int(index), int(value)))

    def send_packet(self, frame: bytes) -> None:
        """Push raw bytes into the packet port."""
        dev = self._require()
        if self._threaded:
            dev.feed_packet_bytes(frame)
            dev.wait_idle()
        else:
            for b in frame:
                dev.on_packet_byte(b)
