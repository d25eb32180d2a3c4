"""Register file: 128 word-wide slots, seven of them populated.

Register map (index -> byte address = index * 4)::

    0  STATUS    RO   sticky flags, bit 0 RX_READY is live
    1  RX_COUNT  RO   inbound FIFO occupancy
    2  TX_COUNT  RO   outbound FIFO free capacity
    3  CTRL      RW   strobes (read 0) and level bits
    4  RX_DATA   RO   pops one inbound byte per read
    5  TX_DATA   WO   pushes the low byte of each write
    6  RX_TYPE   RO   type tag of the last committed packet

Any other index reads as zero and ignores writes.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from ..models.config import EngineConfig
from ..protocol.commands import (
    CTRL_LEVELS,
    INDEX_MASK,
    WORD_MASK,
    CtrlFlag,
    Register,
)
from .flow import FlowController

logger = logging.getLogger(__name__)


class Access(str, Enum):
    RO = "RO"
    RW = "RW"
    WO = "WO"


REGISTER_ACCESS: dict[Register, Access] = {
    Register.STATUS: Access.RO,
    Register.RX_COUNT: Access.RO,
    Register.TX_COUNT: Access.RO,
    Register.CTRL: Access.RW,
    Register.RX_DATA: Access.RO,
    Register.TX_DATA: Access.WO,
    Register.RX_TYPE: Access.RO,
}


class RegisterFile:
    """Word-level register access with side effects.

    CTRL strobes are not stored: a write dispatches each set strobe bit
    once to ``on_strobe`` and only the implemented level bits survive
    to be read back.
    """

    def __init__(
        self,
        flow: FlowController,
        config: EngineConfig | None = None,
        on_strobe: Callable[[CtrlFlag], None] | None = None,
    ) -> None:
        self._flow = flow
        self._config = config or EngineConfig()
        self._on_strobe = on_strobe
        self._ctrl_levels = 0

    @property
    def ctrl_level_mask(self) -> int:
        mask = int(CTRL_LEVELS)
        if not self._config.irq_enabled:
            mask &= ~CtrlFlag.IRQ_ENABLE
        return mask

    @property
    def strobe_mask(self) -> int:
        mask = CtrlFlag.CLEAR_FLAGS | CtrlFlag.FLUSH_RX | CtrlFlag.FLUSH_TX
        if self._config.soft_reset_enabled:
            mask |= CtrlFlag.SOFT_RESET
        return int(mask)

    @property
    def irq_enable(self) -> bool:
        return bool(self._ctrl_levels & CtrlFlag.IRQ_ENABLE)

    def read(self, index: int) -> int:
        """Read a register, applying any read side effect."""
        index &= INDEX_MASK
        if index == Register.STATUS:
            return self._flow.status_word()
        if index == Register.RX_COUNT:
            return self._flow.rx_count
        if index == Register.TX_COUNT:
            return self._flow.tx_free
        if index == Register.CTRL:
            return self._ctrl_levels
        if index == Register.RX_DATA:
            byte = self._flow.pop_inbound()
            return 0 if byte is None else byte
        if index == Register.RX_TYPE:
            return self._flow.rx_type
        # TX_DATA is write-only; unmapped indices are zero
        return 0

    def write(self, index: int, word: int) -> None:
        """Write a register, applying any write side effect."""
        index &= INDEX_MASK
        word &= WORD_MASK
        if index == Register.CTRL:
            self._write_ctrl(word)
        elif index == Register.TX_DATA:
            self._flow.push_outbound(word & 0xFF)
        else:
            logger.debug("Write to register %d ignored", index)

    def _write_ctrl(self, word: int) -> None:
        self._ctrl_levels = word & self.ctrl_level_mask
        strobes = word & self.strobe_mask
        for flag in (
            CtrlFlag.CLEAR_FLAGS,
            CtrlFlag.FLUSH_RX,
            CtrlFlag.FLUSH_TX,
            CtrlFlag.SOFT_RESET,
        ):
            if strobes & flag:
                self._fire(flag)

    def _fire(self, flag: CtrlFlag) -> None:
        if flag == CtrlFlag.CLEAR_FLAGS:
            self._flow.clear_flags()
        elif flag == CtrlFlag.FLUSH_RX:
            self._flow.flush_inbound()
        elif flag == CtrlFlag.FLUSH_TX:
            self._flow.flush_outbound()
        if self._on_strobe is not None:
            self._on_strobe(flag)

    def reset(self) -> None:
        self._ctrl_levels = 0

    def describe(self) -> list[dict]:
        """The defined registers as JSON-friendly rows."""
        return [
            {
                "index": int(reg),
                "address": int(reg) * 4,
                "name": reg.name,
                "access": REGISTER_ACCESS[reg].value,
            }
            for reg in Register
        ]
