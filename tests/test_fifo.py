"""Tests for the byte FIFO, sticky flags and engine configuration."""

import pytest

from regbridge_mcp.models.config import EngineConfig
from regbridge_mcp.models.fifo import ByteFifo
from regbridge_mcp.models.flags import StickyFlags
from regbridge_mcp.protocol.commands import StatusFlag


@pytest.mark.parametrize("n", [0, 1, 7, 16])
def test_fifo_order(n):
    """Pushing n bytes then popping n yields the same sequence."""
    fifo = ByteFifo(16)
    data = bytes((i * 37 + 5) & 0xFF for i in range(n))
    for b in data:
        assert fifo.push(b)
    assert bytes(fifo.pop() for _ in range(n)) == data
    assert fifo.count == 0


def test_fifo_full_drops():
    """A push into a full FIFO is refused and the contents are unchanged."""
    fifo = ByteFifo(2)
    assert fifo.push(1)
    assert fifo.push(2)
    assert not fifo.push(3)
    assert fifo.count == 2
    assert fifo.free == 0
    assert fifo.snapshot() == b"\x01\x02"


def test_fifo_pop_empty():
    """Popping an empty FIFO returns None."""
    assert ByteFifo(4).pop() is None


def test_fifo_extend_all_or_nothing():
    """extend() writes every byte or none of them."""
    fifo = ByteFifo(4)
    fifo.push(0xEE)
    fifo.push(0xEE)
    assert not fifo.extend(b"\x01\x02\x03")
    assert fifo.count == 2
    assert fifo.extend(b"\x01\x02")
    assert fifo.snapshot() == b"\xEE\xEE\x01\x02"


def test_fifo_clear():
    """clear() empties the FIFO and reports what was dropped."""
    fifo = ByteFifo(4)
    fifo.extend(b"abc")
    assert fifo.clear() == 3
    assert len(fifo) == 0
    assert fifo.free == 4


def test_fifo_depth_must_be_positive():
    """A zero-capacity FIFO is rejected."""
    with pytest.raises(ValueError):
        ByteFifo(0)


def test_sticky_flags_latch():
    """Flags stay set across reads until clear()."""
    flags = StickyFlags()
    flags.set(StatusFlag.CRC_ERR)
    flags.set(StatusFlag.CRC_ERR)
    assert StatusFlag.CRC_ERR in flags
    assert int(flags) == 0x04
    assert int(flags) == 0x04
    flags.set(StatusFlag.PKT_OK)
    assert int(flags) == 0x06
    flags.clear()
    assert int(flags) == 0


def test_sticky_flags_reject_live_bit():
    """RX_READY is computed live and cannot be latched."""
    with pytest.raises(ValueError):
        StickyFlags().set(StatusFlag.RX_READY)


def test_config_defaults():
    """Defaults match the documented configuration."""
    cfg = EngineConfig()
    assert cfg.fifo_depth == 256
    assert cfg.dummy_byte == 0
    assert cfg.bad_cmd_on_abort
    assert not cfg.bad_cmd_on_underflow
    assert cfg.resync_on_sof
    assert cfg.to_dict()["fifo_depth"] == 256


def test_config_validation():
    """Out-of-range settings raise."""
    with pytest.raises(ValueError):
        EngineConfig(fifo_depth=0)
    with pytest.raises(ValueError):
        EngineConfig(dummy_byte=0x100)
