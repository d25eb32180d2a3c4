"""Tests for register side effects."""

from regbridge_mcp.device.flow import FlowController
from regbridge_mcp.device.register_file import RegisterFile
from regbridge_mcp.models.config import EngineConfig
from regbridge_mcp.protocol.commands import CtrlFlag, Register, StatusFlag


def _make(**kwargs):
    config = EngineConfig(**kwargs)
    flow = FlowController(config)
    strobes = []
    regs = RegisterFile(flow, config, on_strobe=strobes.append)
    return flow, regs, strobes


def test_reset_values():
    """A fresh register file reads as documented."""
    flow, regs, _ = _make(fifo_depth=8)
    assert regs.read(Register.STATUS) == 0
    assert regs.read(Register.RX_COUNT) == 0
    assert regs.read(Register.TX_COUNT) == 8
    assert regs.read(Register.CTRL) == 0
    assert regs.read(Register.RX_TYPE) == 0


def test_unmapped_indices():
    """Undefined indices read zero and ignore writes."""
    _, regs, _ = _make()
    for index in (7, 0x40, 0x7F):
        regs.write(index, 0xFFFFFFFF)
        assert regs.read(index) == 0


def test_tx_data_reads_zero():
    """TX_DATA is write-only."""
    _, regs, _ = _make()
    regs.write(Register.TX_DATA, 0x55)
    assert regs.read(Register.TX_DATA) == 0


def test_read_only_registers_ignore_writes():
    """Writes to RO registers have no effect."""
    flow, regs, _ = _make(fifo_depth=8)
    flow.commit_packet(b"\x01\x02", 0x33)
    regs.write(Register.RX_COUNT, 0)
    regs.write(Register.RX_TYPE, 0)
    regs.write(Register.STATUS, 0)
    assert regs.read(Register.RX_COUNT) == 2
    assert regs.read(Register.RX_TYPE) == 0x33
    assert regs.read(Register.STATUS) & StatusFlag.PKT_OK


def test_status_rx_ready_is_live():
    """RX_READY follows occupancy and is not sticky."""
    flow, regs, _ = _make()
    flow.commit_packet(b"\x09", 1)
    assert regs.read(Register.STATUS) & StatusFlag.RX_READY
    assert regs.read(Register.RX_DATA) == 0x09
    assert not regs.read(Register.STATUS) & StatusFlag.RX_READY
    assert regs.read(Register.STATUS) & StatusFlag.PKT_OK


def test_rx_data_pops_in_order():
    """Each RX_DATA read pops one byte."""
    flow, regs, _ = _make()
    flow.commit_packet(b"\x0A\x0B\x0C", 1)
    assert [regs.read(Register.RX_DATA) for _ in range(3)] == [0x0A, 0x0B, 0x0C]
    assert regs.read(Register.RX_COUNT) == 0


def test_rx_data_underflow_default():
    """Empty RX_DATA reads zero and raises nothing by default."""
    _, regs, _ = _make()
    assert regs.read(Register.RX_DATA) == 0
    assert regs.read(Register.STATUS) == 0


def test_rx_data_underflow_policy():
    """With the underflow policy on, an empty read raises BAD_CMD."""
    _, regs, _ = _make(bad_cmd_on_underflow=True)
    assert regs.read(Register.RX_DATA) == 0
    assert regs.read(Register.STATUS) == StatusFlag.BAD_CMD


def test_tx_data_push_and_free_space():
    """TX_DATA pushes the low byte; TX_COUNT reports free space."""
    flow, regs, _ = _make(fifo_depth=4)
    regs.write(Register.TX_DATA, 0x1234)
    assert regs.read(Register.TX_COUNT) == 3
    assert flow.drain_outbound() == b"\x34"


def test_tx_data_full_drops_silently():
    """A push into a full outbound FIFO is dropped with no flag."""
    flow, regs, _ = _make(fifo_depth=2)
    for b in (1, 2, 3):
        regs.write(Register.TX_DATA, b)
    assert regs.read(Register.TX_COUNT) == 0
    assert regs.read(Register.STATUS) == 0
    assert flow.drain_outbound() == b"\x01\x02"


def test_tx_overflow_flag_when_enabled():
    """The optional TX_OVF flag reports dropped outbound bytes."""
    _, regs, _ = _make(fifo_depth=1, report_tx_overflow=True)
    regs.write(Register.TX_DATA, 1)
    regs.write(Register.TX_DATA, 2)
    assert regs.read(Register.STATUS) == StatusFlag.TX_OVF


def test_ctrl_level_bit_reads_back():
    """IRQ_ENABLE is stored and reads back."""
    _, regs, _ = _make()
    regs.write(Register.CTRL, CtrlFlag.IRQ_ENABLE)
    assert regs.read(Register.CTRL) == CtrlFlag.IRQ_ENABLE
    assert regs.irq_enable
    regs.write(Register.CTRL, 0)
    assert regs.read(Register.CTRL) == 0


def test_ctrl_level_bit_absent_when_disabled():
    """Without IRQ support the bit reads as zero."""
    _, regs, _ = _make(irq_enabled=False)
    regs.write(Register.CTRL, CtrlFlag.IRQ_ENABLE)
    assert regs.read(Register.CTRL) == 0


def test_ctrl_strobes_read_zero():
    """Strobe bits fire once and never read back."""
    flow, regs, strobes = _make()
    flow.set_flag(StatusFlag.CRC_ERR)
    regs.write(Register.CTRL, CtrlFlag.CLEAR_FLAGS | CtrlFlag.IRQ_ENABLE)
    assert regs.read(Register.CTRL) == CtrlFlag.IRQ_ENABLE
    assert strobes == [CtrlFlag.CLEAR_FLAGS]
    assert regs.read(Register.STATUS) == 0


def test_ctrl_flush_rx_keeps_flags_and_tx():
    """FLUSH_RX empties only the inbound FIFO."""
    flow, regs, _ = _make()
    flow.commit_packet(b"\x01\x02", 5)
    regs.write(Register.TX_DATA, 0x77)
    regs.write(Register.CTRL, CtrlFlag.FLUSH_RX)
    assert regs.read(Register.RX_COUNT) == 0
    assert flow.tx_count == 1
    assert regs.read(Register.STATUS) == StatusFlag.PKT_OK


def test_ctrl_flush_tx_keeps_flags_and_rx():
    """FLUSH_TX empties only the outbound FIFO."""
    flow, regs, _ = _make(fifo_depth=4)
    flow.commit_packet(b"\x01", 5)
    regs.write(Register.TX_DATA, 0x77)
    regs.write(Register.CTRL, CtrlFlag.FLUSH_TX)
    assert regs.read(Register.TX_COUNT) == 4
    assert regs.read(Register.RX_COUNT) == 1
    assert regs.read(Register.STATUS) & StatusFlag.PKT_OK


def test_soft_reset_strobe_gated():
    """SOFT_RESET is dispatched only when enabled."""
    _, regs, strobes = _make()
    regs.write(Register.CTRL, CtrlFlag.SOFT_RESET)
    assert strobes == [CtrlFlag.SOFT_RESET]

    _, regs, strobes = _make(soft_reset_enabled=False)
    regs.write(Register.CTRL, CtrlFlag.SOFT_RESET)
    assert strobes == []


def test_describe():
    """The register map lists the seven defined registers."""
    _, regs, _ = _make()
    rows = regs.describe()
    assert len(rows) == 7
    assert rows[5] == {"index": 5, "address": 20, "name": "TX_DATA", "access": "WO"}
