"""Engine configuration.

The optional behaviours of the device are switched here rather than
assumed always on.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from .fifo import DEFAULT_DEPTH


@dataclass(frozen=True)
class EngineConfig:
    """Static configuration of a slave device."""

    fifo_depth: int = DEFAULT_DEPTH
    dummy_byte: int = 0x00
    bad_cmd_on_abort: bool = True
    bad_cmd_on_underflow: bool = False
    report_tx_overflow: bool = False
    irq_enabled: bool = True
    soft_reset_enabled: bool = True
    resync_on_sof: bool = True
    packet_queue_size: int = 4096

    def __post_init__(self) -> None:
        if self.fifo_depth < 1:
            raise ValueError(f"fifo_depth must be positive, got {self.fifo_depth}")
        if not 0 <= self.dummy_byte <= 0xFF:
            raise ValueError(f"dummy_byte must be 0-255, got {self.dummy_byte}")
        if self.packet_queue_size < 1:
            raise ValueError(
                f"packet_queue_size must be positive, got {self.packet_queue_size}"
            )

    def to_dict(self) -> dict:
        return asdict(self)
