"""Protocol layer: packet framing, CRC, command builders, and response parsing."""

from .framing import SOF, Frame, build_frame, parse_frame
from .commands import (
    CtrlFlag,
    Register,
    StatusFlag,
    build_read_command,
    build_write_command,
)
