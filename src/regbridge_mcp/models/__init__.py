"""Data models: FIFOs, sticky flags, and engine configuration."""

from .config import EngineConfig
from .fifo import ByteFifo
from .flags import StickyFlags
