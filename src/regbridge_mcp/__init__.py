"""Slave-side register bridge with CRC-framed packet ingestion."""

__version__ = "0.1.0"
