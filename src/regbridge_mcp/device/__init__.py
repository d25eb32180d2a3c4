"""Slave device: transaction engine, register file, packet decoder, flow control."""

from .decoder import DecoderState, PacketDecoder
from .flow import FlowController
from .register_file import RegisterFile
from .slave import SlaveDevice
from .transaction import TransactionEngine, TxnState
