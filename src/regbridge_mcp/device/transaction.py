"""Per-session command/response state machine for the command domain.

The link is full duplex: while the host shifts a byte in, the slave
shifts one out. :meth:`TransactionEngine.session_start` returns the byte
for the first exchange, and :meth:`TransactionEngine.on_byte_received`
returns the byte for the exchange after the one just completed.

A session resolves at most one command. Writes are applied only after
the fourth data byte arrives, so ending a session early never leaves a
register half written.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from ..models.config import EngineConfig
from ..protocol.commands import WORD_BYTES, decode_command, word_to_bytes
from .register_file import RegisterFile

logger = logging.getLogger(__name__)


class TxnState(Enum):
    IDLE = "idle"
    AWAIT_COMMAND = "await_command"
    COLLECT_WRITE = "collect_write"
    LOAD_READ = "load_read"
    EMIT_READ = "emit_read"
    DONE = "done"


class TransactionEngine:
    """Interprets one register read or write per session.

    Args:
        registers: Register file the commands are applied to.
        config: Engine configuration (dummy byte, abort policy).
        on_malformed: Called when a session ends mid-command.
    """

    def __init__(
        self,
        registers: RegisterFile,
        config: EngineConfig | None = None,
        on_malformed: Callable[[], None] | None = None,
    ) -> None:
        self._registers = registers
        self._config = config or EngineConfig()
        self._on_malformed = on_malformed

        self._state = TxnState.IDLE
        self._index = 0
        self._byte_index = 0
        self._write_buf = bytearray()
        self._read_buf = b""

        self.completed_reads = 0
        self.completed_writes = 0
        self.aborted = 0

    @property
    def state(self) -> TxnState:
        return self._state

    @property
    def byte_index(self) -> int:
        """Data byte position within COLLECT_WRITE / EMIT_READ."""
        return self._byte_index

    @property
    def in_session(self) -> bool:
        return self._state is not TxnState.IDLE

    def _clear(self, state: TxnState) -> None:
        self._state = state
        self._index = 0
        self._byte_index = 0
        self._write_buf = bytearray()
        self._read_buf = b""

    def session_start(self) -> int:
        """Begin a session. Returns the byte driven during the first exchange."""
        if self._state not in (TxnState.IDLE, TxnState.DONE):
            logger.debug("Session restarted from %s", self._state.value)
        self._clear(TxnState.AWAIT_COMMAND)
        return self._config.dummy_byte

    def reset(self) -> None:
        """Abandon any session without reporting it as malformed."""
        self._clear(TxnState.IDLE)

    def session_end(self) -> bool:
        """End the session. Returns True if a command was left incomplete."""
        malformed = self._state not in (TxnState.IDLE, TxnState.DONE)
        if malformed:
            self.aborted += 1
            logger.debug(
                "Session ended in %s[%d], command discarded",
                self._state.value,
                self._byte_index,
            )
            if self._config.bad_cmd_on_abort and self._on_malformed is not None:
                self._on_malformed()
        self._clear(TxnState.IDLE)
        return malformed

    def on_byte_received(self, byte: int) -> int | None:
        """Consume one inbound byte.

        Returns:
            The byte to drive on the next exchange, or ``None`` when no
            session is active.
        """
        if not 0 <= byte <= 0xFF:
            raise ValueError(f"Byte must be 0-255, got {byte}")

        state = self._state
        if state is TxnState.IDLE:
            return None

        if state is TxnState.AWAIT_COMMAND:
            cmd = decode_command(byte)
            self._index = cmd.index
            if cmd.write:
                self._state = TxnState.COLLECT_WRITE
                self._byte_index = 0
                return self._config.dummy_byte
            # The register read happens now, so a pop side effect
            # survives even if the session is cut short afterwards.
            self._state = TxnState.LOAD_READ
            return self._load_read(self._registers.read(cmd.index))

        if state is TxnState.COLLECT_WRITE:
            self._write_buf.append(byte)
            self._byte_index += 1
            if self._byte_index == WORD_BYTES:
                word = int.from_bytes(self._write_buf, "little")
                self._registers.write(self._index, word)
                self.completed_writes += 1
                self._state = TxnState.DONE
            return self._config.dummy_byte

        if state is TxnState.EMIT_READ:
            # The exchange that just finished carried read byte N out.
            self._byte_index += 1
            if self._byte_index == WORD_BYTES:
                self.completed_reads += 1
                self._state = TxnState.DONE
                return self._config.dummy_byte
            return self._read_buf[self._byte_index]

        # DONE: ignore until session end
        return self._config.dummy_byte

    def _load_read(self, word: int) -> int:
        self._read_buf = word_to_bytes(word)
        self._byte_index = 0
        self._state = TxnState.EMIT_READ
        return self._read_buf[0]
