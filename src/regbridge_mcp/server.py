"""MCP server entry point for the register bridge simulator.

Exposes tools and resources via the Model Context Protocol using the
official Python MCP SDK with stdio transport. Every tool talks to the
simulated slave through a :class:`ByteLink`, exactly as a host
controller would over the wire.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .models.config import EngineConfig
from .protocol.commands import (
    INDEX_MASK,
    WORD_MASK,
    CtrlFlag,
    Register,
    resolve_register,
)
from .protocol.framing import MAX_PAYLOAD, SOF, build_frame
from .protocol.parser import describe_ctrl, parse_status
from .transport.byte_link import ByteLink

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "regbridge",
    instructions="Register bridge simulator: register reads/writes and CRC-framed packets",
)

# Global link state
_link: ByteLink | None = None


def _get_link() -> ByteLink:
    """Get the active link, opening a fresh device on first use."""
    global _link
    if _link is None or not _link.connected:
        _link = ByteLink()
        _link.open()
    return _link


def _parse_hex(data: str) -> bytes:
    """Accept ``"aa bb"``, ``"aabb"`` or ``"aa:bb"``."""
    return bytes.fromhex(data.replace(":", " ").replace(",", " "))


# ─── DEVICE TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def reset_device(
    fifo_depth: int | None = None,
    bad_cmd_on_underflow: bool | None = None,
    report_tx_overflow: bool | None = None,
    resync_on_sof: bool | None = None,
) -> dict[str, Any]:
    """Power-cycle the simulated device, optionally with a new configuration.

    Args:
        fifo_depth: Capacity of both FIFOs in bytes.
        bad_cmd_on_underflow: Raise BAD_CMD when RX_DATA is read while empty.
        report_tx_overflow: Raise TX_OVF when a TX_DATA byte is dropped.
        resync_on_sof: Restart frame decoding on every 0xA5 byte.
    """
    global _link
    overrides = {
        k: v
        for k, v in {
            "fifo_depth": fifo_depth,
            "bad_cmd_on_underflow": bad_cmd_on_underflow,
            "report_tx_overflow": report_tx_overflow,
            "resync_on_sof": resync_on_sof,
        }.items()
        if v is not None
    }
    try:
        config = EngineConfig(**overrides)
    except ValueError as e:
        return {"error": str(e)}

    if _link is not None:
        _link.close()
    _link = ByteLink(config=config)
    _link.open()
    return {"reset": True, "config": config.to_dict()}


@mcp.tool()
def get_device_info() -> dict[str, Any]:
    """Describe the simulated device: configuration, counters, and state."""
    link = _get_link()
    return {
        "config": link.device.config.to_dict(),
        "state": link.device.snapshot(),
    }


# ─── REGISTER TOOLS ───────────────────────────────────────────────────

@mcp.tool()
def read_register(register: str) -> dict[str, Any]:
    """Read one 32-bit register with a five-byte read session.

    Args:
        register: Register name (status, rx_count, tx_count, ctrl, rx_data,
                  tx_data, rx_type) or numeric index 0-127.
    """
    try:
        index = resolve_register(register)
    except ValueError as e:
        return {"error": str(e)}

    value = _get_link().read_register(index)
    result: dict[str, Any] = {
        "index": index,
        "value": value,
        "hex": f"0x{value:08X}",
    }
    if index == Register.STATUS:
        result["flags"] = parse_status(value).to_dict()
    return result


@mcp.tool()
def write_register(register: str, value: int) -> dict[str, Any]:
    """Write one 32-bit register with a five-byte write session.

    Args:
        register: Register name or numeric index 0-127.
        value: 32-bit unsigned value.
    """
    try:
        index = resolve_register(register)
    except ValueError as e:
        return {"error": str(e)}
    if not 0 <= value <= WORD_MASK:
        return {"error": f"Value must be 0-0x{WORD_MASK:X}"}

    _get_link().write_register(index, value)
    result: dict[str, Any] = {"written": True, "index": index, "value": value}
    if index == Register.CTRL:
        result["ctrl_bits"] = describe_ctrl(value)
    return result


@mcp.tool()
def get_status() -> dict[str, Any]:
    """Read STATUS, RX_COUNT, TX_COUNT and RX_TYPE."""
    link = _get_link()
    status = link.read_register(Register.STATUS)
    return {
        "status": parse_status(status).to_dict(),
        "rx_count": link.read_register(Register.RX_COUNT),
        "tx_free": link.read_register(Register.TX_COUNT),
        "rx_type": link.read_register(Register.RX_TYPE),
        "irq": link.device.irq,
    }


@mcp.tool()
def clear_flags() -> dict[str, Any]:
    """Fire the CLEAR_FLAGS strobe, keeping the current IRQ enable level."""
    link = _get_link()
    levels = link.read_register(Register.CTRL)
    link.write_register(Register.CTRL, levels | CtrlFlag.CLEAR_FLAGS)
    status = link.read_register(Register.STATUS)
    return {"cleared": True, "status": parse_status(status).to_dict()}


@mcp.tool()
def transfer(data: str) -> dict[str, Any]:
    """Run one raw session and return what the slave drove back.

    Sessions shorter than five bytes are discarded by the device and
    may raise BAD_CMD.

    Args:
        data: Hex bytes shifted in by the host, e.g. "83 01 00 00 00".
    """
    try:
        raw = _parse_hex(data)
    except ValueError as e:
        return {"error": f"Invalid hex: {e}"}
    response = _get_link().transfer(raw)
    return {"sent": raw.hex(" "), "received": response.hex(" ")}


# ─── PACKET / FIFO TOOLS ──────────────────────────────────────────────

@mcp.tool()
def send_packet(packet_type: int, payload: str = "") -> dict[str, Any]:
    """Frame a payload with SOF, length, type and CRC and feed it to the packet port.

    Args:
        packet_type: Type tag 0-255.
        payload: Hex payload bytes (0-255 bytes).
    """
    if not 0 <= packet_type <= 0xFF:
        return {"error": "Packet type must be 0-255"}
    try:
        body = _parse_hex(payload)
    except ValueError as e:
        return {"error": f"Invalid hex: {e}"}
    if len(body) > MAX_PAYLOAD:
        return {"error": f"Payload must be at most {MAX_PAYLOAD} bytes"}

    frame = build_frame(packet_type, body)
    link = _get_link()
    decoder = link.device.decoder
    if link.device.config.resync_on_sof and SOF in frame[1:]:
        return {
            "error": "Frame contains 0xA5 after the start byte and would be "
            "discarded by SOF resync; reset_device(resync_on_sof=False) to send it",
            "frame": frame.hex(" "),
        }

    accepted_before = decoder.frames_accepted
    link.send_packet(frame)
    status = parse_status(link.read_register(Register.STATUS))
    return {
        "frame": frame.hex(" "),
        "accepted": decoder.frames_accepted > accepted_before,
        "status": status.to_dict(),
        "rx_count": link.read_register(Register.RX_COUNT),
    }


@mcp.tool()
def send_raw_packet_bytes(data: str) -> dict[str, Any]:
    """Feed arbitrary bytes to the packet port (for corrupt or split frames).

    Args:
        data: Hex bytes.
    """
    try:
        raw = _parse_hex(data)
    except ValueError as e:
        return {"error": f"Invalid hex: {e}"}
    link = _get_link()
    link.send_packet(raw)
    status = parse_status(link.read_register(Register.STATUS))
    return {"fed": len(raw), "status": status.to_dict()}


@mcp.tool()
def read_rx_data(count: int = 0) -> dict[str, Any]:
    """Pop bytes from the inbound FIFO through RX_DATA, one read session each.

    Args:
        count: Number of bytes to pop; 0 pops whatever RX_COUNT reports.
    """
    if count < 0:
        return {"error": "Count must be non-negative"}
    link = _get_link()
    if count == 0:
        count = link.read_register(Register.RX_COUNT)
    data = bytes(link.read_register(Register.RX_DATA) & 0xFF for _ in range(count))
    return {"data": data.hex(" "), "count": len(data)}


@mcp.tool()
def write_tx_data(data: str) -> dict[str, Any]:
    """Push bytes into the outbound FIFO through TX_DATA, one write session each.

    Args:
        data: Hex bytes.
    """
    try:
        raw = _parse_hex(data)
    except ValueError as e:
        return {"error": f"Invalid hex: {e}"}
    link = _get_link()
    for b in raw:
        link.write_register(Register.TX_DATA, b)
    return {"pushed": len(raw), "tx_free": link.read_register(Register.TX_COUNT)}


@mcp.tool()
def drain_tx(max_bytes: int = 0) -> dict[str, Any]:
    """Collect bytes from the outbound FIFO as the external sink would.

    Args:
        max_bytes: Upper bound; 0 drains everything.
    """
    if max_bytes < 0:
        return {"error": "max_bytes must be non-negative"}
    data = _get_link().device.drain_tx(max_bytes or None)
    return {"data": data.hex(" "), "count": len(data)}


# ─── RESOURCES ────────────────────────────────────────────────────────

@mcp.resource("regbridge://registers/map")
def resource_register_map() -> str:
    """Defined registers with index, byte address and access mode."""
    rows = _get_link().device.registers.describe()
    return json.dumps(
        {
            "registers": rows,
            "index_space": INDEX_MASK + 1,
            "unmapped": "reads as zero, writes ignored",
        },
        indent=2,
    )


@mcp.resource("regbridge://device/status")
def resource_device_status() -> str:
    """Current device snapshot (does not pop or clear anything)."""
    return json.dumps(_get_link().device.snapshot(), indent=2)


@mcp.resource("regbridge://device/config")
def resource_device_config() -> str:
    """Active engine configuration."""
    return json.dumps(_get_link().device.config.to_dict(), indent=2)


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
