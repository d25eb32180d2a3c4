"""Tests for CRC-16/CCITT-FALSE calculation."""

from regbridge_mcp.utils.crc import CRC16_INIT, crc16, crc16_update


def test_crc16_empty():
    """CRC of empty data is the initial value (no final XOR)."""
    assert crc16(b"") == 0xFFFF


def test_crc16_check_value():
    """Standard check value for the ASCII digits 1-9."""
    assert crc16(b"123456789") == 0x29B1


def test_crc16_known_frame():
    """CRC over LEN, TYPE and payload of a two-byte packet."""
    assert crc16(bytes([0x02, 0x10, 0xAA, 0xBB])) == 0xCECE


def test_crc16_incremental_matches_bulk():
    """Feeding bytes one at a time gives the same result as a whole buffer."""
    data = bytes([0x05, 0x20, 1, 2, 3, 4, 5])
    crc = CRC16_INIT
    for b in data:
        crc = crc16_update(crc, b)
    assert crc == crc16(data) == 0x3F69


def test_crc16_different_inputs():
    """Different inputs should produce different CRCs."""
    assert crc16(b"\x01") != crc16(b"\x02")
