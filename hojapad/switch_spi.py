"""Emulated SPI flash contents of a Switch Pro Controller."""

from __future__ import annotations

from collections.abc import Sequence

from hojapad.switch_analog import calibration_data

MAX_READ_LENGTH = 30

_PAIRING_FIXED = {
    0x26: 0x95,
    0x00: 0x95,
    0x27: 0x22,
    0x01: 0x22,
    0x4A: 0x68,
    0x24: 0x68,
}

_FACTORY_FIXED = {
    0x12: 0x03,
    0x13: 0x02,
    0x1B: 0x01,
    # 6-axis factory calibration
    0x20: 35,
    0x21: 0,
    0x22: 185,
    0x23: 255,
    0x24: 26,
    0x25: 1,
    0x26: 0,
    0x27: 64,
    0x28: 0,
    0x29: 64,
    0x2A: 0,
    0x2B: 64,
    0x2C: 1,
    0x2D: 0,
    0x2E: 1,
    0x2F: 0,
    0x30: 1,
    0x31: 0,
    0x32: 0x3B,
    0x33: 0x34,
    0x34: 0x3B,
    0x35: 0x34,
    0x36: 0x3B,
    0x37: 0x34,
    0x4F: 0xFF,
    # body colour
    0x50: 26,
    0x51: 26,
    0x52: 26,
    0x53: 94,
    0x54: 94,
    0x55: 94,
    # grip colours
    0x56: 255,
    0x57: 255,
    0x58: 255,
    0x59: 255,
    0x5A: 255,
    0x5B: 255,
    0x5C: 0x01,
    # accelerometer offsets
    0x80: 80,
    0x81: 253,
    0x82: 0,
    0x83: 0,
    0x84: 198,
    0x85: 15,
}

# Stick device parameters, stored twice (0x86 and 0x98).
_STICK_PARAMS = (15, 48, 97, 174, 144, 217, 212, 20, 84, 65, 21, 84, 199, 121, 156, 51, 54, 99)
for _i, _value in enumerate(_STICK_PARAMS):
    _FACTORY_FIXED[0x86 + _i] = _value
    _FACTORY_FIXED[0x98 + _i] = _value


def _pairing_byte(address: int, host_address: Sequence[int]) -> int:
    if address in _PAIRING_FIXED:
        return _PAIRING_FIXED[address]
    if 0x2A <= address <= 0x2F:
        return host_address[address - 0x2A] & 0xFF
    if 0x04 <= address <= 0x09:
        return host_address[address - 0x04] & 0xFF
    return 0x00


def _factory_byte(address: int) -> int:
    if address <= 0x0F:
        return 0xFF
    if 0x3D <= address <= 0x4E:
        return calibration_data()[address - 0x3D]
    return _FACTORY_FIXED.get(address, 0x00)


def spi_read_byte(offset_address: int, address: int, host_address: Sequence[int] = bytes(6)) -> int:
    """The byte stored at offset_address:address of the emulated flash."""
    offset_address &= 0xFF
    address &= 0xFF
    if offset_address in (0x00, 0x10, 0x50):
        return 0x00
    if 0x20 <= offset_address <= 0x40:
        return _pairing_byte(address, host_address)
    if offset_address == 0x60:
        return _factory_byte(address)
    return 0xFF


def spi_read(
    offset_address: int, address: int, length: int, host_address: Sequence[int] = bytes(6)
) -> bytes:
    """Reply payload of an SPI read: a 5-byte header followed by length data bytes.

    The header is address, offset address, two zero bytes and the length.
    Addresses wrap within the 256-byte segment.
    """
    if not 0 <= length <= MAX_READ_LENGTH:
        raise ValueError(f"SPI read length must be 0-{MAX_READ_LENGTH}, got {length}")
    header = bytes((address & 0xFF, offset_address & 0xFF, 0x00, 0x00, length))
    data = bytes(
        spi_read_byte(offset_address, (address + i) & 0xFF, host_address) for i in range(length)
    )
    return header + data