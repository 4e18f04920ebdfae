"""Decoder for ARIA sensor frames relayed by a TWELITE gateway.

This module turns the hex-encoded lines printed by the gateway into
SensorFrame objects. Decoding is pure: no state, no I/O.
"""

import binascii
import logging
import struct
from enum import StrEnum
from typing import TypeVar

from .const import (
    FRAME_LINE_LENGTH,
    FRAME_LINE_PREFIX,
    MAGNETISM_EVENT_MAP,
    MAGNETISM_STATE_MAP,
    MIN_FRAME_LENGTH,
    WAKE_FACTOR_MAP,
    WAKE_FACTOR_SOURCE_MAP,
)
from .exceptions import MalformedFrameError
from .models import (
    MagnetismEvent,
    MagnetismState,
    PacketProperty,
    SensorFrame,
    WakeFactor,
    WakeFactorSource,
)

_LOGGER = logging.getLogger(__name__)

_E = TypeVar("_E", bound=StrEnum)

_UINT16 = struct.Struct(">H")
_INT16 = struct.Struct(">h")

# Byte offsets
OFFSET_RELAY_SERIAL_ID = 0
OFFSET_LINK_QUALITY = 4
OFFSET_SEQUENCE_NUMBER = 5
OFFSET_SENDER_SERIAL_ID = 7
OFFSET_SENDER_LOGICAL_ID = 11
OFFSET_SENSOR_TYPE = 12
OFFSET_PAL_ID = 13
OFFSET_SENSOR_COUNT = 14
OFFSET_PACKET_PROPERTY = 19
OFFSET_MAGNETISM_EVENT = 26
OFFSET_SUPPLY_VOLTAGE = 34
OFFSET_AUX_VOLTAGE = 40
OFFSET_MAGNETISM_STATE = 46
OFFSET_TEMPERATURE = 51
OFFSET_HUMIDITY = 57

SERIAL_ID_LENGTH = 4

# Bit masks
MASK_PACKET_SEQUENCE_ID = 0x7F
MASK_EVENT_DRIVEN = 0x80


def parse_frame_line(line: str) -> bytes:
    """Check the framing of a gateway line and return the binary frame.

    Args:
        line: One line read from the serial port, with or without its
            trailing line terminator.

    Returns:
        The hex-decoded frame, without the leading colon.

    Raises:
        MalformedFrameError: If the line does not start with ":", is not
            exactly 123 characters long or contains non-hex characters.

    """
    line = line.rstrip("\r\n")
    if not line.startswith(FRAME_LINE_PREFIX):
        error_msg = "Frame line does not start with ':'"
        raise MalformedFrameError(error_msg)

    if len(line) != FRAME_LINE_LENGTH:
        error_msg = (
            f"Frame line has {len(line)} characters, expected {FRAME_LINE_LENGTH}"
        )
        raise MalformedFrameError(error_msg)

    try:
        # unhexlify rejects whitespace that bytes.fromhex would skip
        return binascii.unhexlify(line[len(FRAME_LINE_PREFIX) :])
    except ValueError as err:
        error_msg = f"Frame line is not valid hex: {err}"
        raise MalformedFrameError(error_msg) from err


def decode(buffer: bytes) -> SensorFrame:
    """Decode a binary ARIA frame into a SensorFrame.

    Byte Structure (multi-byte integers are big-endian):
        Bytes 0-3:   Relay serial ID
        Byte 4:      Link quality indicator
        Bytes 5-6:   Sequence number
        Bytes 7-10:  Sender serial ID
        Byte 11:     Sender logical ID
        Byte 12:     Sensor type
        Byte 13:     PAL ID
        Byte 14:     Sensor count
        Bytes 19-21: Packet property (bit-packed)
        Byte 26:     Magnetism event
        Bytes 34-35: Supply voltage (mV)
        Bytes 40-41: DC1 voltage (mV)
        Byte 46:     Magnetism state
        Bytes 51-52: Temperature * 100 (signed)
        Bytes 57-58: Humidity * 100 (signed)

    Bytes that do not map to a known enum member decode to the UNSPECIFIED
    member instead of failing.

    Args:
        buffer: Binary frame, at least 59 bytes long.

    Returns:
        The decoded SensorFrame.

    Raises:
        MalformedFrameError: If the buffer is shorter than 59 bytes.

    """
    data = memoryview(bytes(buffer))
    if len(data) < MIN_FRAME_LENGTH:
        error_msg = (
            f"Frame too short: {len(data)} bytes (minimum {MIN_FRAME_LENGTH} required)"
        )
        raise MalformedFrameError(error_msg)

    b0, b1, b2 = data[OFFSET_PACKET_PROPERTY : OFFSET_PACKET_PROPERTY + 3]

    return SensorFrame(
        relay_serial_id=_decode_serial_id(data, OFFSET_RELAY_SERIAL_ID),
        link_quality=data[OFFSET_LINK_QUALITY],
        sequence_number=_UINT16.unpack_from(data, OFFSET_SEQUENCE_NUMBER)[0],
        sender_serial_id=_decode_serial_id(data, OFFSET_SENDER_SERIAL_ID),
        sender_logical_id=_decode_byte_id(data[OFFSET_SENDER_LOGICAL_ID]),
        sensor_type=_decode_byte_id(data[OFFSET_SENSOR_TYPE]),
        pal_id=_decode_byte_id(data[OFFSET_PAL_ID]),
        sensor_count=data[OFFSET_SENSOR_COUNT],
        packet_property=decode_packet_property(b0, b1, b2),
        magnetism_event=enum_from_byte(
            MAGNETISM_EVENT_MAP, data[OFFSET_MAGNETISM_EVENT], MagnetismEvent
        ),
        supply_voltage_millivolts=_UINT16.unpack_from(data, OFFSET_SUPPLY_VOLTAGE)[0],
        aux_voltage_millivolts=_UINT16.unpack_from(data, OFFSET_AUX_VOLTAGE)[0],
        magnetism_state=enum_from_byte(
            MAGNETISM_STATE_MAP, data[OFFSET_MAGNETISM_STATE], MagnetismState
        ),
        temperature_celsius=_decode_centi(data, OFFSET_TEMPERATURE),
        humidity_percent=_decode_centi(data, OFFSET_HUMIDITY),
    )


def decode_packet_property(b0: int, b1: int, b2: int) -> PacketProperty:
    """Decode the 3-byte packet property block.

    Args:
        b0: Bits 0-6 hold the packet ID, bit 7 flags an event-driven send.
        b1: Wake factor data source.
        b2: Wake factor.

    Returns:
        The decoded PacketProperty.

    """
    return PacketProperty(
        packet_sequence_id=b0 & MASK_PACKET_SEQUENCE_ID,
        is_event_driven=(b0 & MASK_EVENT_DRIVEN) != 0,
        wake_factor_source=enum_from_byte(
            WAKE_FACTOR_SOURCE_MAP, b1, WakeFactorSource
        ),
        wake_factor=enum_from_byte(WAKE_FACTOR_MAP, b2, WakeFactor),
    )


def enum_from_byte(mapping: dict[int, _E], value: int, enum_type: type[_E]) -> _E:
    """Map a byte to an enum member, falling back to UNSPECIFIED."""
    member = mapping.get(value)
    if member is None:
        _LOGGER.debug(
            "Unmapped %s byte: 0x%02X, using unspecified", enum_type.__name__, value
        )
        return enum_type("")
    return member


def _decode_serial_id(data: memoryview, offset: int) -> str:
    return binascii.hexlify(data[offset : offset + SERIAL_ID_LENGTH]).decode("ascii")


def _decode_byte_id(value: int) -> str:
    return f"{value:x}"


def _decode_centi(data: memoryview, offset: int) -> float:
    """Decode a signed big-endian value scaled by 100."""
    return _INT16.unpack_from(data, offset)[0] / 100
