"""Serial line source for the TWELITE gateway."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Protocol

import serial

from .const import DEFAULT_BAUD_RATE, DEFAULT_SERIAL_TIMEOUT

_LOGGER = logging.getLogger(__name__)


class LineSource(Protocol):
    def readline(self) -> bytes: ...


def open_serial(
    port: str,
    baud_rate: int = DEFAULT_BAUD_RATE,
    timeout: float = DEFAULT_SERIAL_TIMEOUT,
) -> serial.Serial:
    """Open the gateway's serial port at 8N1.

    Args:
        port: Serial port name, e.g. /dev/ttyUSB0 or COM3.
        baud_rate: Line speed.
        timeout: Read timeout in seconds; readline returns early on expiry.

    Returns:
        The open serial port.

    Raises:
        serial.SerialException: If the port cannot be opened.

    """
    ser = serial.Serial(
        port=port,
        baudrate=baud_rate,
        bytesize=serial.EIGHTBITS,
        parity=serial.PARITY_NONE,
        stopbits=serial.STOPBITS_ONE,
        timeout=timeout,
    )
    ser.reset_input_buffer()
    _LOGGER.info("Opened serial port %s at %d baud", port, baud_rate)
    return ser


def iter_lines(source: LineSource) -> Iterator[str]:
    """Yield decoded lines read from source until it reports end of stream.

    Reads that time out without data are skipped. Bytes that are not ASCII
    are replaced, so framing validation rejects the line later on.
    """
    while True:
        raw = source.readline()
        if not raw:
            if _is_closed(source):
                _LOGGER.info("Serial source closed")
                return
            continue

        line = raw.decode("ascii", errors="replace").rstrip("\r\n")
        if line:
            _LOGGER.debug("RX: %s", line)
            yield line


def _is_closed(source: LineSource) -> bool:
    # Plain file-like sources signal end of stream with an empty read
    is_open = getattr(source, "is_open", None)
    return is_open is None or not is_open
