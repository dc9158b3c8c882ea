"""Translate port settings into POSIX terminal attributes."""

from __future__ import annotations

import sys
import termios
from collections.abc import Sequence

from .settings import ByteSize, FlowControl, Parity, StopBits

_UINT32_MASK = 0xFFFFFFFF

# Baud rates that map onto a predefined speed constant where the platform
# provides one; anything else is treated as a custom rate.
_STANDARD_RATES = (
    0, 50, 75, 110, 134, 150, 200, 300, 600, 1200, 1800, 2400, 4800, 7200,
    9600, 14400, 19200, 28800, 57600, 76800, 38400, 115200, 128000, 153600,
    230400, 256000, 460800, 500000, 576000, 921600, 1000000, 1152000,
    1500000, 2000000, 2500000, 3000000, 3500000, 4000000,
)

_IUCLC = getattr(termios, "IUCLC", 0)
_PARMRK = getattr(termios, "PARMRK", 0)
_IXANY = getattr(termios, "IXANY", 0)
_CMSPAR = getattr(
    termios,
    "CMSPAR",
    0o10000000000 if sys.platform.startswith("linux") else None,
)
_RTSCTS = getattr(termios, "CRTSCTS", None) or getattr(termios, "CNEW_RTSCTS", None)

_CHAR_SIZE = {
    ByteSize.EIGHT: termios.CS8,
    ByteSize.SEVEN: termios.CS7,
    ByteSize.SIX: termios.CS6,
    ByteSize.FIVE: termios.CS5,
}


def baud_constant(baudrate: int) -> int | None:
    """The platform speed constant for ``baudrate``, or None for a custom rate."""
    if baudrate not in _STANDARD_RATES:
        return None
    return getattr(termios, f"B{baudrate}", None)


def _coerce(enum_type, value, message):
    try:
        return enum_type(value)
    except ValueError:
        raise ValueError(message) from None


def configure_attributes(
    attrs: Sequence,
    baudrate: int,
    bytesize: int,
    parity: int,
    stopbits: int,
    flowcontrol: int,
) -> list:
    """Return a raw-mode copy of ``attrs`` (as from ``tcgetattr``) with the settings applied.

    The speed fields are only changed when the baud rate has a standard
    constant; custom rates must be applied separately.
    """
    size = _coerce(ByteSize, bytesize, "invalid char len")
    stop = _coerce(StopBits, stopbits, "invalid stop bit")
    par = _coerce(Parity, parity, "invalid parity")
    flow = _coerce(FlowControl, flowcontrol, "invalid flow control")

    iflag, oflag, cflag, lflag, ispeed, ospeed, cc = attrs
    cc = list(cc)

    # Raw mode, no echo, binary.
    cflag |= termios.CLOCAL | termios.CREAD
    lflag &= ~(
        termios.ICANON | termios.ECHO | termios.ECHOE | termios.ECHOK
        | termios.ECHONL | termios.ISIG | termios.IEXTEN
    )
    oflag &= ~termios.OPOST
    iflag &= ~(
        termios.INLCR | termios.IGNCR | termios.ICRNL | termios.IGNBRK
        | _IUCLC | _PARMRK
    )

    speed = baud_constant(baudrate)
    if speed is not None:
        ispeed = ospeed = speed

    cflag &= ~termios.CSIZE
    cflag |= _CHAR_SIZE[size]

    # POSIX has no 1.5 stop bits; it is configured the same as two.
    if stop is StopBits.ONE:
        cflag &= ~termios.CSTOPB
    else:
        cflag |= termios.CSTOPB

    iflag &= ~(termios.INPCK | termios.ISTRIP)
    if par is Parity.NONE:
        cflag &= ~(termios.PARENB | termios.PARODD)
    elif par is Parity.EVEN:
        cflag &= ~termios.PARODD
        cflag |= termios.PARENB
    elif par is Parity.ODD:
        cflag |= termios.PARENB | termios.PARODD
    elif _CMSPAR is None:
        raise ValueError("OS does not support mark or space parity")
    elif par is Parity.MARK:
        cflag |= termios.PARENB | _CMSPAR | termios.PARODD
    else:
        cflag |= termios.PARENB | _CMSPAR
        cflag &= ~termios.PARODD

    xonxoff = flow is FlowControl.SOFTWARE
    rtscts = flow is FlowControl.HARDWARE

    if xonxoff:
        iflag |= termios.IXON | termios.IXOFF
    else:
        iflag &= ~(termios.IXON | termios.IXOFF | _IXANY)

    if _RTSCTS is None:
        raise OSError("hardware flow control is not supported on this platform")
    if rtscts:
        cflag |= _RTSCTS
    else:
        cflag &= ~_RTSCTS

    # Polling reads; readiness is checked with select before each read.
    cc[termios.VMIN] = 0
    cc[termios.VTIME] = 0

    return [iflag, oflag, cflag, lflag, ispeed, ospeed, cc]


def byte_time_ns(baudrate: int, bytesize: int, parity: int, stopbits: int) -> int:
    """Nanoseconds needed to transmit one character at these settings."""
    if baudrate <= 0:
        raise ValueError("baudrate must be positive")
    bit_time = int(1e9 / baudrate) & _UINT32_MASK
    total = (bit_time * (1 + int(bytesize) + int(parity) + int(stopbits))) & _UINT32_MASK
    if int(stopbits) == StopBits.ONE_POINT_FIVE:
        # The enum encodes 1.5 stop bits as 3; correct for the difference.
        total = int(total + (1.5 - StopBits.ONE_POINT_FIVE) * bit_time) & _UINT32_MASK
    return total