"""Serial port access on POSIX systems through termios, select and ioctl."""

from __future__ import annotations

import errno
import fcntl
import inspect
import os
import select
import struct
import sys
import termios
import threading
import time

from .errors import IOException, PortNotOpenedException, SerialException
from .settings import ByteSize, FlowControl, Parity, StopBits, Timeout
from .termios_config import baud_constant, byte_time_ns, configure_attributes
from .timer import MillisecondTimer

_IS_LINUX = sys.platform.startswith("linux")
_IS_DARWIN = sys.platform == "darwin"

_TIOCINQ = getattr(termios, "TIOCINQ", None) or getattr(termios, "FIONREAD", 0x541B)
_TIOCGSERIAL = getattr(termios, "TIOCGSERIAL", 0x541E if _IS_LINUX else None)
_TIOCSSERIAL = getattr(termios, "TIOCSSERIAL", 0x541F if _IS_LINUX else None)
_TIOCMIWAIT = getattr(termios, "TIOCMIWAIT", 0x545C if _IS_LINUX else None)
_IOSSIOSPEED = 0x80045402
_ASYNC_SPD_MASK = 0x1030
_ASYNC_SPD_CUST = 0x0030
# Large enough for struct serial_struct on every supported architecture.
_SERIAL_STRUCT_SIZE = 128

_TIOCM_CTS = termios.TIOCM_CTS
_TIOCM_DSR = termios.TIOCM_DSR
_TIOCM_RI = getattr(termios, "TIOCM_RI", None) or termios.TIOCM_RNG
_TIOCM_CD = getattr(termios, "TIOCM_CD", None) or termios.TIOCM_CAR
_TIOCM_RTS = termios.TIOCM_RTS
_TIOCM_DTR = termios.TIOCM_DTR


def _io_error(error: int | str) -> IOException:
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    return IOException(__file__, caller.f_lineno if caller else 0, error)


def _ioctl_failure(what: str, exc: OSError) -> SerialException:
    code = exc.errno or 0
    return SerialException(f"{what}: {code} {os.strerror(code)}")


class PosixSerial:
    """A serial port backed by a POSIX terminal device."""

    def __init__(
        self,
        port: str = "",
        baudrate: int = 9600,
        bytesize: int = ByteSize.EIGHT,
        parity: int = Parity.NONE,
        stopbits: int = StopBits.ONE,
        flowcontrol: int = FlowControl.NONE,
    ) -> None:
        self._port = port
        self._fd: int | None = None
        self._is_open = False
        self._timeout = Timeout()
        self._baudrate = baudrate
        self._bytesize = bytesize
        self._parity = parity
        self._stopbits = stopbits
        self._flowcontrol = flowcontrol
        self._byte_time_ns = 0
        self.read_lock = threading.Lock()
        self.write_lock = threading.Lock()
        if port:
            self.open()

    # -- settings -------------------------------------------------------

    @property
    def port(self) -> str:
        """Path of the device node."""
        return self._port

    @port.setter
    def port(self, value: str) -> None:
        self._port = value

    @property
    def timeout(self) -> Timeout:
        """Read and write timeouts."""
        return self._timeout

    @timeout.setter
    def timeout(self, value: Timeout) -> None:
        if not isinstance(value, Timeout):
            raise TypeError("timeout must be a Timeout")
        self._timeout = value

    @property
    def baudrate(self) -> int:
        return self._baudrate

    @baudrate.setter
    def baudrate(self, value: int) -> None:
        self._baudrate = value
        if self._is_open:
            self._reconfigure()

    @property
    def bytesize(self) -> int:
        return self._bytesize

    @bytesize.setter
    def bytesize(self, value: int) -> None:
        self._bytesize = value
        if self._is_open:
            self._reconfigure()

    @property
    def parity(self) -> int:
        return self._parity

    @parity.setter
    def parity(self, value: int) -> None:
        self._parity = value
        if self._is_open:
            self._reconfigure()

    @property
    def stopbits(self) -> int:
        return self._stopbits

    @stopbits.setter
    def stopbits(self, value: int) -> None:
        self._stopbits = value
        if self._is_open:
            self._reconfigure()

    @property
    def flowcontrol(self) -> int:
        return self._flowcontrol

    @flowcontrol.setter
    def flowcontrol(self, value: int) -> None:
        self._flowcontrol = value
        if self._is_open:
            self._reconfigure()

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def byte_time_ns(self) -> int:
        """Nanoseconds to transmit one character at the configured settings."""
        return self._byte_time_ns

    # -- open / close ---------------------------------------------------

    def open(self) -> None:
        """Open the device and apply the current settings."""
        if not self._port:
            raise ValueError("Empty port is invalid.")
        if self._is_open:
            raise SerialException("Serial port already open.")
        try:
            self._fd = os.open(self._port, os.O_RDWR | os.O_NOCTTY | os.O_NONBLOCK)
        except OSError as exc:
            if exc.errno in (errno.ENFILE, errno.EMFILE):
                raise _io_error("Too many file handles open.") from exc
            raise _io_error(exc.errno or 0) from exc
        self._reconfigure()
        self._is_open = True

    def _reconfigure(self) -> None:
        if self._fd is None:
            raise _io_error("Invalid file descriptor, is the serial port open?")
        try:
            attrs = termios.tcgetattr(self._fd)
        except termios.error as exc:
            raise _io_error("::tcgetattr") from exc

        new_attrs = configure_attributes(
            attrs,
            self._baudrate,
            self._bytesize,
            self._parity,
            self._stopbits,
            self._flowcontrol,
        )
        try:
            termios.tcsetattr(self._fd, termios.TCSANOW, new_attrs)
        except termios.error:
            pass

        if baud_constant(self._baudrate) is None:
            self._set_custom_baud()

        if self._baudrate > 0:
            self._byte_time_ns = byte_time_ns(
                self._baudrate, self._bytesize, self._parity, self._stopbits
            )

    def _set_custom_baud(self) -> None:
        if _IS_DARWIN:
            try:
                fcntl.ioctl(self._fd, _IOSSIOSPEED, struct.pack("I", self._baudrate))
            except OSError as exc:
                raise _io_error(exc.errno or 0) from exc
        elif _IS_LINUX and _TIOCSSERIAL is not None:
            buffer = bytearray(_SERIAL_STRUCT_SIZE)
            try:
                fcntl.ioctl(self._fd, _TIOCGSERIAL, buffer, True)
            except OSError as exc:
                raise _io_error(exc.errno or 0) from exc
            flags, _, _, baud_base = struct.unpack_from("iiii", buffer, 16)
            flags = (flags & ~_ASYNC_SPD_MASK) | _ASYNC_SPD_CUST
            struct.pack_into("i", buffer, 16, flags)
            struct.pack_into("i", buffer, 24, int(baud_base / self._baudrate))
            try:
                fcntl.ioctl(self._fd, _TIOCSSERIAL, buffer, True)
            except OSError as exc:
                raise _io_error(exc.errno or 0) from exc
        else:
            raise ValueError("OS does not currently support custom bauds")

    def close(self) -> None:
        """Close the device if it is open."""
        if not self._is_open:
            return
        if self._fd is not None:
            try:
                os.close(self._fd)
            except OSError as exc:
                raise _io_error(exc.errno or 0) from exc
            self._fd = None
        self._is_open = False

    # -- reading --------------------------------------------------------

    def available(self) -> int:
        """Number of bytes waiting in the input buffer."""
        if not self._is_open:
            return 0
        try:
            result = fcntl.ioctl(self._fd, _TIOCINQ, struct.pack("i", 0))
        except OSError as exc:
            raise _io_error(exc.errno or 0) from exc
        return struct.unpack("i", result)[0]

    def wait_readable(self, timeout: int) -> bool:
        """Wait up to ``timeout`` milliseconds for data; True if readable."""
        try:
            readable, _, _ = select.select([self._fd], [], [], timeout / 1000)
        except InterruptedError:
            return False
        except OSError as exc:
            raise _io_error(exc.errno or 0) from exc
        if not readable:
            return False
        if self._fd not in readable:
            raise _io_error(
                "select reports ready to read, but our fd isn't in the list, "
                "this shouldn't happen!"
            )
        return True

    def wait_byte_times(self, count: int) -> None:
        """Sleep for the time ``count`` characters take on the line."""
        time.sleep(self._byte_time_ns * count / 1e9)

    def read(self, size: int = 1) -> bytes:
        """Read up to ``size`` bytes, returning early on timeout."""
        if not self._is_open:
            raise PortNotOpenedException("Serial::read")
        timeout = self._timeout
        total = MillisecondTimer(
            timeout.read_timeout_constant + timeout.read_timeout_multiplier * size
        )

        data = bytearray()
        try:
            data += os.read(self._fd, size)
        except OSError:
            pass

        while len(data) < size:
            remaining = total.remaining()
            if remaining <= 0:
                break
            wait = min(remaining, timeout.inter_byte_timeout)
            if not self.wait_readable(wait):
                continue
            if size > 1 and timeout.inter_byte_timeout == Timeout.MAX:
                waiting = self.available()
                if waiting + len(data) < size:
                    self.wait_byte_times(size - (waiting + len(data)))
            try:
                chunk = os.read(self._fd, size - len(data))
            except OSError:
                chunk = b""
            if not chunk:
                raise SerialException(
                    "device reports readiness to read but returned no data "
                    "(device disconnected?)"
                )
            data += chunk
        return bytes(data)

    # -- writing --------------------------------------------------------

    def write(self, data: bytes) -> int:
        """Write ``data``, returning the number of bytes actually written."""
        if not self._is_open:
            raise PortNotOpenedException("Serial::write")
        payload = bytes(data)
        length = len(payload)
        timeout = self._timeout
        total = MillisecondTimer(
            timeout.write_timeout_constant + timeout.write_timeout_multiplier * length
        )

        written = 0
        first_iteration = True
        while written < length:
            remaining = total.remaining()
            # A zero timeout still gets one attempt.
            if not first_iteration and remaining <= 0:
                break
            first_iteration = False

            try:
                _, writable, _ = select.select(
                    [], [self._fd], [], max(remaining, 0) / 1000
                )
            except InterruptedError:
                continue
            except OSError as exc:
                raise _io_error(exc.errno or 0) from exc
            if not writable:
                break
            if self._fd not in writable:
                raise _io_error(
                    "select reports ready to write, but our fd isn't in the list, "
                    "this shouldn't happen!"
                )

            error_code = 0
            try:
                count = os.write(self._fd, payload[written:])
            except InterruptedError:
                continue
            except OSError as exc:
                error_code = exc.errno or 0
                count = -1
            if count < 1:
                raise SerialException(
                    "device reports readiness to write but returned no data "
                    "(device disconnected?)"
                    f" errno={error_code}"
                    f" bytes_written_now= {count}"
                    f" bytes_written={written}"
                    f" length={length}"
                )
            written += count
        return written

    # -- buffers and line control ----------------------------------------

    def _require_open(self, name: str) -> int:
        if not self._is_open or self._fd is None:
            raise PortNotOpenedException(f"Serial::{name}")
        return self._fd

    def flush(self) -> None:
        """Block until all output has been transmitted."""
        termios.tcdrain(self._require_open("flush"))

    def flush_input(self) -> None:
        """Discard unread input."""
        termios.tcflush(self._require_open("flushInput"), termios.TCIFLUSH)

    def flush_output(self) -> None:
        """Discard unsent output."""
        termios.tcflush(self._require_open("flushOutput"), termios.TCOFLUSH)

    def send_break(self, duration: int) -> None:
        """Send a break signal; see tcsendbreak(3)."""
        fd = self._require_open("sendBreak")
        termios.tcsendbreak(fd, int(duration / 4))

    def set_break(self, level: bool = True) -> None:
        """Set or clear the break condition."""
        fd = self._require_open("setBreak")
        request, name = (
            (termios.TIOCSBRK, "TIOCSBRK") if level else (termios.TIOCCBRK, "TIOCCBRK")
        )
        try:
            fcntl.ioctl(fd, request)
        except OSError as exc:
            raise _ioctl_failure(f"setBreak failed on a call to ioctl({name})", exc) from exc

    def _set_modem_line(self, label: str, bit: int, level: bool) -> None:
        fd = self._require_open(label)
        request, name = (
            (termios.TIOCMBIS, "TIOCMBIS") if level else (termios.TIOCMBIC, "TIOCMBIC")
        )
        try:
            fcntl.ioctl(fd, request, struct.pack("i", bit))
        except OSError as exc:
            raise _ioctl_failure(f"{label} failed on a call to ioctl({name})", exc) from exc

    def set_rts(self, level: bool = True) -> None:
        """Set the RTS line to ``level``."""
        self._set_modem_line("setRTS", _TIOCM_RTS, level)

    def set_dtr(self, level: bool = True) -> None:
        """Set the DTR line to ``level``."""
        self._set_modem_line("setDTR", _TIOCM_DTR, level)

    def _modem_status(self, label: str) -> int:
        fd = self._require_open(label)
        try:
            result = fcntl.ioctl(fd, termios.TIOCMGET, struct.pack("i", 0))
        except OSError as exc:
            raise _ioctl_failure(
                f"{label} failed on a call to ioctl(TIOCMGET)", exc
            ) from exc
        return struct.unpack("i", result)[0]

    def wait_for_change(self) -> bool:
        """Block until CTS, DSR, RI or CD changes."""
        fd = self._require_open("waitForChange")
        mask = _TIOCM_CD | _TIOCM_DSR | _TIOCM_RI | _TIOCM_CTS
        if _TIOCMIWAIT is not None:
            try:
                fcntl.ioctl(fd, _TIOCMIWAIT, mask)
            except OSError as exc:
                raise _ioctl_failure(
                    "waitForDSR failed on a call to ioctl(TIOCMIWAIT)", exc
                ) from exc
            return True
        while self._is_open:
            if self._modem_status("waitForChange") & mask:
                return True
            time.sleep(0.001)
        return False

    def get_cts(self) -> bool:
        """Current state of the CTS line."""
        return bool(self._modem_status("getCTS") & _TIOCM_CTS)

    def get_dsr(self) -> bool:
        """Current state of the DSR line."""
        return bool(self._modem_status("getDSR") & _TIOCM_DSR)

    def get_ri(self) -> bool:
        """Current state of the RI line."""
        return bool(self._modem_status("getRI") & _TIOCM_RI)

    def get_cd(self) -> bool:
        """Current state of the CD line."""
        return bool(self._modem_status("getCD") & _TIOCM_CD)