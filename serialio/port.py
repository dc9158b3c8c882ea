"""High-level serial port with locking, line reading and timeouts."""

from __future__ import annotations

from .posix import PosixSerial
from .settings import ByteSize, FlowControl, Parity, StopBits, Timeout

DEFAULT_MAX_LINE = 65536


def _as_bytes(data: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


class Serial:
    """A serial port that opens on construction when a port is given."""

    def __init__(
        self,
        port: str = "",
        baudrate: int = 9600,
        timeout: Timeout | None = None,
        bytesize: int = ByteSize.EIGHT,
        parity: int = Parity.NONE,
        stopbits: int = StopBits.ONE,
        flowcontrol: int = FlowControl.NONE,
    ) -> None:
        self._impl = PosixSerial(port, baudrate, bytesize, parity, stopbits, flowcontrol)
        self._impl.timeout = timeout if timeout is not None else Timeout()

    # -- lifecycle ------------------------------------------------------

    def open(self) -> None:
        """Open the port; it must be set and not already open."""
        self._impl.open()

    def close(self) -> None:
        """Close the port."""
        self._impl.close()

    def __enter__(self) -> "Serial":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._impl.is_open

    # -- settings -------------------------------------------------------

    @property
    def port(self) -> str:
        return self._impl.port

    @port.setter
    def port(self, value: str) -> None:
        with self._impl.read_lock, self._impl.write_lock:
            was_open = self._impl.is_open
            if was_open:
                self._impl.close()
            self._impl.port = value
            if was_open:
                self._impl.open()

    @property
    def timeout(self) -> Timeout:
        return self._impl.timeout

    @timeout.setter
    def timeout(self, value: Timeout) -> None:
        self._impl.timeout = value

    def set_timeout(self, *args) -> None:
        """Set the timeout from a Timeout or from its five millisecond fields."""
        if len(args) == 1 and isinstance(args[0], Timeout):
            self._impl.timeout = args[0]
        elif len(args) == 5:
            self._impl.timeout = Timeout(*args)
        else:
            raise TypeError("set_timeout takes a Timeout or five integers")

    @property
    def baudrate(self) -> int:
        return self._impl.baudrate

    @baudrate.setter
    def baudrate(self, value: int) -> None:
        self._impl.baudrate = value

    @property
    def bytesize(self) -> int:
        return self._impl.bytesize

    @bytesize.setter
    def bytesize(self, value: int) -> None:
        self._impl.bytesize = value

    @property
    def parity(self) -> int:
        return self._impl.parity

    @parity.setter
    def parity(self, value: int) -> None:
        self._impl.parity = value

    @property
    def stopbits(self) -> int:
        return self._impl.stopbits

    @stopbits.setter
    def stopbits(self, value: int) -> None:
        self._impl.stopbits = value

    @property
    def flowcontrol(self) -> int:
        return self._impl.flowcontrol

    @flowcontrol.setter
    def flowcontrol(self, value: int) -> None:
        self._impl.flowcontrol = value

    # -- reading --------------------------------------------------------

    def available(self) -> int:
        """Number of bytes waiting to be read."""
        return self._impl.available()

    def wait_readable(self) -> bool:
        """Wait up to the constant read timeout for data to arrive."""
        return self._impl.wait_readable(self._impl.timeout.read_timeout_constant)

    def wait_byte_times(self, count: int) -> None:
        """Sleep for the transmission time of ``count`` characters."""
        self._impl.wait_byte_times(count)

    def read(self, size: int = 1) -> bytes:
        """Read up to ``size`` bytes; fewer are returned on timeout."""
        with self._impl.read_lock:
            return self._impl.read(size)

    def readline(
        self, size: int = DEFAULT_MAX_LINE, eol: bytes | str = b"\n"
    ) -> bytes:
        """Read until ``eol``, ``size`` bytes, or a timeout."""
        marker = _as_bytes(eol)
        line = bytearray()
        with self._impl.read_lock:
            while True:
                chunk = self._impl.read(1)
                if not chunk:
                    break
                line += chunk
                if len(line) >= len(marker) and line.endswith(marker):
                    break
                if len(line) >= size:
                    break
        return bytes(line)

    def readlines(
        self, size: int = DEFAULT_MAX_LINE, eol: bytes | str = b"\n"
    ) -> list[bytes]:
        """Read lines until a timeout or ``size`` bytes in total."""
        marker = _as_bytes(eol)
        lines: list[bytes] = []
        current = bytearray()
        total = 0
        with self._impl.read_lock:
            while total < size:
                chunk = self._impl.read(1)
                if not chunk:
                    break
                total += len(chunk)
                current += chunk
                if len(current) >= len(marker) and current.endswith(marker):
                    lines.append(bytes(current))
                    current.clear()
        if current:
            lines.append(bytes(current))
        return lines

    # -- writing --------------------------------------------------------

    def write(self, data: bytes | bytearray | memoryview | str) -> int:
        """Write ``data``; text is encoded as UTF-8. Returns bytes written."""
        payload = _as_bytes(data)
        with self._impl.write_lock:
            return self._impl.write(payload)

    # -- buffers and line control ----------------------------------------

    def flush(self) -> None:
        """Wait until all output has been sent."""
        with self._impl.read_lock, self._impl.write_lock:
            self._impl.flush()

    def flush_input(self) -> None:
        """Discard unread input."""
        with self._impl.read_lock:
            self._impl.flush_input()

    def flush_output(self) -> None:
        """Discard unsent output."""
        with self._impl.write_lock:
            self._impl.flush_output()

    def send_break(self, duration: int) -> None:
        """Send an RS-232 break signal."""
        self._impl.send_break(duration)

    def set_break(self, level: bool = True) -> None:
        """Set the break condition."""
        self._impl.set_break(level)

    def set_rts(self, level: bool = True) -> None:
        """Set the RTS line."""
        self._impl.set_rts(level)

    def set_dtr(self, level: bool = True) -> None:
        """Set the DTR line."""
        self._impl.set_dtr(level)

    def wait_for_change(self) -> bool:
        """Block until CTS, DSR, RI or CD changes."""
        return self._impl.wait_for_change()

    def get_cts(self) -> bool:
        return self._impl.get_cts()

    def get_dsr(self) -> bool:
        return self._impl.get_dsr()

    def get_ri(self) -> bool:
        return self._impl.get_ri()

    def get_cd(self) -> bool:
        return self._impl.get_cd()