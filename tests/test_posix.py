import errno
import os
import termios

import pytest

from serialio.errors import IOException, PortNotOpenedException, SerialException
from serialio.posix import PosixSerial
from serialio.settings import ByteSize, Parity, Timeout


@pytest.fixture
def pty_pair():
    master, slave = os.openpty()
    name = os.ttyname(slave)
    yield master, slave, name
    for fd in (master, slave):
        try:
            os.close(fd)
        except OSError:
            pass


@pytest.fixture
def port(pty_pair):
    _, _, name = pty_pair
    serial_port = PosixSerial(name, 115200)
    serial_port.timeout = Timeout.simple_timeout(250)
    yield serial_port
    serial_port.close()


def test_read_works(pty_pair, port):
    master, _, _ = pty_pair
    os.write(master, b"abc\n")
    assert port.read(4) == b"abc\n"


def test_write_works(pty_pair, port):
    master, _, _ = pty_pair
    assert port.write(b"abc\n") == 4
    assert os.read(master, 4) == b"abc\n"


def test_timeout_works(pty_pair, port):
    master, _, _ = pty_pair
    assert port.read() == b""
    os.write(master, b"abc\n")
    assert port.read(4) == b"abc\n"


def test_partial_read(pty_pair, port):
    master, _, _ = pty_pair
    os.write(master, b"abc\n")
    assert port.read(10) == b"abc\n"
    os.write(master, b"abc\n")
    assert port.read(4) == b"abc\n"


def test_available_counts_waiting_bytes(pty_pair, port):
    master, _, _ = pty_pair
    os.write(master, b"abcd")
    assert port.wait_readable(1000) is True
    assert port.available() == 4
    assert port.read(4) == b"abcd"


def test_wait_readable_times_out(port):
    assert port.wait_readable(20) is False


def test_open_applies_raw_mode(pty_pair):
    _, slave, name = pty_pair
    serial_port = PosixSerial(name, 115200)
    try:
        assert serial_port.is_open is True
        assert serial_port.available() == 0
        attrs = termios.tcgetattr(slave)
        assert attrs[3] & termios.ICANON == 0
        assert attrs[2] & termios.CSIZE == termios.CS8
        assert attrs[6][termios.VMIN] == 0
    finally:
        serial_port.close()


def test_invalid_bytesize_rejected(pty_pair, port):
    _, slave, _ = pty_pair
    with pytest.raises(ValueError) as info:
        port.bytesize = 9
    assert "invalid char len" in str(info.value)
    assert port.is_open is True
    attrs = termios.tcgetattr(slave)
    assert attrs[2] & termios.CSIZE == termios.CS8


def test_open_twice_raises(port):
    with pytest.raises(SerialException, match="already open"):
        port.open()


def test_close_then_reopen(pty_pair):
    _, _, name = pty_pair
    serial_port = PosixSerial()
    assert serial_port.is_open is False
    serial_port.port = name
    serial_port.open()
    assert serial_port.is_open is True
    serial_port.close()
    serial_port.close()
    assert serial_port.is_open is False


def test_empty_port_open_raises():
    with pytest.raises(ValueError, match="Empty port is invalid."):
        PosixSerial().open()


def test_missing_device_raises_io_exception(tmp_path):
    with pytest.raises(IOException) as info:
        PosixSerial(str(tmp_path / "no-such-device"))
    assert info.value.error_number == errno.ENOENT


def test_closed_port_operations():
    serial_port = PosixSerial()
    assert serial_port.available() == 0
    with pytest.raises(PortNotOpenedException, match="Serial::read"):
        serial_port.read(1)
    with pytest.raises(PortNotOpenedException, match="Serial::write"):
        serial_port.write(b"x")
    with pytest.raises(PortNotOpenedException, match="Serial::flush"):
        serial_port.flush()
    with pytest.raises(PortNotOpenedException, match="Serial::getCTS"):
        serial_port.get_cts()
    with pytest.raises(PortNotOpenedException, match="Serial::setRTS"):
        serial_port.set_rts(True)


def test_timeout_setter_requires_timeout(port):
    with pytest.raises(TypeError):
        port.timeout = 5
    assert port.timeout == Timeout.simple_timeout(250)


def test_flush_input_discards_data(pty_pair, port):
    master, _, _ = pty_pair
    os.write(master, b"abc")
    assert port.wait_readable(1000) is True
    port.flush_input()
    assert port.read(3) == b""