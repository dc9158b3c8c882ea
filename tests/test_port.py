import os
import time

import pytest

from serialio.errors import PortNotOpenedException, SerialException
from serialio.port import Serial
from serialio.settings import Parity, Timeout


@pytest.fixture
def pair():
    master, slave = os.openpty()
    name = os.ttyname(slave)
    port = Serial(name, 115200, Timeout.simple_timeout(250))
    yield master, port, name
    port.close()
    os.close(master)
    os.close(slave)


def test_read_works(pair):
    master, port, _ = pair
    os.write(master, b"abc\n")
    assert port.read(4) == b"abc\n"


def test_write_works(pair):
    master, port, _ = pair
    assert port.write("abc\n") == 4
    assert os.read(master, 4) == b"abc\n"


def test_timeout_works(pair):
    master, port, _ = pair
    assert port.read() == b""
    os.write(master, b"abc\n")
    assert port.read(4) == b"abc\n"


def test_partial_read(pair):
    master, port, _ = pair
    os.write(master, b"abc\n")
    assert port.read(10) == b"abc\n"
    os.write(master, b"abc\n")
    assert port.read(4) == b"abc\n"


def test_readline_splits_on_newline(pair):
    master, port, _ = pair
    os.write(master, b"one\ntwo\n")
    assert port.readline() == b"one\n"
    assert port.readline() == b"two\n"


def test_readline_respects_size(pair):
    master, port, _ = pair
    os.write(master, b"abcdef")
    assert port.readline(size=3) == b"abc"


def test_readline_custom_eol(pair):
    master, port, _ = pair
    os.write(master, b"x\r\ny")
    assert port.readline(eol="\r\n") == b"x\r\n"


def test_readlines_collects_until_timeout(pair):
    master, port, _ = pair
    os.write(master, b"a\nb\nc")
    assert port.readlines() == [b"a\n", b"b\n", b"c"]


def test_available_counts_pending_bytes(pair):
    master, port, _ = pair
    os.write(master, b"abc")
    assert port.wait_readable() is True
    time.sleep(0.05)
    assert port.available() == 3


def test_wait_readable_times_out(pair):
    _, port, _ = pair
    assert port.wait_readable() is False


def test_set_timeout_from_fields(pair):
    _, port, _ = pair
    port.set_timeout(Timeout.MAX, 250, 0, 250, 0)
    assert port.timeout == Timeout.simple_timeout(250)


def test_set_timeout_rejects_wrong_arguments(pair):
    _, port, _ = pair
    with pytest.raises(TypeError):
        port.set_timeout(1, 2)


def test_setting_port_reopens(pair):
    master, port, name = pair
    port.port = name
    assert port.is_open is True
    os.write(master, b"z")
    assert port.read(1) == b"z"


def test_settings_round_trip(pair):
    _, port, _ = pair
    port.baudrate = 57600
    port.parity = Parity.EVEN
    assert port.baudrate == 57600
    assert port.parity == Parity.EVEN


def test_open_twice_raises(pair):
    _, port, _ = pair
    with pytest.raises(SerialException):
        port.open()


def test_context_manager_closes(pair):
    _, port, _ = pair
    with port as entered:
        assert entered.is_open is True
    assert port.is_open is False


def test_unopened_port_reports_closed():
    port = Serial()
    assert port.is_open is False
    assert port.available() == 0
    with pytest.raises(PortNotOpenedException):
        port.read(1)
    with pytest.raises(PortNotOpenedException):
        port.write(b"x")


def test_open_without_port_raises():
    with pytest.raises(ValueError):
        Serial().open()