from serialio.cli import _parse_baud, main, run
from serialio.list_ports import list_ports

USAGE = "Usage: test_serial {-e|<serial port address>} <baudrate> [test string]"


def test_no_arguments_prints_usage(capsys):
    assert run([]) == 0
    assert USAGE in capsys.readouterr().err


def test_missing_baudrate_is_an_error(capsys):
    assert run(["/dev/ttyS0"]) == 1
    assert USAGE in capsys.readouterr().err


def test_enumerate_prints_one_line_per_port(capsys):
    assert run(["-e"]) == 0
    lines = [line for line in capsys.readouterr().out.splitlines() if line]
    assert len(lines) == len(list_ports())
    for line, info in zip(lines, list_ports()):
        assert line == f"({info.port}, {info.description}, {info.hardware_id})"


def test_main_reports_unhandled_exception(capsys):
    assert main(["/nonexistent/serial/port", "9600"]) == 1
    assert "Unhandled Exception: IO Exception" in capsys.readouterr().err


def test_parse_baud_reads_leading_digits():
    assert _parse_baud("115200") == 115200
    assert _parse_baud("9600baud") == 9600
    assert _parse_baud("fast") == 0