"""Command-line loopback exercise for a serial port."""

from __future__ import annotations

import re
import sys

from .list_ports import list_ports
from .port import Serial
from .settings import Timeout

_USAGE = (
    "Usage: test_serial {-e|<serial port address>} <baudrate> [test string]"
)


def enumerate_ports() -> None:
    """Print every serial port found on the system."""
    for device in list_ports():
        print(f"({device.port}, {device.description}, {device.hardware_id})")


def _print_usage() -> None:
    print(_USAGE, file=sys.stderr)


def _parse_baud(text: str) -> int:
    match = re.match(r"\s*\+?(\d+)", text)
    return int(match.group(1)) if match else 0


def _exercise(port: Serial, text: str, read_size: int) -> None:
    for count in range(10):
        written = port.write(text)
        result = port.read(read_size)
        print(
            f"Iteration: {count}, Bytes written: {written}, "
            f"Bytes read: {len(result)}, "
            f"String read: {result.decode('utf-8', errors='replace')}"
        )


def run(argv: list[str]) -> int:
    """Run the exercise with ``argv`` (without the program name)."""
    if not argv:
        _print_usage()
        return 0

    port_name = argv[0]
    if port_name == "-e":
        enumerate_ports()
        return 0
    if len(argv) < 2:
        _print_usage()
        return 1

    baud = _parse_baud(argv[1])
    port = Serial(port_name, baud, Timeout.simple_timeout(1000))
    with port:
        print("Is the serial port open?" + (" Yes." if port.is_open else " No."))
        text = argv[2] if len(argv) == 3 else "Testing."
        length = len(text.encode("utf-8"))

        print("Timeout == 1000ms, asking for 1 more byte than written.")
        _exercise(port, text, length + 1)

        port.set_timeout(Timeout.MAX, 250, 0, 250, 0)
        print("Timeout == 250ms, asking for 1 more byte than written.")
        _exercise(port, text, length + 1)

        print("Timeout == 250ms, asking for exactly what was written.")
        _exercise(port, text, length)

        print("Timeout == 250ms, asking for 1 less than was written.")
        _exercise(port, text, max(length - 1, 0))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point: run and report any unhandled error."""
    if argv is None:
        argv = sys.argv[1:]
    try:
        return run(argv)
    except Exception as exc:
        print(f"Unhandled Exception: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())