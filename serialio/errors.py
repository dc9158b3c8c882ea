"""Exceptions raised by serial port operations."""

from __future__ import annotations

import os


class SerialException(Exception):
    """A serial port operation failed."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(f"SerialException {description} failed.")


class IOException(Exception):
    """An input/output error, either from an errno value or a description."""

    def __init__(self, file: str, line: int, error: int | str) -> None:
        self.file = file
        self.line = line
        if isinstance(error, int):
            self.error_number = error
            message = f"IO Exception ({error}): {os.strerror(error)}"
        else:
            self.error_number = 0
            message = f"IO Exception: {error}"
        super().__init__(f"{message}, file {file}, line {line}.")


class PortNotOpenedException(Exception):
    """An operation needed an open port but the port was closed."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(f"PortNotOpenedException {description} failed.")