"""Serial port access on POSIX systems: timed I/O, line reading, modem lines and port discovery."""

__version__ = "1.0.0"
__all__ = ["errors", "settings", "timer", "termios_config", "list_ports", "posix", "port", "cli"]