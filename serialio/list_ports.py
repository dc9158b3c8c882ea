"""Enumerate serial ports on Linux using device nodes and sysfs."""

from __future__ import annotations

import glob
import os

from .settings import PortInfo

_SEARCH_GLOBS = (
    "/dev/ttyACM*",
    "/dev/ttyS*",
    "/dev/ttyUSB*",
    "/dev/tty.*",
    "/dev/cu.*",
    "/dev/rfcomm*",
)


def _basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def _dirname(path: str) -> str:
    pos = path.rfind("/")
    if pos == -1:
        return path
    if pos == 0:
        return "/"
    return path[:pos]


def _realpath(path: str) -> str:
    try:
        return os.path.realpath(path, strict=True)
    except OSError:
        return ""


def _read_line(path: str) -> str:
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            return handle.readline().rstrip("\n")
    except OSError:
        return ""


def usb_sysfs_friendly_name(sys_usb_path: str) -> str:
    """Manufacturer, product and serial of a USB device, or "" if none are known."""
    manufacturer = _read_line(sys_usb_path + "/manufacturer")
    product = _read_line(sys_usb_path + "/product")
    serial = _read_line(sys_usb_path + "/serial")
    if not (manufacturer or product or serial):
        return ""
    return f"{manufacturer} {product} {serial}"


def usb_sysfs_hw_string(sysfs_path: str) -> str:
    """Hardware id string of a USB device: vendor, product and serial number."""
    serial_number = _read_line(sysfs_path + "/serial")
    if serial_number:
        serial_number = f"SNR={serial_number}"
    vid = _read_line(sysfs_path + "/idVendor")
    pid = _read_line(sysfs_path + "/idProduct")
    return f"USB VID:PID={vid}:{pid} {serial_number}"


def get_sysfs_info(device_path: str) -> tuple[str, str]:
    """Friendly name and hardware id for a device node, with fallbacks."""
    device_name = _basename(device_path)
    friendly_name = ""
    hardware_id = ""
    sys_device_path = f"/sys/class/tty/{device_name}/device"

    if device_name.startswith("ttyUSB"):
        sys_device_path = _dirname(_dirname(_realpath(sys_device_path)))
        if sys_device_path and os.path.exists(sys_device_path):
            friendly_name = usb_sysfs_friendly_name(sys_device_path)
            hardware_id = usb_sysfs_hw_string(sys_device_path)
    elif device_name.startswith("ttyACM"):
        sys_device_path = _dirname(_realpath(sys_device_path))
        if sys_device_path and os.path.exists(sys_device_path):
            friendly_name = usb_sysfs_friendly_name(sys_device_path)
            hardware_id = usb_sysfs_hw_string(sys_device_path)
    else:
        sys_id_path = sys_device_path + "/id"
        if os.path.exists(sys_id_path):
            hardware_id = _read_line(sys_id_path)

    return friendly_name or device_name, hardware_id or "n/a"


def list_ports() -> list[PortInfo]:
    """All serial ports found on the system, grouped by device pattern."""
    results = []
    for pattern in _SEARCH_GLOBS:
        for device in sorted(glob.glob(pattern)):
            description, hardware_id = get_sysfs_info(device)
            results.append(PortInfo(device, description, hardware_id))
    return results