# serialio

Serial port access for POSIX systems through termios, select and ioctl. It
provides:

- timed reads and writes
- line-oriented reading
- control of the modem lines (RTS, DTR, break) and reading of their state
  (CTS, DSR, RI, CD)
- discovery of the serial ports on the machine

Only the standard library is needed.

## Installation

```
pip install .
```

## Usage

```python
from serialio.port import Serial
from serialio.settings import Timeout

with Serial("/dev/ttyUSB0", 115200, Timeout.simple_timeout(1000)) as port:
    port.write(b"Testing.")
    reply = port.read(8)        # returns sooner if the timeout runs out
    line = port.readline()      # bytes up to and including b"\n"
    lines = port.readlines()    # list of lines, read until a timeout
```

Giving a port name to `Serial` opens the port straight away. If no name is
given, the port stays closed: set `port` and then call `open()`. Leaving a
`with` block closes the port.

`write` accepts bytes, or text that it encodes as UTF-8. It returns the
number of bytes written. `readline` and `readlines` take a maximum size,
65536 bytes by default, and an end-of-line marker, `b"\n"` by default.

### Timeouts

All timeouts are in milliseconds and are held in `serialio.settings.Timeout`,
which has these fields:

- `inter_byte_timeout`
- `read_timeout_constant`
- `read_timeout_multiplier`
- `write_timeout_constant`
- `write_timeout_multiplier`

A read waits at most the constant plus the multiplier times the number of
bytes requested. It also waits no longer than the inter-byte timeout for
each chunk. `Timeout.MAX` as the inter-byte timeout turns that limit off.
`Timeout.simple_timeout(ms)` uses one limit for reads and one for writes.
To change the timeout, either assign to the `timeout` property or call
`set_timeout`. `set_timeout` takes a `Timeout` or its five fields.

### Line settings

`baudrate`, `bytesize`, `parity`, `stopbits` and `flowcontrol` are
properties of `Serial`. Setting one of them on an open port reconfigures the
port at once. Setting `port` on an open port closes the port and opens it
again under the new name. The values come from these enums in
`serialio.settings`:

- `ByteSize`
- `Parity`
- `StopBits`
- `FlowControl`

Other methods:

- `available()`
- `wait_readable()`
- `wait_byte_times(count)`
- `flush()`, `flush_input()` and `flush_output()`
- `send_break(duration)` and `set_break(level)`
- `set_rts(level)` and `set_dtr(level)`
- `wait_for_change()`
- `get_cts()`, `get_dsr()`, `get_ri()` and `get_cd()`

Failures raise the exceptions in `serialio.errors`:

- `SerialException`
- `IOException`
- `PortNotOpenedException`: an operation needed an open port but the port
  was closed

An empty port name, or a setting the system cannot apply, raises
`ValueError`.

### Listing ports

```python
from serialio.list_ports import list_ports

for info in list_ports():
    print(info.port, info.description, info.hardware_id)
```

`list_ports` looks for ports that match the following patterns:

- `/dev/ttyACM*`
- `/dev/ttyS*`
- `/dev/ttyUSB*`
- `/dev/tty.*`
- `/dev/cu.*`
- `/dev/rfcomm*`

It fills in descriptions and USB vendor and product ids from Linux sysfs.
Where sysfs has nothing for a device, the description is the device name and
the hardware id is `"n/a"`.

## Command line

List the serial ports on the machine:

```
serialio -e
```

To run a loopback test, connect the port's TX to its RX, or use a device
that echoes back what it receives:

```
serialio /dev/ttyUSB0 115200 "Testing."
```

The test has four rounds, and each round writes the string ten times and
reads it back:

1. under a 1000 ms timeout, asking for one byte more than was written
2. under a 250 ms timeout, asking for one byte more than was written
3. under a 250 ms timeout, asking for exactly what was written
4. under a 250 ms timeout, asking for one byte less than was written

For every write it prints the bytes written, the bytes read and the text
read. If no test string is given, it uses `Testing.`.

## Limitations

- Only POSIX systems are supported. There is no Windows support.
- Port discovery reads device details from Linux sysfs only. On other
  systems the ports are still found by name, but each one has its device
  name as the description and `"n/a"` as the hardware id.
- Mark and space parity need a platform that supports them.