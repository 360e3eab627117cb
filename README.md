# simpleudp

simpleudp is a small wrapper around IPv4 UDP sockets. It covers binding, blocking mode,
buffer sizes, polling and raw integer socket options. When an operation fails, it raises
`UdpError`, which is a subclass of `OSError`. The package also ships an echo server and
client demo.

It has no dependencies outside the standard library.

## Installation

```
pip install simpleudp
```

## Addresses

`simpleudp.udp.IpAddress` is a frozen dataclass with two fields:

- `addr`: the IPv4 address as an integer.
- `port`: the port number.

Values outside the valid range raise `ValueError`.

```python
from simpleudp.udp import IpAddress

server = IpAddress.parse("127.0.0.1", 12345)
print(server)                          # 127.0.0.1:12345
server.host                            # "127.0.0.1"
server.parts                           # (127, 0, 0, 1)
server.as_tuple()                      # ("127.0.0.1", 12345)
IpAddress.from_tuple(("10.0.0.1", 80))
```

`IpAddress.parse` follows these rules:

- An empty or `None` address string means any interface (`0.0.0.0`).
- Text that cannot be parsed raises `UdpError`.

An address is truthy, and `is_valid()` returns true, when its port is non-zero.

## Sockets

```python
from simpleudp.udp import IpAddress, UdpSocket

with UdpSocket() as sock:
    sock.create(12346, blocking=True)          # bind to 0.0.0.0:12346
    sock.sendto(b"hello", IpAddress.parse("127.0.0.1", 12345))
    if sock.poll_read(15):
        while sock.available() > 0:
            data, sender = sock.recvfrom(1024)
            print(sender, data)
```

The socket methods work as follows.

**`create(local, blocking=False)`**
- `local` is either a port number or an `IpAddress`.
- The socket is opened if needed, `SO_REUSEADDR` is set, and then the socket is bound.
- If the bind fails, the socket is closed and `UdpError` is raised.
- If you bind to port 0, the port the OS chose can be read from `address()`.

**`sendto(data, to)`** returns the number of bytes sent.

**`recvfrom(maxsize)`** returns `(data, sender)`.

**`poll_read(timeout_ms)`**
- Waits for readable data.
- A negative timeout waits forever.
- Returns `False` on a closed socket.

**`available()`** returns the number of bytes that can be read without blocking.

**`set_blocking(is_blocking)` / `is_blocking()`** switch and report the blocking mode.

**`set_buf_size(rcv_buf, buf_size)` / `get_buf_size(rcv_buf)`**
- Set and read the receive buffer (`rcv_buf=True`) or the send buffer.
- On Linux, half the requested size is passed to the kernel, because the kernel doubles it.
- If the plain option is refused, the `*BUFFORCE` option is tried.

**`set_opt(level, option, value)` / `get_opt(level, option)`** set and read raw integer socket options.

**`close()`** is safe to call more than once. A `with` block closes the socket on exit.

**`is_valid()` and truthiness** tell whether the socket handle is open.

## Echo demo

```
simpleudp-echo
```

This command runs an echo server on port 12345 in a background thread and a client on
port 12346:

- The client sends a timestamped greeting once per interval.
- The server sends every datagram back to its sender with `Echo: ` in front.
- The client stops after the set duration, and the server then stops too.
- Ctrl+C or SIGTERM stops both early.
- If either side fails, the error is printed and the command exits with status 1.

Options:

- `--server-port` (default 12345)
- `--client-port` (default 12346)
- `--duration`: seconds the client runs (default 10)
- `--interval`: seconds between messages (default 1)

The pieces can also be used on their own from `simpleudp.echo`:

- `echo_server(server_port, running)` runs until the `threading.Event` `running` is cleared.
- `client_runner(client_port, server_address, running, run_for=10.0, message_interval=1.0)` returns the reply payloads it received.
- `format_time(moment)` formats a datetime or POSIX timestamp as local `YYYY-MM-DD HH:MM:SS`.

## Limitations

Only IPv4 is supported. The package has no IPv6, multicast or broadcast helpers, and it
has no TCP support.