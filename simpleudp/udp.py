"""A small IPv4 UDP socket wrapper with a plain address type."""

from __future__ import annotations

import errno
import logging
import select
import socket
import struct
import sys
from dataclasses import dataclass
from typing import Optional, Tuple, Union

try:
    import fcntl
    import termios
except ImportError:  # not available on Windows
    fcntl = None
    termios = None

logger = logging.getLogger(__name__)

_IS_LINUX = sys.platform.startswith("linux")
_SO_RCVBUFFORCE = getattr(socket, "SO_RCVBUFFORCE", 33)
_SO_SNDBUFFORCE = getattr(socket, "SO_SNDBUFFORCE", 32)
_MAX_DATAGRAM = 65536


class UdpError(OSError):
    """Raised when a UDP socket operation or address parse fails."""


def _os_error(exc: OSError, message: str) -> UdpError:
    detail = exc.strerror or str(exc)
    return UdpError(exc.errno or 0, f"{message} ({detail})")


@dataclass(frozen=True)
class IpAddress:
    """An IPv4 address and port; ``addr`` holds the address as an integer."""

    addr: int = 0
    port: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.addr <= 0xFFFFFFFF:
            raise ValueError(f"IPv4 address out of range: {self.addr}")
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port out of range: {self.port}")

    @classmethod
    def parse(cls, addr_string: Optional[str], port: int) -> "IpAddress":
        """Build an address from dotted text; empty text means any interface."""
        if not addr_string:
            return cls(0, port)
        try:
            packed = socket.inet_pton(socket.AF_INET, addr_string)
        except (OSError, ValueError) as exc:
            raise UdpError(
                errno.EINVAL, f"failed to parse address: {addr_string}"
            ) from exc
        return cls(int.from_bytes(packed, "big"), port)

    @property
    def parts(self) -> Tuple[int, int, int, int]:
        """The four address octets in dotted order."""
        a, b, c, d = self.addr.to_bytes(4, "big")
        return (a, b, c, d)

    @property
    def host(self) -> str:
        """The address in dotted text form."""
        return ".".join(str(part) for part in self.parts)

    def is_valid(self) -> bool:
        """True when at least the port is set."""
        return self.port != 0

    def __bool__(self) -> bool:
        return self.port != 0

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"

    def as_tuple(self) -> Tuple[str, int]:
        """The ``(host, port)`` pair used by the socket module."""
        return (self.host, self.port)

    @classmethod
    def from_tuple(cls, pair: Tuple[str, int]) -> "IpAddress":
        """Build an address from a ``(host, port)`` pair."""
        host, port = pair[0], pair[1]
        return cls.parse(host, port)


class UdpSocket:
    """A minimal IPv4 UDP socket."""

    def __init__(self) -> None:
        self._sock: Optional[socket.socket] = None
        self._addr = IpAddress()
        self._blocking = False

    def is_valid(self) -> bool:
        """True when the socket handle is open."""
        return self._sock is not None

    def __bool__(self) -> bool:
        return self._sock is not None

    def address(self) -> IpAddress:
        """The local address this socket is bound to."""
        return self._addr

    def _require(self) -> socket.socket:
        if self._sock is None:
            raise UdpError(errno.EBADF, "socket is not open")
        return self._sock

    def create(self, local: Union[int, IpAddress], blocking: bool = False) -> None:
        """Open the socket if needed and bind it to ``local``.

        ``local`` is either a port (bound on all interfaces) or an address.
        The handle is reused when already open. On bind failure the socket
        is closed and :class:`UdpError` is raised.
        """
        local_addr = local if isinstance(local, IpAddress) else IpAddress(0, local)

        if self._sock is None:
            try:
                self._sock = socket.socket(
                    socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP
                )
            except OSError as exc:
                raise _os_error(exc, "socket creation failed") from exc
            try:
                self.set_opt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            except UdpError as exc:
                logger.warning("set SO_REUSEADDR failed: %s", exc)
            try:
                self.set_blocking(blocking)
            except UdpError as exc:
                logger.warning("%s", exc)

        sock = self._sock
        try:
            sock.bind(local_addr.as_tuple())
        except OSError as exc:
            self.close()
            raise _os_error(exc, f"bind failed to {local_addr}") from exc

        if local_addr.port == 0:
            local_addr = IpAddress(local_addr.addr, sock.getsockname()[1])
        self._addr = local_addr

    def close(self) -> None:
        """Close the socket; safe to call more than once."""
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # unconnected datagram sockets may refuse shutdown
        sock.close()

    def available(self) -> int:
        """Number of bytes that can be read without blocking."""
        sock = self._require()
        if fcntl is not None and termios is not None:
            try:
                raw = fcntl.ioctl(sock.fileno(), termios.FIONREAD, b"\0\0\0\0")
            except OSError as exc:
                raise _os_error(exc, "ioctl FIONREAD failed") from exc
            return struct.unpack("i", raw)[0]
        if not self.poll_read(0):
            return 0
        try:
            return len(sock.recv(_MAX_DATAGRAM, socket.MSG_PEEK))
        except OSError as exc:
            raise _os_error(exc, "peek for available bytes failed") from exc

    def set_blocking(self, is_blocking: bool) -> None:
        """Switch the socket between blocking and non-blocking mode."""
        sock = self._require()
        try:
            sock.setblocking(is_blocking)
        except OSError as exc:
            mode = "" if is_blocking else "non-"
            raise _os_error(exc, f"failed to set socket to {mode}blocking") from exc
        self._blocking = is_blocking

    def is_blocking(self) -> bool:
        """True when the socket is in blocking mode."""
        return self._blocking

    def set_buf_size(self, rcv_buf: bool, buf_size: int) -> None:
        """Set the receive (``rcv_buf``) or send buffer size in bytes.

        On Linux the kernel doubles the value, so half is requested to keep
        the effective size consistent across platforms; the privileged
        ``*BUFFORCE`` option is tried when the plain one is refused.
        """
        option = socket.SO_RCVBUF if rcv_buf else socket.SO_SNDBUF
        if _IS_LINUX:
            size = int(buf_size / 2)
            force = _SO_RCVBUFFORCE if rcv_buf else _SO_SNDBUFFORCE
        else:
            size = int(buf_size)
            force = None
        try:
            self.set_opt(socket.SOL_SOCKET, option, size)
        except UdpError:
            if force is None:
                raise
            self.set_opt(socket.SOL_SOCKET, force, size)

    def get_buf_size(self, rcv_buf: bool) -> int:
        """The current receive or send buffer size as reported by the OS."""
        option = socket.SO_RCVBUF if rcv_buf else socket.SO_SNDBUF
        return self.get_opt(socket.SOL_SOCKET, option)

    def sendto(self, data: bytes, to: IpAddress) -> int:
        """Send ``data`` to ``to``; returns the number of bytes sent."""
        sock = self._require()
        try:
            return sock.sendto(data, to.as_tuple())
        except OSError as exc:
            raise _os_error(exc, f"sendto {to} failed") from exc

    def recvfrom(self, maxsize: int) -> Tuple[bytes, IpAddress]:
        """Receive up to ``maxsize`` bytes; returns the data and the sender."""
        sock = self._require()
        try:
            data, pair = sock.recvfrom(maxsize)
        except OSError as exc:
            raise _os_error(exc, "recvfrom failed") from exc
        return data, IpAddress.from_tuple(pair)

    def poll_read(self, timeout_ms: int) -> bool:
        """Wait up to ``timeout_ms`` (negative: forever) for readable data."""
        if self._sock is None:
            return False
        timeout = None if timeout_ms < 0 else timeout_ms / 1000.0
        try:
            readable, _, _ = select.select([self._sock], [], [], timeout)
        except (OSError, ValueError) as exc:
            code = getattr(exc, "errno", None) or errno.EBADF
            raise UdpError(code, f"poll failed ({exc})") from exc
        return bool(readable)

    def set_opt(self, level: int, option: int, value: int) -> None:
        """Set an integer socket option."""
        sock = self._require()
        try:
            sock.setsockopt(level, option, value)
        except OSError as exc:
            raise _os_error(exc, f"setsockopt {option}:{value} failed") from exc

    def get_opt(self, level: int, option: int) -> int:
        """Read an integer socket option."""
        sock = self._require()
        try:
            return sock.getsockopt(level, option)
        except OSError as exc:
            raise _os_error(exc, f"getsockopt {option} failed") from exc

    def __enter__(self) -> "UdpSocket":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()