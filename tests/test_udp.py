import socket

import pytest

from simpleudp.udp import IpAddress, UdpError, UdpSocket

LOOPBACK = "127.0.0.1"


@pytest.fixture
def pair():
    a = UdpSocket()
    b = UdpSocket()
    a.create(IpAddress.parse(LOOPBACK, 0), blocking=True)
    b.create(IpAddress.parse(LOOPBACK, 0), blocking=True)
    yield a, b
    a.close()
    b.close()


def test_address_to_string():
    assert str(IpAddress.parse("127.0.0.1", 12345)) == "127.0.0.1:12345"


def test_empty_address_is_any():
    addr = IpAddress.parse("", 5600)
    assert addr.addr == 0
    assert addr.host == "0.0.0.0"
    assert addr.port == 5600


def test_none_address_is_any():
    assert IpAddress.parse(None, 80).addr == 0


def test_invalid_address_raises():
    with pytest.raises(UdpError):
        IpAddress.parse("not.an.address", 80)


def test_port_out_of_range():
    with pytest.raises(ValueError):
        IpAddress(0, 70000)


def test_validity_depends_on_port():
    assert IpAddress().is_valid() is False
    assert bool(IpAddress()) is False
    assert IpAddress(port=1).is_valid() is True
    assert bool(IpAddress(port=1)) is True


def test_tuple_round_trip():
    addr = IpAddress.parse("10.1.2.3", 4000)
    assert addr.as_tuple() == ("10.1.2.3", 4000)
    assert IpAddress.from_tuple(addr.as_tuple()) == addr


def test_parts_order():
    addr = IpAddress.parse("10.1.2.3", 1)
    assert addr.parts == (10, 1, 2, 3)


def test_new_socket_not_valid():
    sock = UdpSocket()
    assert sock.is_valid() is False
    assert bool(sock) is False
    assert sock.poll_read(0) is False


def test_operations_on_closed_socket_raise():
    sock = UdpSocket()
    with pytest.raises(UdpError):
        sock.available()
    with pytest.raises(UdpError):
        sock.sendto(b"x", IpAddress.parse(LOOPBACK, 9))
    with pytest.raises(UdpError):
        sock.get_opt(socket.SOL_SOCKET, socket.SO_REUSEADDR)


def test_create_with_port_binds_any():
    with UdpSocket() as sock:
        sock.create(0)
        assert sock.is_valid() is True
        assert sock.address().addr == 0
        assert sock.address().port > 0


def test_create_sets_blocking_mode():
    with UdpSocket() as sock:
        sock.create(IpAddress.parse(LOOPBACK, 0), blocking=True)
        assert sock.is_blocking() is True
        sock.set_blocking(False)
        assert sock.is_blocking() is False


def test_create_default_is_nonblocking():
    with UdpSocket() as sock:
        sock.create(IpAddress.parse(LOOPBACK, 0))
        assert sock.is_blocking() is False


def test_reuseaddr_enabled():
    with UdpSocket() as sock:
        sock.create(IpAddress.parse(LOOPBACK, 0))
        assert sock.get_opt(socket.SOL_SOCKET, socket.SO_REUSEADDR) > 0


def test_bind_failure_closes_socket():
    sock = UdpSocket()
    with pytest.raises(UdpError):
        sock.create(IpAddress.parse("203.0.113.1", 0))
    assert sock.is_valid() is False


def test_context_manager_closes():
    with UdpSocket() as sock:
        sock.create(IpAddress.parse(LOOPBACK, 0))
        assert sock.is_valid() is True
    assert sock.is_valid() is False


def test_close_twice_is_safe():
    sock = UdpSocket()
    sock.create(IpAddress.parse(LOOPBACK, 0))
    sock.close()
    sock.close()
    assert sock.is_valid() is False


def test_send_and_receive(pair):
    a, b = pair
    message = b"hello there"
    assert a.sendto(message, b.address()) == len(message)
    assert b.poll_read(2000) is True
    assert b.available() >= len(message)
    data, sender = b.recvfrom(1024)
    assert data == message
    assert sender == a.address()


def test_echo_back(pair):
    a, b = pair
    a.sendto(b"ping", b.address())
    assert b.poll_read(2000) is True
    data, sender = b.recvfrom(1024)
    b.sendto(b"Echo: " + data, sender)
    assert a.poll_read(2000) is True
    reply, origin = a.recvfrom(1024)
    assert reply == b"Echo: ping"
    assert origin == b.address()


def test_poll_times_out_without_data(pair):
    a, _ = pair
    assert a.poll_read(10) is False
    assert a.available() == 0


def test_nonblocking_recv_without_data_raises():
    with UdpSocket() as sock:
        sock.create(IpAddress.parse(LOOPBACK, 0), blocking=False)
        with pytest.raises(UdpError):
            sock.recvfrom(64)


def test_buffer_size_roundtrip(pair):
    a, _ = pair
    a.set_buf_size(True, 65536)
    assert a.get_buf_size(True) >= 65536 // 2
    a.set_buf_size(False, 65536)
    assert a.get_buf_size(False) >= 65536 // 2


def test_set_opt_then_get_opt(pair):
    a, _ = pair
    a.set_opt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
    assert a.get_opt(socket.SOL_SOCKET, socket.SO_BROADCAST) > 0
    a.set_opt(socket.SOL_SOCKET, socket.SO_BROADCAST, 0)
    assert a.get_opt(socket.SOL_SOCKET, socket.SO_BROADCAST) == 0