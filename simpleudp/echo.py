"""UDP echo server and client pair built on :mod:`simpleudp.udp`."""

from __future__ import annotations

import argparse
import signal
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import List, Optional, Sequence, Union

from .udp import IpAddress, UdpError, UdpSocket

SERVER_PORT = 12345
CLIENT_PORT = 12346
_BUFFER_SIZE = 1024
_POLL_MS = 15

_GREEN = "\033[32m"
_BLUE = "\033[34m"
_RED = "\033[31m"
_RESET = "\033[0m"


def _server_log(message: str) -> None:
    print(f"{_BLUE}UDP server {message}{_RESET}", flush=True)


def _client_log(message: str) -> None:
    print(f"{_GREEN}UDP client {message}{_RESET}", flush=True)


def format_time(moment: Union[datetime, float]) -> str:
    """Format a datetime or POSIX timestamp as local ``YYYY-MM-DD HH:MM:SS``."""
    if not isinstance(moment, datetime):
        moment = datetime.fromtimestamp(moment)
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def _drain(sock: UdpSocket) -> List[tuple]:
    """Read every datagram currently queued on ``sock``."""
    received = []
    while sock.available() > 0:
        data, sender = sock.recvfrom(_BUFFER_SIZE - 1)
        if data:
            received.append((data, sender))
    return received


def echo_server(server_port: int, running: threading.Event) -> None:
    """Echo every datagram back to its sender, prefixed with ``Echo: ``.

    Runs until ``running`` is cleared. If the socket cannot be created,
    ``running`` is cleared and :class:`UdpError` is raised.
    """
    listener = UdpSocket()
    try:
        listener.create(server_port, blocking=True)
    except UdpError as exc:
        running.clear()
        raise UdpError(exc.errno or 0, "UDP server creation failed") from exc

    with listener:
        _server_log(f"listening on port {server_port}")
        while running.is_set():
            if not listener.poll_read(_POLL_MS):
                continue
            for data, sender in _drain(listener):
                text = data.decode("utf-8", errors="replace")
                _server_log(f"RCV from {str(sender):>15}:  {text}")
                listener.sendto(b"Echo: " + data, sender)
        _server_log("closing down")


def client_runner(
    client_port: int,
    server_address: IpAddress,
    running: threading.Event,
    run_for: float = 10.0,
    message_interval: float = 1.0,
) -> List[bytes]:
    """Send timestamped greetings to ``server_address`` and collect replies.

    A message goes out every ``message_interval`` seconds, the first one
    after one interval, until ``run_for`` seconds pass or ``running`` is
    cleared. ``running`` is cleared on exit so a paired server stops too.
    Returns the payloads received, in arrival order.
    """
    client = UdpSocket()
    try:
        client.create(client_port, blocking=True)
    except UdpError as exc:
        running.clear()
        raise UdpError(exc.errno or 0, "UDP client creation failed") from exc

    replies: List[bytes] = []
    with client:
        _client_log(f"created on port {client_port}")
        start = time.monotonic()
        next_message_time = start + message_interval
        until = start + run_for

        while running.is_set():
            now = time.monotonic()
            if now > until:
                break
            if next_message_time <= now:
                next_message_time = now + message_interval
                message = f"{format_time(datetime.now())} -- Hello from UDP client"
                _client_log(f"SND  to  {str(server_address):>15}:  {message}")
                client.sendto(message.encode("utf-8"), server_address)
            if client.poll_read(_POLL_MS):
                for data, sender in _drain(client):
                    text = data.decode("utf-8", errors="replace")
                    _client_log(f"RCV from {str(sender):>15}:  {text}")
                    replies.append(data)

        running.clear()
        _client_log("closing down")
    return replies


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run a UDP echo server and a client talking to it."
    )
    parser.add_argument("--server-port", type=int, default=SERVER_PORT)
    parser.add_argument("--client-port", type=int, default=CLIENT_PORT)
    parser.add_argument(
        "--duration", type=float, default=10.0, help="seconds the client runs"
    )
    parser.add_argument(
        "--interval", type=float, default=1.0, help="seconds between messages"
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the echo server in a thread and the client on this one."""
    args = _parse_args(argv)
    running = threading.Event()
    running.set()

    def handle_signal(signum, _frame) -> None:
        print(f"Signal {signum} received, shutting down...", flush=True)
        running.clear()

    previous = {}
    if threading.current_thread() is threading.main_thread():
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, handle_signal)

    try:
        with ThreadPoolExecutor(max_workers=1) as pool:
            server_task = pool.submit(echo_server, args.server_port, running)
            try:
                time.sleep(0.015)  # let the server start
                client_runner(
                    args.client_port,
                    IpAddress.parse("127.0.0.1", args.server_port),
                    running,
                    run_for=args.duration,
                    message_interval=args.interval,
                )
                server_task.result()
            except Exception as exc:  # noqa: BLE001 - reported and mapped to status
                running.clear()
                print(f"{_RED}Exception: {exc}{_RESET}", file=sys.stderr, flush=True)
                server_task.exception()  # wait for the server to finish
                return 1
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
    return 0


if __name__ == "__main__":
    sys.exit(main())