"""Minimal IPv4 UDP sockets (udp) with an echo server and client demo (echo)."""

__version__ = "1.0.0"
__all__ = ["udp", "echo"]