"""Picking unused TCP ports that have not already been handed out."""

from __future__ import annotations

import contextlib
import socket
import threading

_lock = threading.Lock()
_claimed: set[int] = set()


def pick_unused_port() -> int:
    """Return a free TCP port that this process has not claimed yet.

    Raises RuntimeError if no unclaimed port turns up.
    """
    with _lock, contextlib.ExitStack() as stack:
        for _ in range(len(_claimed) + 1):
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            stack.enter_context(contextlib.closing(sock))
            sock.bind(("", 0))
            sock.listen()
            port = int(sock.getsockname()[1])
            if port not in _claimed:
                _claimed.add(port)
                return port
    raise RuntimeError("unable to get a port")


def recycle_unused_port(port: int) -> None:
    """Make port claimable again by pick_unused_port."""
    with _lock:
        _claimed.discard(port)