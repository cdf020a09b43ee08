"""Interface the frame encoder expects from a transport."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Transport(Protocol):
    def is_connected(self) -> bool:
        ...

    def send(self, data: bytes) -> None:
        """Queue ``data`` for transmission without waiting for completion."""
        ...
