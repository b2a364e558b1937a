"""Transport contract plus an in-memory implementation."""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable


@runtime_checkable
class Transport(Protocol):
    """One logical connection delivering messages in FIFO order.

    ``send`` raises when delivery fails; callers decide what to do.
    """

    async def send(self, message: str) -> None: ...


class QueueTransport:
    """Transport backed by an asyncio.Queue, for in-process peers."""

    def __init__(self, name: str = "queue") -> None:
        self.name = name
        self.queue: asyncio.Queue[str] = asyncio.Queue()
        self.closed = False

    async def send(self, message: str) -> None:
        if self.closed:
            raise ConnectionError(f"{self.name} is closed")
        await self.queue.put(message)

    def close(self) -> None:
        self.closed = True

    def drain(self) -> list[str]:
        """Return and remove every message queued so far."""
        messages: list[str] = []
        while not self.queue.empty():
            messages.append(self.queue.get_nowait())
        return messages

    def __repr__(self) -> str:
        return f"QueueTransport({self.name!r})"
