"""Push nowcast state to connected viewers.

Each new connection gets one "init" message before it joins the
recipient set, so it never sees a "tick" first. A connection that fails
or times out on a send is dropped and closed; the others still get the
message.
"""

import asyncio
import json
import logging
from typing import Any, Protocol

from displacement_api.domain.exceptions import TransportError

logger = logging.getLogger(__name__)

MESSAGE_INIT = "init"
MESSAGE_TICK = "tick"

DEFAULT_SEND_TIMEOUT_SECONDS = 1.0

# WebSocket close code sent to evicted viewers (internal error, retry later)
CLOSE_CODE_EVICTED = 1011


class ViewerConnection(Protocol):
    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


def encode_message(message_type: str, data: dict[str, Any]) -> str:
    return json.dumps({"type": message_type, "data": data})


class ConnectionManager:
    """Tracks open viewer connections and fans messages out to them."""

    def __init__(self, send_timeout: float = DEFAULT_SEND_TIMEOUT_SECONDS):
        self.send_timeout = send_timeout
        self.connections: set[ViewerConnection] = set()

    @property
    def count(self) -> int:
        return len(self.connections)

    async def _send(self, connection: ViewerConnection, text: str) -> None:
        try:
            await asyncio.wait_for(connection.send_text(text), timeout=self.send_timeout)
        except asyncio.TimeoutError as e:
            raise TransportError(f"Send timed out after {self.send_timeout}s") from e
        except Exception as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

    async def register(self, connection: ViewerConnection, init_data: dict[str, Any]) -> None:
        """Send the init message, then add the connection to the recipients.

        Raises:
            TransportError: if the init message cannot be delivered
        """
        await self._send(connection, encode_message(MESSAGE_INIT, init_data))
        self.connections.add(connection)
        logger.info(f"[Broadcast] Viewer connected ({self.count} total)")

    def disconnect(self, connection: ViewerConnection) -> None:
        if connection in self.connections:
            self.connections.discard(connection)
            logger.info(f"[Broadcast] Viewer disconnected ({self.count} total)")

    async def broadcast(self, message_type: str, data: dict[str, Any]) -> int:
        """Send one message to every connection concurrently.

        Returns:
            Number of connections that accepted the message
        """
        if not self.connections:
            return 0

        text = encode_message(message_type, data)
        targets = list(self.connections)
        results = await asyncio.gather(
            *(self._send(connection, text) for connection in targets),
            return_exceptions=True,
        )

        delivered = 0
        evicted = []
        for connection, result in zip(targets, results):
            if isinstance(result, TransportError):
                logger.info(f"[Broadcast] Dropping viewer: {result}")
                self.disconnect(connection)
                evicted.append(connection)
            elif isinstance(result, BaseException):
                raise result
            else:
                delivered += 1

        if evicted:
            await asyncio.gather(*(self._close(connection) for connection in evicted))
        return delivered

    async def _close(self, connection: ViewerConnection) -> None:
        """Close an evicted connection so the viewer sees a disconnect and reconnects."""
        try:
            await asyncio.wait_for(
                connection.close(code=CLOSE_CODE_EVICTED), timeout=self.send_timeout
            )
        except Exception as e:
            # Already broken; the server side handler exits on its own disconnect
            logger.info(f"[Broadcast] Close of evicted viewer failed: {type(e).__name__}: {e}")
