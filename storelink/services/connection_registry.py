"""In-memory registry of browser notification sockets, keyed by shop domain.

The install page opens a WebSocket scoped to its shop while the merchant
authorizes the app in another window. When the callback completes, the
registry pushes a single status message down that socket.

The registry lives in process memory. Running more than one instance
needs a shared pub/sub layer in front of it.
"""

import asyncio
import logging
from typing import Any

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from storelink.core.config import settings

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Maps a shop domain to at most one live notification socket."""

    def __init__(self, send_timeout: float | None = None) -> None:
        self._channels: dict[str, WebSocket] = {}
        self._lock = asyncio.Lock()
        self.send_timeout = send_timeout or settings.http_timeout_seconds

    def __len__(self) -> int:
        return len(self._channels)

    def is_registered(self, shop: str) -> bool:
        return shop in self._channels

    async def register(self, shop: str, channel: WebSocket) -> None:
        """Store the socket for a shop, replacing any earlier one."""
        async with self._lock:
            replaced = self._channels.get(shop)
            self._channels[shop] = channel
        if replaced is not None and replaced is not channel:
            logger.info("Replaced notification channel for %s", shop)
        else:
            logger.debug("Registered notification channel for %s", shop)

    async def unregister(self, shop: str, channel: WebSocket | None = None) -> None:
        """Remove the socket for a shop.

        When ``channel`` is given the entry is only removed if it is still
        that socket, so a superseded connection closing late leaves its
        replacement in place.
        """
        async with self._lock:
            current = self._channels.get(shop)
            if current is None:
                return
            if channel is not None and current is not channel:
                return
            del self._channels[shop]
        logger.debug("Unregistered notification channel for %s", shop)

    async def notify(self, shop: str, payload: dict[str, Any]) -> bool:
        """Send a JSON payload to the shop's socket if it is open.

        The send runs outside the lock and is bounded by ``send_timeout``, so
        a browser that stops reading cannot stall the caller or other shops.

        Returns:
            True if the payload was delivered, False if there was no open
            socket or the send failed or timed out. Never raises.
        """
        async with self._lock:
            channel = self._channels.get(shop)
            if channel is None:
                logger.debug("No notification channel for %s", shop)
                return False
            if not _is_open(channel):
                del self._channels[shop]
                logger.debug("Dropped closed notification channel for %s", shop)
                return False

        try:
            await asyncio.wait_for(channel.send_json(payload), timeout=self.send_timeout)
        except TimeoutError:
            await self.unregister(shop, channel)
            logger.warning("Timed out notifying %s after %ss", shop, self.send_timeout)
            return False
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            await self.unregister(shop, channel)
            logger.warning("Failed to notify %s: %s", shop, e)
            return False
        logger.info("Notified browser session for %s", shop)
        return True

    async def clear(self) -> None:
        async with self._lock:
            self._channels.clear()


def _is_open(channel: WebSocket) -> bool:
    return (
        channel.client_state == WebSocketState.CONNECTED
        and channel.application_state == WebSocketState.CONNECTED
    )


connection_registry = ConnectionRegistry()


def get_connection_registry() -> ConnectionRegistry:
    """FastAPI dependency returning the process-wide registry."""
    return connection_registry
