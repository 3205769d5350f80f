"""WebSocket endpoint the install page uses to learn the store is connected."""

import logging

from fastapi import APIRouter, Depends, Query, WebSocket, status

from storelink.integrations.shopify.oauth import normalize_shop
from storelink.services.connection_registry import ConnectionRegistry, get_connection_registry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])


@router.websocket("/ws")
async def notifications(
    websocket: WebSocket,
    shop: str | None = Query(None),
    registry: ConnectionRegistry = Depends(get_connection_registry),
) -> None:
    """Hold a socket open for a shop until the OAuth callback reports back.

    The server only ever pushes one ``{"status": "connected"}`` message.
    Anything the browser sends is ignored.
    """
    shop = normalize_shop(shop)
    if not shop:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    await registry.register(shop, websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        await registry.unregister(shop, websocket)
    logger.debug("Notification socket for %s closed", shop)
