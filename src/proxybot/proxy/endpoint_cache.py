"""
Per-channel relay endpoint cache.

Endpoints are created lazily and shared by every pipeline relaying into the
same channel. Creation is single-flight per channel: concurrent callers that
miss the cache (or discover the same stale endpoint) all await one creation.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .models import RelayEndpoint

logger = logging.getLogger(__name__)

EndpointFactory = Callable[[int], Awaitable[RelayEndpoint]]


class EndpointCache:
    def __init__(self, factory: EndpointFactory) -> None:
        self._factory = factory
        self._endpoints: dict[int, RelayEndpoint] = {}
        self._pending: dict[int, asyncio.Future[RelayEndpoint]] = {}

    def peek(self, channel_id: int) -> Optional[RelayEndpoint]:
        return self._endpoints.get(channel_id)

    async def get(self, channel_id: int) -> RelayEndpoint:
        """Return the channel's endpoint, creating it once if needed."""
        endpoint = self._endpoints.get(channel_id)
        if endpoint is not None:
            return endpoint

        pending = self._pending.get(channel_id)
        if pending is None:
            pending = asyncio.ensure_future(self._create(channel_id))
            self._pending[channel_id] = pending
            pending.add_done_callback(
                lambda fut: self._forget_pending(channel_id, fut)
            )
        # A cancelled waiter must not cancel the creation shared with others
        return await asyncio.shield(pending)

    async def refresh(self, stale: RelayEndpoint) -> RelayEndpoint:
        """
        Replace a stale endpoint.

        Only the first caller reporting a given stale endpoint drops it; later
        callers get the replacement (or join its creation) instead of
        triggering another one.
        """
        current = self.peek(stale.channel_id)
        if current is not None and current.endpoint_id != stale.endpoint_id:
            return current
        if current is not None:
            logger.info(
                f"Invalidating relay endpoint {stale.endpoint_id} "
                f"for channel {stale.channel_id}"
            )
            del self._endpoints[stale.channel_id]
        return await self.get(stale.channel_id)

    async def _create(self, channel_id: int) -> RelayEndpoint:
        endpoint = await self._factory(channel_id)
        self._endpoints[channel_id] = endpoint
        logger.debug(f"Relay endpoint {endpoint.endpoint_id} ready for channel {channel_id}")
        return endpoint

    def _forget_pending(self, channel_id: int, fut: asyncio.Future) -> None:
        if self._pending.get(channel_id) is fut:
            del self._pending[channel_id]
        if not fut.cancelled() and fut.exception() is not None:
            logger.warning(
                f"Failed to create relay endpoint for channel {channel_id}: "
                f"{fut.exception()}"
            )
