"""
Relay dispatch.

Sends a message under a persona's name and avatar through the channel's
relay webhook, recovering once from a webhook that was deleted behind our back.
"""

import logging
from typing import Optional, Protocol

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from .endpoint_cache import EndpointCache
from .errors import DispatchError, RelayEndpointGone
from .models import Attachment, RelayEndpoint

logger = logging.getLogger(__name__)

# Discord rejects webhook usernames longer than this
MAX_RELAY_NAME_LENGTH = 80


class RelayTransport(Protocol):
    async def get_or_create_webhook(self, channel_id: int) -> RelayEndpoint: ...

    async def execute_webhook(
        self,
        endpoint: RelayEndpoint,
        text: str,
        username: str,
        avatar_url: Optional[str],
        attachment: Optional[Attachment] = None,
    ) -> int: ...


def clip_relay_name(name: str) -> str:
    name = name.strip()
    if len(name) > MAX_RELAY_NAME_LENGTH:
        return name[: MAX_RELAY_NAME_LENGTH - 1] + "…"
    return name


class RelayDispatcher:
    def __init__(
        self, transport: RelayTransport, cache: Optional[EndpointCache] = None
    ) -> None:
        self._transport = transport
        self._cache = cache or EndpointCache(transport.get_or_create_webhook)

    @property
    def cache(self) -> EndpointCache:
        return self._cache

    async def send(
        self,
        channel_id: int,
        text: str,
        display_name: str,
        avatar_url: Optional[str],
        attachment: Optional[Attachment] = None,
    ) -> int:
        """
        Relay a message into a channel.

        Returns:
            int: ID of the relayed message

        Raises:
            DispatchError: if the send failed, or failed again after the
                endpoint was recreated
        """
        username = clip_relay_name(display_name)
        try:
            endpoint = await self._cache.get(channel_id)

            # One initial attempt plus exactly one retry on a fresh endpoint
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(2),
                retry=retry_if_exception_type(RelayEndpointGone),
                before_sleep=lambda state: logger.info(
                    f"Relay endpoint gone in channel {channel_id}, recreating"
                ),
                reraise=True,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        endpoint = await self._cache.refresh(endpoint)
                    message_id = await self._transport.execute_webhook(
                        endpoint, text, username, avatar_url, attachment
                    )
        except Exception as e:
            logger.warning(f"Failed to relay message in channel {channel_id}: {e}")
            raise DispatchError(f"Relay to channel {channel_id} failed: {e}") from e

        return message_id
