"""
Message proxy pipeline.

Runs one inbound message through the proxy stages, in order:
1. Match the message against the sender's proxy tags
2. Check the bot can both relay and delete in the channel
3. Relay the message through the channel's webhook
4. Record the relay
5. Delete the original message after a short pause

Any stage that fails or does not apply ends processing for that message.
"""

import asyncio
import logging
from collections import OrderedDict
from typing import Awaitable, Callable, Optional, Protocol, Sequence

from opentelemetry.trace import get_current_span

from ..common.settings import ProxySettings
from ..common.tracking import track_event
from .dispatcher import RelayDispatcher
from .errors import DispatchError, PermissionReason
from .models import Candidate, ChannelCapabilities, MessageCreated, RelayRecord
from .permission_gate import (
    PERMISSION_WARNINGS,
    Denied,
    WarningCooldown,
    check_permissions,
)
from .registry import RelayRegistry
from .tag_matcher import match_tags

logger = logging.getLogger(__name__)


class PipelinePlatform(Protocol):
    async def delete_message(self, channel_id: int, message_id: int) -> bool: ...

    async def send_message(self, channel_id: int, content: str) -> int: ...


class ProxyPipeline:
    def __init__(
        self,
        dispatcher: RelayDispatcher,
        registry: RelayRegistry,
        platform: PipelinePlatform,
        settings: ProxySettings,
        cooldown: Optional[WarningCooldown] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._dispatcher = dispatcher
        self._registry = registry
        self._platform = platform
        self._settings = settings
        self._cooldown = cooldown or WarningCooldown(settings.permission_warning_cooldown)
        self._sleep = sleep
        self._seen: OrderedDict[int, None] = OrderedDict()

    def _claim(self, message_id: int) -> bool:
        """Mark a message as handled; False if it already was"""
        if message_id in self._seen:
            return False
        self._seen[message_id] = None
        while len(self._seen) > self._settings.seen_messages_capacity:
            self._seen.popitem(last=False)
        return True

    async def handle(
        self,
        message: MessageCreated,
        candidates: Sequence[Candidate],
        capabilities: Optional[ChannelCapabilities] = None,
    ) -> str:
        """
        Proxy one message if it carries a known tag.

        Args:
            message: The inbound message
            candidates: Personas of the sending account in this guild, in order
            capabilities: Bot rights in the channel; derived from the
                message's permission bits when omitted

        Returns:
            Result identifier string for logging/tracking
        """
        if not self._claim(message.message_id):
            return "proxy_already_handled"

        match = match_tags(message.text, candidates)
        if match is None:
            return "proxy_no_match"

        candidate = match.candidate
        current_span = get_current_span()
        if current_span:
            current_span.set_attribute("persona_id", candidate.persona_id)
            current_span.set_attribute("channel_id", message.channel_id)

        if capabilities is None:
            capabilities = ChannelCapabilities.from_permissions(message.permissions)
        decision = check_permissions(capabilities)
        if isinstance(decision, Denied):
            await self._warn_missing_permission(message.channel_id, decision.reason)
            track_event(
                message.sending_account_id,
                "proxy_permission_denied",
                {"channel_id": message.channel_id, "reason": decision.reason.value},
            )
            return "proxy_permission_denied"

        text = message.text if candidate.keep_original else match.inner_text
        attachment = message.attachments[0] if message.attachments else None
        try:
            relayed_message_id = await self._dispatcher.send(
                message.channel_id,
                text,
                candidate.relay_name,
                candidate.avatar_url,
                attachment,
            )
        except DispatchError:
            # Original message stays in place
            return "proxy_dispatch_failed"

        result = "proxy_relayed"
        try:
            await self._registry.store(
                RelayRecord(
                    original_message_id=message.message_id,
                    relayed_message_id=relayed_message_id,
                    channel_id=message.channel_id,
                    sending_account_id=message.sending_account_id,
                    persona_id=candidate.persona_id,
                    owner_id=candidate.owner_id,
                    persona_name=candidate.relay_name,
                )
            )
        except Exception as e:
            logger.error(
                f"Failed to store relay record for message {relayed_message_id}: {e}",
                exc_info=True,
            )
            result = "proxy_relayed_untracked"

        track_event(
            message.sending_account_id,
            "message_relayed",
            {
                "channel_id": message.channel_id,
                "persona_id": candidate.persona_id,
                "has_attachment": attachment is not None,
            },
        )

        # Pause before the original disappears
        await self._sleep(self._settings.delete_delay)
        await self._delete_original(message)
        return result

    async def _delete_original(self, message: MessageCreated) -> None:
        try:
            deleted = await self._platform.delete_message(
                message.channel_id, message.message_id
            )
            if not deleted:
                logger.debug(f"Original message {message.message_id} was already gone")
        except Exception as e:
            logger.warning(
                f"Failed to delete original message {message.message_id} "
                f"in channel {message.channel_id}: {e}"
            )

    async def _warn_missing_permission(
        self, channel_id: int, reason: PermissionReason
    ) -> None:
        logger.info(f"Missing permission {reason.value} in channel {channel_id}")
        if not self._cooldown.should_warn(channel_id):
            return
        try:
            await self._platform.send_message(channel_id, PERMISSION_WARNINGS[reason])
        except Exception as e:
            logger.warning(
                f"Failed to post permission warning in channel {channel_id}: {e}"
            )
