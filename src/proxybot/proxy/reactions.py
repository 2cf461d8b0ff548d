"""
Reaction-driven control of relayed messages.

Reacting to a relayed message with ❌ deletes it (only for the account that
sent it), ❓ or ❔ sends its details privately to whoever reacted.
"""

import logging
from typing import Protocol

from ..common.tracking import track_event
from .formatting import format_relay_summary
from .models import Intent
from .registry import RelayRegistry

logger = logging.getLogger(__name__)

EMOJI_INTENTS = {
    "\u274c": Intent.DELETE,  # ❌
    "\u2753": Intent.QUERY,  # ❓
    "\u2754": Intent.QUERY,  # ❔
}

IGNORED = "reaction_ignored"


def intent_for_emoji(emoji_identity: str) -> Intent:
    return EMOJI_INTENTS.get(emoji_identity, Intent.IGNORE)


class ReactionPlatform(Protocol):
    async def delete_message(self, channel_id: int, message_id: int) -> bool: ...

    async def deliver_private(self, account_id: int, text: str) -> None: ...


class ReactionRouter:
    def __init__(self, registry: RelayRegistry, platform: ReactionPlatform) -> None:
        self._registry = registry
        self._platform = platform

    async def handle(
        self,
        relayed_message_id: int,
        channel_id: int,
        reacting_account_id: int,
        emoji_identity: str,
    ) -> str:
        """
        Act on a reaction added to a message.

        Every branch that does nothing returns the same result, so callers
        cannot tell a missing record from someone else's message.
        """
        intent = intent_for_emoji(emoji_identity)
        if intent is Intent.IGNORE:
            return IGNORED

        record = await self._registry.get(relayed_message_id)
        # The reaction must be on the relayed copy, not on the original
        if record is None or record.relayed_message_id != relayed_message_id:
            return IGNORED

        if intent is Intent.DELETE:
            if record.sending_account_id != reacting_account_id:
                return IGNORED
            try:
                deleted = await self._platform.delete_message(
                    record.channel_id, relayed_message_id
                )
                if not deleted:
                    logger.debug(f"Relayed message {relayed_message_id} was already gone")
            except Exception as e:
                logger.warning(
                    f"Failed to delete relayed message {relayed_message_id} "
                    f"in channel {channel_id}: {e}",
                    exc_info=True,
                )
            await self._registry.delete(relayed_message_id)
            track_event(
                reacting_account_id,
                "relay_deleted_by_reaction",
                {"channel_id": channel_id, "message_id": relayed_message_id},
            )
            return "reaction_deleted"

        try:
            await self._platform.deliver_private(
                reacting_account_id, format_relay_summary(record)
            )
        except Exception as e:
            logger.info(
                f"Could not deliver relay summary to {reacting_account_id}: {e}"
            )
            return IGNORED
        track_event(
            reacting_account_id,
            "relay_queried_by_reaction",
            {"channel_id": channel_id, "message_id": relayed_message_id},
        )
        return "reaction_queried"
