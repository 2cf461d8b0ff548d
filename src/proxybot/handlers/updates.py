"""
Conversion of forwarded gateway dispatch payloads into proxy events.

Returns None for anything the proxy does not act on: bot and webhook
authors, direct messages, system messages.
"""

import logging
from typing import Optional, Union

from ..proxy.models import Attachment, MessageCreated, MessageDeleted, ReactionAdded

logger = logging.getLogger(__name__)

# Regular messages and replies
PROXYABLE_MESSAGE_TYPES = {0, 19}

ProxyEvent = Union[MessageCreated, ReactionAdded, MessageDeleted]


def parse_message_create(data: dict) -> Optional[MessageCreated]:
    author = data.get("author") or {}
    if author.get("bot") or data.get("webhook_id"):
        return None
    if not data.get("guild_id"):
        return None
    if data.get("type", 0) not in PROXYABLE_MESSAGE_TYPES:
        return None

    attachments = tuple(
        Attachment(
            url=item["url"],
            filename=item.get("filename", "file"),
            content_type=item.get("content_type"),
        )
        for item in data.get("attachments", [])
        if item.get("url")
    )
    return MessageCreated(
        sending_account_id=int(author["id"]),
        guild_id=int(data["guild_id"]),
        channel_id=int(data["channel_id"]),
        message_id=int(data["id"]),
        text=data.get("content") or "",
        attachments=attachments,
        permissions=int(data.get("app_permissions") or 0),
    )


def parse_reaction_add(data: dict) -> Optional[ReactionAdded]:
    emoji = data.get("emoji") or {}
    # Custom emoji are identified by id, unicode emoji by the character itself
    identity = emoji.get("id") or emoji.get("name")
    if not identity or not data.get("user_id"):
        return None
    return ReactionAdded(
        relayed_message_id=int(data["message_id"]),
        channel_id=int(data["channel_id"]),
        reacting_account_id=int(data["user_id"]),
        emoji_identity=str(identity),
    )


def parse_update(update: dict) -> Union[ProxyEvent, list[MessageDeleted], None]:
    """Map a {"t": ..., "d": {...}} payload to events"""
    event_type = update.get("t")
    data = update.get("d") or {}

    if event_type == "MESSAGE_CREATE":
        return parse_message_create(data)
    if event_type == "MESSAGE_REACTION_ADD":
        return parse_reaction_add(data)
    if event_type == "MESSAGE_DELETE":
        return MessageDeleted(message_id=int(data["id"]))
    if event_type == "MESSAGE_DELETE_BULK":
        return [MessageDeleted(message_id=int(i)) for i in data.get("ids", [])]

    logger.debug(f"Ignoring update of type {event_type}")
    return None
