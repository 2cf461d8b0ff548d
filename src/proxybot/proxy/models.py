from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


@dataclass(frozen=True, slots=True)
class Candidate:
    """A persona the sending account may relay as in a guild.

    Display fields arrive already resolved for the guild; nothing here
    computes visibility.
    """

    persona_id: int
    owner_id: int
    display_name: str
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    avatar_url: Optional[str] = None
    keep_original: bool = False
    autoproxy_eligible: bool = True
    group_tag: Optional[str] = None

    @property
    def has_tags(self) -> bool:
        return bool(self.prefix) or bool(self.suffix)

    @property
    def tag_length(self) -> int:
        return len(self.prefix or "") + len(self.suffix or "")

    @property
    def relay_name(self) -> str:
        if self.group_tag:
            return f"{self.display_name} {self.group_tag}"
        return self.display_name


@dataclass(frozen=True, slots=True)
class Match:
    candidate: Candidate
    inner_text: str


@dataclass(frozen=True, slots=True)
class RelayRecord:
    original_message_id: int
    relayed_message_id: int
    channel_id: int
    sending_account_id: int
    persona_id: int
    owner_id: int
    persona_name: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True, slots=True)
class RelayEndpoint:
    channel_id: int
    endpoint_id: int
    secret_token: str
    validated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True, slots=True)
class Attachment:
    url: str
    filename: str
    content_type: Optional[str] = None


# Discord permission bits
ADMINISTRATOR = 1 << 3
MANAGE_MESSAGES = 1 << 13
MANAGE_WEBHOOKS = 1 << 29


@dataclass(frozen=True, slots=True)
class ChannelCapabilities:
    can_manage_relay: bool
    can_manage_messages: bool

    @classmethod
    def from_permissions(cls, permissions: int) -> "ChannelCapabilities":
        if permissions & ADMINISTRATOR:
            return cls(can_manage_relay=True, can_manage_messages=True)
        return cls(
            can_manage_relay=bool(permissions & MANAGE_WEBHOOKS),
            can_manage_messages=bool(permissions & MANAGE_MESSAGES),
        )


class Intent(Enum):
    DELETE = "delete"
    QUERY = "query"
    IGNORE = "ignore"


@dataclass(frozen=True, slots=True)
class MessageCreated:
    sending_account_id: int
    guild_id: int
    channel_id: int
    message_id: int
    text: str
    attachments: tuple[Attachment, ...] = ()
    permissions: int = 0


@dataclass(frozen=True, slots=True)
class ReactionAdded:
    relayed_message_id: int
    channel_id: int
    reacting_account_id: int
    emoji_identity: str


@dataclass(frozen=True, slots=True)
class MessageDeleted:
    message_id: int
