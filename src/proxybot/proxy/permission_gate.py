import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .errors import PermissionReason
from .models import ChannelCapabilities


@dataclass(frozen=True, slots=True)
class Allowed:
    pass


@dataclass(frozen=True, slots=True)
class Denied:
    reason: PermissionReason


def check_permissions(capabilities: ChannelCapabilities) -> Union[Allowed, Denied]:
    """
    Decide whether a message may be proxied in a channel.

    Both rights are required: relaying without being able to remove the
    original would leave two copies of the message visible.
    """
    if not capabilities.can_manage_relay:
        return Denied(PermissionReason.NO_RELAY_MANAGE)
    if not capabilities.can_manage_messages:
        return Denied(PermissionReason.NO_MESSAGE_MANAGE)
    return Allowed()


PERMISSION_WARNINGS = {
    PermissionReason.NO_RELAY_MANAGE: (
        "❌ I don't have the *Manage Webhooks* permission in this channel, "
        "so I can't proxy messages here. Please ask a server administrator to fix this."
    ),
    PermissionReason.NO_MESSAGE_MANAGE: (
        "❌ I don't have the *Manage Messages* permission in this channel, "
        "so I can't delete the original message. Please ask a server administrator to fix this."
    ),
}


class WarningCooldown:
    """Allows at most one permission warning per channel per window."""

    def __init__(
        self, window: float, clock: Optional[Callable[[], float]] = None
    ) -> None:
        self._window = window
        self._clock = clock or time.monotonic
        self._last_warned: dict[int, float] = {}

    def should_warn(self, channel_id: int) -> bool:
        now = self._clock()
        expired = [
            cid for cid, at in self._last_warned.items() if now - at >= self._window
        ]
        for cid in expired:
            del self._last_warned[cid]

        last = self._last_warned.get(channel_id)
        if last is not None and now - last < self._window:
            return False
        self._last_warned[channel_id] = now
        return True
