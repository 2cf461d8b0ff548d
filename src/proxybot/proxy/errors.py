from enum import Enum


class ProxyError(Exception):
    """Base class for failures scoped to a single inbound event."""


class LookupSyntaxError(ProxyError):
    """User input to a lookup is neither a message id nor a message link."""


class PermissionReason(Enum):
    NO_RELAY_MANAGE = "NoRelayManage"
    NO_MESSAGE_MANAGE = "NoMessageManage"


class MissingPermissionError(ProxyError):
    def __init__(self, reason: PermissionReason):
        super().__init__(reason.value)
        self.reason = reason


class DispatchError(ProxyError):
    """Relay send failed, including after the endpoint recreation retry."""


class RelayNotFoundError(ProxyError):
    """An explicit lookup found no relay record."""


class TransientPlatformError(ProxyError):
    """Platform reported a condition that counts as success, e.g. already deleted."""


class RelayEndpointGone(ProxyError):
    """The platform no longer knows the cached relay endpoint."""

    def __init__(self, channel_id: int, endpoint_id: int):
        super().__init__(f"Relay endpoint {endpoint_id} for channel {channel_id} is gone")
        self.channel_id = channel_id
        self.endpoint_id = endpoint_id
