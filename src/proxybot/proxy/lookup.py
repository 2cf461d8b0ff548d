import re

from .errors import LookupSyntaxError, RelayNotFoundError
from .models import RelayRecord
from .registry import RelayRegistry

MESSAGE_LINK_RE = re.compile(
    r"^https?://(?:(?:ptb|canary)\.)?discord(?:app)?\.com/channels/"
    r"(?:\d+|@me)/\d+/(\d+)/?$"
)
SNOWFLAKE_RE = re.compile(r"^\d{15,21}$")


def parse_message_reference(raw: str) -> int:
    """Accept a message id or a message link and return the message id"""
    value = raw.strip().strip("<>")
    if SNOWFLAKE_RE.match(value):
        return int(value)
    found = MESSAGE_LINK_RE.match(value)
    if found:
        return int(found.group(1))
    raise LookupSyntaxError(
        f"Could not parse {raw!r} as a message ID or link."
    )


async def lookup_relay(registry: RelayRegistry, raw: str) -> RelayRecord:
    """
    Find the relay record for a message the user points at.

    Either the relayed message or its original can be referenced.

    Raises:
        LookupSyntaxError: input is not a message id or link
        RelayNotFoundError: no record for that message
    """
    message_id = parse_message_reference(raw)
    record = await registry.get(message_id)
    if record is None:
        raise RelayNotFoundError(f"Message {message_id} was not found.")
    return record
