"""Analytics events for relay activity."""

import logging

from . import mp as mixpanel_client

logger = logging.getLogger(__name__)


def track_event(account_id: int, event_name: str, event_properties: dict) -> None:
    """
    Send an event to Mixpanel on behalf of an account.

    Analytics must never break message handling, so delivery errors are only
    logged.
    """
    try:
        mixpanel_client.mp.track(account_id, event_name, event_properties)
    except Exception as e:
        logger.info(f"Failed to track {event_name} for {account_id}: {e}")
