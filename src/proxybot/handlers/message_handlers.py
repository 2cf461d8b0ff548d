import logging

from ..bot import ProxyServices
from ..database.candidate_operations import lookup_candidates
from ..proxy.models import MessageCreated, MessageDeleted

logger = logging.getLogger(__name__)


async def handle_message_created(services: ProxyServices, event: MessageCreated) -> str:
    """
    Proxy a new guild message if its author has a matching persona.

    Returns:
        Result identifier string for logging/tracking
    """
    if not event.text and not event.attachments:
        return "message_empty"

    candidates = await lookup_candidates(event.sending_account_id, event.guild_id)
    if not candidates:
        return "message_no_personas"

    return await services.pipeline.handle(event, candidates)


async def handle_messages_deleted(
    services: ProxyServices, events: list[MessageDeleted]
) -> str:
    """Forget relay records of messages deleted by anyone"""
    ids = [event.message_id for event in events]
    if len(ids) == 1:
        await services.registry.delete(ids[0])
    else:
        await services.registry.delete_many(ids)
    return "message_deleted"
