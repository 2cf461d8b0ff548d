from ..bot import ProxyServices
from ..proxy.models import MessageCreated, MessageDeleted, ReactionAdded
from .message_handlers import handle_message_created, handle_messages_deleted
from .reaction_handlers import handle_reaction_added
from .updates import parse_update

UNHANDLED = "unhandled"


async def dispatch_update(services: ProxyServices, update: dict) -> str:
    """Route one forwarded gateway payload to its handler"""
    event = parse_update(update)
    if isinstance(event, MessageCreated):
        return await handle_message_created(services, event)
    if isinstance(event, ReactionAdded):
        return await handle_reaction_added(services, event)
    if isinstance(event, MessageDeleted):
        return await handle_messages_deleted(services, [event])
    if isinstance(event, list) and event:
        return await handle_messages_deleted(services, event)
    return UNHANDLED
