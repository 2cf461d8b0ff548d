from ..bot import ProxyServices
from ..proxy.models import ReactionAdded


async def handle_reaction_added(services: ProxyServices, event: ReactionAdded) -> str:
    return await services.reactions.handle(
        event.relayed_message_id,
        event.channel_id,
        event.reacting_account_id,
        event.emoji_identity,
    )
