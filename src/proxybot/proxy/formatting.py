from .models import RelayRecord


def format_relay_summary(record: RelayRecord) -> str:
    """Plain-text description of a relayed message, sent privately"""
    timestamp = int(record.created_at.timestamp())
    persona = record.persona_name or f"persona #{record.persona_id}"
    link = f"https://discord.com/channels/@me/{record.channel_id}/{record.relayed_message_id}"
    return (
        f"**Relayed as:** {persona} (`{record.persona_id}`)\n"
        f"**Owner:** <@{record.owner_id}> (`{record.owner_id}`)\n"
        f"**Sent by:** <@{record.sending_account_id}> (`{record.sending_account_id}`)\n"
        f"**Sent:** <t:{timestamp}:f>\n"
        f"**Message:** `{record.relayed_message_id}` in <#{record.channel_id}>\n"
        f"{link}"
    )
