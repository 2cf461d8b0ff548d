import logging

from ..proxy.models import Candidate
from .postgres_connection import get_pool

logger = logging.getLogger(__name__)


async def lookup_candidates(sending_account_id: int, guild_id: int) -> list[Candidate]:
    """
    Get the personas an account can relay as in a guild.

    A persona with several proxy tags yields one candidate per tag. Guild
    display overrides take precedence over the persona's own name and avatar.
    Results are ordered by persona creation, then tag id.
    """
    pool = await get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            """
            SELECT
                p.persona_id,
                g.owner_id,
                COALESCE(pgs.display_name, p.display_name, p.name) AS display_name,
                COALESCE(pgs.avatar_url, p.avatar_url) AS avatar_url,
                p.keep_original,
                p.autoproxy_eligible,
                g.tag AS group_tag,
                t.prefix,
                t.suffix
            FROM accounts a
            JOIN groups g ON g.group_id = a.group_id
            JOIN personas p ON p.group_id = g.group_id
            LEFT JOIN proxy_tags t ON t.persona_id = p.persona_id
            LEFT JOIN persona_guild_settings pgs
                ON pgs.persona_id = p.persona_id AND pgs.guild_id = $2
            WHERE a.account_id = $1
            ORDER BY p.created_at, p.persona_id, t.id
        """,
            sending_account_id,
            guild_id,
        )

    return [
        Candidate(
            persona_id=row["persona_id"],
            owner_id=row["owner_id"],
            display_name=row["display_name"],
            prefix=row["prefix"],
            suffix=row["suffix"],
            avatar_url=row["avatar_url"],
            keep_original=row["keep_original"],
            autoproxy_eligible=row["autoproxy_eligible"],
            group_tag=row["group_tag"],
        )
        for row in rows
    ]
