import logging
from typing import Optional

import asyncpg

from ..proxy.models import RelayRecord
from .postgres_connection import get_pool

logger = logging.getLogger(__name__)


def _record_from_row(row: asyncpg.Record) -> RelayRecord:
    return RelayRecord(
        original_message_id=row["original_message_id"],
        relayed_message_id=row["relayed_message_id"],
        channel_id=row["channel_id"],
        sending_account_id=row["sending_account_id"],
        persona_id=row["persona_id"],
        owner_id=row["owner_id"],
        persona_name=row["persona_name"],
        created_at=row["created_at"],
    )


async def save_relayed_message(record: RelayRecord) -> None:
    """Insert a relay record, overwriting any record for the same relayed message"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        await conn.execute(
            """
            INSERT INTO relayed_messages (
                relayed_message_id, original_message_id, channel_id,
                sending_account_id, persona_id, owner_id, persona_name, created_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            ON CONFLICT (relayed_message_id) DO UPDATE SET
                original_message_id = EXCLUDED.original_message_id,
                channel_id = EXCLUDED.channel_id,
                sending_account_id = EXCLUDED.sending_account_id,
                persona_id = EXCLUDED.persona_id,
                owner_id = EXCLUDED.owner_id,
                persona_name = EXCLUDED.persona_name,
                created_at = EXCLUDED.created_at
        """,
            record.relayed_message_id,
            record.original_message_id,
            record.channel_id,
            record.sending_account_id,
            record.persona_id,
            record.owner_id,
            record.persona_name,
            record.created_at,
        )


async def get_relayed_message(message_id: int) -> Optional[RelayRecord]:
    """Find a relay record by either the relayed or the original message id"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            """
            SELECT * FROM relayed_messages
            WHERE relayed_message_id = $1 OR original_message_id = $1
            ORDER BY (relayed_message_id = $1) DESC
            LIMIT 1
        """,
            message_id,
        )
    return _record_from_row(row) if row else None


async def delete_relayed_message(relayed_message_id: int) -> bool:
    """Delete a relay record; returns False if there was nothing to delete"""
    pool = await get_pool()
    async with pool.acquire() as conn:
        result = await conn.execute(
            "DELETE FROM relayed_messages WHERE relayed_message_id = $1",
            relayed_message_id,
        )
    return result != "DELETE 0"


async def delete_relayed_messages(relayed_message_ids: list[int]) -> None:
    """Delete relay records in bulk, ignoring unknown ids"""
    if not relayed_message_ids:
        return
    pool = await get_pool()
    async with pool.acquire() as conn:
        await conn.execute(
            "DELETE FROM relayed_messages WHERE relayed_message_id = ANY($1::bigint[])",
            relayed_message_ids,
        )
