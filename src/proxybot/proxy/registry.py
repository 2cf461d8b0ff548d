import logging
from typing import Optional

from ..database import message_operations
from .models import RelayRecord

logger = logging.getLogger(__name__)


class RelayRegistry:
    """Relay records, each call its own unit of work."""

    async def store(self, record: RelayRecord) -> None:
        await message_operations.save_relayed_message(record)
        logger.debug(
            f"Stored relay record {record.relayed_message_id} "
            f"(original {record.original_message_id})"
        )

    async def get(self, message_id: int) -> Optional[RelayRecord]:
        """Look up by either the original or the relayed message id."""
        return await message_operations.get_relayed_message(message_id)

    async def delete(self, relayed_message_id: int) -> None:
        if await message_operations.delete_relayed_message(relayed_message_id):
            logger.debug(f"Deleted relay record {relayed_message_id}")

    async def delete_many(self, relayed_message_ids: list[int]) -> None:
        await message_operations.delete_relayed_messages(relayed_message_ids)
