from dataclasses import replace
from unittest.mock import patch

import pytest

from proxybot.proxy.registry import RelayRegistry


class InMemoryMessages:
    """Stand-in for the relayed_messages table"""

    def __init__(self):
        self.rows = {}

    async def save(self, record):
        self.rows[record.relayed_message_id] = record

    async def get(self, message_id):
        if message_id in self.rows:
            return self.rows[message_id]
        for record in self.rows.values():
            if record.original_message_id == message_id:
                return record
        return None

    async def delete(self, relayed_message_id):
        return self.rows.pop(relayed_message_id, None) is not None

    async def delete_many(self, ids):
        for i in ids:
            self.rows.pop(i, None)


@pytest.fixture
def table():
    table = InMemoryMessages()
    base = "proxybot.proxy.registry.message_operations"
    with (
        patch(f"{base}.save_relayed_message", side_effect=table.save),
        patch(f"{base}.get_relayed_message", side_effect=table.get),
        patch(f"{base}.delete_relayed_message", side_effect=table.delete),
        patch(f"{base}.delete_relayed_messages", side_effect=table.delete_many),
    ):
        yield table


@pytest.mark.asyncio
async def test_store_then_get_by_either_id(table, sample_record):
    registry = RelayRegistry()

    await registry.store(sample_record)

    assert await registry.get(sample_record.relayed_message_id) == sample_record
    assert await registry.get(sample_record.original_message_id) == sample_record


@pytest.mark.asyncio
async def test_store_twice_overwrites(table, sample_record):
    registry = RelayRegistry()

    await registry.store(sample_record)
    await registry.store(replace(sample_record, persona_name="Renamed"))

    assert len(table.rows) == 1
    assert (await registry.get(sample_record.relayed_message_id)).persona_name == "Renamed"


@pytest.mark.asyncio
async def test_delete_then_get_returns_none(table, sample_record):
    registry = RelayRegistry()
    await registry.store(sample_record)

    await registry.delete(sample_record.relayed_message_id)

    assert await registry.get(sample_record.relayed_message_id) is None


@pytest.mark.asyncio
async def test_delete_missing_is_noop(table):
    registry = RelayRegistry()

    await registry.delete(123)

    assert table.rows == {}
