from dataclasses import replace

import pytest

from proxybot.database.message_operations import (
    delete_relayed_message,
    delete_relayed_messages,
    get_relayed_message,
    save_relayed_message,
)


@pytest.mark.asyncio
async def test_save_and_get_by_either_id(clean_db, sample_record):
    """A record is found by its relayed id and by its original id"""
    await save_relayed_message(sample_record)

    by_relayed = await get_relayed_message(sample_record.relayed_message_id)
    by_original = await get_relayed_message(sample_record.original_message_id)

    assert by_relayed == sample_record
    assert by_original == sample_record


@pytest.mark.asyncio
async def test_save_overwrites_same_relayed_message(clean_db, sample_record):
    await save_relayed_message(sample_record)
    await save_relayed_message(replace(sample_record, persona_name="Bob"))

    retrieved = await get_relayed_message(sample_record.relayed_message_id)

    assert retrieved.persona_name == "Bob"


@pytest.mark.asyncio
async def test_relayed_id_match_wins(clean_db, sample_record):
    """An id that is both an original and a relayed message resolves to the latter"""
    older = sample_record
    newer = replace(
        sample_record,
        original_message_id=sample_record.relayed_message_id,
        relayed_message_id=sample_record.relayed_message_id + 1,
    )
    await save_relayed_message(newer)
    await save_relayed_message(older)

    retrieved = await get_relayed_message(sample_record.relayed_message_id)

    assert retrieved == older


@pytest.mark.asyncio
async def test_get_missing_returns_none(clean_db):
    assert await get_relayed_message(42) is None


@pytest.mark.asyncio
async def test_delete(clean_db, sample_record):
    await save_relayed_message(sample_record)

    assert await delete_relayed_message(sample_record.relayed_message_id) is True
    assert await get_relayed_message(sample_record.relayed_message_id) is None
    # Deleting again is a no-op
    assert await delete_relayed_message(sample_record.relayed_message_id) is False


@pytest.mark.asyncio
async def test_delete_many(clean_db, sample_record):
    second = replace(
        sample_record,
        original_message_id=sample_record.original_message_id + 10,
        relayed_message_id=sample_record.relayed_message_id + 10,
    )
    await save_relayed_message(sample_record)
    await save_relayed_message(second)

    await delete_relayed_messages(
        [sample_record.relayed_message_id, second.relayed_message_id, 7]
    )

    assert await get_relayed_message(sample_record.relayed_message_id) is None
    assert await get_relayed_message(second.relayed_message_id) is None
