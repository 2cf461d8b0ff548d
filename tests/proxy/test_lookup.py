from unittest.mock import AsyncMock

import pytest

from proxybot.proxy.errors import LookupSyntaxError, RelayNotFoundError
from proxybot.proxy.lookup import lookup_relay, parse_message_reference


class TestParseMessageReference:
    def test_plain_id(self):
        assert parse_message_reference("1000000000000000002") == 1000000000000000002

    def test_message_link(self):
        link = "https://discord.com/channels/111111111111111111/222222222222222222/333333333333333333"
        assert parse_message_reference(link) == 333333333333333333

    def test_canary_and_legacy_domains(self):
        assert (
            parse_message_reference(
                "https://canary.discordapp.com/channels/1/2/333333333333333333"
            )
            == 333333333333333333
        )

    def test_link_in_angle_brackets(self):
        assert (
            parse_message_reference("<https://discord.com/channels/@me/2/444444444444444444>")
            == 444444444444444444
        )

    @pytest.mark.parametrize("raw", ["", "hello", "12", "https://example.com/channels/1/2/3"])
    def test_garbage_is_a_syntax_error(self, raw):
        with pytest.raises(LookupSyntaxError):
            parse_message_reference(raw)


@pytest.mark.asyncio
async def test_lookup_returns_record(sample_record):
    registry = AsyncMock()
    registry.get.return_value = sample_record

    record = await lookup_relay(registry, str(sample_record.original_message_id))

    assert record == sample_record
    registry.get.assert_awaited_once_with(sample_record.original_message_id)


@pytest.mark.asyncio
async def test_lookup_miss_is_not_found():
    registry = AsyncMock()
    registry.get.return_value = None

    with pytest.raises(RelayNotFoundError):
        await lookup_relay(registry, "1000000000000000009")
