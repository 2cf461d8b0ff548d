"""
Discord REST client.

Thin aiohttp wrapper over the handful of Discord API calls the bot makes:
relay webhooks, message deletion, direct messages and channel messages.
"""

import json
import logging
from typing import Any, Optional

import aiohttp

from ..proxy.errors import RelayEndpointGone
from ..proxy.models import Attachment, RelayEndpoint
from .utils import retry_on_network_error

logger = logging.getLogger(__name__)

API_BASE = "https://discord.com/api/v10"

# Discord JSON error codes
UNKNOWN_CHANNEL = 10003
UNKNOWN_MESSAGE = 10008
UNKNOWN_WEBHOOK = 10015

# Incoming webhooks, the only kind that can be executed with a token
INCOMING_WEBHOOK = 1

MAX_MESSAGE_LENGTH = 2000


class DiscordApiError(Exception):
    def __init__(self, status: int, code: Optional[int], message: str):
        super().__init__(f"Discord API error {status} (code {code}): {message}")
        self.status = status
        self.code = code


class DiscordNotFound(DiscordApiError):
    pass


class DiscordRest:
    def __init__(
        self,
        token: str,
        application_id: Optional[int] = None,
        webhook_name: str = "proxybot",
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
        api_base: str = API_BASE,
    ) -> None:
        self._token = token
        self._application_id = application_id
        self._webhook_name = webhook_name
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._api_base = api_base

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"User-Agent": "DiscordBot (proxybot, 0.1.0)"},
            )
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: Any = None,
        data: Any = None,
        params: Optional[dict] = None,
        authorize: bool = True,
    ) -> Any:
        headers = {"Authorization": f"Bot {self._token}"} if authorize else {}
        url = path if path.startswith(("http://", "https://")) else f"{self._api_base}{path}"
        session = self._get_session()
        async with session.request(
            method, url, json=payload, data=data, params=params, headers=headers
        ) as response:
            if response.status == 204:
                return None
            raw = await response.read()
            try:
                body = json.loads(raw) if raw else None
            except ValueError:
                body = raw.decode("utf-8", errors="replace")
            if response.status >= 400:
                code = body.get("code") if isinstance(body, dict) else None
                message = body.get("message", "") if isinstance(body, dict) else str(body)
                error_cls = DiscordNotFound if response.status == 404 else DiscordApiError
                raise error_cls(response.status, code, message)
            return body

    # Relay webhooks

    async def list_channel_webhooks(self, channel_id: int) -> list[dict]:
        return await self._request("GET", f"/channels/{channel_id}/webhooks") or []

    async def create_webhook(self, channel_id: int) -> dict:
        return await self._request(
            "POST",
            f"/channels/{channel_id}/webhooks",
            payload={"name": self._webhook_name},
        )

    def _is_own_webhook(self, hook: dict) -> bool:
        if hook.get("type") != INCOMING_WEBHOOK or not hook.get("token"):
            return False
        if self._application_id is None:
            return hook.get("name") == self._webhook_name
        return str(hook.get("application_id")) == str(self._application_id)

    async def get_or_create_webhook(self, channel_id: int) -> RelayEndpoint:
        """Reuse the bot's webhook in the channel, or create one"""
        hooks = await self.list_channel_webhooks(channel_id)
        hook = next((h for h in hooks if self._is_own_webhook(h)), None)
        if hook is None:
            hook = await self.create_webhook(channel_id)
            logger.info(f"Created relay webhook {hook['id']} in channel {channel_id}")
        return RelayEndpoint(
            channel_id=channel_id,
            endpoint_id=int(hook["id"]),
            secret_token=hook["token"],
        )

    async def execute_webhook(
        self,
        endpoint: RelayEndpoint,
        text: str,
        username: str,
        avatar_url: Optional[str],
        attachment: Optional[Attachment] = None,
    ) -> int:
        """
        Post a message through a relay webhook and return its id.

        An attachment is piped from its URL straight into the multipart upload.

        Raises:
            RelayEndpointGone: the webhook no longer exists
        """
        path = f"/webhooks/{endpoint.endpoint_id}/{endpoint.secret_token}"
        params = {"wait": "true"}
        body: dict[str, Any] = {"content": text, "username": username}
        if avatar_url:
            body["avatar_url"] = avatar_url

        try:
            if attachment is None:
                message = await self._request(
                    "POST", path, payload=body, params=params, authorize=False
                )
            else:
                body["attachments"] = [{"id": 0, "filename": attachment.filename}]
                session = self._get_session()
                async with session.get(attachment.url) as source:
                    source.raise_for_status()
                    form = aiohttp.FormData()
                    form.add_field(
                        "payload_json", json.dumps(body), content_type="application/json"
                    )
                    form.add_field(
                        "files[0]",
                        source.content,
                        filename=attachment.filename,
                        content_type=attachment.content_type
                        or source.content_type
                        or "application/octet-stream",
                    )
                    message = await self._request(
                        "POST", path, data=form, params=params, authorize=False
                    )
        except DiscordNotFound as e:
            if e.code in (UNKNOWN_WEBHOOK, None):
                raise RelayEndpointGone(endpoint.channel_id, endpoint.endpoint_id) from e
            raise

        return int(message["id"])

    # Messages

    async def delete_message(self, channel_id: int, message_id: int) -> bool:
        """Delete a message; returns False if it was already gone"""
        try:
            await self._request("DELETE", f"/channels/{channel_id}/messages/{message_id}")
        except DiscordNotFound as e:
            if e.code in (UNKNOWN_MESSAGE, UNKNOWN_CHANNEL, None):
                return False
            raise
        return True

    @retry_on_network_error
    async def send_message(self, channel_id: int, content: str) -> int:
        message = await self._request(
            "POST",
            f"/channels/{channel_id}/messages",
            payload={
                "content": content[:MAX_MESSAGE_LENGTH],
                "allowed_mentions": {"parse": []},
            },
        )
        return int(message["id"])

    @retry_on_network_error
    async def open_dm(self, account_id: int) -> int:
        channel = await self._request(
            "POST", "/users/@me/channels", payload={"recipient_id": str(account_id)}
        )
        return int(channel["id"])

    async def deliver_private(self, account_id: int, text: str) -> None:
        """Send a direct message to an account"""
        dm_channel_id = await self.open_dm(account_id)
        await self.send_message(dm_channel_id, text)

    @retry_on_network_error
    async def post_to_webhook_url(self, webhook_url: str, content: str) -> None:
        """Post plain content to a webhook URL, used for operator alerts"""
        await self._request(
            "POST",
            webhook_url,
            payload={"content": content[:MAX_MESSAGE_LENGTH], "allowed_mentions": {"parse": []}},
            authorize=False,
        )
