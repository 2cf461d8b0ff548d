"""
Read-only runtime settings.

Built once at startup from config.yaml and the environment, then passed to
the components that need them.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .utils import load_config


@dataclass(frozen=True)
class ProxySettings:
    discord_token: str = ""
    application_id: Optional[int] = None
    ops_webhook_url: Optional[str] = None
    delete_delay: float = 1.0
    request_timeout: float = 10.0
    permission_warning_cooldown: float = 300.0
    webhook_name: str = "proxybot"
    seen_messages_capacity: int = 10000
    event_timeout: float = 30.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ProxySettings":
        proxy = config.get("proxy", {}) or {}
        system = config.get("system", {}) or {}
        application_id = os.getenv("DISCORD_APPLICATION_ID")
        return cls(
            discord_token=os.getenv("DISCORD_TOKEN", ""),
            application_id=int(application_id) if application_id else None,
            ops_webhook_url=os.getenv("OPS_WEBHOOK_URL") or None,
            delete_delay=float(proxy.get("delete_delay", cls.delete_delay)),
            request_timeout=float(proxy.get("request_timeout", cls.request_timeout)),
            permission_warning_cooldown=float(
                proxy.get("permission_warning_cooldown", cls.permission_warning_cooldown)
            ),
            webhook_name=str(proxy.get("webhook_name", cls.webhook_name)),
            seen_messages_capacity=int(
                proxy.get("seen_messages_capacity", cls.seen_messages_capacity)
            ),
            event_timeout=float(system.get("event_timeout", cls.event_timeout)),
        )


def load_settings(path: str | None = None) -> ProxySettings:
    return ProxySettings.from_config(load_config(path))
