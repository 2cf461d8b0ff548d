"""Wiring of the proxy components, built once per process."""

from dataclasses import dataclass

from .common.discord_rest import DiscordRest
from .common.settings import ProxySettings
from .proxy.dispatcher import RelayDispatcher
from .proxy.pipeline import ProxyPipeline
from .proxy.reactions import ReactionRouter
from .proxy.registry import RelayRegistry


@dataclass
class ProxyServices:
    settings: ProxySettings
    rest: DiscordRest
    registry: RelayRegistry
    dispatcher: RelayDispatcher
    pipeline: ProxyPipeline
    reactions: ReactionRouter


def build_services(settings: ProxySettings) -> ProxyServices:
    rest = DiscordRest(
        token=settings.discord_token,
        application_id=settings.application_id,
        webhook_name=settings.webhook_name,
        timeout=settings.request_timeout,
    )
    registry = RelayRegistry()
    dispatcher = RelayDispatcher(rest)
    return ProxyServices(
        settings=settings,
        rest=rest,
        registry=registry,
        dispatcher=dispatcher,
        pipeline=ProxyPipeline(dispatcher, registry, rest, settings),
        reactions=ReactionRouter(registry, rest),
    )
