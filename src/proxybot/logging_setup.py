import logging
import os
from functools import partial

from .common.discord_logging_handler import DiscordLogHandler
from .common.discord_rest import DiscordRest
from .common.settings import ProxySettings

debug = False
_ops_handler: DiscordLogHandler | None = None
_ops_rest: DiscordRest | None = None


def mute_logging_for_tests():
    """Disable Logfire/operator-webhook logging side effects in the test suite.

    Setting the ``SKIP_LOGFIRE`` environment variable to one of
    ``{"1", "true", "yes", "on"}`` has the same effect.
    """
    global debug
    debug = True


def _should_skip_logfire() -> bool:
    """Determine whether Logfire initialization should be skipped for this process."""
    if debug:
        return True

    skip_env = os.getenv("SKIP_LOGFIRE", "").strip().lower()
    if skip_env in {"1", "true", "yes", "on"}:
        return True

    if "PYTEST_CURRENT_TEST" in os.environ:
        return True

    return False


def build_ops_handler(webhook_url: str) -> DiscordLogHandler:
    """Handler forwarding warnings and errors to the operator webhook"""
    global _ops_rest
    _ops_rest = DiscordRest(token="")
    handler = DiscordLogHandler(send=partial(_ops_rest.post_to_webhook_url, webhook_url))
    handler.setFormatter(
        logging.Formatter(
            "[%(levelname)s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )
    )
    return handler


def setup_logging(settings: ProxySettings | None = None):
    global _ops_handler
    if _should_skip_logfire():
        logging.basicConfig(level=logging.DEBUG)
        return

    import logfire

    logfire.configure()

    handlers: list[logging.Handler] = [logfire.LogfireLoggingHandler()]

    if settings and settings.ops_webhook_url:
        _ops_handler = build_ops_handler(settings.ops_webhook_url)
        handlers.append(_ops_handler)

    logging.basicConfig(handlers=handlers, level=logging.DEBUG)
    logfire.install_auto_tracing(
        modules=["proxybot.proxy", "proxybot.database"],
        min_duration=0.01,
        check_imported_modules="ignore",
    )


def register_ops_logging_loop(loop):
    if _ops_handler:
        _ops_handler.set_event_loop(loop)


async def close_ops_logging():
    """Close the operator webhook client"""
    if _ops_rest:
        await _ops_rest.close()


# Silence known chatty loggers
CHATTY_LOGGERS = [
    "asyncio",
    "aiohttp.access",
]
for logger_name in CHATTY_LOGGERS:
    logging.getLogger(logger_name).setLevel(logging.WARNING)
