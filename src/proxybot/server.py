import asyncio
import logging
import time
from dataclasses import asdict
from typing import Optional

import logfire
from aiohttp import web

from .bot import ProxyServices, build_services
from .common.settings import ProxySettings, load_settings
from .database.postgres_connection import close_pool
from .handlers.dispatch import UNHANDLED, dispatch_update
from .logging_setup import close_ops_logging, register_ops_logging_loop
from .proxy.errors import LookupSyntaxError, RelayNotFoundError
from .proxy.lookup import lookup_relay

logger = logging.getLogger(__name__)

SERVICES = web.AppKey("services", ProxyServices)

routes = web.RouteTableDef()


@routes.get("/health")
async def healthcheck(_: web.Request) -> web.Response:
    """Return plain OK response for health probes."""
    return web.Response(text="ok")


@routes.post("/events")
async def handle_event(request: web.Request) -> web.Response:
    """Handle one gateway dispatch payload forwarded by the gateway process"""
    if not await request.read():
        return web.Response()

    update = await request.json()

    if not isinstance(update, dict) or "t" not in update:
        logger.warning(f"Received invalid event format: {update}")
        return web.json_response(
            {"error": "Invalid event format", "required_field": "t"},
            status=400,
        )

    services = request.app[SERVICES]
    start_time = time.time()

    with logfire.span("Event: {event_type}", event_type=update["t"]) as span:
        try:
            result = await asyncio.wait_for(
                dispatch_update(services, update),
                timeout=services.settings.event_timeout,
            )
            span.tags = ["unhandled"] if result == UNHANDLED else [result]
            return web.json_response({"result": result})

        except asyncio.TimeoutError:
            elapsed = time.time() - start_time
            logger.warning(f"Event processing timed out after {elapsed:.2f} seconds")
            span.tags = ["event_timeout"]
            return web.json_response({"error": "Processing timed out"})

        except Exception as e:
            span.tags = ["unhandled_exception"]
            span.record_exception(e)
            logger.error(f"Unhandled exception for {update['t']}: {e}", exc_info=True)
            # 200 so the forwarder does not redeliver a half-processed event
            return web.json_response({"message": "Error processing event"})


@routes.get("/messages/{reference}")
async def get_relayed_message(request: web.Request) -> web.Response:
    """Look up a relayed message by its id, its original's id, or a message link"""
    services = request.app[SERVICES]
    try:
        record = await lookup_relay(services.registry, request.match_info["reference"])
    except LookupSyntaxError as e:
        return web.json_response({"error": str(e)}, status=400)
    except RelayNotFoundError as e:
        return web.json_response({"error": str(e)}, status=404)

    body = asdict(record)
    body["created_at"] = record.created_at.isoformat()
    for key in (
        "original_message_id",
        "relayed_message_id",
        "channel_id",
        "sending_account_id",
        "owner_id",
    ):
        # Snowflakes exceed the JSON safe integer range
        body[key] = str(body[key])
    return web.json_response(body)


async def _on_startup_register_logging(app: web.Application) -> None:
    register_ops_logging_loop(asyncio.get_running_loop())


async def _on_startup_log_server_started(app: web.Application) -> None:
    logging.warning("Server started")


async def _shutdown(app: web.Application) -> None:
    """Gracefully shutdown all resources."""
    logger.warning("Starting graceful shutdown...")

    async with asyncio.TaskGroup() as tg:
        tg.create_task(app[SERVICES].rest.close())
        tg.create_task(close_pool())
        tg.create_task(close_ops_logging())


def create_app(
    settings: Optional[ProxySettings] = None,
    services: Optional[ProxyServices] = None,
) -> web.Application:
    app = web.Application()
    app[SERVICES] = services or build_services(settings or load_settings())
    app.add_routes(routes)
    app.on_startup.append(_on_startup_register_logging)
    app.on_startup.append(_on_startup_log_server_started)
    app.on_shutdown.append(_shutdown)
    return app
