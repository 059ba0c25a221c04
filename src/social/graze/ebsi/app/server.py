import asyncio
import contextlib
import logging
from time import time
from typing import Optional
import aiohttp
from aiohttp import web
import sentry_sdk
from sentry_sdk.integrations.aiohttp import AioHttpIntegration

from social.graze.ebsi.app.config import (
    HealthGaugeAppKey,
    MetricsClientAppKey,
    ResolverAppKey,
    SessionAppKey,
    Settings,
    SettingsAppKey,
    TickHealthTaskAppKey,
)
from social.graze.ebsi.app.handlers.identifiers import handle_resolve_identifier
from social.graze.ebsi.app.handlers.internal import (
    handle_internal_alive,
    handle_internal_ready,
)
from social.graze.ebsi.app.metrics import create_metrics_client
from social.graze.ebsi.app.tasks import tick_health_task
from social.graze.ebsi.model.health import HealthGauge
from social.graze.ebsi.resolve.did import build_resolver

logger = logging.getLogger(__name__)


async def background_tasks(app):
    """Build the shared session, metrics client and resolver; tear them down on shutdown."""
    settings: Settings = app[SettingsAppKey]
    logger.info("Starting up")

    session = aiohttp.ClientSession()
    app[SessionAppKey] = session

    metrics_client = create_metrics_client(
        settings.metrics_backend,
        host=settings.statsd_host,
        port=settings.statsd_port,
        debug=settings.debug,
    )
    await metrics_client.connect()
    app[MetricsClientAppKey] = metrics_client

    networks = settings.network_table()
    app[ResolverAppKey] = build_resolver(
        session,
        networks,
        metrics_client=metrics_client,
        timeout=aiohttp.ClientTimeout(total=settings.rpc_timeout),
        debug=settings.debug,
    )
    logger.info(
        "Resolver ready for networks: %s",
        ", ".join(network.name for network in networks.networks),
    )

    tick_task = asyncio.create_task(tick_health_task(app))
    app[TickHealthTaskAppKey] = tick_task

    yield

    logger.info("Shutting down")

    tick_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await tick_task

    await app[SessionAppKey].close()
    await metrics_client.close()


@web.middleware
async def sentry_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception as e:
        sentry_sdk.capture_exception(e)
        raise


@web.middleware
async def statsd_middleware(request: web.Request, handler):
    """Count and time requests, tagged by route pattern, method and status."""
    metrics_client = request.app[MetricsClientAppKey]
    resource = request.match_info.route.resource
    # Route pattern rather than path, so each DID does not become its own tag value.
    tags = {
        "path": resource.canonical if resource is not None else request.path,
        "method": request.method,
    }

    started = time()
    status = 0
    try:
        response = await handler(request)
        status = response.status
        return response
    except web.HTTPException as e:
        status = e.status
        raise
    except Exception as e:
        metrics_client.increment(
            "ebsi.server.request.exception",
            1,
            tag_dict={**tags, "exception": type(e).__name__},
        )
        raise
    finally:
        metrics_client.timer("ebsi.server.request.time", time() - started, tag_dict=tags)
        metrics_client.increment(
            "ebsi.server.request.count", 1, tag_dict={**tags, "status": status}
        )


def add_routes(app: web.Application) -> None:
    app.add_routes(
        [
            web.get("/1.0/identifiers/{did}", handle_resolve_identifier),
            web.get("/internal/alive", handle_internal_alive),
            web.get("/internal/ready", handle_internal_ready),
        ]
    )


async def start_web_server(settings: Optional[Settings] = None) -> web.Application:
    if settings is None:
        settings = Settings()  # type: ignore

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            integrations=[AioHttpIntegration()],
        )

    app = web.Application(middlewares=[statsd_middleware, sentry_middleware])
    app[SettingsAppKey] = settings
    app[HealthGaugeAppKey] = HealthGauge()
    add_routes(app)
    app.cleanup_ctx.append(background_tasks)

    return app
