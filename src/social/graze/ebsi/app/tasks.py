import asyncio
import logging
from typing import NoReturn
from aiohttp import web
import sentry_sdk

from social.graze.ebsi.app.config import HealthGaugeAppKey, MetricsClientAppKey

logger = logging.getLogger(__name__)


async def tick_health_task(app: web.Application) -> NoReturn:
    """Decay the health gauge once a second and publish its value."""
    logger.info("Starting health gauge ticker")

    health_gauge = app[HealthGaugeAppKey]
    metrics_client = app[MetricsClientAppKey]

    while True:
        try:
            value = await health_gauge.tick()
            metrics_client.gauge("ebsi.health.value", value)
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.exception("health gauge tick failed")

        await asyncio.sleep(1)
