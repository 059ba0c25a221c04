import json
import logging
import traceback
from aiohttp import web
import sentry_sdk

from social.graze.ebsi.app.config import (
    HealthGaugeAppKey,
    ResolverAppKey,
    SettingsAppKey,
)
from social.graze.ebsi.errors import FetchError, InvalidDidError, UnknownNetworkError

logger = logging.getLogger(__name__)

DID_DOCUMENT_CONTENT_TYPE = "application/did+ld+json"


def _error_body(error: str, e: Exception) -> str:
    return json.dumps({"error": error, "error_type": type(e).__name__, "message": str(e)})


async def handle_resolve_identifier(request: web.Request):
    did = request.match_info["did"]
    resolver = request.app[ResolverAppKey]

    try:
        document = await resolver.resolve(did)
    except InvalidDidError as e:
        raise web.HTTPBadRequest(
            body=_error_body("invalidDid", e), content_type="application/json"
        )
    except UnknownNetworkError as e:
        raise web.HTTPNotFound(
            body=_error_body("unknownNetwork", e), content_type="application/json"
        )
    except FetchError as e:
        logger.warning("Registry fetch failed resolving %s: %s", did, e)
        await request.app[HealthGaugeAppKey].record_failure()
        sentry_sdk.capture_exception(e)
        raise web.HTTPBadGateway(
            body=_error_body("fetchFailed", e), content_type="application/json"
        )
    except Exception as e:
        logger.exception("Unexpected error resolving %s", did)
        sentry_sdk.capture_exception(e)

        body = {"error": "Internal Server Error", "error_type": type(e).__name__}
        if request.app[SettingsAppKey].debug:
            body["error_message"] = str(e)
            body["traceback"] = traceback.format_exc()

        raise web.HTTPInternalServerError(
            body=json.dumps(body), content_type="application/json"
        )

    return web.json_response(document.to_json(), content_type=DID_DOCUMENT_CONTENT_TYPE)
