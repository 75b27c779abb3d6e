"""
Notion API pass-through.

Forwards dashboard calls to the Notion REST API using the caller's own
Notion integration token from ``X-Notion-Token``.
"""

import httpx
from fastapi import APIRouter, Request, Response

from shared.errors import AuthenticationError, ExternalServiceError
from shared.logging import get_logger

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"]
BODYLESS_METHODS = {"GET", "HEAD"}

logger = get_logger("gateway.notion_proxy")


def build_notion_proxy_router(
    client: httpx.AsyncClient,
    notion_version: str,
    prefix: str = "/api/proxy/notion",
) -> APIRouter:
    """Relay any method under ``prefix`` to Notion.

    ``client`` must be bound to the Notion API base URL.
    """
    router = APIRouter(prefix=prefix.rstrip("/"), tags=["proxy"])

    @router.api_route("/{path:path}", methods=PROXY_METHODS)
    async def proxy(path: str, request: Request):
        notion_token = request.headers.get("X-Notion-Token")
        if not notion_token:
            raise AuthenticationError("Missing X-Notion-Token header")

        body = None if request.method in BODYLESS_METHODS else await request.body()

        try:
            upstream = await client.request(
                request.method,
                f"/{path}",
                params=list(request.query_params.multi_items()),
                content=body,
                headers={
                    "Authorization": f"Bearer {notion_token}",
                    "Content-Type": "application/json",
                    "Notion-Version": notion_version,
                },
            )
        except httpx.HTTPError as exc:
            logger.error("Notion request failed", path=path, error=str(exc))
            raise ExternalServiceError("notion", str(exc) or type(exc).__name__) from exc

        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("Content-Type") or "application/json",
        )

    return router
