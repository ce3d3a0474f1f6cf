import logging
from typing import Any

import httpx

from ..utilities.exceptions import RelayerConnectionError, RelayerRequestError

logger = logging.getLogger(__name__)

GET = "GET"
POST = "POST"
DELETE = "DELETE"
PUT = "PUT"


class HttpClient:
    """
    JSON transport for the relayer.

    Responses with a non-success status raise RelayerRequestError, requests
    that never got a response raise RelayerConnectionError. Nothing is retried.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(http2=True, timeout=timeout, transport=transport)

    async def send(
        self,
        url: str,
        method: str,
        headers: dict[str, str] | None = None,
        data: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        request_headers = dict(headers) if headers else {}
        if data is not None:
            request_headers.setdefault("Content-Type", "application/json")

        try:
            response = await self.client.request(
                method,
                url,
                headers=request_headers,
                content=data.encode("utf-8") if data is not None else None,
                params=params,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            resp = e.response
            try:
                body = resp.json()
            except ValueError:
                body = resp.text
            logger.error(
                "request error: status=%s status_text=%s data=%s",
                resp.status_code,
                resp.reason_phrase,
                body,
            )
            raise RelayerRequestError(resp.status_code, resp.reason_phrase, body) from e
        except httpx.RequestError as e:
            logger.error("connection error: %s %s: %s", method, url, e)
            raise RelayerConnectionError(url, str(e)) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(
                "malformed response: status=%s data=%s",
                response.status_code,
                response.text,
            )
            raise RelayerRequestError(
                response.status_code, response.reason_phrase, response.text
            ) from e

    async def aclose(self) -> None:
        await self.client.aclose()
