import logging
from datetime import datetime

import httpx

from ..types.builder_types import ApiCreds, RemoteBuilderConfig, RequestArgs
from .signing.hmac import build_hmac_signature

logger = logging.getLogger(__name__)

POLY_BUILDER_API_KEY = "POLY_BUILDER_API_KEY"
POLY_BUILDER_PASSPHRASE = "POLY_BUILDER_PASSPHRASE"
POLY_BUILDER_SIGNATURE = "POLY_BUILDER_SIGNATURE"
POLY_BUILDER_TIMESTAMP = "POLY_BUILDER_TIMESTAMP"

BUILDER_HEADERS = (
    POLY_BUILDER_API_KEY,
    POLY_BUILDER_PASSPHRASE,
    POLY_BUILDER_SIGNATURE,
    POLY_BUILDER_TIMESTAMP,
)


def create_builder_headers(
    creds: ApiCreds, request_args: RequestArgs, timestamp: int | None = None
) -> dict[str, str]:
    """Create builder attribution headers for a relayer request."""
    timestamp = timestamp if timestamp is not None else int(datetime.now().timestamp())

    builder_sig = build_hmac_signature(
        creds.secret,
        str(timestamp),
        request_args.method,
        request_args.request_path,
        request_args.body,
    )

    return {
        POLY_BUILDER_API_KEY: creds.key,
        POLY_BUILDER_PASSPHRASE: creds.passphrase,
        POLY_BUILDER_SIGNATURE: builder_sig,
        POLY_BUILDER_TIMESTAMP: str(timestamp),
    }


class BuilderConfig:
    """
    Builder identity used to attribute relayer requests.

    Headers are computed locally from API credentials when they are present,
    otherwise by a remote signing server.
    """

    def __init__(
        self,
        local_builder_creds: ApiCreds | None = None,
        remote_builder_config: RemoteBuilderConfig | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.local_builder_creds = local_builder_creds
        self.remote_builder_config = remote_builder_config
        self.timeout = timeout
        self._transport = transport

    def _has_local_creds(self) -> bool:
        creds = self.local_builder_creds
        return (
            creds is not None
            and bool(creds.key)
            and bool(creds.secret)
            and bool(creds.passphrase)
        )

    def is_valid(self) -> bool:
        if self._has_local_creds():
            return True
        remote = self.remote_builder_config
        return remote is not None and bool(remote.url)

    async def generate_builder_headers(
        self, method: str, path: str, body: str | None = None
    ) -> dict[str, str] | None:
        """Return builder headers for the request, or None if none can be made."""
        if not self.is_valid():
            return None

        request_args = RequestArgs(method=method, request_path=path, body=body)
        if self._has_local_creds():
            return create_builder_headers(self.local_builder_creds, request_args)

        return await self._remote_builder_headers(request_args)

    async def _remote_builder_headers(
        self, request_args: RequestArgs
    ) -> dict[str, str] | None:
        remote = self.remote_builder_config
        headers = {"Content-Type": "application/json"}
        if remote.token:
            headers["Authorization"] = f"Bearer {remote.token}"
        payload = {
            "method": request_args.method,
            "path": request_args.request_path,
            "body": request_args.body,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(remote.url, json=payload, headers=headers)
                response.raise_for_status()
                signed = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Remote builder signing failed: %s", e)
            return None

        if not isinstance(signed, dict) or not all(h in signed for h in BUILDER_HEADERS):
            logger.warning("Remote builder signer returned incomplete headers")
            return None
        return {h: str(signed[h]) for h in BUILDER_HEADERS}
