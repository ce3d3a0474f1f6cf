"""
Shared fixtures for relay client tests.

HTTP is faked with an httpx.MockTransport that serves queued JSON responses
per (method, path) and records every request it sees.
"""
import json
from collections import defaultdict
from typing import Any

import httpx
import pytest
from eth_account import Account

from polymarket_relayer import RelayClient
from polymarket_relayer.clients.http_client import HttpClient

# Well-known development key, never funded on a real network.
PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
ADDRESS = Account.from_key(PRIVATE_KEY).address

RELAYER_URL = "https://relayer.test"
RELAY_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
USDC = "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174"
CTF = "0x4D97DCd97eC945f40cF65F87097ACe5EA0476045"


class RelayerStub:
    def __init__(self) -> None:
        self._responses: dict[tuple[str, str], list[httpx.Response]] = defaultdict(list)
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, json_body: Any = None, status_code: int = 200) -> None:
        self._responses[(method.upper(), path)].append(
            httpx.Response(status_code, json=json_body)
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._responses.get((request.method, request.url.path))
        if not queue:
            raise AssertionError(f"Unexpected request {request.method} {request.url}")
        return queue.pop(0)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def submitted(self) -> dict:
        (request,) = self.requests_to("/submit")
        return json.loads(request.content)


@pytest.fixture
def relayer() -> RelayerStub:
    return RelayerStub()


@pytest.fixture
def make_client(relayer):
    def _make(**kwargs) -> RelayClient:
        kwargs.setdefault("chain_id", 137)
        kwargs.setdefault("signer", PRIVATE_KEY)
        return RelayClient(
            RELAYER_URL + "/",
            http_client=HttpClient(transport=relayer.transport()),
            **kwargs,
        )

    return _make
