import asyncio
import gc
from unittest.mock import AsyncMock

import pytest

from polymarket_relayer.clients.response import ClientRelayerTransactionResponse
from polymarket_relayer.types.relayer_types import RelayerTransactionState
from polymarket_relayer.utilities.exceptions import RelayerClientError


@pytest.fixture
def sleep(monkeypatch) -> AsyncMock:
    fake_sleep = AsyncMock()
    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return fake_sleep


def _queue_states(relayer, states, transaction_hash=None):
    for state in states:
        relayer.add(
            "GET",
            "/transaction",
            [{"transactionID": "tx-1", "state": state, "transactionHash": transaction_hash}],
        )


class TestPollUntilState:
    async def test_matches_on_third_attempt(self, make_client, relayer, sleep):
        _queue_states(relayer, ["pending", "pending", "confirmed"])

        txn = await make_client().poll_until_state(
            "tx-1", ["confirmed"], "failed", max_polls=3, poll_frequency=1000
        )

        assert txn is not None
        assert txn.state == "confirmed"
        assert len(relayer.requests) == 3
        assert sleep.await_count == 2
        sleep.assert_awaited_with(1.0)

    async def test_fail_state_stops_polling(self, make_client, relayer, sleep):
        _queue_states(relayer, ["pending", "failed"], transaction_hash="0xdead")

        txn = await make_client().poll_until_state(
            "tx-1", ["confirmed"], "failed", max_polls=3, poll_frequency=1000
        )

        assert txn is None
        assert len(relayer.requests) == 2

    async def test_times_out_after_budget(self, make_client, relayer, sleep):
        _queue_states(relayer, ["pending", "pending", "pending"])

        txn = await make_client().poll_until_state(
            "tx-1", ["confirmed"], "failed", max_polls=3, poll_frequency=1000
        )

        assert txn is None
        assert len(relayer.requests) == 3

    async def test_unknown_id_keeps_polling(self, make_client, relayer, sleep):
        relayer.add("GET", "/transaction", [])
        _queue_states(relayer, ["confirmed"])

        txn = await make_client().poll_until_state("tx-1", ["mined", "confirmed"], max_polls=5)

        assert txn.transaction_id == "tx-1"
        assert len(relayer.requests) == 2

    async def test_without_fail_state_failure_is_not_terminal(self, make_client, relayer, sleep):
        _queue_states(relayer, ["failed", "failed"])

        txn = await make_client().poll_until_state("tx-1", ["confirmed"], max_polls=2)

        assert txn is None
        assert len(relayer.requests) == 2

    async def test_default_frequency(self, make_client, relayer, sleep):
        _queue_states(relayer, ["pending", "confirmed"])
        await make_client().poll_until_state("tx-1", ["confirmed"])
        sleep.assert_awaited_once_with(2.0)

    async def test_frequency_is_clamped(self, make_client, relayer, sleep):
        _queue_states(relayer, ["pending", "confirmed"])
        await make_client().poll_until_state("tx-1", ["confirmed"], poll_frequency=10)
        sleep.assert_awaited_once_with(1.0)

    async def test_default_budget(self, make_client, relayer, sleep):
        _queue_states(relayer, ["pending"] * 10)
        assert await make_client().poll_until_state("tx-1", ["confirmed"]) is None
        assert len(relayer.requests) == 10

    async def test_accepts_state_enums(self, make_client, relayer, sleep):
        _queue_states(relayer, ["STATE_MINED"])
        txn = await make_client().poll_until_state(
            "tx-1",
            [RelayerTransactionState.STATE_MINED],
            RelayerTransactionState.STATE_FAILED,
        )
        assert txn.state == "STATE_MINED"


class TestResponseHandle:
    async def test_wait_polls_for_mined_or_confirmed(self, make_client):
        client = make_client()
        client.poll_until_state = AsyncMock(return_value=None)
        resp = ClientRelayerTransactionResponse("tx-1", "STATE_NEW", None, client)

        await resp.wait()

        client.poll_until_state.assert_awaited_once_with(
            "tx-1", ["STATE_MINED", "STATE_CONFIRMED"], "STATE_FAILED", 30
        )

    async def test_get_transaction(self, make_client, relayer):
        _queue_states(relayer, ["STATE_EXECUTED"])
        client = make_client()
        resp = ClientRelayerTransactionResponse("tx-1", "STATE_NEW", None, client)

        txns = await resp.get_transaction()

        assert txns[0].state == "STATE_EXECUTED"
        assert client is resp.client

    def test_handle_does_not_keep_client_alive(self, make_client):
        client = make_client()
        resp = ClientRelayerTransactionResponse("tx-1", "STATE_NEW", "0x01", client)
        del client
        gc.collect()

        with pytest.raises(RelayerClientError):
            _ = resp.client
