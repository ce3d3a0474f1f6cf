import weakref
from typing import TYPE_CHECKING

from ..types.relayer_types import RelayerTransaction, RelayerTransactionState
from ..utilities.constants import WAIT_MAX_POLLS
from ..utilities.exceptions import RelayerClientError

if TYPE_CHECKING:
    from .relay_client import RelayClient


class ClientRelayerTransactionResponse:
    """
    Submission acknowledgement bound to the client that produced it.

    Only a weak reference to the client is held; the client is expected to
    outlive every handle it returns.
    """

    def __init__(
        self,
        transaction_id: str,
        state: str,
        transaction_hash: str | None,
        client: "RelayClient",
    ):
        self.transaction_id = transaction_id
        self.state = state
        self.transaction_hash = transaction_hash
        self._client_ref = weakref.ref(client)

    def __repr__(self) -> str:
        return (
            f"ClientRelayerTransactionResponse(transaction_id={self.transaction_id!r}, "
            f"state={self.state!r}, transaction_hash={self.transaction_hash!r})"
        )

    @property
    def client(self) -> "RelayClient":
        client = self._client_ref()
        if client is None:
            msg = f"Relay client for transaction {self.transaction_id} is no longer available"
            raise RelayerClientError(msg)
        return client

    async def get_transaction(self) -> list[RelayerTransaction]:
        return await self.client.get_transaction(self.transaction_id)

    async def wait(self) -> RelayerTransaction | None:
        """Poll until the transaction is mined or confirmed, or has failed."""
        return await self.client.poll_until_state(
            self.transaction_id,
            [
                RelayerTransactionState.STATE_MINED.value,
                RelayerTransactionState.STATE_CONFIRMED.value,
            ],
            RelayerTransactionState.STATE_FAILED.value,
            WAIT_MAX_POLLS,
        )
