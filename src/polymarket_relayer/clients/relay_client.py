import asyncio
import logging
import time
from enum import Enum
from typing import Any

from web3 import Web3

from ..types.common import EthAddress
from ..types.relayer_types import (
    CallType,
    GetDeployedResponse,
    NoncePayload,
    OperationType,
    ProxyTransaction,
    ProxyTransactionArgs,
    RelayerTransaction,
    RelayerTransactionResponse,
    RelayerTxType,
    RelayPayload,
    SafeCreateTransactionArgs,
    SafeTransaction,
    SafeTransactionArgs,
    Transaction,
    TransactionRequest,
    TransactionType,
)
from ..utilities.builder import (
    build_proxy_transaction_request,
    build_safe_create_transaction_request,
    build_safe_transaction_request,
)
from ..utilities.config import (
    RelaySettings,
    get_contract_config,
    is_proxy_contract_config_valid,
    is_safe_contract_config_valid,
)
from ..utilities.constants import (
    ADDRESS_ZERO,
    DEFAULT_MAX_POLLS,
    DEFAULT_POLL_FREQUENCY_MS,
    MIN_POLL_FREQUENCY_MS,
    POLYGON,
    PROXY_GAS_MULTIPLIER,
    PROXY_GAS_PADDING,
)
from ..utilities.endpoints import (
    GET_DEPLOYED,
    GET_NONCE,
    GET_RELAY_PAYLOAD,
    GET_TRANSACTION,
    GET_TRANSACTIONS,
    SUBMIT_TRANSACTION,
)
from ..utilities.exceptions import (
    ConfigUnsupportedOnChainError,
    EmptyBatchError,
    SafeAlreadyDeployedError,
    SafeNotDeployedError,
    SignerUnavailableError,
    UnsupportedRelayTxTypeError,
)
from ..utilities.headers import BuilderConfig
from ..utilities.signing.signer import AbstractSigner, call_signer, create_abstract_signer
from ..utilities.web3.helpers import (
    derive_proxy_wallet,
    derive_safe,
    encode_proxy_transaction_data,
)
from .http_client import GET, POST, HttpClient
from .response import ClientRelayerTransactionResponse

logger = logging.getLogger(__name__)


def _tag(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class RelayClient:
    """
    Client for submitting gasless transactions through the Polymarket relayer.

    A client is bound to one submission scheme for its lifetime: Safe wallets
    (``RelayerTxType.SAFE``) or Polymarket proxy wallets
    (``RelayerTxType.PROXY``).

    Nonces are fetched right before each request is built. Two overlapping
    ``execute`` calls for the same signer still race on the same nonce and
    one of them will be rejected by the relayer; callers that submit
    concurrently must serialize per address themselves.
    """

    def __init__(
        self,
        relayer_url: str,
        chain_id: int = POLYGON,
        signer: Any = None,
        builder_config: BuilderConfig | None = None,
        relay_tx_type: RelayerTxType = RelayerTxType.SAFE,
        http_client: HttpClient | None = None,
    ):
        self.relayer_url = relayer_url[:-1] if relayer_url.endswith("/") else relayer_url
        self.chain_id = chain_id
        self.relay_tx_type = relay_tx_type
        self.contract_config = get_contract_config(chain_id)
        self.http_client = http_client if http_client else HttpClient()
        self.builder_config = builder_config

        self._signer: AbstractSigner | None = (
            create_abstract_signer(chain_id, signer) if signer is not None else None
        )

    @classmethod
    def from_settings(
        cls,
        settings: RelaySettings | None = None,
        signer: Any = None,
    ) -> "RelayClient":
        """Build a client from environment-backed settings."""
        settings = settings if settings else RelaySettings()
        return cls(
            relayer_url=settings.relayer_url,
            chain_id=settings.chain_id,
            signer=signer,
            builder_config=settings.builder_config(),
            relay_tx_type=settings.relay_tx_type,
            http_client=HttpClient(timeout=settings.http_timeout),
        )

    @property
    def signer(self) -> AbstractSigner | None:
        return self._signer

    async def __aenter__(self) -> "RelayClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def get_nonce(self, signer_address: EthAddress, signer_type: str) -> NoncePayload:
        """Get the relayer nonce for an address and wallet type."""
        resp = await self._send(
            GET_NONCE,
            GET,
            params={"address": signer_address, "type": _tag(signer_type)},
        )
        return NoncePayload.model_validate(resp)

    async def get_relay_payload(
        self, signer_address: EthAddress, signer_type: str
    ) -> RelayPayload:
        """Get the relay address and nonce used to sign proxy transactions."""
        resp = await self._send(
            GET_RELAY_PAYLOAD,
            GET,
            params={"address": signer_address, "type": _tag(signer_type)},
        )
        return RelayPayload.model_validate(resp)

    async def get_transaction(self, transaction_id: str) -> list[RelayerTransaction]:
        """
        Get the relayer records for a transaction id.

        An empty list means the relayer does not know the id yet. When several
        records come back the first one is authoritative.
        """
        resp = await self._send(GET_TRANSACTION, GET, params={"id": transaction_id})
        if resp is None:
            return []
        if isinstance(resp, dict):
            resp = [resp]
        return [RelayerTransaction.model_validate(txn) for txn in resp]

    async def get_transactions(self) -> list[RelayerTransaction]:
        """Get the transactions submitted by the authenticated builder."""
        resp = await self._send_authed_request(GET, GET_TRANSACTIONS)
        if not resp:
            return []
        if isinstance(resp, dict):
            resp = [resp]
        return [RelayerTransaction.model_validate(txn) for txn in resp]

    async def get_deployed(self, safe: EthAddress) -> bool:
        resp = await self._send(GET_DEPLOYED, GET, params={"address": safe})
        return GetDeployedResponse.model_validate(resp).deployed

    def get_expected_safe(self) -> EthAddress:
        """Get the Safe address derived from the signer."""
        self._signer_needed()
        return derive_safe(
            self._signer_address(), self.contract_config.safe_contracts.safe_factory
        )

    def get_expected_proxy_wallet(self) -> EthAddress:
        """Get the proxy wallet address derived from the signer."""
        self._signer_needed()
        return derive_proxy_wallet(
            self._signer_address(), self.contract_config.proxy_contracts.proxy_factory
        )

    async def execute(
        self,
        txns: list[Transaction],
        metadata: str | None = None,
    ) -> ClientRelayerTransactionResponse:
        """
        Execute a batch of transactions through the relayer.

        Args:
            txns: Calls to execute, in on-chain order
            metadata: Optional label stored by the relayer

        Returns:
            Handle on the submitted transaction

        """
        self._signer_needed()

        if not txns:
            raise EmptyBatchError

        txns = [Transaction.model_validate(txn) for txn in txns]

        match self.relay_tx_type:
            case RelayerTxType.SAFE:
                return await self._execute_safe_transactions(
                    [
                        SafeTransaction(
                            to=txn.to,
                            operation=OperationType.CALL,
                            data=txn.data,
                            value="0",
                        )
                        for txn in txns
                    ],
                    metadata,
                )
            case RelayerTxType.PROXY:
                return await self._execute_proxy_transactions(
                    [
                        ProxyTransaction(
                            to=txn.to,
                            type_code=CallType.CALL,
                            data=txn.data,
                            value="0",
                        )
                        for txn in txns
                    ],
                    metadata,
                )
            case _:
                raise UnsupportedRelayTxTypeError(self.relay_tx_type)

    async def _execute_proxy_transactions(
        self, txns: list[ProxyTransaction], metadata: str | None = None
    ) -> ClientRelayerTransactionResponse:
        logger.info("Executing proxy transactions...")
        proxy_contract_config = self.contract_config.proxy_contracts
        if not is_proxy_contract_config_valid(proxy_contract_config):
            raise ConfigUnsupportedOnChainError(self.chain_id, RelayerTxType.PROXY.value)

        start = time.monotonic()
        from_address = await asyncio.to_thread(self._signer_address)
        relay_payload = await self.get_relay_payload(from_address, TransactionType.PROXY)
        data = encode_proxy_transaction_data(txns)
        gas_limit = await asyncio.to_thread(
            self._estimate_proxy_gas,
            from_address,
            proxy_contract_config.proxy_factory,
            data,
        )
        args = ProxyTransactionArgs(
            from_address=from_address,
            gas_price="0",
            data=data,
            relay=relay_payload.address,
            nonce=relay_payload.nonce,
            gas_limit=gas_limit,
        )

        request = await asyncio.to_thread(
            build_proxy_transaction_request,
            self._signer,
            args,
            proxy_contract_config,
            metadata,
        )
        logger.info(
            "Client side proxy request creation took: %.3f seconds",
            time.monotonic() - start,
        )

        return await self._submit(request)

    async def _execute_safe_transactions(
        self, txns: list[SafeTransaction], metadata: str | None = None
    ) -> ClientRelayerTransactionResponse:
        logger.info("Executing safe transactions...")
        safe_contract_config = self.contract_config.safe_contracts
        if not is_safe_contract_config_valid(safe_contract_config):
            raise ConfigUnsupportedOnChainError(self.chain_id, RelayerTxType.SAFE.value)

        safe = await asyncio.to_thread(self.get_expected_safe)
        if not await self.get_deployed(safe):
            raise SafeNotDeployedError(safe)

        start = time.monotonic()
        from_address = await asyncio.to_thread(self._signer_address)
        nonce_payload = await self.get_nonce(from_address, TransactionType.SAFE)
        args = SafeTransactionArgs(
            transactions=txns,
            from_address=from_address,
            nonce=nonce_payload.nonce,
            chain_id=self.chain_id,
        )

        request = await asyncio.to_thread(
            build_safe_transaction_request,
            self._signer,
            args,
            safe_contract_config,
            metadata,
        )
        logger.info(
            "Client side safe request creation took: %.3f seconds",
            time.monotonic() - start,
        )

        return await self._submit(request)

    async def deploy(self) -> ClientRelayerTransactionResponse:
        """Deploy the signer's Safe wallet; refuses if it already exists."""
        self._signer_needed()
        if self.relay_tx_type != RelayerTxType.SAFE:
            raise UnsupportedRelayTxTypeError(self.relay_tx_type)

        safe_contract_config = self.contract_config.safe_contracts
        if not is_safe_contract_config_valid(safe_contract_config):
            raise ConfigUnsupportedOnChainError(self.chain_id, RelayerTxType.SAFE.value)

        safe = await asyncio.to_thread(self.get_expected_safe)
        if await self.get_deployed(safe):
            raise SafeAlreadyDeployedError(safe)

        logger.info("Deploying safe %s...", safe)
        start = time.monotonic()
        args = SafeCreateTransactionArgs(
            from_address=await asyncio.to_thread(self._signer_address),
            chain_id=self.chain_id,
            payment_token=ADDRESS_ZERO,
            payment="0",
            payment_receiver=ADDRESS_ZERO,
        )
        request = await asyncio.to_thread(
            build_safe_create_transaction_request,
            self._signer,
            safe_contract_config,
            args,
        )
        logger.info(
            "Client side deploy request creation took: %.3f seconds",
            time.monotonic() - start,
        )

        return await self._submit(request)

    async def poll_until_state(
        self,
        transaction_id: str,
        states: list[str],
        fail_state: str | None = None,
        max_polls: int | None = None,
        poll_frequency: int | None = None,
    ) -> RelayerTransaction | None:
        """
        Poll a transaction until it reaches one of ``states``.

        Returns the matching record, or None when the transaction reaches
        ``fail_state`` or ``max_polls`` attempts pass without a match. A None
        after timing out does not mean the transaction failed.

        Args:
            transaction_id: Relayer transaction id
            states: Target states
            fail_state: State that ends polling without a result
            max_polls: Attempt budget, 10 by default
            poll_frequency: Milliseconds between attempts, 2000 by default
                and never below 1000

        """
        target_states = [_tag(state) for state in states]
        fail_state = _tag(fail_state)
        logger.info(
            "Waiting for transaction %s matching states: %s...",
            transaction_id,
            target_states,
        )
        max_poll_count = max_polls if max_polls is not None else DEFAULT_MAX_POLLS
        poll_freq = DEFAULT_POLL_FREQUENCY_MS
        if poll_frequency is not None:
            poll_freq = max(poll_frequency, MIN_POLL_FREQUENCY_MS)

        poll_count = 0
        while poll_count < max_poll_count:
            txns = await self.get_transaction(transaction_id)
            if txns:
                txn = txns[0]
                if txn.state in target_states:
                    return txn
                if fail_state is not None and txn.state == fail_state:
                    logger.error(
                        "txn %s failed onchain! Transaction hash: %s",
                        transaction_id,
                        txn.transaction_hash,
                    )
                    return None
            poll_count += 1
            if poll_count < max_poll_count:
                await asyncio.sleep(poll_freq / 1000)

        logger.info(
            "Transaction %s not found or not in given states, timing out!",
            transaction_id,
        )
        return None

    async def _submit(self, request: TransactionRequest) -> ClientRelayerTransactionResponse:
        payload = request.to_payload()
        resp = await self._send_authed_request(POST, SUBMIT_TRANSACTION, payload)
        ack = RelayerTransactionResponse.model_validate(resp)
        logger.info(
            "Relayer accepted transaction %s (state=%s, hash=%s)",
            ack.transaction_id,
            ack.state,
            ack.transaction_hash,
        )
        return ClientRelayerTransactionResponse(
            ack.transaction_id,
            ack.state,
            ack.transaction_hash,
            self,
        )

    async def _send_authed_request(
        self, method: str, path: str, body: str | None = None
    ) -> Any:
        if self._can_builder_auth():
            builder_headers = await self.builder_config.generate_builder_headers(
                method, path, body
            )
            if builder_headers is not None:
                return await self._send(path, method, headers=builder_headers, data=body)
            logger.warning(
                "Builder headers unavailable, sending %s %s unauthenticated",
                method,
                path,
            )

        return await self._send(path, method, data=body)

    def _can_builder_auth(self) -> bool:
        return self.builder_config is not None and self.builder_config.is_valid()

    async def _send(
        self,
        endpoint: str,
        method: str,
        headers: dict[str, str] | None = None,
        data: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        return await self.http_client.send(
            f"{self.relayer_url}{endpoint}",
            method,
            headers=headers,
            data=data,
            params=params,
        )

    def _signer_needed(self) -> None:
        if self._signer is None:
            raise SignerUnavailableError

    def _signer_address(self) -> EthAddress:
        return call_signer(self._signer.get_address)

    def _estimate_proxy_gas(
        self, from_address: EthAddress, proxy_factory: str, data: str
    ) -> str | None:
        estimated = call_signer(
            self._signer.estimate_gas,
            {
                "from": from_address,
                "to": Web3.to_checksum_address(proxy_factory),
                "data": data,
            },
        )
        if estimated is None:
            return None
        return str(int(estimated * PROXY_GAS_MULTIPLIER + PROXY_GAS_PADDING))
