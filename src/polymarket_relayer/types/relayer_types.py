from enum import Enum, IntEnum
from json import dumps
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..utilities.constants import ADDRESS_ZERO
from .common import EthAddress, HexData


class RelayerTxType(str, Enum):
    """Submission scheme a client is bound to."""

    SAFE = "SAFE"
    PROXY = "PROXY"


class TransactionType(str, Enum):
    """Wire tag carried by submissions and nonce queries."""

    SAFE = "SAFE"
    PROXY = "PROXY"
    SAFE_CREATE = "SAFE-CREATE"


class OperationType(IntEnum):
    CALL = 0
    DELEGATE_CALL = 1


class CallType(IntEnum):
    INVALID = 0
    CALL = 1
    DELEGATE_CALL = 2


class RelayerTransactionState(str, Enum):
    STATE_NEW = "STATE_NEW"
    STATE_EXECUTED = "STATE_EXECUTED"
    STATE_MINED = "STATE_MINED"
    STATE_INVALID = "STATE_INVALID"
    STATE_CONFIRMED = "STATE_CONFIRMED"
    STATE_FAILED = "STATE_FAILED"


class Transaction(BaseModel):
    """A single call submitted through the relayer."""

    model_config = ConfigDict(frozen=True)

    to: EthAddress
    data: HexData


class SafeTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    to: EthAddress
    operation: OperationType = OperationType.CALL
    data: HexData
    value: str = "0"


class ProxyTransaction(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    to: EthAddress
    type_code: CallType = Field(CallType.CALL, alias="typeCode")
    data: HexData
    value: str = "0"


class NoncePayload(BaseModel):
    nonce: int


class RelayPayload(BaseModel):
    address: EthAddress
    nonce: int


class GetDeployedResponse(BaseModel):
    deployed: bool


class RelayerTransaction(BaseModel):
    """
    Relayer-side record of a submitted transaction.

    The relayer has used both ``transactionID`` and ``id`` for the identifier;
    either is accepted. Fields the relayer adds later are kept as extras.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    transaction_id: str = Field(
        validation_alias=AliasChoices("transactionID", "id", "transaction_id"),
        serialization_alias="transactionID",
    )
    state: str
    transaction_hash: str | None = Field(
        None,
        validation_alias=AliasChoices("transactionHash", "transaction_hash"),
        serialization_alias="transactionHash",
    )
    from_address: str | None = Field(None, alias="from")
    to: str | None = None
    proxy_address: str | None = Field(None, alias="proxyAddress")
    data: str | None = None
    nonce: str | int | None = None
    value: str | None = None
    type: str | None = None
    metadata: str | None = None
    signature: str | None = None
    created_at: str | None = Field(None, alias="createdAt")
    updated_at: str | None = Field(None, alias="updatedAt")


class RelayerTransactionResponse(BaseModel):
    """Acknowledgement returned synchronously by the submit endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    transaction_id: str = Field(alias="transactionID")
    state: str
    transaction_hash: str | None = Field(None, alias="transactionHash")


class SafeTransactionArgs(BaseModel):
    transactions: list[SafeTransaction]
    from_address: EthAddress
    nonce: int
    chain_id: int


class SafeCreateTransactionArgs(BaseModel):
    from_address: EthAddress
    chain_id: int
    payment_token: EthAddress = ADDRESS_ZERO
    payment: str = "0"
    payment_receiver: EthAddress = ADDRESS_ZERO


class ProxyTransactionArgs(BaseModel):
    from_address: EthAddress
    gas_price: str = "0"
    data: HexData
    relay: EthAddress
    nonce: int
    gas_limit: str | None = None


class SafeSignatureParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    gas_price: str = Field(alias="gasPrice")
    operation: str
    safe_txn_gas: str = Field(alias="safeTxnGas")
    base_gas: str = Field(alias="baseGas")
    gas_token: str = Field(alias="gasToken")
    refund_receiver: str = Field(alias="refundReceiver")


class SafeCreateSignatureParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    payment_token: str = Field(alias="paymentToken")
    payment: str
    payment_receiver: str = Field(alias="paymentReceiver")


class ProxySignatureParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    gas_price: str = Field(alias="gasPrice")
    gas_limit: str = Field(alias="gasLimit")
    relayer_fee: str = Field(alias="relayerFee")
    relay_hub: str = Field(alias="relayHub")
    relay: str


class TransactionRequest(BaseModel):
    """Signed, scheme-specific payload accepted by the submit endpoint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: TransactionType
    from_address: str = Field(alias="from")
    to: str
    proxy_wallet: str = Field(alias="proxyWallet")
    data: str
    nonce: str | None = None
    signature: str
    signature_params: (
        SafeSignatureParams | SafeCreateSignatureParams | ProxySignatureParams
    ) = Field(alias="signatureParams")
    metadata: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_payload(self) -> str:
        """Serialize to the exact body string sent to the relayer."""
        return dumps(self.to_dict())
