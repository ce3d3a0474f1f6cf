from .clients import ClientRelayerTransactionResponse, HttpClient, RelayClient
from .types.builder_types import ApiCreds, RemoteBuilderConfig
from .types.relayer_types import (
    CallType,
    OperationType,
    RelayerTransaction,
    RelayerTransactionResponse,
    RelayerTransactionState,
    RelayerTxType,
    Transaction,
    TransactionType,
)
from .utilities.config import RelaySettings, get_contract_config
from .utilities.headers import BuilderConfig
from .utilities.signing.signer import (
    AbstractSigner,
    AccountSigner,
    Web3Signer,
    create_abstract_signer,
)

__all__ = [
    "AbstractSigner",
    "AccountSigner",
    "ApiCreds",
    "BuilderConfig",
    "CallType",
    "ClientRelayerTransactionResponse",
    "HttpClient",
    "OperationType",
    "RelaySettings",
    "RelayClient",
    "RelayerTransaction",
    "RelayerTransactionResponse",
    "RelayerTransactionState",
    "RelayerTxType",
    "RemoteBuilderConfig",
    "Transaction",
    "TransactionType",
    "Web3Signer",
    "create_abstract_signer",
    "get_contract_config",
]
