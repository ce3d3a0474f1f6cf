import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from json import dumps
from typing import Any

from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import Web3Exception
from web3.types import RPCEndpoint, TxParams

from ..exceptions import SignerError

logger = logging.getLogger(__name__)


class AbstractSigner(ABC):
    """
    Narrow signing capability used by the request builders.

    Implementations wrap a concrete wallet technology; the relay client only
    ever sees this interface.
    """

    def __init__(self, chain_id: int):
        self.chain_id = chain_id

    @abstractmethod
    def get_address(self) -> str:
        """Return the checksummed signer address."""

    @abstractmethod
    def sign_message(self, message_hash: str) -> str:
        """Personal-sign (EIP-191) a 32-byte hash, returning a 0x hex signature."""

    @abstractmethod
    def sign_typed_data(self, typed_data: dict[str, Any]) -> str:
        """Sign an EIP-712 payload, returning a 0x hex signature."""

    def estimate_gas(self, transaction: TxParams) -> int | None:
        """Estimate gas for a call, or None when the signer has no node access."""
        return None


class AccountSigner(AbstractSigner):
    """Signer backed by an eth-account local key."""

    def __init__(self, account: LocalAccount, chain_id: int):
        super().__init__(chain_id)
        self.account = account

    @classmethod
    def from_key(cls, private_key: str, chain_id: int) -> "AccountSigner":
        try:
            account = Account.from_key(private_key)
        except (ValueError, TypeError) as e:
            msg = "Invalid private key"
            raise SignerError(msg) from e
        return cls(account, chain_id)

    def get_address(self) -> str:
        return self.account.address

    def sign_message(self, message_hash: str) -> str:
        signed = self.account.sign_message(encode_defunct(hexstr=message_hash))
        return Web3.to_hex(signed.signature)

    def sign_typed_data(self, typed_data: dict[str, Any]) -> str:
        signed = self.account.sign_message(encode_typed_data(full_message=typed_data))
        return Web3.to_hex(signed.signature)


class Web3Signer(AbstractSigner):
    """Signer that delegates to the accounts managed by a web3 provider."""

    def __init__(self, w3: Web3, chain_id: int, address: str | None = None):
        super().__init__(chain_id)
        self.w3 = w3
        self._address = address

    def get_address(self) -> str:
        if self._address is None:
            address = self.w3.eth.default_account
            if not address:
                accounts = self.w3.eth.accounts
                if not accounts:
                    msg = "Web3 provider exposes no accounts"
                    raise SignerError(msg)
                address = accounts[0]
            self._address = Web3.to_checksum_address(address)
        return self._address

    def sign_message(self, message_hash: str) -> str:
        signature = self.w3.eth.sign(self.get_address(), hexstr=message_hash)
        return Web3.to_hex(signature)

    def sign_typed_data(self, typed_data: dict[str, Any]) -> str:
        signature = self.w3.manager.request_blocking(
            RPCEndpoint("eth_signTypedData_v4"),
            [self.get_address(), dumps(typed_data)],
        )
        if isinstance(signature, str):
            return signature
        return Web3.to_hex(signature)

    def estimate_gas(self, transaction: TxParams) -> int | None:
        try:
            return self.w3.eth.estimate_gas(transaction)
        except (Web3Exception, ValueError) as e:
            logger.warning("Gas estimation failed, using default gas limit: %s", e)
            return None


def create_abstract_signer(chain_id: int, signer: Any) -> AbstractSigner:
    """Wrap a supported wallet object into an AbstractSigner."""
    match signer:
        case AbstractSigner():
            return signer
        case LocalAccount():
            return AccountSigner(signer, chain_id)
        case Web3():
            return Web3Signer(signer, chain_id)
        case str():
            return AccountSigner.from_key(signer, chain_id)
        case _:
            msg = f"Unsupported signer type: {type(signer).__name__}"
            raise SignerError(msg)


def call_signer(operation: Callable[..., Any], *args: Any) -> Any:
    """Invoke a signer operation, surfacing any failure as SignerError."""
    try:
        return operation(*args)
    except SignerError:
        raise
    except Exception as e:
        msg = f"Signer failed: {e}"
        raise SignerError(msg) from e
