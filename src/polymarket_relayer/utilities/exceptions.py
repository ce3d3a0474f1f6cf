from typing import Any


class RelayerClientError(Exception):
    """Base class for every error raised by the relayer client."""


class RelayerTransportError(RelayerClientError):
    """The relayer could not be reached or rejected the request."""


class RelayerConnectionError(RelayerTransportError):
    """No response was received from the relayer."""

    def __init__(self, url: str, cause: str = ""):
        self.url = url
        self.cause = cause
        super().__init__(f"Connection error for {url}: {cause}")


class RelayerRequestError(RelayerTransportError):
    """The relayer answered with a non-success status."""

    def __init__(self, status: int, status_text: str, data: Any = None):
        self.status = status
        self.status_text = status_text
        self.data = data
        super().__init__(f"Request error {status} {status_text}: {data}")


class ConfigurationError(RelayerClientError):
    pass


class InvalidChainError(ConfigurationError):
    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        super().__init__(f"Invalid network: chain id {chain_id} is not supported")


class ConfigUnsupportedOnChainError(ConfigurationError):
    def __init__(self, chain_id: int, relay_tx_type: str):
        self.chain_id = chain_id
        self.relay_tx_type = relay_tx_type
        super().__init__(
            f"{relay_tx_type} transactions are not supported on chain {chain_id}"
        )


class PreconditionError(RelayerClientError):
    pass


class SignerUnavailableError(PreconditionError):
    def __init__(self):
        super().__init__("Signer is needed to interact with this endpoint")


class EmptyBatchError(PreconditionError):
    def __init__(self):
        super().__init__("No transactions to execute")


class SafeNotDeployedError(PreconditionError):
    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Safe {address} is not deployed")


class SafeAlreadyDeployedError(PreconditionError):
    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Safe already deployed at {address}")


class UnsupportedRelayTxTypeError(RelayerClientError):
    def __init__(self, relay_tx_type: Any):
        self.relay_tx_type = relay_tx_type
        super().__init__(f"Unsupported relay transaction type: {relay_tx_type}")


class SignerError(RelayerClientError):
    """The signer could not resolve its address or produce a signature."""
