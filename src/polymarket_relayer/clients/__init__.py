from .http_client import HttpClient
from .relay_client import RelayClient
from .response import ClientRelayerTransactionResponse

__all__ = ["ClientRelayerTransactionResponse", "HttpClient", "RelayClient"]
