from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..types.builder_types import ApiCreds, RemoteBuilderConfig
from ..types.relayer_types import RelayerTxType
from .constants import AMOY, DEFAULT_RELAYER_URL, POLYGON
from .exceptions import InvalidChainError
from .headers import BuilderConfig


class SafeContractConfig(BaseModel):
    safe_factory: str = ""
    safe_multisend: str = ""


class ProxyContractConfig(BaseModel):
    proxy_factory: str = ""
    relay_hub: str = ""


class ContractConfig(BaseModel):
    safe_contracts: SafeContractConfig
    proxy_contracts: ProxyContractConfig


CONFIG = {
    POLYGON: ContractConfig(
        safe_contracts=SafeContractConfig(
            safe_factory="0xaacFeEa03eb1561C4e67d661e40682Bd20E3541b",
            safe_multisend="0xA238CBeb142c10Ef7Ad8442C6D1f9E89e07e7761",
        ),
        proxy_contracts=ProxyContractConfig(
            proxy_factory="0xaB45c5A4B0c941a2F231C04C3f49182e1A254052",
            relay_hub="0xD216153c06E857cD7f72665E0aF1d7D82172F494",
        ),
    ),
    AMOY: ContractConfig(
        safe_contracts=SafeContractConfig(
            safe_factory="0xaacFeEa03eb1561C4e67d661e40682Bd20E3541b",
            safe_multisend="0xA238CBeb142c10Ef7Ad8442C6D1f9E89e07e7761",
        ),
        # proxy wallets are not deployed on Amoy
        proxy_contracts=ProxyContractConfig(),
    ),
}


def get_contract_config(chain_id: int) -> ContractConfig:
    """Get the contract configuration for the chain."""
    config = CONFIG.get(chain_id)
    if config is None:
        raise InvalidChainError(chain_id)
    return config


def is_safe_contract_config_valid(config: SafeContractConfig | None) -> bool:
    return (
        config is not None
        and bool(config.safe_factory)
        and bool(config.safe_multisend)
    )


def is_proxy_contract_config_valid(config: ProxyContractConfig | None) -> bool:
    return (
        config is not None and bool(config.proxy_factory) and bool(config.relay_hub)
    )


class RelaySettings(BaseSettings):
    """Environment-backed settings for building a relay client."""

    relayer_url: str = DEFAULT_RELAYER_URL
    chain_id: int = POLYGON
    relay_tx_type: RelayerTxType = RelayerTxType.SAFE
    http_timeout: float = 30.0

    # Builder authentication, local credentials
    builder_api_key: str | None = None
    builder_secret: str | None = None
    builder_passphrase: str | None = None

    # Builder authentication, remote signing server
    builder_signer_url: str | None = None
    builder_signer_token: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="POLY_RELAYER_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def builder_config(self) -> BuilderConfig | None:
        """Assemble the builder identity, or None when nothing is configured."""
        local_creds = None
        if self.builder_api_key and self.builder_secret and self.builder_passphrase:
            local_creds = ApiCreds(
                key=self.builder_api_key,
                secret=self.builder_secret,
                passphrase=self.builder_passphrase,
            )
        remote_config = None
        if self.builder_signer_url:
            remote_config = RemoteBuilderConfig(
                url=self.builder_signer_url, token=self.builder_signer_token
            )
        if local_creds is None and remote_config is None:
            return None
        return BuilderConfig(
            local_builder_creds=local_creds, remote_builder_config=remote_config
        )
