import pytest

from polymarket_relayer.types.relayer_types import RelayerTxType
from polymarket_relayer.utilities.config import (
    ProxyContractConfig,
    RelaySettings,
    SafeContractConfig,
    get_contract_config,
    is_proxy_contract_config_valid,
    is_safe_contract_config_valid,
)
from polymarket_relayer.utilities.exceptions import ConfigurationError, InvalidChainError


class TestContractConfig:
    def test_polygon_supports_both_schemes(self):
        config = get_contract_config(137)
        assert is_safe_contract_config_valid(config.safe_contracts)
        assert is_proxy_contract_config_valid(config.proxy_contracts)

    def test_amoy_supports_only_safe(self):
        config = get_contract_config(80002)
        assert is_safe_contract_config_valid(config.safe_contracts)
        assert not is_proxy_contract_config_valid(config.proxy_contracts)

    def test_unknown_chain(self):
        with pytest.raises(InvalidChainError) as exc_info:
            get_contract_config(1)
        assert exc_info.value.chain_id == 1
        assert isinstance(exc_info.value, ConfigurationError)

    def test_partial_config_is_invalid(self):
        assert not is_safe_contract_config_valid(
            SafeContractConfig(safe_factory="0xaacFeEa03eb1561C4e67d661e40682Bd20E3541b")
        )
        assert not is_proxy_contract_config_valid(
            ProxyContractConfig(relay_hub="0xD216153c06E857cD7f72665E0aF1d7D82172F494")
        )
        assert not is_safe_contract_config_valid(None)


class TestRelaySettings:
    def test_defaults(self, monkeypatch):
        for var in (
            "POLY_RELAYER_BUILDER_API_KEY",
            "POLY_RELAYER_BUILDER_SECRET",
            "POLY_RELAYER_BUILDER_PASSPHRASE",
            "POLY_RELAYER_BUILDER_SIGNER_URL",
        ):
            monkeypatch.delenv(var, raising=False)
        settings = RelaySettings(_env_file=None)
        assert settings.relayer_url == "https://relayer-v2.polymarket.com"
        assert settings.chain_id == 137
        assert settings.relay_tx_type == RelayerTxType.SAFE
        assert settings.builder_config() is None

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("POLY_RELAYER_CHAIN_ID", "80002")
        monkeypatch.setenv("POLY_RELAYER_RELAY_TX_TYPE", "PROXY")
        monkeypatch.setenv("POLY_RELAYER_BUILDER_API_KEY", "key")
        monkeypatch.setenv("POLY_RELAYER_BUILDER_SECRET", "c2VjcmV0")
        monkeypatch.setenv("POLY_RELAYER_BUILDER_PASSPHRASE", "pass")
        settings = RelaySettings(_env_file=None)
        assert settings.chain_id == 80002
        assert settings.relay_tx_type == RelayerTxType.PROXY
        builder_config = settings.builder_config()
        assert builder_config is not None
        assert builder_config.is_valid()
        assert builder_config.local_builder_creds.key == "key"

    def test_remote_signer_only(self, monkeypatch):
        monkeypatch.delenv("POLY_RELAYER_BUILDER_API_KEY", raising=False)
        monkeypatch.setenv("POLY_RELAYER_BUILDER_SIGNER_URL", "https://signer.test/sign")
        builder_config = RelaySettings(_env_file=None).builder_config()
        assert builder_config.local_builder_creds is None
        assert builder_config.remote_builder_config.url == "https://signer.test/sign"
