from unittest.mock import MagicMock

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import TimeExhausted

from polymarket_relayer.utilities.exceptions import SignerError
from polymarket_relayer.utilities.signing.signer import (
    AccountSigner,
    Web3Signer,
    call_signer,
    create_abstract_signer,
)

from .conftest import ADDRESS, PRIVATE_KEY

MESSAGE_HASH = "0x" + "ab" * 32


class TestCreateAbstractSigner:
    def test_from_private_key(self):
        signer = create_abstract_signer(137, PRIVATE_KEY)
        assert isinstance(signer, AccountSigner)
        assert signer.get_address() == ADDRESS
        assert signer.chain_id == 137

    def test_from_local_account(self):
        signer = create_abstract_signer(137, Account.from_key(PRIVATE_KEY))
        assert isinstance(signer, AccountSigner)
        assert signer.get_address() == ADDRESS

    def test_passthrough(self):
        signer = AccountSigner.from_key(PRIVATE_KEY, 137)
        assert create_abstract_signer(137, signer) is signer

    def test_from_web3(self):
        w3 = Web3()
        signer = create_abstract_signer(80002, w3)
        assert isinstance(signer, Web3Signer)
        assert signer.w3 is w3

    def test_unsupported(self):
        with pytest.raises(SignerError, match="Unsupported signer type"):
            create_abstract_signer(137, 42)

    def test_invalid_key(self):
        with pytest.raises(SignerError, match="Invalid private key"):
            create_abstract_signer(137, "0x1234")


class TestAccountSigner:
    def test_sign_message_recovers(self):
        signer = AccountSigner.from_key(PRIVATE_KEY, 137)
        signature = signer.sign_message(MESSAGE_HASH)
        assert signature.startswith("0x")
        assert len(signature) == 132
        assert (
            Account.recover_message(
                encode_defunct(hexstr=MESSAGE_HASH), signature=signature
            )
            == ADDRESS
        )


class TestWeb3Signer:
    def test_uses_provider_account(self):
        w3 = MagicMock()
        w3.eth.default_account = None
        w3.eth.accounts = [ADDRESS.lower()]
        w3.eth.sign.return_value = HexBytes("0x" + "cd" * 65)

        signer = Web3Signer(w3, 137)

        assert signer.get_address() == ADDRESS
        assert signer.sign_message(MESSAGE_HASH) == "0x" + "cd" * 65
        w3.eth.sign.assert_called_once_with(ADDRESS, hexstr=MESSAGE_HASH)

    def test_typed_data_goes_through_rpc(self):
        w3 = MagicMock()
        w3.manager.request_blocking.return_value = "0x" + "ef" * 65

        signer = Web3Signer(w3, 137, address=ADDRESS)

        assert signer.sign_typed_data({"primaryType": "CreateProxy"}) == "0x" + "ef" * 65
        method, params = w3.manager.request_blocking.call_args.args
        assert method == "eth_signTypedData_v4"
        assert params[0] == ADDRESS

    def test_no_accounts(self):
        w3 = MagicMock()
        w3.eth.default_account = None
        w3.eth.accounts = []
        with pytest.raises(SignerError):
            Web3Signer(w3, 137).get_address()


class TestCallSigner:
    def test_wraps_failures(self):
        def boom():
            raise RuntimeError("locked")

        with pytest.raises(SignerError, match="locked") as exc_info:
            call_signer(boom)
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestEstimateGas:
    def test_local_signer_has_no_estimate(self):
        signer = AccountSigner.from_key(PRIVATE_KEY, 137)
        assert signer.estimate_gas({"from": ADDRESS, "to": ADDRESS, "data": "0x"}) is None

    def test_web3_signer_asks_provider(self):
        w3 = MagicMock()
        w3.eth.estimate_gas.return_value = 50_000
        txn = {"from": ADDRESS, "to": ADDRESS, "data": "0x"}

        assert Web3Signer(w3, 137, address=ADDRESS).estimate_gas(txn) == 50_000
        w3.eth.estimate_gas.assert_called_once_with(txn)

    def test_web3_signer_failure_falls_back(self):
        w3 = MagicMock()
        w3.eth.estimate_gas.side_effect = TimeExhausted("node too slow")

        signer = Web3Signer(w3, 137, address=ADDRESS)
        assert signer.estimate_gas({"from": ADDRESS, "to": ADDRESS, "data": "0x"}) is None
