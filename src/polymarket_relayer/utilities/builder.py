from web3 import Web3

from ..types.relayer_types import (
    ProxySignatureParams,
    ProxyTransactionArgs,
    SafeCreateSignatureParams,
    SafeCreateTransactionArgs,
    SafeSignatureParams,
    SafeTransactionArgs,
    TransactionRequest,
    TransactionType,
)
from .config import ProxyContractConfig, SafeContractConfig
from .constants import ADDRESS_ZERO, DEFAULT_GAS_LIMIT
from .signing.signer import AbstractSigner, call_signer
from .web3.helpers import (
    aggregate_transaction,
    create_proxy_struct,
    create_safe_create_typed_data,
    create_safe_struct_hash,
    derive_proxy_wallet,
    derive_safe,
    split_and_pack_sig,
)


def build_safe_transaction_request(
    signer: AbstractSigner,
    args: SafeTransactionArgs,
    safe_contract_config: SafeContractConfig,
    metadata: str | None = None,
) -> TransactionRequest:
    """Sign a batch as one Safe execution, aggregated through multisend."""
    transaction = aggregate_transaction(
        args.transactions, safe_contract_config.safe_multisend
    )
    safe_txn_gas = "0"
    base_gas = "0"
    gas_price = "0"
    gas_token = ADDRESS_ZERO
    refund_receiver = ADDRESS_ZERO

    safe_address = derive_safe(args.from_address, safe_contract_config.safe_factory)

    struct_hash = create_safe_struct_hash(
        chain_id=args.chain_id,
        safe=safe_address,
        to=transaction.to,
        value=int(transaction.value),
        data=transaction.data,
        operation=int(transaction.operation),
        safe_txn_gas=int(safe_txn_gas),
        base_gas=int(base_gas),
        gas_price=int(gas_price),
        gas_token=gas_token,
        refund_receiver=refund_receiver,
        nonce=args.nonce,
    )

    signature = call_signer(signer.sign_message, struct_hash)
    packed_sig = split_and_pack_sig(signature)

    return TransactionRequest(
        type=TransactionType.SAFE,
        from_address=args.from_address,
        to=transaction.to,
        proxy_wallet=safe_address,
        data=transaction.data,
        nonce=str(args.nonce),
        signature=packed_sig,
        signature_params=SafeSignatureParams(
            gas_price=gas_price,
            operation=str(int(transaction.operation)),
            safe_txn_gas=safe_txn_gas,
            base_gas=base_gas,
            gas_token=gas_token,
            refund_receiver=refund_receiver,
        ),
        metadata=metadata,
    )


def build_safe_create_transaction_request(
    signer: AbstractSigner,
    safe_contract_config: SafeContractConfig,
    args: SafeCreateTransactionArgs,
) -> TransactionRequest:
    safe_factory = safe_contract_config.safe_factory
    typed_data = create_safe_create_typed_data(
        safe_factory=safe_factory,
        chain_id=args.chain_id,
        payment_token=args.payment_token,
        payment=args.payment,
        payment_receiver=args.payment_receiver,
    )
    signature = call_signer(signer.sign_typed_data, typed_data)

    return TransactionRequest(
        type=TransactionType.SAFE_CREATE,
        from_address=args.from_address,
        to=Web3.to_checksum_address(safe_factory),
        proxy_wallet=derive_safe(args.from_address, safe_factory),
        data="0x",
        signature=signature,
        signature_params=SafeCreateSignatureParams(
            payment_token=args.payment_token,
            payment=args.payment,
            payment_receiver=args.payment_receiver,
        ),
    )


def build_proxy_transaction_request(
    signer: AbstractSigner,
    args: ProxyTransactionArgs,
    proxy_contract_config: ProxyContractConfig,
    metadata: str | None = None,
) -> TransactionRequest:
    """Sign pre-encoded proxy calldata for the relay hub."""
    proxy_factory = Web3.to_checksum_address(proxy_contract_config.proxy_factory)
    relay_hub = Web3.to_checksum_address(proxy_contract_config.relay_hub)
    relayer_fee = "0"
    gas_limit = args.gas_limit if args.gas_limit else str(DEFAULT_GAS_LIMIT)

    struct = create_proxy_struct(
        from_address=args.from_address,
        to=proxy_factory,
        data=args.data,
        tx_fee=relayer_fee,
        gas_price=args.gas_price,
        gas_limit=gas_limit,
        nonce=args.nonce,
        relay_hub_address=relay_hub,
        relay_address=args.relay,
    )
    struct_hash = Web3.to_hex(Web3.keccak(struct))
    signature = call_signer(signer.sign_message, struct_hash)

    return TransactionRequest(
        type=TransactionType.PROXY,
        from_address=args.from_address,
        to=proxy_factory,
        proxy_wallet=derive_proxy_wallet(args.from_address, proxy_factory),
        data=args.data,
        nonce=str(args.nonce),
        signature=signature,
        signature_params=ProxySignatureParams(
            gas_price=args.gas_price,
            gas_limit=gas_limit,
            relayer_fee=relayer_fee,
            relay_hub=relay_hub,
            relay=args.relay,
        ),
        metadata=metadata,
    )
