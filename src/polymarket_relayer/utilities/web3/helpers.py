from eth_abi import encode
from eth_abi.packed import encode_packed
from eth_utils import to_checksum_address
from hexbytes import HexBytes
from web3 import Web3

from ...types.common import EthAddress, Keccak256
from ...types.relayer_types import OperationType, ProxyTransaction, SafeTransaction
from ..constants import PROXY_INIT_CODE_HASH, SAFE_FACTORY_NAME, SAFE_INIT_CODE_HASH

DOMAIN_SEPARATOR_TYPEHASH = Web3.keccak(
    text="EIP712Domain(uint256 chainId,address verifyingContract)"
)
SAFE_TX_TYPEHASH = Web3.keccak(
    text="SafeTx(address to,uint256 value,bytes data,uint8 operation,"
    "uint256 safeTxGas,uint256 baseGas,uint256 gasPrice,"
    "address gasToken,address refundReceiver,uint256 nonce)"
)
MULTISEND_SELECTOR = Web3.keccak(text="multiSend(bytes)")[:4]
PROXY_SELECTOR = Web3.keccak(text="proxy((uint8,address,uint256,bytes)[])")[:4]


def _to_bytes(data: str) -> bytes:
    return bytes(HexBytes(data))


def get_create2_address(factory: EthAddress, salt: bytes, init_code_hash: str) -> EthAddress:
    """Compute the address of a contract deployed with CREATE2."""
    digest = Web3.keccak(
        b"\xff" + _to_bytes(factory) + salt + _to_bytes(init_code_hash)
    )
    return to_checksum_address(digest[12:])


def derive_safe(address: EthAddress, safe_factory: EthAddress) -> EthAddress:
    """Derive the Safe address owned by ``address``; pure in (owner, factory)."""
    salt = Web3.keccak(encode(["address"], [to_checksum_address(address)]))
    return get_create2_address(safe_factory, salt, SAFE_INIT_CODE_HASH)


def derive_proxy_wallet(address: EthAddress, proxy_factory: EthAddress) -> EthAddress:
    """Derive the Polymarket proxy wallet owned by ``address``."""
    salt = Web3.keccak(encode_packed(["address"], [to_checksum_address(address)]))
    return get_create2_address(proxy_factory, salt, PROXY_INIT_CODE_HASH)


def split_signature(signature: str) -> dict:
    sig = _to_bytes(signature)
    if len(sig) != 65:
        msg = f"Invalid signature length: {len(sig)}"
        raise ValueError(msg)
    return {
        "r": int.from_bytes(sig[:32], "big"),
        "s": int.from_bytes(sig[32:64], "big"),
        "v": sig[64],
    }


def split_and_pack_sig(signature: str) -> str:
    """
    Repack an eth_sign signature into the format the Safe contract expects.

    A v of 31/32 tells the Safe the hash was signed with the EIP-191 prefix.
    """
    split_sig = split_signature(signature)
    v = split_sig["v"]
    match v:
        case 0 | 1:
            v += 31
        case 27 | 28:
            v += 4
        case _:
            msg = f"Invalid signature v value: {v}"
            raise ValueError(msg)
    packed = encode_packed(
        ["uint256", "uint256", "uint8"], [split_sig["r"], split_sig["s"], v]
    )
    return "0x" + packed.hex()


def create_safe_struct_hash(
    chain_id: int,
    safe: EthAddress,
    to: EthAddress,
    value: int,
    data: str,
    operation: int,
    safe_txn_gas: int,
    base_gas: int,
    gas_price: int,
    gas_token: EthAddress,
    refund_receiver: EthAddress,
    nonce: int,
) -> Keccak256:
    """Compute the EIP-712 digest of a SafeTx."""
    domain_separator = Web3.keccak(
        encode(
            ["bytes32", "uint256", "address"],
            [DOMAIN_SEPARATOR_TYPEHASH, chain_id, to_checksum_address(safe)],
        )
    )
    struct_hash = Web3.keccak(
        encode(
            [
                "bytes32",
                "address",
                "uint256",
                "bytes32",
                "uint8",
                "uint256",
                "uint256",
                "uint256",
                "address",
                "address",
                "uint256",
            ],
            [
                SAFE_TX_TYPEHASH,
                to_checksum_address(to),
                value,
                Web3.keccak(_to_bytes(data)),
                operation,
                safe_txn_gas,
                base_gas,
                gas_price,
                to_checksum_address(gas_token),
                to_checksum_address(refund_receiver),
                nonce,
            ],
        )
    )
    return Web3.to_hex(Web3.keccak(b"\x19\x01" + domain_separator + struct_hash))


def create_safe_multisend_transaction(
    txns: list[SafeTransaction], safe_multisend: EthAddress
) -> SafeTransaction:
    """Fold a batch into a single DELEGATECALL to the multisend contract."""
    packed = b"".join(
        encode_packed(
            ["uint8", "address", "uint256", "uint256", "bytes"],
            [
                int(txn.operation),
                txn.to,
                int(txn.value),
                len(_to_bytes(txn.data)),
                _to_bytes(txn.data),
            ],
        )
        for txn in txns
    )
    data = MULTISEND_SELECTOR + encode(["bytes"], [packed])
    return SafeTransaction(
        to=safe_multisend,
        value="0",
        data="0x" + data.hex(),
        operation=OperationType.DELEGATE_CALL,
    )


def aggregate_transaction(
    txns: list[SafeTransaction], safe_multisend: EthAddress
) -> SafeTransaction:
    if len(txns) == 1:
        return txns[0]
    return create_safe_multisend_transaction(txns, safe_multisend)


def encode_proxy_transaction_data(txns: list[ProxyTransaction]) -> str:
    """Encode a batch as calldata for ProxyWalletFactory.proxy."""
    calls = [
        (int(txn.type_code), txn.to, int(txn.value), _to_bytes(txn.data))
        for txn in txns
    ]
    data = PROXY_SELECTOR + encode(["(uint8,address,uint256,bytes)[]"], [calls])
    return "0x" + data.hex()


def create_proxy_struct(
    from_address: EthAddress,
    to: EthAddress,
    data: str,
    tx_fee: str,
    gas_price: str,
    gas_limit: str,
    nonce: int,
    relay_hub_address: EthAddress,
    relay_address: EthAddress,
) -> bytes:
    """Build the relay-hub ("rlx:") struct signed for proxy transactions."""
    return encode_packed(
        [
            "bytes",
            "address",
            "address",
            "bytes",
            "uint256",
            "uint256",
            "uint256",
            "uint256",
            "address",
            "address",
        ],
        [
            b"rlx:",
            to_checksum_address(from_address),
            to_checksum_address(to),
            _to_bytes(data),
            int(tx_fee),
            int(gas_price),
            int(gas_limit),
            int(nonce),
            to_checksum_address(relay_hub_address),
            to_checksum_address(relay_address),
        ],
    )


def create_safe_create_typed_data(
    safe_factory: EthAddress,
    chain_id: int,
    payment_token: EthAddress,
    payment: str,
    payment_receiver: EthAddress,
) -> dict:
    """EIP-712 CreateProxy payload signed to deploy a Safe."""
    return {
        "types": {
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "chainId", "type": "uint256"},
                {"name": "verifyingContract", "type": "address"},
            ],
            "CreateProxy": [
                {"name": "paymentToken", "type": "address"},
                {"name": "payment", "type": "uint256"},
                {"name": "paymentReceiver", "type": "address"},
            ],
        },
        "primaryType": "CreateProxy",
        "domain": {
            "name": SAFE_FACTORY_NAME,
            "chainId": chain_id,
            "verifyingContract": to_checksum_address(safe_factory),
        },
        "message": {
            "paymentToken": to_checksum_address(payment_token),
            "payment": int(payment),
            "paymentReceiver": to_checksum_address(payment_receiver),
        },
    }
