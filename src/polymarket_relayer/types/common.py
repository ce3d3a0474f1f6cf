from typing import Annotated

from pydantic import AfterValidator, BeforeValidator, Field
from web3 import Web3


def validate_eth_address(value: str) -> str:
    if not Web3.is_address(value):
        msg = f"Invalid Ethereum address: {value}"
        raise ValueError(msg)
    return Web3.to_checksum_address(value)


def coerce_hex_prefix(value: str | bytes) -> str:
    if isinstance(value, bytes | bytearray):
        return "0x" + value.hex()
    if not value.startswith("0x"):
        return "0x" + value
    return value


EthAddress = Annotated[str, AfterValidator(validate_eth_address)]
Keccak256 = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{64}$")]
HexData = Annotated[
    str,
    BeforeValidator(coerce_hex_prefix),
    Field(pattern=r"^0x([a-fA-F0-9]{2})*$"),
]
