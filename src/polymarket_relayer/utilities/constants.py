POLYGON = 137
AMOY = 80002

ADDRESS_ZERO = "0x0000000000000000000000000000000000000000"
HASH_ZERO = "0x0000000000000000000000000000000000000000000000000000000000000000"

DEFAULT_RELAYER_URL = "https://relayer-v2.polymarket.com"

SAFE_INIT_CODE_HASH = (
    "0x2bce2127ff07fb632d16c8347c4ebf501f4841168bed00d9e6ef715ddb6fcecf"
)
PROXY_INIT_CODE_HASH = (
    "0xd21df8dc65880a8606f09fe0ce3df9b8869287ab0b058be05aa9e8af6330a00b"
)

SAFE_FACTORY_NAME = "Polymarket Contract Proxy Factory"

DEFAULT_GAS_LIMIT = 10_000_000
PROXY_GAS_MULTIPLIER = 1.3
PROXY_GAS_PADDING = 100_000

DEFAULT_MAX_POLLS = 10
DEFAULT_POLL_FREQUENCY_MS = 2000
MIN_POLL_FREQUENCY_MS = 1000
WAIT_MAX_POLLS = 30
