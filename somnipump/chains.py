from dataclasses import dataclass


@dataclass(frozen=True)
class EvmChain:
    name: str
    chain_id: int
    rpc_http: str
    native_symbol: str
    explorer_base: str


SOMNIA_TESTNET = EvmChain(
    "somnia_testnet",
    50312,
    "https://dream-rpc.somnia.network",
    "STT",
    "https://shannon-explorer.somnia.network",
)

SOMNIA = EvmChain(
    "somnia",
    5031,
    "https://api.infra.mainnet.somnia.network",
    "SOMI",
    "https://explorer.somnia.network",
)

CHAINS = {"somnia_testnet": SOMNIA_TESTNET, "somnia": SOMNIA}
