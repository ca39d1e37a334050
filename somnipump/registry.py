import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from somnipump.amounts import TokenAmount
from somnipump.client import PumpClient

logger = logging.getLogger(__name__)


@dataclass
class ListedToken:
    index: int
    address: str
    name: str
    symbol: str
    decimals: int
    total_supply: TokenAmount


def latest_token(client: PumpClient) -> str:
    """Most recently created token: the registry only appends, so it is the last index."""
    count = client.factory.total_tokens()
    if count <= 0:
        raise LookupError("factory registry is empty")
    return client.factory.token_at(count - 1)


def token_addresses(client: PumpClient, start: int = 0, limit: Optional[int] = None) -> Dict[int, str]:
    """Registry entries keyed by index, fetched in index order."""
    count = client.factory.total_tokens()
    stop = count if limit is None else min(count, start + limit)
    return {i: client.factory.token_at(i) for i in range(start, stop)}


def describe_token(client: PumpClient, address: str, index: int = -1) -> ListedToken:
    token = client.token(address)
    # a broken token must not hide the rest of the listing
    try:
        name = token.name()
    except Exception:
        name = "Unknown"
    try:
        symbol = token.symbol()
    except Exception:
        symbol = "???"
    try:
        decimals = token.decimals()
    except Exception:
        decimals = 18
    try:
        supply = token.total_supply()
    except Exception:
        supply = 0
    return ListedToken(index, address, name, symbol, decimals, TokenAmount(supply, decimals))


def list_tokens(client: PumpClient, start: int = 0, limit: Optional[int] = None) -> List[ListedToken]:
    addrs = token_addresses(client, start, limit)
    logger.debug(f"listing {len(addrs)} tokens from index {start}")
    return [describe_token(client, addr, i) for i, addr in sorted(addrs.items())]
