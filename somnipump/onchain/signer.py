import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Protocol

from web3 import Web3

from somnipump.onchain.contracts import TxRequest

logger = logging.getLogger(__name__)


class TransactionReverted(RuntimeError):
    pass


@dataclass
class Receipt:
    tx_hash: str
    status: int = 1
    block_number: int | None = None
    raw: Dict[str, Any] = field(default_factory=dict)


class Signer(Protocol):
    address: str

    def send(self, tx: TxRequest) -> Receipt: ...


class Web3Signer:
    """Signs through the node / wallet that manages ``address`` (eth_sendTransaction).

    The client never sees a private key; the wallet may prompt, reject or sign.
    ``send`` blocks until the receipt arrives or ``timeout`` expires.
    """

    def __init__(self, w3: Web3, address: str, timeout: int = 120):
        if not address:
            raise RuntimeError("FROM_ADDRESS is not configured")
        self.w3 = w3
        self.address = Web3.to_checksum_address(address)
        self.timeout = timeout

    def send(self, tx: TxRequest) -> Receipt:
        params: Dict[str, Any] = {"from": self.address}
        if tx.value:
            params["value"] = tx.value
        tx_hash = tx.fn.transact(params)
        logger.info(f"[signer] {tx.label} submitted {Web3.to_hex(tx_hash)}")
        raw = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.timeout)
        receipt = Receipt(
            tx_hash=Web3.to_hex(tx_hash),
            status=int(raw.get("status", 0)),
            block_number=raw.get("blockNumber"),
            raw=dict(raw),
        )
        if receipt.status != 1:
            raise TransactionReverted(f"{tx.label} reverted in tx {receipt.tx_hash}")
        return receipt
