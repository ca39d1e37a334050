import types

import pytest

from somnipump.onchain.contracts import TxRequest
from somnipump.onchain.signer import TransactionReverted, Web3Signer
from conftest import ME


class DummyFn:
    def __init__(self):
        self.params = None

    def transact(self, params):
        self.params = params
        return b"\x12" * 32


def make_w3(status=1):
    waited = {}

    def wait(tx_hash, timeout):
        waited["hash"] = tx_hash
        waited["timeout"] = timeout
        return {"status": status, "blockNumber": 7}

    w3 = types.SimpleNamespace(eth=types.SimpleNamespace(wait_for_transaction_receipt=wait))
    return w3, waited


def test_send_waits_for_receipt():
    w3, waited = make_w3()
    fn = DummyFn()
    signer = Web3Signer(w3, ME.lower(), timeout=33)
    receipt = signer.send(TxRequest("wrap", fn, value=5))
    assert fn.params == {"from": ME, "value": 5}
    assert waited["timeout"] == 33
    assert receipt.tx_hash == "0x" + "12" * 32
    assert receipt.block_number == 7


def test_zero_value_not_sent():
    w3, _ = make_w3()
    fn = DummyFn()
    Web3Signer(w3, ME).send(TxRequest("approve", fn))
    assert fn.params == {"from": ME}


def test_reverted_receipt_raises():
    w3, _ = make_w3(status=0)
    with pytest.raises(TransactionReverted):
        Web3Signer(w3, ME).send(TxRequest("swap", DummyFn()))


def test_requires_address():
    with pytest.raises(RuntimeError):
        Web3Signer(None, "")
