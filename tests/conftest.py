import types

import pytest
from web3 import Web3

from somnipump.client import PumpClient
from somnipump.onchain.contracts import TokenInfo, TxRequest
from somnipump.onchain.signer import Receipt


def addr(n: int) -> str:
    return Web3.to_checksum_address("0x" + f"{n:040x}")


FACTORY = addr(0xFAC)
ROUTER = addr(0x5E7)
WETH = addr(0xEEE)
OLD_TOKEN = addr(0xA1)
NEW_TOKEN = addr(0xB2)
ME = addr(0x111)


class FakeToken:
    def __init__(self, address, decimals=18, supply=0, name="Token", symbol="TKN"):
        self.address = address
        self._decimals = decimals
        self._supply = supply
        self._name = name
        self._symbol = symbol
        self.approvals = []
        self.balances = {}

    def name(self):
        return self._name

    def symbol(self):
        return self._symbol

    def decimals(self):
        return self._decimals

    def total_supply(self):
        return self._supply

    def balance_of(self, owner):
        return self.balances.get(owner, 0)

    def approve(self, spender, amount, label="approve"):
        return TxRequest(label, lambda: self.approvals.append((spender, amount)))


class FakeWrapped(FakeToken):
    def __init__(self, address):
        super().__init__(address, 18, 0, "Wrapped STT", "WSTT")
        self.deposits = []
        self.withdrawals = []

    def deposit(self, value):
        return TxRequest("wrap", lambda: self.deposits.append(value), value=value)

    def withdraw(self, amount):
        return TxRequest("unwrap", lambda: self.withdrawals.append(amount))


class FakeRouter:
    """Constant-rate pool: 1 wrapped -> ``rate`` tokens, no reserves involved."""

    def __init__(self, address=ROUTER, rate=1000):
        self.address = address
        self.rate = rate
        self.quotes = 0
        self.liquidity_calls = []
        self.swaps = []
        self.fail_quotes = False

    def get_amounts_out(self, amount_in, path):
        self.quotes += 1
        if self.fail_quotes:
            raise RuntimeError("execution reverted: INSUFFICIENT_LIQUIDITY")
        out = [amount_in]
        for a, b in zip(path, path[1:]):
            prev = out[-1]
            out.append(prev * self.rate if a == WETH else prev // self.rate)
        return out

    def get_amounts_in(self, amount_out, path):
        if self.fail_quotes:
            raise RuntimeError("execution reverted")
        amounts = [amount_out]
        for a, b in reversed(list(zip(path, path[1:]))):
            nxt = amounts[0]
            amounts.insert(0, nxt // self.rate if a == WETH else nxt * self.rate)
        return amounts

    def add_liquidity(self, token_a, token_b, amount_a, amount_b, min_a, min_b, to, deadline):
        args = dict(
            token_a=token_a,
            token_b=token_b,
            amount_a=amount_a,
            amount_b=amount_b,
            min_a=min_a,
            min_b=min_b,
            to=to,
            deadline=deadline,
        )
        return TxRequest("add liquidity", lambda: self.liquidity_calls.append(args))

    def swap_exact_tokens_for_tokens(self, amount_in, amount_out_min, path, to, deadline):
        args = dict(amount_in=amount_in, min_out=amount_out_min, path=path, to=to, deadline=deadline)
        return TxRequest("swap", lambda: self.swaps.append(args))


class FakeFactory:
    def __init__(self, chain, tokens=None):
        self.address = FACTORY
        self.chain = chain
        self.tokens = list(tokens or [])
        self.created = []
        self.reads = 0

    def total_tokens(self):
        self.reads += 1
        return len(self.tokens)

    def token_at(self, index):
        self.reads += 1
        return self.tokens[index]

    def weth(self):
        self.reads += 1
        return WETH

    def router(self):
        self.reads += 1
        return ROUTER

    def token_info(self, token):
        self.reads += 1
        t = self.chain.contracts[token]
        return TokenInfo(token, t.name(), t.symbol(), description="fake", lp_locked=True)

    def create_token(self, name, symbol, decimals, supply, metadata_uri, auto_renounce, fee=0):
        def deploy():
            self.created.append((name, symbol, decimals, supply, metadata_uri, auto_renounce))
            self.tokens.append(NEW_TOKEN)
            self.chain.contracts[NEW_TOKEN] = FakeToken(NEW_TOKEN, decimals, supply, name, symbol)

        return TxRequest(f"create {symbol}", deploy, value=fee)


class FakeSigner:
    """Executes the fake call on send; ``fail_on`` makes one label reject."""

    def __init__(self, fail_on=None, reason="user rejected the request"):
        self.address = ME
        self.fail_on = fail_on
        self.reason = reason
        self.sent = []

    def send(self, tx):
        self.sent.append(tx.label)
        if tx.label == self.fail_on:
            raise RuntimeError(self.reason)
        if callable(tx.fn):
            tx.fn()
        return Receipt(tx_hash="0x" + f"{len(self.sent):064x}")


@pytest.fixture
def chain():
    ns = types.SimpleNamespace()
    ns.contracts = {}
    ns.router = FakeRouter()
    ns.weth = FakeWrapped(WETH)
    ns.old_token = FakeToken(OLD_TOKEN, 18, 10**24, "Old", "OLD")
    ns.factory = FakeFactory(ns, tokens=[OLD_TOKEN])
    ns.contracts.update({ROUTER: ns.router, WETH: ns.weth, OLD_TOKEN: ns.old_token})
    ns.client = PumpClient(ns.factory, lambda kind, address: ns.contracts[address])
    ns.signer = FakeSigner()
    return ns
