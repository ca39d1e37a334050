"""Typed wrappers around the factory, router and ERC-20 contracts.

Reads return plain Python values. Writes never send anything: they return a
``TxRequest`` that a ``Signer`` submits, so the pipeline decides when a
transaction goes out.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from web3 import Web3

from somnipump.onchain.abi import ERC20_ABI, FACTORY_ABI, ROUTER_ABI, WRAPPED_NATIVE_ABI

logger = logging.getLogger(__name__)


@dataclass
class TxRequest:
    label: str
    fn: Any  # bound web3 ContractFunction
    value: int = 0


@dataclass
class TokenInfo:
    address: str
    name: str
    symbol: str
    description: str = ""
    image_uri: str = ""
    twitter: str = ""
    telegram: str = ""
    website: str = ""
    creator: Optional[str] = None
    created_at: Optional[int] = None
    lp_locked: Optional[bool] = None
    lock_id: Optional[int] = None


def _addr(address: str) -> str:
    return Web3.to_checksum_address(address)


class _Wrapper:
    ABI: list = []

    def __init__(self, contract):
        self.contract = contract

    @classmethod
    def at(cls, w3: Web3, address: str):
        return cls(w3.eth.contract(address=_addr(address), abi=cls.ABI))

    @property
    def address(self) -> str:
        return self.contract.address

    @property
    def functions(self):
        return self.contract.functions


class Factory(_Wrapper):
    ABI = FACTORY_ABI

    def total_tokens(self) -> int:
        return int(self.functions.totalTokens().call())

    def token_at(self, index: int) -> str:
        try:
            return self.functions.tokenAt(index).call()
        except Exception as e:
            # older factories only expose the public array getter
            logger.debug(f"tokenAt({index}) unavailable ({e}), trying tokensList")
            return self.functions.tokensList(index).call()

    def weth(self) -> str:
        return self.functions.weth().call()

    def router(self) -> str:
        return self.functions.router().call()

    def token_info(self, token: str) -> TokenInfo:
        token = _addr(token)
        try:
            (
                _,
                creator,
                name,
                symbol,
                description,
                image_uri,
                twitter,
                telegram,
                website,
                created_at,
                lp_locked,
                lock_id,
            ) = self.functions.getTokenInfo(token).call()
            return TokenInfo(
                token,
                name,
                symbol,
                description,
                image_uri,
                twitter,
                telegram,
                website,
                creator=creator,
                created_at=int(created_at),
                lp_locked=bool(lp_locked),
                lock_id=int(lock_id),
            )
        except Exception as e:
            logger.warning(f"getTokenInfo failed for {token}, trying getTokenMetadata: {e}")
            name, symbol, description, image_uri, twitter, telegram, website = (
                self.functions.getTokenMetadata(token).call()
            )
            return TokenInfo(
                token, name, symbol, description, image_uri, twitter, telegram, website
            )

    def create_token(
        self,
        name: str,
        symbol: str,
        decimals: int,
        initial_supply: int,
        metadata_uri: str,
        auto_renounce: bool,
        fee: int = 0,
    ) -> TxRequest:
        fn = self.functions.createToken(
            name, symbol, decimals, initial_supply, metadata_uri, auto_renounce
        )
        return TxRequest(f"create {symbol}", fn, value=fee)


class Router(_Wrapper):
    ABI = ROUTER_ABI

    def get_amounts_out(self, amount_in: int, path: List[str]) -> List[int]:
        out = self.functions.getAmountsOut(amount_in, [_addr(p) for p in path]).call()
        return [int(x) for x in out]

    def get_amounts_in(self, amount_out: int, path: List[str]) -> List[int]:
        out = self.functions.getAmountsIn(amount_out, [_addr(p) for p in path]).call()
        return [int(x) for x in out]

    def add_liquidity(
        self,
        token_a: str,
        token_b: str,
        amount_a: int,
        amount_b: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
    ) -> TxRequest:
        fn = self.functions.addLiquidity(
            _addr(token_a),
            _addr(token_b),
            amount_a,
            amount_b,
            amount_a_min,
            amount_b_min,
            _addr(to),
            deadline,
        )
        return TxRequest("add liquidity", fn)

    def swap_exact_tokens_for_tokens(
        self, amount_in: int, amount_out_min: int, path: List[str], to: str, deadline: int
    ) -> TxRequest:
        fn = self.functions.swapExactTokensForTokens(
            amount_in, amount_out_min, [_addr(p) for p in path], _addr(to), deadline
        )
        return TxRequest("swap", fn)


class Erc20(_Wrapper):
    ABI = ERC20_ABI

    def name(self) -> str:
        return self.functions.name().call()

    def symbol(self) -> str:
        return self.functions.symbol().call()

    def decimals(self) -> int:
        return int(self.functions.decimals().call())

    def total_supply(self) -> int:
        return int(self.functions.totalSupply().call())

    def balance_of(self, owner: str) -> int:
        return int(self.functions.balanceOf(_addr(owner)).call())

    def approve(self, spender: str, amount: int, label: str = "approve") -> TxRequest:
        return TxRequest(label, self.functions.approve(_addr(spender), amount))


class WrappedNative(Erc20):
    ABI = WRAPPED_NATIVE_ABI

    def deposit(self, value: int) -> TxRequest:
        return TxRequest("wrap", self.functions.deposit(), value=value)

    def withdraw(self, amount: int) -> TxRequest:
        return TxRequest("unwrap", self.functions.withdraw(amount))
