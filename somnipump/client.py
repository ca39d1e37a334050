from typing import Any, Callable, Optional

from web3 import Web3

from somnipump.onchain import eth
from somnipump.onchain.contracts import Erc20, Factory, Router, WrappedNative

Binder = Callable[[type, str], Any]


class PumpClient:
    """Everything the core needs to reach the chain, built once by the caller.

    ``bind(wrapper_cls, address)`` attaches a contract wrapper to an address;
    router and wrapped-currency addresses are read from the factory on every
    call, never cached.
    """

    def __init__(self, factory: Factory, bind: Binder, w3: Optional[Web3] = None):
        self.factory = factory
        self.bind = bind
        self.w3 = w3

    @classmethod
    def from_web3(cls, w3: Web3, factory_address: str) -> "PumpClient":
        return cls(Factory.at(w3, factory_address), lambda kind, addr: kind.at(w3, addr), w3)

    @classmethod
    def from_settings(cls, cfg, w3: Optional[Web3] = None) -> "PumpClient":
        if not cfg.factory_address:
            raise RuntimeError("FACTORY_ADDRESS is not configured")
        return cls.from_web3(w3 or eth.from_settings(cfg), cfg.factory_address)

    def router(self) -> Router:
        return self.bind(Router, self.factory.router())

    def wrapped(self) -> WrappedNative:
        return self.bind(WrappedNative, self.factory.weth())

    def token(self, address: str) -> Erc20:
        return self.bind(Erc20, address)
