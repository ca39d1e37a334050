import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from somnipump.amounts import TokenAmount
from somnipump.client import PumpClient
from somnipump.errors import ExternalCallFailed, InvalidAmount
from somnipump.onchain.signer import Signer
from somnipump.pipeline import LOCAL_ERRORS, Pipeline, PipelineStep
from somnipump.quotes import Quote, quote_forward
from somnipump.slippage import deadline, min_output, tolerance_fraction
from somnipump.types import TradePath

logger = logging.getLogger(__name__)

NATIVE_DECIMALS = 18


@dataclass
class TradeSession:
    side: str
    path: TradePath
    amount_in: TokenAmount
    out_decimals: int
    pipeline: Optional[Pipeline] = None
    quote: Optional[Quote] = None
    min_out: Optional[int] = None
    error: Optional[Exception] = None
    log: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None and self.pipeline is not None and self.pipeline.completed

    @property
    def tx_hash(self) -> Optional[str]:
        if not self.pipeline:
            return None
        return self.pipeline.steps[-1].tx_hash

    def report(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "ok": self.ok,
            "side": self.side,
            "path": self.path.as_list(),
            "amount_in": str(self.amount_in),
            "committed": self.pipeline.committed if self.pipeline else [],
            "tx_hash": self.tx_hash,
        }
        if self.quote is not None:
            out["quoted_out"] = str(self.quote.amount_out)
        if self.min_out is not None:
            out["min_out_raw"] = str(self.min_out)
        if self.error is not None:
            out["error"] = type(self.error).__name__
            out["detail"] = str(self.error)
        return out


class TradeExecutor:
    """Buy / sell / swap through the router as ordered pipelines.

    buy:  wrap -> approve wrapped -> swap (wrapped -> token)
    sell: approve token -> swap (token -> wrapped)
    swap: approve input -> swap along any path

    The swap step re-quotes when it is built, so the minimum output reflects
    the pool after the earlier steps confirmed, not the preview.
    """

    def __init__(
        self,
        client: PumpClient,
        signer: Signer,
        slippage_pct: float = 0.5,
        deadline_seconds: int = 1200,
        on_status: Optional[Callable[[str], None]] = None,
    ):
        tolerance_fraction(slippage_pct)
        self.client = client
        self.signer = signer
        self.slippage_pct = slippage_pct
        self.deadline_seconds = deadline_seconds
        self.on_status = on_status

    def preview(self, path: TradePath, amount_in: TokenAmount, out_decimals: int):
        """Quote and guard for display; raises NoLiquidity when there is no pool."""
        quote = quote_forward(self.client.router(), amount_in, path, out_decimals)
        return quote, min_output(quote.amount_out, self.slippage_pct)

    def buy(self, token: str, amount_base: str) -> TradeSession:
        wrapped = self.client.wrapped()
        amount_in = self._amount(amount_base, NATIVE_DECIMALS)
        path = TradePath.of(wrapped.address, token)
        out_decimals = self.client.token(path.token_out).decimals()
        session = TradeSession("buy", path, amount_in, out_decimals)
        router_addr = self.client.factory.router()
        steps = [
            PipelineStep("wrap", lambda ctx: wrapped.deposit(amount_in.raw)),
            PipelineStep(
                "approve wrapped",
                lambda ctx: wrapped.approve(router_addr, amount_in.raw, label="approve wrapped"),
            ),
            PipelineStep("swap", self._swap_builder(session)),
        ]
        return self._run(session, steps)

    def sell(self, token: str, amount_tokens: str) -> TradeSession:
        path = TradePath.of(token, self.client.factory.weth())
        erc20 = self.client.token(path.token_in)
        amount_in = self._amount(amount_tokens, erc20.decimals())
        return self._approve_and_swap("sell", path, erc20, amount_in, NATIVE_DECIMALS)

    def swap(self, path: TradePath, amount: str) -> TradeSession:
        erc20 = self.client.token(path.token_in)
        amount_in = self._amount(amount, erc20.decimals())
        out_decimals = self.client.token(path.token_out).decimals()
        return self._approve_and_swap("swap", path, erc20, amount_in, out_decimals)

    # --- internals ---
    @staticmethod
    def _amount(text: str, decimals: int) -> TokenAmount:
        amount = TokenAmount.parse(text, decimals)
        if not amount.raw:
            raise InvalidAmount("Enter an amount to swap.")
        return amount

    def _approve_and_swap(self, side, path, erc20, amount_in, out_decimals) -> TradeSession:
        session = TradeSession(side, path, amount_in, out_decimals)
        router_addr = self.client.factory.router()
        steps = [
            PipelineStep(
                "approve token",
                lambda ctx: erc20.approve(router_addr, amount_in.raw, label="approve token"),
            ),
            PipelineStep("swap", self._swap_builder(session)),
        ]
        return self._run(session, steps)

    def _swap_builder(self, session: TradeSession):
        def build(ctx):
            router = self.client.router()
            session.quote = quote_forward(router, session.amount_in, session.path, session.out_decimals)
            session.min_out = min_output(session.quote.amount_out, self.slippage_pct)
            return router.swap_exact_tokens_for_tokens(
                session.amount_in.raw,
                session.min_out,
                session.path.as_list(),
                self.signer.address,
                deadline(self.deadline_seconds),
            )

        return build

    def _status(self, session: TradeSession, msg: str) -> None:
        session.log.append(msg)
        if self.on_status:
            self.on_status(msg)

    def _run(self, session: TradeSession, steps: List[PipelineStep]) -> TradeSession:
        session.pipeline = Pipeline(self.signer, steps, on_status=lambda m: self._status(session, m))
        try:
            session.pipeline.run()
        except (ExternalCallFailed,) + LOCAL_ERRORS as e:
            session.error = e
            logger.warning(f"[trade] {session.side} failed: {e}")
        return session
