import logging
import threading
import time
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Callable, Hashable, Optional

from somnipump.amounts import TokenAmount
from somnipump.errors import InvalidAmount, NoLiquidity
from somnipump.onchain.contracts import Router
from somnipump.types import TradePath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Quote:
    amount_in: TokenAmount
    path: TradePath
    amount_out: TokenAmount
    quoted_at: float = field(default_factory=time.time)

    def price(self) -> Fraction:
        """Output per unit of input, in whole tokens."""
        if not self.amount_in.raw:
            return Fraction(0)
        return Fraction(self.amount_out.raw, 10**self.amount_out.decimals) / Fraction(
            self.amount_in.raw, 10**self.amount_in.decimals
        )


def _check_hops(amounts: list, path: TradePath) -> None:
    if len(amounts) != len(path) or any(a <= 0 for a in amounts):
        raise NoLiquidity(f"no liquidity along {' -> '.join(path.tokens)}")


def quote_forward(
    router: Router, amount_in: TokenAmount, path: TradePath, out_decimals: int
) -> Quote:
    """How much of ``path.token_out`` ``amount_in`` buys right now."""
    if not amount_in.raw:
        raise InvalidAmount("nothing to quote for a zero input")
    try:
        amounts = router.get_amounts_out(amount_in.raw, path.as_list())
    except Exception as e:
        raise NoLiquidity(f"getAmountsOut reverted: {e}") from e
    _check_hops(amounts, path)
    return Quote(amount_in, path, TokenAmount(amounts[-1], out_decimals))


def quote_reverse(
    router: Router, amount_out: TokenAmount, path: TradePath, in_decimals: int
) -> Quote:
    """How much of ``path.token_in`` is needed to receive exactly ``amount_out``."""
    if not amount_out.raw:
        raise InvalidAmount("nothing to quote for a zero output")
    try:
        amounts = router.get_amounts_in(amount_out.raw, path.as_list())
    except Exception as e:
        raise NoLiquidity(f"getAmountsIn reverted: {e}") from e
    _check_hops(amounts, path)
    return Quote(TokenAmount(amounts[0], in_decimals), path, amount_out)


def spot_price(
    router: Router, token: str, wrapped: str, token_decimals: int, wrapped_decimals: int = 18
) -> Quote:
    """Quote one whole ``token`` into the wrapped base currency."""
    return quote_forward(
        router, TokenAmount.one(token_decimals), TradePath.of(token, wrapped), wrapped_decimals
    )


def estimate_price_impact(router: Router, amount_in: int, path: TradePath, small_in: int = 10**12) -> dict:
    try:
        small_out = router.get_amounts_out(small_in, path.as_list())[-1]
        trade_out = router.get_amounts_out(amount_in, path.as_list())[-1]
        mid_px = Fraction(small_out, small_in)
        exe_px = Fraction(trade_out, amount_in)
        impact = Fraction(0) if mid_px == 0 else (mid_px - exe_px) / mid_px
        impact_bps = max(0, int(impact * 10_000))
        return {
            "ok": True,
            "impact_bps": impact_bps,
            "out_raw": int(trade_out),
            "error": None,
        }
    except Exception as e:
        return {"ok": False, "impact_bps": 0, "out_raw": 0, "error": str(e)}


class QuoteSlot:
    """Latest-wins holder for one quote field (e.g. the "you receive" box).

    Every refresh takes a sequence number; a result is kept only when its
    number is still the latest issued, so a slow reply to an old input can
    never overwrite the quote for the current one.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._seq = 0
        self._key: Optional[Hashable] = None
        self._quote: Optional[Quote] = None
        self._error: Optional[str] = None

    def issue(self, key: Hashable) -> int:
        with self._lock:
            self._seq += 1
            if key != self._key:
                self._quote = None
                self._error = None
            self._key = key
            return self._seq

    def resolve(self, seq: int, quote: Optional[Quote], error: Optional[str] = None) -> bool:
        with self._lock:
            if seq != self._seq:
                logger.debug(f"dropping stale quote #{seq} (latest #{self._seq})")
                return False
            self._quote = quote
            self._error = error
            return True

    def refresh(self, key: Hashable, fetch: Callable[[], Quote]) -> Optional[Quote]:
        """Issue, fetch and resolve in one go; returns the quote if it was kept."""
        seq = self.issue(key)
        try:
            quote = fetch()
        except NoLiquidity as e:
            self.resolve(seq, None, str(e))
            return None
        return quote if self.resolve(seq, quote) else None

    @property
    def key(self) -> Optional[Hashable]:
        return self._key

    @property
    def latest(self) -> Optional[Quote]:
        return self._quote

    @property
    def error(self) -> Optional[str]:
        return self._error
