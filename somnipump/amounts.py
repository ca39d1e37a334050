import re
from dataclasses import dataclass
from typing import Optional

from somnipump.errors import InvalidAmount

_AMOUNT_RE = re.compile(r"^(?P<whole>[0-9,]*)(?:\.(?P<frac>[0-9]*))?$")


def _check_decimals(decimals: int) -> int:
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise InvalidAmount(f"decimals must be an integer, got {decimals!r}")
    if decimals < 0:
        raise InvalidAmount(f"decimals must be >= 0, got {decimals}")
    return decimals


def to_base_units(text: Optional[str], decimals: int) -> int:
    """Parse a human decimal string into integer base units.

    Thousands separators (``,``) in the whole part are ignored, blank input is
    zero, and fractional digits beyond ``decimals`` are truncated, never rounded.
    """
    _check_decimals(decimals)
    clean = (text or "").strip()
    if not clean:
        return 0
    m = _AMOUNT_RE.match(clean)
    if m is None:
        raise InvalidAmount(f"not a decimal amount: {text!r}")
    whole = m.group("whole").replace(",", "")
    frac = (m.group("frac") or "")[:decimals]
    frac = frac.ljust(decimals, "0")
    return int(whole or "0") * 10**decimals + int(frac or "0")


def from_base_units(raw: int, decimals: int) -> str:
    """Render base units with the shortest exact decimal representation."""
    _check_decimals(decimals)
    if raw < 0:
        raise InvalidAmount(f"amount must be non-negative, got {raw}")
    s = str(int(raw)).rjust(decimals + 1, "0")
    cut = len(s) - decimals
    whole = s[:cut] or "0"
    frac = s[cut:].rstrip("0")
    return f"{whole}.{frac}" if frac else whole


@dataclass(frozen=True)
class TokenAmount:
    raw: int
    decimals: int

    def __post_init__(self):
        _check_decimals(self.decimals)
        if self.raw < 0:
            raise InvalidAmount(f"amount must be non-negative, got {self.raw}")

    @classmethod
    def parse(cls, text: Optional[str], decimals: int) -> "TokenAmount":
        return cls(to_base_units(text, decimals), decimals)

    @classmethod
    def one(cls, decimals: int) -> "TokenAmount":
        """One whole token at this precision."""
        return cls(10**decimals, decimals)

    def normalize(self, decimals: int) -> "TokenAmount":
        """Rescale to another precision, truncating when precision drops."""
        _check_decimals(decimals)
        if decimals >= self.decimals:
            return TokenAmount(self.raw * 10 ** (decimals - self.decimals), decimals)
        return TokenAmount(self.raw // 10 ** (self.decimals - decimals), decimals)

    def _same_scale(self, other: "TokenAmount"):
        if not isinstance(other, TokenAmount):
            return NotImplemented
        if other.decimals != self.decimals:
            raise ValueError(
                f"cannot combine amounts with {self.decimals} and {other.decimals} decimals; normalize first"
            )
        return other

    def __add__(self, other: "TokenAmount") -> "TokenAmount":
        other = self._same_scale(other)
        if other is NotImplemented:
            return other
        return TokenAmount(self.raw + other.raw, self.decimals)

    def __lt__(self, other: "TokenAmount") -> bool:
        other = self._same_scale(other)
        if other is NotImplemented:
            return other
        return self.raw < other.raw

    def __le__(self, other: "TokenAmount") -> bool:
        other = self._same_scale(other)
        if other is NotImplemented:
            return other
        return self.raw <= other.raw

    def __gt__(self, other: "TokenAmount") -> bool:
        other = self._same_scale(other)
        if other is NotImplemented:
            return other
        return self.raw > other.raw

    def __ge__(self, other: "TokenAmount") -> bool:
        other = self._same_scale(other)
        if other is NotImplemented:
            return other
        return self.raw >= other.raw

    def __bool__(self) -> bool:
        return self.raw > 0

    def __str__(self) -> str:
        return from_base_units(self.raw, self.decimals)
