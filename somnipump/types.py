import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator
from web3 import Web3

from somnipump.config import settings
from somnipump.errors import InvalidImage, InvalidPath

IMAGE_TYPES = {"image/png", "image/jpeg", "image/gif", "image/webp"}


def checksum(address: str) -> str:
    try:
        return Web3.to_checksum_address(address)
    except (ValueError, TypeError) as e:
        raise InvalidPath(f"not an address: {address!r}") from e


def check_image(path: str, max_mb: float = 5.0) -> str:
    """Validate a logo file before anything is uploaded; returns its mime type."""
    p = Path(path).expanduser()
    if not p.is_file():
        raise InvalidImage(f"image not found: {path}")
    mime, _ = mimetypes.guess_type(p.name)
    if mime not in IMAGE_TYPES:
        raise InvalidImage("Unsupported image type")
    if p.stat().st_size > max_mb * 1024 * 1024:
        raise InvalidImage(f"Image too large, must be <= {max_mb:g}MB")
    return mime


@dataclass(frozen=True)
class TradePath:
    """Token hops through pools, first entry is what the trader pays."""

    tokens: Tuple[str, ...]

    def __post_init__(self):
        tokens = tuple(checksum(t) for t in self.tokens)
        if len(tokens) < 2:
            raise InvalidPath("a path needs at least two tokens")
        for a, b in zip(tokens, tokens[1:]):
            if a == b:
                raise InvalidPath(f"adjacent hops repeat the same token {a}")
        object.__setattr__(self, "tokens", tokens)

    @classmethod
    def of(cls, *tokens: str) -> "TradePath":
        return cls(tuple(tokens))

    @classmethod
    def from_list(cls, tokens: Iterable[str]) -> "TradePath":
        return cls(tuple(tokens))

    @property
    def token_in(self) -> str:
        return self.tokens[0]

    @property
    def token_out(self) -> str:
        return self.tokens[-1]

    def reversed(self) -> "TradePath":
        return TradePath(tuple(reversed(self.tokens)))

    def as_list(self) -> List[str]:
        return list(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)


class LaunchRequest(BaseModel):
    name: str
    symbol: str = Field(pattern=r"^[A-Za-z0-9]{2,11}$")
    decimals: int = Field(18, ge=6, le=18)
    initial_supply: str
    description: str = ""
    twitter: str = ""
    telegram: str = ""
    website: str = ""
    image_path: Optional[str] = None
    auto_renounce: bool = False
    lock_lp: bool = True
    # liquidity seeding, both or neither
    seed_tokens: Optional[str] = None
    seed_base: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Token name required")
        return v

    @field_validator("image_path")
    @classmethod
    def image_ok(cls, v: Optional[str]) -> Optional[str]:
        if v:
            check_image(v, settings.max_image_mb)
        return v

    @property
    def wants_liquidity(self) -> bool:
        return bool((self.seed_tokens or "").strip() or (self.seed_base or "").strip())

