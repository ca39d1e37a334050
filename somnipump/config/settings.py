# somnipump/config/settings.py

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field, model_validator

from somnipump.chains import CHAINS


class Settings(BaseSettings):
    # --- Chain ---
    network: str = Field(default="somnia_testnet")
    chain_id: Optional[int] = None
    rpc_http: Optional[str] = None
    native_symbol: str = Field(default="ETH")
    explorer_base: Optional[str] = None

    # --- Contracts + account ---
    factory_address: Optional[str] = None
    from_address: Optional[str] = None

    # --- Trading ---
    default_slippage_pct: float = Field(default=1.0, ge=0.0, le=50.0)
    swap_slippage_pct: float = Field(default=0.5, ge=0.0, le=50.0)
    deadline_seconds: int = Field(default=600)
    swap_deadline_seconds: int = Field(default=1200)

    # --- Timeouts ---
    rpc_timeout: int = Field(default=20)
    tx_timeout: int = Field(default=120)

    # --- Metadata store ---
    metadata_base: Optional[str] = None
    metadata_api_key: Optional[str] = None
    max_image_mb: float = Field(default=5.0)

    # --- HTTP API ---
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)

    # --- Validators ---
    @model_validator(mode="after")
    def configure_network_defaults(self):
        """Fill chain defaults for known networks; explicit env values win."""
        chain = CHAINS.get(self.network)
        if chain is not None:
            self.chain_id = self.chain_id or chain.chain_id
            self.rpc_http = self.rpc_http or chain.rpc_http
            self.explorer_base = self.explorer_base or chain.explorer_base
            if "native_symbol" not in self.model_fields_set:
                self.native_symbol = chain.native_symbol
        return self

    def tx_url(self, tx_hash: str) -> str:
        if not self.explorer_base:
            return tx_hash
        return f"{self.explorer_base.rstrip('/')}/tx/{tx_hash}"


# Global settings instance
settings = Settings()
