import logging

from web3 import Web3

logger = logging.getLogger(__name__)


def connect(rpc_http: str | None, timeout: int = 20, check: bool = True) -> Web3:
    """Build a Web3 client for ``rpc_http``; the caller owns and passes it on."""
    if not rpc_http:
        raise RuntimeError("RPC_HTTP is not configured")
    w3 = Web3(Web3.HTTPProvider(rpc_http, request_kwargs={"timeout": timeout}))
    if check and not w3.is_connected():
        raise RuntimeError(f"Web3 failed to connect to {rpc_http}")
    logger.debug(f"connected to {rpc_http}")
    return w3


def from_settings(cfg, check: bool = True) -> Web3:
    return connect(cfg.rpc_http, timeout=cfg.rpc_timeout, check=check)
