from typing import Any, Dict, List, Optional


class SomnipumpError(Exception):
    """Base class for every error raised by the quoting/execution core."""


class InvalidAmount(SomnipumpError, ValueError):
    pass


class InvalidTolerance(SomnipumpError, ValueError):
    pass


class InvalidPath(SomnipumpError, ValueError):
    pass


class InvalidImage(SomnipumpError, ValueError):
    pass


class NoLiquidity(SomnipumpError):
    """A quote query found no usable pool. Callers show "no quote" and move on."""


class PreconditionViolated(SomnipumpError):
    pass


class ExternalCallFailed(SomnipumpError):
    """A signer rejection, revert or RPC failure while running a pipeline step.

    ``committed`` lists the steps already confirmed on-chain before the failure
    and ``context`` carries what they produced (e.g. ``token_address``), so a
    caller can offer a manual resume instead of starting over.
    """

    def __init__(
        self,
        step: str,
        reason: str,
        index: int = 0,
        committed: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.step = step
        self.reason = reason
        self.index = index
        self.committed = list(committed or [])
        self.context = dict(context or {})
        super().__init__(self.describe())

    def describe(self) -> str:
        msg = f"step '{self.step}' failed: {self.reason}"
        if self.committed:
            msg += f" (already committed: {', '.join(self.committed)})"
        return msg


def as_result(err: Exception) -> Dict[str, Any]:
    """Flatten an error into the ``{"ok": False, ...}`` dict used by the CLI and API."""
    out: Dict[str, Any] = {"ok": False, "error": type(err).__name__, "detail": str(err)}
    if isinstance(err, ExternalCallFailed):
        out["step"] = err.step
        out["committed"] = err.committed
        token = err.context.get("token_address")
        if token:
            out["token_address"] = token
    return out
