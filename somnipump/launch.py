"""Create a token and optionally seed its first pool.

Steps, each confirmed before the next is built:

1. ``create token``: factory call; on confirmation the new address is the
   last entry of the factory registry.
2. ``wrap``: deposit the base-currency side into the wrapped token.
3. ``approve wrapped`` / ``approve token``: router allowances for both sides.
4. ``add liquidity``: with slippage minimums and a deadline taken when the
   step is built.

If creation fails nothing exists on-chain. If a later step fails the session
is ``partial`` and keeps the token address so only the liquidity steps are
retried through :meth:`LaunchCoordinator.resume`.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from somnipump.amounts import from_base_units, to_base_units
from somnipump.client import PumpClient
from somnipump.errors import ExternalCallFailed, InvalidAmount, NoLiquidity, PreconditionViolated
from somnipump.metadata import MetadataStore, publish_launch_metadata
from somnipump.onchain.contracts import Erc20, Router, WrappedNative
from somnipump.onchain.signer import Receipt, Signer
from somnipump.pipeline import LOCAL_ERRORS, Pipeline, PipelineStep
from somnipump.quotes import Quote, spot_price
from somnipump.registry import latest_token
from somnipump.slippage import deadline, min_output, tolerance_fraction
from somnipump.types import LaunchRequest

logger = logging.getLogger(__name__)

NATIVE_DECIMALS = 18
CREATE_STEP = "create token"


class LaunchStatus(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED_BEFORE_CREATION = "failed_before_creation"


@dataclass
class LaunchPlan:
    decimals: int
    initial_supply: int
    seed_tokens: int = 0
    seed_base: int = 0
    token_min: int = 0
    base_min: int = 0
    slippage_pct: float = 0.0

    @property
    def seeding(self) -> bool:
        return self.seed_tokens > 0

    def describe(self) -> Dict[str, Any]:
        out = {
            "decimals": self.decimals,
            "initial_supply": from_base_units(self.initial_supply, self.decimals),
            "initial_supply_raw": str(self.initial_supply),
            "seeding": self.seeding,
        }
        if self.seeding:
            out.update(
                {
                    "seed_tokens_raw": str(self.seed_tokens),
                    "seed_base_raw": str(self.seed_base),
                    "amount_token_min": str(self.token_min),
                    "amount_base_min": str(self.base_min),
                    "amount_token_min_display": from_base_units(self.token_min, self.decimals),
                    "amount_base_min_display": from_base_units(self.base_min, NATIVE_DECIMALS),
                    "slippage_pct": self.slippage_pct,
                }
            )
        return out


def plan_launch(req: LaunchRequest, slippage_pct: float) -> LaunchPlan:
    """Turn the form into base units and guards; touches nothing external."""
    tolerance_fraction(slippage_pct)
    supply = to_base_units(req.initial_supply, req.decimals)
    if supply <= 0:
        raise InvalidAmount("initial supply must be greater than zero")
    plan = LaunchPlan(req.decimals, supply, slippage_pct=slippage_pct)
    if not req.wants_liquidity:
        return plan

    tokens = to_base_units(req.seed_tokens, req.decimals)
    base = to_base_units(req.seed_base, NATIVE_DECIMALS)
    if tokens > supply:
        raise PreconditionViolated(
            f"liquidity amount {req.seed_tokens} exceeds initial supply {req.initial_supply}"
        )
    if tokens <= 0 or base <= 0:
        raise InvalidAmount("both liquidity amounts must be greater than zero")
    plan.seed_tokens = tokens
    plan.seed_base = base
    plan.token_min = min_output(tokens, slippage_pct)
    plan.base_min = min_output(base, slippage_pct)
    return plan


@dataclass
class LaunchSession:
    request: LaunchRequest
    plan: LaunchPlan
    status: LaunchStatus = LaunchStatus.NOT_STARTED
    pipeline: Optional[Pipeline] = None
    token_address: Optional[str] = None
    metadata_uri: Optional[str] = None
    price: Optional[Quote] = None
    error: Optional[Exception] = None
    warnings: List[str] = field(default_factory=list)
    log: List[str] = field(default_factory=list)

    @property
    def committed(self) -> List[str]:
        return self.pipeline.committed if self.pipeline else []

    def report(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "ok": self.status == LaunchStatus.COMPLETED,
            "status": self.status.value,
            "token_address": self.token_address,
            "metadata_uri": self.metadata_uri,
            "committed": self.committed,
            "warnings": list(self.warnings),
        }
        if self.pipeline:
            out["transactions"] = {s.name: s.tx_hash for s in self.pipeline.steps if s.tx_hash}
        if self.price is not None:
            out["price_per_token"] = str(self.price.amount_out)
        if self.error is not None:
            out["error"] = type(self.error).__name__
            out["detail"] = str(self.error)
            if isinstance(self.error, ExternalCallFailed):
                out["failed_step"] = self.error.step
        return out


class LaunchCoordinator:
    def __init__(
        self,
        client: PumpClient,
        signer: Signer,
        metadata_store: Optional[MetadataStore] = None,
        slippage_pct: float = 1.0,
        deadline_seconds: int = 600,
        creation_fee: int = 0,
        on_status: Optional[Callable[[str], None]] = None,
    ):
        self.client = client
        self.signer = signer
        self.metadata_store = metadata_store
        self.slippage_pct = slippage_pct
        self.deadline_seconds = deadline_seconds
        self.creation_fee = creation_fee
        self.on_status = on_status

    # --- public ---
    def launch(self, req: LaunchRequest) -> LaunchSession:
        """Validate, then run the whole launch. Local validation errors raise."""
        plan = plan_launch(req, self.slippage_pct)
        session = LaunchSession(req, plan)
        self._status(session, "uploading metadata")
        session.metadata_uri = publish_launch_metadata(self.metadata_store, req, self.signer.address)
        if session.metadata_uri is None and self.metadata_store is not None:
            session.warnings.append("metadata upload failed; token created without metadata")
        session.pipeline = Pipeline(
            self.signer,
            self._steps(session),
            context={"metadata_uri": session.metadata_uri or ""},
            on_status=lambda msg: self._status(session, msg),
        )
        return self._run(session, start=0)

    def resume(self, session: LaunchSession) -> LaunchSession:
        """Retry the liquidity steps of a partial launch from the one that failed."""
        if session.status != LaunchStatus.PARTIAL or session.pipeline is None:
            raise PreconditionViolated(
                f"only a partial launch can be resumed (status={session.status.value})"
            )
        ctx = session.pipeline.context
        if not ctx.get("token_address"):
            try:
                self._resolve_token(session, ctx)
            except Exception as e:
                session.error = ExternalCallFailed(
                    CREATE_STEP,
                    f"confirmed but token address lookup failed: {e}",
                    0,
                    session.committed,
                    {k: v for k, v in ctx.items() if k != "receipts"},
                )
                session.status = LaunchStatus.PARTIAL
                logger.warning(f"[launch] partial: {session.error}")
                return session
        session.error = None
        return self._run(session, start=None)

    # --- internals ---
    def _status(self, session: LaunchSession, msg: str) -> None:
        session.log.append(msg)
        if self.on_status:
            self.on_status(msg)

    def _run(self, session: LaunchSession, start: Optional[int]) -> LaunchSession:
        session.status = LaunchStatus.RUNNING
        try:
            session.pipeline.run(start)
        except (ExternalCallFailed,) + LOCAL_ERRORS as e:
            session.error = e
            created = CREATE_STEP in session.pipeline.committed
            session.status = LaunchStatus.PARTIAL if created else LaunchStatus.FAILED_BEFORE_CREATION
            logger.warning(f"[launch] {session.status.value}: {e}")
            return session
        if not session.pipeline.completed:
            # cancelled between steps
            created = CREATE_STEP in session.pipeline.committed
            session.status = LaunchStatus.PARTIAL if created else LaunchStatus.FAILED_BEFORE_CREATION
            return session
        session.status = LaunchStatus.COMPLETED
        if session.plan.seeding:
            self._check_price(session)
        return session

    def _resolve_token(self, session: LaunchSession, ctx: Dict[str, Any]) -> None:
        address = latest_token(self.client)
        ctx["token_address"] = address
        session.token_address = address
        self._status(session, f"token deployed at {address}")

    def _pool(self, ctx: Dict[str, Any]):
        if "weth" not in ctx or "router" not in ctx:
            ctx["weth"] = self.client.factory.weth()
            ctx["router"] = self.client.factory.router()
        return (
            self.client.bind(WrappedNative, ctx["weth"]),
            self.client.bind(Router, ctx["router"]),
        )

    def _steps(self, session: LaunchSession) -> List[PipelineStep]:
        req, plan = session.request, session.plan

        def create(ctx):
            return self.client.factory.create_token(
                req.name,
                req.symbol,
                plan.decimals,
                plan.initial_supply,
                ctx.get("metadata_uri", ""),
                req.auto_renounce,
                fee=self.creation_fee,
            )

        def created(ctx, receipt: Receipt):
            self._resolve_token(session, ctx)

        steps = [PipelineStep(CREATE_STEP, create, after_confirm=created)]
        if not plan.seeding:
            return steps

        def wrap(ctx):
            wrapped, _ = self._pool(ctx)
            return wrapped.deposit(plan.seed_base)

        def approve_wrapped(ctx):
            wrapped, router = self._pool(ctx)
            return wrapped.approve(router.address, plan.seed_base, label="approve wrapped")

        def approve_token(ctx):
            _, router = self._pool(ctx)
            token = self.client.bind(Erc20, ctx["token_address"])
            return token.approve(router.address, plan.seed_tokens, label="approve token")

        def add_liquidity(ctx):
            wrapped, router = self._pool(ctx)
            return router.add_liquidity(
                ctx["token_address"],
                wrapped.address,
                plan.seed_tokens,
                plan.seed_base,
                plan.token_min,
                plan.base_min,
                self.signer.address,
                deadline(self.deadline_seconds),
            )

        return steps + [
            PipelineStep("wrap", wrap),
            PipelineStep("approve wrapped", approve_wrapped),
            PipelineStep("approve token", approve_token),
            PipelineStep("add liquidity", add_liquidity),
        ]

    def _check_price(self, session: LaunchSession) -> None:
        ctx = session.pipeline.context
        try:
            router = self.client.bind(Router, ctx["router"])
            session.price = spot_price(
                router, ctx["token_address"], ctx["weth"], session.plan.decimals, NATIVE_DECIMALS
            )
            self._status(session, f"price: {session.price.amount_out} per token")
        except NoLiquidity as e:
            msg = f"liquidity added but no price could be derived yet: {e}"
            session.warnings.append(msg)
            logger.warning(f"[launch] {msg}")
