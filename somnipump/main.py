import json
import logging
from typing import List, Optional

import typer
from pydantic import ValidationError

from somnipump.amounts import TokenAmount, from_base_units, to_base_units
from somnipump.client import PumpClient
from somnipump.config.settings import settings
from somnipump.errors import InvalidAmount, SomnipumpError, as_result
from somnipump.launch import LaunchCoordinator, LaunchStatus, plan_launch
from somnipump.metadata import MetadataStore
from somnipump.onchain.signer import Web3Signer
from somnipump.pipeline import Pipeline, PipelineStep
from somnipump.quotes import estimate_price_impact, quote_forward, quote_reverse
from somnipump.registry import list_tokens
from somnipump.slippage import max_input, min_output
from somnipump.trade import TradeExecutor
from somnipump.types import LaunchRequest, TradePath, checksum

app = typer.Typer()

# --- Logging setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(threadName)s - %(message)s",
)
logger = logging.getLogger("somnipump")


def _client() -> PumpClient:
    return PumpClient.from_settings(settings)


def _signer(client: PumpClient) -> Web3Signer:
    return Web3Signer(client.w3, settings.from_address or "", timeout=settings.tx_timeout)


def _metadata_store() -> Optional[MetadataStore]:
    if not settings.metadata_base:
        return None
    return MetadataStore(settings.metadata_base, settings.metadata_api_key)


def _echo(data: dict) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


def _fail(err: Exception) -> None:
    if isinstance(err, ValidationError):
        _echo({"ok": False, "error": "InvalidInput", "detail": err.errors(include_url=False)})
    else:
        _echo(as_result(err))
    raise typer.Exit(code=1)


def _status(msg: str) -> None:
    typer.echo(f"... {msg}")


def _report(report: dict, pipeline: Optional[Pipeline]) -> dict:
    if pipeline is not None:
        report["explorer"] = {s.name: settings.tx_url(s.tx_hash) for s in pipeline.steps if s.tx_hash}
    return report


@app.callback()
def main(debug: bool = typer.Option(False, help="verbose logs")):
    if debug:
        logger.setLevel(logging.DEBUG)


@app.command()
def quote(
    token_in: str,
    token_out: str,
    amount: str,
    via: List[str] = typer.Option([], help="intermediate hop token (repeatable)"),
    reverse: bool = typer.Option(False, help="AMOUNT is the exact output wanted"),
    slippage: Optional[float] = typer.Option(None, help="tolerance in percent"),
):
    """Quote a trade through the router without sending anything."""
    tol = settings.swap_slippage_pct if slippage is None else slippage
    try:
        client = _client()
        path = TradePath.from_list([token_in, *via, token_out])
        router = client.router()
        dec_in = client.token(path.token_in).decimals()
        dec_out = client.token(path.token_out).decimals()
        if reverse:
            q = quote_reverse(router, TokenAmount.parse(amount, dec_out), path, dec_in)
            _echo(
                {
                    "ok": True,
                    "amount_out": str(q.amount_out),
                    "amount_in": str(q.amount_in),
                    "max_in": from_base_units(max_input(q.amount_in, tol), dec_in),
                    "slippage_pct": tol,
                }
            )
            return
        q = quote_forward(router, TokenAmount.parse(amount, dec_in), path, dec_out)
        impact = estimate_price_impact(router, q.amount_in.raw, path)
        _echo(
            {
                "ok": True,
                "amount_in": str(q.amount_in),
                "amount_out": str(q.amount_out),
                "min_out": from_base_units(min_output(q.amount_out, tol), dec_out),
                "impact_bps": impact["impact_bps"],
                "slippage_pct": tol,
            }
        )
    except (SomnipumpError, RuntimeError) as e:
        _fail(e)


@app.command("min-out")
def min_out(
    amount: str,
    slippage: float = typer.Option(1.0, help="tolerance in percent"),
    decimals: int = typer.Option(18),
):
    """Slippage guards for an already quoted amount (offline)."""
    try:
        raw = to_base_units(amount, decimals)
        _echo(
            {
                "ok": True,
                "min_out": from_base_units(min_output(raw, slippage), decimals),
                "max_in": from_base_units(max_input(raw, slippage), decimals),
                "min_out_raw": str(min_output(raw, slippage)),
            }
        )
    except SomnipumpError as e:
        _fail(e)


@app.command()
def tokens(start: int = typer.Option(0), limit: int = typer.Option(50)):
    """List tokens from the factory registry, oldest first."""
    try:
        client = _client()
        for t in list_tokens(client, start, limit):
            typer.echo(f"#{t.index} {t.symbol:<11} {t.name} {t.address} supply={t.total_supply}")
    except (SomnipumpError, RuntimeError) as e:
        _fail(e)


@app.command()
def info(token: str):
    """Factory metadata for one token."""
    try:
        token = checksum(token)
        client = _client()
        meta = client.factory.token_info(token)
        _echo({"ok": True, **meta.__dict__})
    except (SomnipumpError, RuntimeError) as e:
        _fail(e)


@app.command()
def launch(
    name: str = typer.Option(..., help="token name"),
    symbol: str = typer.Option(..., help="2-11 alphanumeric chars"),
    supply: str = typer.Option(..., help="initial supply in whole tokens"),
    decimals: int = typer.Option(18),
    description: str = typer.Option(""),
    twitter: str = typer.Option(""),
    telegram: str = typer.Option(""),
    website: str = typer.Option(""),
    image: Optional[str] = typer.Option(None, help="logo file (png/jpg/gif/webp)"),
    auto_renounce: bool = typer.Option(False),
    lock_lp: bool = typer.Option(True),
    seed_tokens: Optional[str] = typer.Option(None, help="tokens to put in the pool"),
    seed_base: Optional[str] = typer.Option(None, help="base currency to put in the pool"),
    slippage: Optional[float] = typer.Option(None, help="tolerance in percent"),
    fee: str = typer.Option("0", help="creation fee in base currency"),
    preview: bool = typer.Option(False, help="validate and print the plan only"),
):
    """Create a token and optionally seed its pool."""
    tol = settings.default_slippage_pct if slippage is None else slippage
    try:
        req = LaunchRequest(
            name=name,
            symbol=symbol,
            decimals=decimals,
            initial_supply=supply,
            description=description,
            twitter=twitter,
            telegram=telegram,
            website=website,
            image_path=image,
            auto_renounce=auto_renounce,
            lock_lp=lock_lp,
            seed_tokens=seed_tokens,
            seed_base=seed_base,
        )
        plan = plan_launch(req, tol)
        if preview:
            _echo({"ok": True, **plan.describe()})
            return
        client = _client()
        coordinator = LaunchCoordinator(
            client,
            _signer(client),
            metadata_store=_metadata_store(),
            slippage_pct=tol,
            deadline_seconds=settings.deadline_seconds,
            creation_fee=to_base_units(fee, 18),
            on_status=_status,
        )
        session = coordinator.launch(req)
    except (SomnipumpError, ValidationError, RuntimeError) as e:
        _fail(e)
        return
    _echo(_report(session.report(), session.pipeline))
    if session.status == LaunchStatus.PARTIAL:
        typer.echo(
            f"Token {session.token_address} exists; liquidity was not added. "
            f"Retry the liquidity steps once the cause is fixed."
        )
    if session.status != LaunchStatus.COMPLETED:
        raise typer.Exit(code=1)


def _trade(run) -> None:
    try:
        session = run()
    except (SomnipumpError, RuntimeError) as e:
        _fail(e)
        return
    _echo(_report(session.report(), session.pipeline))
    if not session.ok:
        raise typer.Exit(code=1)


def _executor(slippage: Optional[float]) -> TradeExecutor:
    client = _client()
    tol = settings.swap_slippage_pct if slippage is None else slippage
    return TradeExecutor(
        client,
        _signer(client),
        slippage_pct=tol,
        deadline_seconds=settings.swap_deadline_seconds,
        on_status=_status,
    )


@app.command()
def buy(token: str, amount: str, slippage: Optional[float] = typer.Option(None)):
    """Spend AMOUNT base currency on TOKEN (wrap, approve, swap)."""
    _trade(lambda: _executor(slippage).buy(token, amount))


@app.command()
def sell(token: str, amount: str, slippage: Optional[float] = typer.Option(None)):
    """Sell AMOUNT of TOKEN for wrapped base currency (approve, swap)."""
    _trade(lambda: _executor(slippage).sell(token, amount))


@app.command()
def swap(
    amount: str,
    path: List[str] = typer.Option(..., help="token address, repeat for each hop"),
    slippage: Optional[float] = typer.Option(None),
):
    """Swap AMOUNT of the first path token along PATH (approve, swap)."""
    _trade(lambda: _executor(slippage).swap(TradePath.from_list(path), amount))


@app.command()
def balance(
    token: Optional[str] = typer.Argument(None, help="token address; wrapped base currency when omitted"),
    owner: Optional[str] = typer.Option(None, help="defaults to FROM_ADDRESS"),
):
    """Token and wrapped base currency balances of an account."""
    try:
        who = checksum(owner or settings.from_address or "")
        client = _client()
        wrapped = client.wrapped()
        out = {
            "ok": True,
            "owner": who,
            "wrapped": from_base_units(wrapped.balance_of(who), wrapped.decimals()),
        }
        if token:
            erc20 = client.token(checksum(token))
            out["token"] = from_base_units(erc20.balance_of(who), erc20.decimals())
        _echo(out)
    except (SomnipumpError, RuntimeError) as e:
        _fail(e)


@app.command()
def unwrap(amount: str):
    """Turn AMOUNT wrapped base currency back into the native coin."""
    try:
        raw = to_base_units(amount, 18)
        if not raw:
            raise InvalidAmount("Enter an amount to unwrap.")
        client = _client()
        wrapped = client.wrapped()
        pipeline = Pipeline(
            _signer(client),
            [PipelineStep("unwrap", lambda ctx: wrapped.withdraw(raw))],
            on_status=_status,
        )
        pipeline.run()
    except (SomnipumpError, RuntimeError) as e:
        _fail(e)
        return
    _echo(_report({"ok": True, "amount": from_base_units(raw, 18), "tx_hash": pipeline.steps[0].tx_hash}, pipeline))


if __name__ == "__main__":
    app()
