from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from typing import Optional, List, Dict, Any
from pydantic import BaseModel

from somnipump.amounts import TokenAmount
from somnipump.client import PumpClient
from somnipump.config import settings
from somnipump.errors import InvalidAmount, InvalidPath, InvalidTolerance, NoLiquidity, PreconditionViolated, as_result
from somnipump.launch import plan_launch
from somnipump.quotes import quote_forward, quote_reverse
from somnipump.registry import describe_token, list_tokens
from somnipump.slippage import max_input, min_output
from somnipump.types import LaunchRequest, TradePath, checksum

app = FastAPI(title="somnipump")

_LOCAL = (InvalidAmount, InvalidPath, InvalidTolerance, PreconditionViolated)


def get_client() -> PumpClient:
    return PumpClient.from_settings(settings)


class LaunchPlanBody(BaseModel):
    request: LaunchRequest
    slippage_pct: Optional[float] = None


@app.get("/health")
async def health():
    return {"ok": True, "network": settings.network, "chain_id": settings.chain_id}


@app.get("/tokens")
def tokens(start: int = 0, limit: int = Query(50, le=200)):
    client = get_client()
    out: List[Dict[str, Any]] = []
    for t in list_tokens(client, start, limit):
        out.append(
            {
                "index": t.index,
                "address": t.address,
                "name": t.name,
                "symbol": t.symbol,
                "decimals": t.decimals,
                "total_supply": str(t.total_supply),
            }
        )
    return {"ok": True, "tokens": out}


@app.get("/tokens/{address}")
def token(address: str):
    try:
        address = checksum(address)
    except InvalidPath as e:
        raise HTTPException(status_code=422, detail=str(e))
    client = get_client()
    listed = describe_token(client, address)
    meta = client.factory.token_info(address)
    return {
        "ok": True,
        "address": listed.address,
        "name": meta.name or listed.name,
        "symbol": meta.symbol or listed.symbol,
        "decimals": listed.decimals,
        "total_supply": str(listed.total_supply),
        "description": meta.description,
        "image": meta.image_uri,
        "links": {"twitter": meta.twitter, "telegram": meta.telegram, "website": meta.website},
        "lp_locked": meta.lp_locked,
    }


@app.get("/quote")
def quote(
    path: List[str] = Query(...),
    amount: str = Query(...),
    reverse: bool = False,
    slippage: Optional[float] = None,
):
    tol = settings.swap_slippage_pct if slippage is None else slippage
    try:
        trade_path = TradePath.from_list(path)
        client = get_client()
        router = client.router()
        dec_in = client.token(trade_path.token_in).decimals()
        dec_out = client.token(trade_path.token_out).decimals()
        if reverse:
            q = quote_reverse(router, TokenAmount.parse(amount, dec_out), trade_path, dec_in)
            bound = {"max_in_raw": str(max_input(q.amount_in, tol))}
        else:
            q = quote_forward(router, TokenAmount.parse(amount, dec_in), trade_path, dec_out)
            bound = {"min_out_raw": str(min_output(q.amount_out, tol))}
    except _LOCAL as e:
        raise HTTPException(status_code=422, detail=str(e))
    except NoLiquidity as e:
        # not an error for the UI, just nothing to show
        return JSONResponse(as_result(e))
    return {
        "ok": True,
        "path": trade_path.as_list(),
        "amount_in": str(q.amount_in),
        "amount_out": str(q.amount_out),
        "amount_in_raw": str(q.amount_in.raw),
        "amount_out_raw": str(q.amount_out.raw),
        "slippage_pct": tol,
        **bound,
    }


@app.post("/launch/plan")
def launch_plan(body: LaunchPlanBody):
    tol = settings.default_slippage_pct if body.slippage_pct is None else body.slippage_pct
    try:
        plan = plan_launch(body.request, tol)
    except _LOCAL as e:
        return JSONResponse(as_result(e), status_code=422)
    return {"ok": True, **plan.describe()}
