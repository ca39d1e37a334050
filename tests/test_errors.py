from somnipump.errors import ExternalCallFailed, InvalidAmount, NoLiquidity, SomnipumpError, as_result


def test_hierarchy():
    assert issubclass(InvalidAmount, ValueError)
    assert issubclass(NoLiquidity, SomnipumpError)
    assert not issubclass(NoLiquidity, ValueError)


def test_as_result_plain_error():
    res = as_result(NoLiquidity("no pool for path"))
    assert res == {"ok": False, "error": "NoLiquidity", "detail": "no pool for path"}


def test_as_result_external_failure():
    err = ExternalCallFailed(
        "add liquidity",
        "execution reverted",
        index=4,
        committed=["create token", "wrap"],
        context={"token_address": "0xabc"},
    )
    res = as_result(err)
    assert res["step"] == "add liquidity"
    assert res["committed"] == ["create token", "wrap"]
    assert res["token_address"] == "0xabc"
    assert "already committed: create token, wrap" in res["detail"]


def test_external_failure_without_commits():
    err = ExternalCallFailed("create token", "user rejected")
    assert str(err) == "step 'create token' failed: user rejected"
    assert "token_address" not in as_result(err)
