import pytest
from pydantic import ValidationError

from somnipump import types
from somnipump.errors import InvalidImage, InvalidPath
from somnipump.types import LaunchRequest, TradePath, check_image
from conftest import OLD_TOKEN, WETH


def test_path_checksums_and_orders():
    p = TradePath.of(WETH.lower(), OLD_TOKEN.lower())
    assert p.tokens == (WETH, OLD_TOKEN)
    assert p.token_in == WETH
    assert p.token_out == OLD_TOKEN
    assert p.reversed().tokens == (OLD_TOKEN, WETH)
    assert len(p) == 2


def test_path_needs_two_hops():
    with pytest.raises(InvalidPath):
        TradePath.of(WETH)


def test_path_rejects_adjacent_repeat():
    with pytest.raises(InvalidPath):
        TradePath.of(WETH, WETH.lower())
    # non-adjacent repeats are a valid round trip
    assert len(TradePath.of(WETH, OLD_TOKEN, WETH)) == 3


def test_path_rejects_garbage():
    with pytest.raises(InvalidPath):
        TradePath.of("0xA", "0xB")


def test_launch_request_validation():
    req = LaunchRequest(name=" Moon ", symbol="MOON", initial_supply="1000")
    assert req.name == "Moon"
    assert req.decimals == 18
    assert req.lock_lp is True
    assert not req.wants_liquidity

    with pytest.raises(ValidationError):
        LaunchRequest(name="", symbol="MOON", initial_supply="1")
    with pytest.raises(ValidationError):
        LaunchRequest(name="x", symbol="M", initial_supply="1")
    with pytest.raises(ValidationError):
        LaunchRequest(name="x", symbol="MO ON", initial_supply="1")
    with pytest.raises(ValidationError):
        LaunchRequest(name="x", symbol="MOON", decimals=5, initial_supply="1")


def test_wants_liquidity_when_either_side_given():
    req = LaunchRequest(name="x", symbol="XX", initial_supply="1", seed_base="0.1")
    assert req.wants_liquidity


def test_check_image(tmp_path):
    ok = tmp_path / "a.png"
    ok.write_bytes(b"x" * 10)
    assert check_image(str(ok)) == "image/png"

    big = tmp_path / "big.jpg"
    big.write_bytes(b"x" * (2 * 1024 * 1024))
    with pytest.raises(InvalidImage):
        check_image(str(big), max_mb=1)

    doc = tmp_path / "a.txt"
    doc.write_text("hi")
    with pytest.raises(InvalidImage):
        check_image(str(doc))

    with pytest.raises(InvalidImage):
        check_image(str(tmp_path / "missing.png"))


def test_launch_request_checks_image(tmp_path, monkeypatch):
    logo = tmp_path / "logo.webp"
    logo.write_bytes(b"x" * 2048)
    req = LaunchRequest(name="Moon", symbol="MOON", initial_supply="1", image_path=str(logo))
    assert req.image_path == str(logo)

    monkeypatch.setattr(types.settings, "max_image_mb", 0.001)
    with pytest.raises(ValidationError):
        LaunchRequest(name="Moon", symbol="MOON", initial_supply="1", image_path=str(logo))

    doc = tmp_path / "logo.txt"
    doc.write_text("not an image")
    with pytest.raises(ValidationError):
        LaunchRequest(name="Moon", symbol="MOON", initial_supply="1", image_path=str(doc))
