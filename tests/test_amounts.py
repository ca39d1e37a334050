import pytest

from somnipump.amounts import TokenAmount, from_base_units, to_base_units
from somnipump.errors import InvalidAmount


def test_truncates_instead_of_rounding():
    assert to_base_units("1.23456", 2) == 123
    assert to_base_units("0.999", 2) == 99


def test_blank_is_zero():
    assert to_base_units("", 18) == 0
    assert to_base_units("   ", 18) == 0
    assert to_base_units(None, 6) == 0


def test_zero_renders_as_zero():
    assert from_base_units(0, 18) == "0"
    assert from_base_units(0, 0) == "0"


def test_parse_variants():
    assert to_base_units("1,000,000", 18) == 10**24
    assert to_base_units("0.1", 18) == 10**17
    assert to_base_units(".5", 1) == 5
    assert to_base_units("7.", 3) == 7000
    assert to_base_units(" 42 ", 0) == 42
    assert to_base_units("12.9", 0) == 12


@pytest.mark.parametrize("bad", ["abc", "1.2.3", "-1", "1e18", "1_000", "0x10", "1.2,5"])
def test_rejects_non_numeric(bad):
    with pytest.raises(InvalidAmount):
        to_base_units(bad, 18)


def test_rejects_negative_decimals():
    with pytest.raises(InvalidAmount):
        to_base_units("1", -1)
    with pytest.raises(InvalidAmount):
        from_base_units(1, -1)


def test_minimal_rendering():
    assert from_base_units(10**18, 18) == "1"
    assert from_base_units(1_500_000, 6) == "1.5"
    assert from_base_units(1, 18) == "0.000000000000000001"
    assert from_base_units(97 * 10**15, 18) == "0.097"
    assert from_base_units(123, 0) == "123"


@pytest.mark.parametrize("decimals", [0, 1, 6, 9, 18])
@pytest.mark.parametrize("raw", [0, 1, 9, 10, 123456789, 10**18, 10**30 + 7])
def test_round_trip(raw, decimals):
    assert to_base_units(from_base_units(raw, decimals), decimals) == raw


def test_reverse_round_trip_is_lossy():
    assert to_base_units("1.000", 3) == to_base_units("1", 3)
    assert from_base_units(to_base_units("1.000", 3), 3) == "1"


def test_token_amount_same_scale_only():
    a = TokenAmount.parse("1.5", 18)
    b = TokenAmount.parse("0.5", 18)
    assert (a + b).raw == 2 * 10**18
    assert b < a
    with pytest.raises(ValueError):
        a + TokenAmount.parse("1", 6)
    with pytest.raises(ValueError):
        _ = a < TokenAmount.parse("1", 6)


def test_token_amount_normalize():
    a = TokenAmount.parse("1.234567", 6)
    assert a.normalize(18).raw == 1234567 * 10**12
    assert str(a.normalize(2)) == "1.23"


def test_token_amount_rejects_negative():
    with pytest.raises(InvalidAmount):
        TokenAmount(-1, 18)


def test_token_amount_str_and_one():
    assert str(TokenAmount.one(6)) == "1"
    assert not TokenAmount(0, 18)
