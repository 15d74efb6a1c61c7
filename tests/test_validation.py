# tests/test_validation.py
import math

import pytest

from app.core import (
    ProductIn,
    ProductPatchIn,
    StockDeltaIn,
    build_filter,
    parse_number,
    validate_create,
    validate_delta,
    validate_patch,
    validate_replace,
)
from app.errors import ValidationError


@pytest.mark.parametrize(
    "raw, expected",
    [
        (3, 3.0),
        (-2.5, -2.5),
        ("4", 4.0),
        (" 1.5 ", 1.5),
        ("-0", 0.0),
        (None, 0.0),
        (False, 0.0),
        (True, 1.0),
        ("", 0.0),
        ("   ", 0.0),
    ],
)
def test_parse_number_accepts(raw, expected):
    assert parse_number(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "nan", "inf", math.inf, [], {}])
def test_parse_number_rejects(raw):
    assert parse_number(raw) is None


def test_create_keeps_only_supplied_fields():
    assert validate_create(ProductIn(name=" Widget ")) == {"name": "Widget"}


def test_create_floors_and_clamps():
    fields = validate_create(ProductIn(name="W", category=" Tools ", stock=-3.2, price=-5))
    assert fields == {"name": "W", "category": "Tools", "stock": 0, "price": 0.0}
    assert validate_create(ProductIn(name="W", stock=4.99))["stock"] == 4


def test_create_requires_name():
    with pytest.raises(ValidationError, match="Name is required"):
        validate_create(ProductIn(name="  "))


def test_replace_fills_defaults():
    assert validate_replace(ProductIn(name="W", category=7)) == {
        "name": "W",
        "category": "Uncategorized",
        "stock": 0,
        "price": 0.0,
    }


def test_patch_only_present_fields():
    assert validate_patch(ProductPatchIn(category=" Tools ")) == {"category": "Tools"}
    assert validate_patch(ProductPatchIn()) == {}


def test_patch_stringifies_name():
    assert validate_patch(ProductPatchIn(name=None)) == {"name": ""}
    assert validate_patch(ProductPatchIn(name=12)) == {"name": "12"}
    assert validate_patch(ProductPatchIn(name=0)) == {"name": ""}
    assert validate_patch(ProductPatchIn(name=False, category=True)) == {"name": "", "category": "true"}
    assert validate_patch(ProductPatchIn(category=3.0)) == {"category": "3"}


def test_patch_stock_floor_must_be_non_negative():
    assert validate_patch(ProductPatchIn(stock="0.9")) == {"stock": 0}
    with pytest.raises(ValidationError, match="Invalid stock"):
        validate_patch(ProductPatchIn(stock=-0.1))


def test_patch_price_must_be_non_negative():
    assert validate_patch(ProductPatchIn(price="0")) == {"price": 0.0}
    with pytest.raises(ValidationError, match="Invalid price"):
        validate_patch(ProductPatchIn(price="free"))


@pytest.mark.parametrize("raw, expected", [(5, 5), (-2, -2), (2.9, 2), (-2.9, -2), ("-7.5", -7), (0.4, 0)])
def test_delta_truncates_toward_zero(raw, expected):
    assert validate_delta(StockDeltaIn(delta=raw)) == expected


def test_delta_must_be_number():
    with pytest.raises(ValidationError, match="delta must be a number"):
        validate_delta(StockDeltaIn())


def test_build_filter_drops_malformed_bounds():
    f = build_filter(q="", category="", min_stock="five", max_stock="10")
    assert f.text is None
    assert f.category is None
    assert f.min_stock is None
    assert f.max_stock == 10.0


def test_patch_null_stock_is_zero():
    assert validate_patch(ProductPatchIn(stock=None, price="")) == {"stock": 0, "price": 0.0}


def test_delta_null_and_booleans():
    assert validate_delta(StockDeltaIn(delta=None)) == 0
    assert validate_delta(StockDeltaIn(delta=True)) == 1
    assert validate_delta(StockDeltaIn(delta="")) == 0


def test_delta_must_fit_stock_range():
    assert validate_delta(StockDeltaIn(delta=-(2**63 - 1))) == -(2**63 - 1)
    with pytest.raises(ValidationError, match="delta out of range"):
        validate_delta(StockDeltaIn(delta=1e19))


def test_build_filter_skips_empty_bounds():
    f = build_filter(min_stock="", max_stock=None)
    assert f.min_stock is None
    assert f.max_stock is None
    assert build_filter(min_stock="0").min_stock == 0.0
