from decimal import Decimal

import pytest

from import_engine.errors import RowValidationError
from import_engine.plan import ImportRow, RowStatus
from import_engine.row_processor import RowValidator, parse_decimal


def _row(line=1, problem=None, **raw):
    base = {"name": "Lamp", "sale_price": "12.5"}
    base.update(raw)
    return ImportRow(line=line, raw=base, problem=problem)


def test_valid_row_gets_typed_fields():
    row = _row(description="Desk lamp", category="Lighting", sku="LMP-1",
               purchase_price="7", stock="10", stock_min="2", stock_max="40", unit="box")
    warnings = RowValidator().validate(row)

    assert warnings == []
    assert row.name == "Lamp"
    assert row.sale_price == Decimal("12.50")
    assert row.purchase_price == Decimal("7.00")
    assert (row.stock, row.stock_min, row.stock_max) == (10, 2, 40)
    assert row.description == "Desk lamp"
    assert row.category == "Lighting"
    assert row.sku == "LMP-1"
    assert row.unit == "box"


def test_optional_columns_default_when_empty():
    row = _row()
    RowValidator().validate(row)
    assert row.purchase_price == Decimal("0.00")
    assert row.stock == 0 and row.stock_min == 0
    assert row.stock_max is None
    assert row.description is None
    assert row.sku is None


def test_missing_name_is_rejected():
    row = _row(line=4, name="")
    with pytest.raises(RowValidationError) as exc:
        RowValidator().validate(row)
    assert exc.value.line == 4
    assert "name is required" in exc.value.reasons
    assert row.status is RowStatus.REJECTED


@pytest.mark.parametrize("price", ["", "abc", "0", "-3", "nan", "inf"])
def test_sale_price_must_be_positive_number(price):
    with pytest.raises(RowValidationError) as exc:
        RowValidator().validate(_row(sale_price=price))
    assert exc.value.reasons == ["sale price must be a number greater than 0"]


def test_all_reasons_are_reported_together():
    with pytest.raises(RowValidationError) as exc:
        RowValidator().validate(_row(line=2, name="", sale_price=""))
    assert len(exc.value.reasons) == 2
    assert str(exc.value).startswith("Line 2: ")


def test_parse_problem_rejects_row():
    with pytest.raises(RowValidationError) as exc:
        RowValidator().validate(_row(problem="line is longer than 1000 characters"))
    assert "line is longer than 1000 characters" in exc.value.reasons


def test_bad_optional_numbers_are_coerced_with_warning():
    row = _row(line=3, stock="lots", purchase_price="cheap")
    warnings = RowValidator().validate(row)
    assert row.stock == 0
    assert row.purchase_price == Decimal("0.00")
    assert len(warnings) == 2
    assert all(w.startswith("Line 3:") for w in warnings)


def test_fractional_stock_truncates():
    row = _row(stock="12.7")
    RowValidator().validate(row)
    assert row.stock == 12


def test_parse_decimal():
    assert parse_decimal(" 1.5 ") == Decimal("1.5")
    assert parse_decimal("1e3") == Decimal("1000")
    assert parse_decimal("x") is None
    assert parse_decimal("NaN") is None


@pytest.mark.parametrize("price", ["1e30", "10000000000"])
def test_sale_price_beyond_column_range_is_rejected(price):
    with pytest.raises(RowValidationError) as exc:
        RowValidator().validate(_row(sale_price=price))
    assert exc.value.reasons == ["sale price out of range"]


def test_sale_price_rounding_to_zero_is_rejected():
    with pytest.raises(RowValidationError) as exc:
        RowValidator().validate(_row(sale_price="0.001"))
    assert exc.value.reasons == ["sale price must be a number greater than 0"]


def test_oversized_purchase_price_falls_back_with_warning():
    row = _row(line=5, purchase_price="1e30")
    warnings = RowValidator().validate(row)
    assert row.purchase_price == Decimal("0.00")
    assert warnings == ["Line 5: invalid purchase_price '1e30', using default"]


@pytest.mark.parametrize("column", ["stock", "stock_min", "stock_max"])
def test_oversized_integers_fall_back_with_warning(column):
    row = _row(line=2, **{column: "1e20"})
    warnings = RowValidator().validate(row)
    assert getattr(row, column) in (0, None)
    assert warnings == [f"Line 2: invalid {column} '1e20', using default"]
