from decimal import Decimal

from backend.app.services.invoice_totals import (
    clamp_tax_percentage,
    compute_invoice_totals,
    format_invoice_number,
    line_amount,
    parse_invoice_sequence,
)


def test_compute_invoice_totals_with_tax():
    totals = compute_invoice_totals([(Decimal("10"), Decimal("50")), (Decimal("5"), Decimal("75"))], Decimal("10"))
    assert totals.subtotal == Decimal("875.00")
    assert totals.tax == Decimal("87.50")
    assert totals.total == Decimal("962.50")
    assert totals.as_dict() == {"subtotal": "875.00", "tax": "87.50", "total": "962.50"}


def test_line_amount_rounds_half_up_to_cents():
    assert line_amount("1.5", "33.33") == Decimal("50.00")
    assert line_amount("0.125", "1") == Decimal("0.13")
    assert line_amount(0, 100) == Decimal("0.00")


def test_tax_percentage_is_clamped():
    assert clamp_tax_percentage(None) == Decimal("0")
    assert clamp_tax_percentage(-5) == Decimal("0")
    assert clamp_tax_percentage(150) == Decimal("100")
    assert clamp_tax_percentage("12.5") == Decimal("12.5")

    totals = compute_invoice_totals([(2, 10)], 250)
    assert totals.tax == Decimal("20.00")
    assert totals.total == Decimal("40.00")


def test_empty_items_total_zero():
    totals = compute_invoice_totals([], 10)
    assert totals.subtotal == Decimal("0.00")
    assert totals.total == Decimal("0.00")


def test_invoice_number_format_and_parse():
    assert format_invoice_number(2024, 7) == "INV-2024-0007"
    assert parse_invoice_sequence("INV-2024-0007", 2024) == 7
    assert parse_invoice_sequence("INV-2023-0007", 2024) is None
    assert parse_invoice_sequence("INV-2024-abc", 2024) is None
