"""Invoice arithmetic: line amounts, tax and totals using Decimal math."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Tuple

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def _to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_stored_scale(value) -> Decimal:
    """Round to the two places the hours, rate and tax columns keep."""
    return _money(_to_decimal(value))


def line_amount(hours: Decimal | float | int | str, rate: Decimal | float | int | str) -> Decimal:
    """Amount for one line; always hours x rate, never edited on its own."""
    return _money(_to_decimal(hours) * _to_decimal(rate))


def clamp_tax_percentage(value) -> Decimal:
    """Out-of-range tax rates are clamped into [0, 100] rather than rejected."""
    if value is None:
        return Decimal("0")
    percentage = _to_decimal(value)
    if percentage < 0:
        return Decimal("0")
    if percentage > HUNDRED:
        return HUNDRED
    return _money(percentage)


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal

    def as_dict(self) -> dict:
        return {"subtotal": str(self.subtotal), "tax": str(self.tax), "total": str(self.total)}


def compute_invoice_totals(items: Iterable[Tuple[object, object]], tax_percentage) -> InvoiceTotals:
    """Totals from (hours, rate) pairs. ``tax = subtotal * pct / 100``; ``total = subtotal + tax``."""
    subtotal = sum((line_amount(hours, rate) for hours, rate in items), ZERO)
    tax = _money(subtotal * clamp_tax_percentage(tax_percentage) / HUNDRED)
    return InvoiceTotals(subtotal=_money(subtotal), tax=tax, total=_money(subtotal + tax))


def format_invoice_number(year: int, sequence: int) -> str:
    return f"INV-{year}-{sequence:04d}"


def parse_invoice_sequence(invoice_number: str, year: int) -> int | None:
    prefix = f"INV-{year}-"
    if not invoice_number or not invoice_number.startswith(prefix):
        return None
    try:
        return int(invoice_number[len(prefix):])
    except ValueError:
        return None
