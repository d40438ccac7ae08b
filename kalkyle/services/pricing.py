"""
Pricing engine: line totals, category subtotals, markup, margin (DG) and VAT.

All functions are pure and keep full float precision. Amounts are rounded to
two decimals only when they are formatted for display (see
kalkyle.utils.formatters.money_nok). Input ranges are validated at the API
boundary before these functions are called.
"""
from dataclasses import dataclass, field
from math import fsum
from typing import Any, Dict, Iterable, Mapping


def _get(line: Any, name: str):
    """Read an attribute from an ORM row or a key from a mapping."""
    if isinstance(line, Mapping):
        return line[name]
    return getattr(line, name)


def compute_line_total(quantity: float, unit_price: float, line_markup_percent: float = 0) -> float:
    """quantity * unit_price * (1 + line_markup_percent / 100)."""
    return quantity * unit_price * (1 + line_markup_percent / 100)


def aggregate_by_category(lines: Iterable[Any]) -> Dict[str, float]:
    """
    Sum line_total per category_type.

    Categories without lines are absent from the result (never present as 0);
    keys keep the order in which each category first appears. Sums use fsum so
    the result does not depend on line order.
    """
    grouped: Dict[str, list] = {}
    for line in lines:
        grouped.setdefault(_get(line, 'category_type'), []).append(_get(line, 'line_total'))
    return {category_type: fsum(values) for category_type, values in grouped.items()}


@dataclass(frozen=True)
class QuoteSummary:
    """Computation record of a quote. Never persisted, never rounded."""
    category_totals: Dict[str, float] = field(default_factory=dict)
    total_cost: float = 0
    markup_percent: float = 0
    markup: float = 0
    total_ex_vat: float = 0
    vat_percent: float = 0
    vat: float = 0
    total_inc_vat: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'categoryTotals': dict(self.category_totals),
            'totalCost': self.total_cost,
            'markupPercent': self.markup_percent,
            'markup': self.markup,
            'totalExVat': self.total_ex_vat,
            'vatPercent': self.vat_percent,
            'vat': self.vat,
            'totalIncVat': self.total_inc_vat,
        }


def summarize(lines: Iterable[Any], markup_percent: float, vat_percent: float) -> QuoteSummary:
    """
    Build the quote summary.

    Header markup is applied on top of line totals that already include their
    own line markup, so the two compound (10% + 10% gives 21% over base cost).
    """
    lines = list(lines)
    category_totals = aggregate_by_category(lines)

    total_cost = fsum(_get(line, 'line_total') for line in lines)
    markup = total_cost * markup_percent / 100
    total_ex_vat = total_cost + markup
    vat = total_ex_vat * vat_percent / 100
    total_inc_vat = total_ex_vat + vat

    return QuoteSummary(
        category_totals=category_totals,
        total_cost=total_cost,
        markup_percent=markup_percent,
        markup=markup,
        total_ex_vat=total_ex_vat,
        vat_percent=vat_percent,
        vat=vat,
        total_inc_vat=total_inc_vat,
    )


def margin_target_sale_price(cost: float, target_margin_percent: float) -> float:
    """
    Sale price that yields the target margin (dekningsgrad): cost / (1 - m/100).

    A margin of 100% or more has no meaningful price and returns 0 instead of
    infinity or a negative price.
    """
    if target_margin_percent >= 100:
        return 0
    return cost / (1 - target_margin_percent / 100)


def margin_amount(sale_price: float, cost: float) -> float:
    """Contribution margin in NOK."""
    return sale_price - cost


@dataclass(frozen=True)
class CalculationSummary:
    """Totals of a margin-target calculation."""
    total_cost: float = 0
    total_sales: float = 0
    margin_percent: float = 0
    margin_amount: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalCost': self.total_cost,
            'totalSales': self.total_sales,
            'marginPercent': self.margin_percent,
            'marginAmount': self.margin_amount,
        }


def summarize_calculation(lines: Iterable[Any], target_margin_percent: float) -> CalculationSummary:
    """Total cost is the sum of quantity * unit_cost; sales follow the target margin."""
    total_cost = fsum(_get(line, 'quantity') * _get(line, 'unit_cost') for line in lines)
    total_sales = margin_target_sale_price(total_cost, target_margin_percent)
    return CalculationSummary(
        total_cost=total_cost,
        total_sales=total_sales,
        margin_percent=target_margin_percent,
        margin_amount=margin_amount(total_sales, total_cost),
    )
