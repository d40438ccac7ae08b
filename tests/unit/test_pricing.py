"""
Unit tests for the pricing engine (line totals, summaries, margin).
"""

import itertools
import pytest
from dataclasses import FrozenInstanceError

from kalkyle.services.pricing import (
    compute_line_total, aggregate_by_category, summarize,
    margin_target_sale_price, margin_amount, summarize_calculation, QuoteSummary
)


def line(category_type, line_total):
    return {'category_type': category_type, 'line_total': line_total}


class TestComputeLineTotal:
    """Tests for compute_line_total."""

    def test_without_markup(self):
        assert compute_line_total(2, 50) == 100

    def test_with_line_markup(self):
        assert compute_line_total(10, 100, 10) == pytest.approx(1100)

    def test_scales_linearly_with_quantity(self):
        for q, p, m in [(1.5, 99.9, 0), (3, 12.25, 7.5), (0.25, 1000, 100)]:
            assert compute_line_total(2 * q, p, m) == pytest.approx(2 * compute_line_total(q, p, m))

    def test_zero_price(self):
        assert compute_line_total(5, 0, 20) == 0

    def test_no_rounding(self):
        assert compute_line_total(1, 0.333, 0) == 0.333


class TestAggregateByCategory:
    """Tests for aggregate_by_category."""

    def test_groups_and_sums(self):
        totals = aggregate_by_category([
            line('labor', 100), line('material', 50), line('labor', 25)
        ])
        assert totals == {'labor': 125, 'material': 50}

    def test_omits_categories_without_lines(self):
        totals = aggregate_by_category([line('ndt', 10)])
        assert 'labor' not in totals
        assert list(totals) == ['ndt']

    def test_empty(self):
        assert aggregate_by_category([]) == {}

    def test_accepts_objects(self):
        class Row:
            def __init__(self, category_type, line_total):
                self.category_type = category_type
                self.line_total = line_total

        assert aggregate_by_category([Row('transport', 40), Row('transport', 2)]) == {'transport': 42}


class TestSummarize:
    """Tests for the quote summary."""

    def test_reference_example(self):
        summary = summarize([line('labor', 100), line('material', 200)], 10, 25)
        assert summary.total_cost == pytest.approx(300)
        assert summary.markup == pytest.approx(30)
        assert summary.total_ex_vat == pytest.approx(330)
        assert summary.vat == pytest.approx(82.5)
        assert summary.total_inc_vat == pytest.approx(412.5)
        assert summary.category_totals == {'labor': 100, 'material': 200}

    def test_empty_quote(self):
        summary = summarize([], 10, 25)
        assert summary.total_cost == 0
        assert summary.markup == 0
        assert summary.total_inc_vat == 0
        assert summary.category_totals == {}

    def test_zero_vat(self):
        summary = summarize([line('labor', 100)], 0, 0)
        assert summary.vat == 0
        assert summary.total_inc_vat == 100

    def test_invariant_under_permutation(self):
        lines = [line('labor', 0.1), line('material', 0.2), line('labor', 0.3), line('ndt', 1e10)]
        expected = summarize(lines, 12.5, 25)
        for permutation in itertools.permutations(lines):
            summary = summarize(list(permutation), 12.5, 25)
            assert summary.total_cost == expected.total_cost
            assert summary.total_inc_vat == expected.total_inc_vat
            assert summary.category_totals == expected.category_totals

    def test_header_markup_compounds_with_line_markup(self):
        line_total = compute_line_total(1, 100, 10)
        summary = summarize([line('labor', line_total)], 10, 0)
        assert summary.total_ex_vat == pytest.approx(121)

    def test_summary_is_immutable(self):
        summary = summarize([line('labor', 1)], 0, 25)
        with pytest.raises(FrozenInstanceError):
            summary.total_cost = 5

    def test_to_dict_uses_camel_case(self):
        data = summarize([line('labor', 100), line('material', 200)], 10, 25).to_dict()
        assert data == {
            'categoryTotals': {'labor': 100, 'material': 200},
            'totalCost': 300,
            'markupPercent': 10,
            'markup': 30,
            'totalExVat': 330,
            'vatPercent': 25,
            'vat': 82.5,
            'totalIncVat': 412.5,
        }

    def test_default_summary(self):
        assert QuoteSummary().to_dict()['totalCost'] == 0


class TestMargin:
    """Tests for margin (dekningsgrad) pricing."""

    @pytest.mark.parametrize('cost,margin', [(1000, 0), (1000, 15), (250.5, 50), (1, 99)])
    def test_sale_price_yields_target_margin(self, cost, margin):
        price = margin_target_sale_price(cost, margin)
        assert (price - cost) / price * 100 == pytest.approx(margin)

    def test_fifteen_percent(self):
        assert margin_target_sale_price(850, 15) == pytest.approx(1000)

    @pytest.mark.parametrize('margin', [100, 120, 1000])
    def test_margin_of_hundred_or_more_returns_zero(self, margin):
        assert margin_target_sale_price(1000, margin) == 0

    def test_zero_cost(self):
        assert margin_target_sale_price(0, 40) == 0
        assert margin_amount(0, 0) == 0

    def test_margin_amount(self):
        assert margin_amount(1000, 850) == 150


class TestSummarizeCalculation:
    """Tests for calculation totals."""

    def test_totals(self):
        lines = [
            {'quantity': 10, 'unit_cost': 50},
            {'quantity': 2, 'unit_cost': 175},
        ]
        summary = summarize_calculation(lines, 15)
        assert summary.total_cost == 850
        assert summary.total_sales == pytest.approx(1000)
        assert summary.margin_amount == pytest.approx(150)
        assert summary.margin_percent == 15

    def test_unreachable_margin(self):
        summary = summarize_calculation([{'quantity': 1, 'unit_cost': 100}], 100)
        assert summary.total_sales == 0
        assert summary.margin_amount == -100

    def test_to_dict(self):
        data = summarize_calculation([], 15).to_dict()
        assert data == {'totalCost': 0, 'totalSales': 0, 'marginPercent': 15, 'marginAmount': 0}
