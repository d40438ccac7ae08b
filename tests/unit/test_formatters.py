"""
Unit tests for Norwegian number, money and date formatting.
"""

from datetime import date, datetime

from kalkyle.utils.formatters import num_no, money_nok, percent_no, date_no, iso


def test_num_no():
    assert num_no(1500) == '1 500,00'
    assert num_no(1234.565) == '1 234,57'
    assert num_no(2.5, decimals=1) == '2,5'
    assert num_no(-1234567.5) == '-1 234 567,50'
    assert num_no(None) == '-'


def test_money_nok():
    assert money_nok(412.5) == 'kr 412,50'
    assert money_nok(1234567.891) == 'kr 1 234 567,89'
    assert money_nok(0) == 'kr 0,00'
    assert money_nok(None) == '-'


def test_percent_no():
    assert percent_no(25) == '25'
    assert percent_no(12.5) == '12,5'
    assert percent_no(0) == '0'


def test_date_no():
    assert date_no(date(2026, 1, 12)) == '12.01.2026'
    assert date_no(datetime(2026, 12, 31, 23, 59)) == '31.12.2026'
    assert date_no(None) == '-'


def test_iso():
    assert iso(date(2026, 1, 2)) == '2026-01-02'
    assert iso(None) is None
