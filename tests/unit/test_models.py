"""
Unit tests for SQLAlchemy models.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from kalkyle.models import (
    AppUser, CompanySettings, Category, CostItem, Quote, QuoteLine, Calculation, CalculationLine
)


@pytest.fixture
def user(session):
    user = AppUser(email='model@test.no', name='Model User')
    user.set_password('password123')
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def labor_item(session):
    category = Category(name='Arbeid', type='labor', sort_order=1)
    session.add(category)
    session.flush()
    item = CostItem(category_id=category.id, name='Sveiser', unit='time', unit_price=650)
    session.add(item)
    session.commit()
    return item


class TestAppUserModel:

    def test_password_hashing(self, user):
        assert user.password_hash != 'password123'
        assert user.check_password('password123')
        assert not user.check_password('wrong')

    def test_defaults(self, user):
        assert user.role == 'user'
        assert user.is_admin is False
        assert user.active is True

    def test_email_unique(self, session, user):
        duplicate = AppUser(email='model@test.no', name='Duplicate')
        duplicate.set_password('password123')
        session.add(duplicate)
        with pytest.raises(IntegrityError):
            session.commit()

    def test_to_dict_hides_password(self, user):
        data = user.to_dict()
        assert 'password_hash' not in data
        assert data['email'] == 'model@test.no'


class TestQuoteModels:

    def test_quote_number_unique_per_owner(self, session, user):
        session.add(Quote(owner_id=user.id, quote_number='T2026-0001', customer_name='A', project_name='P'))
        session.commit()
        session.add(Quote(owner_id=user.id, quote_number='T2026-0001', customer_name='B', project_name='P'))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_line_recalculate(self, session, user):
        quote = Quote(owner_id=user.id, quote_number='T2026-0001', customer_name='A', project_name='P')
        session.add(quote)
        session.flush()

        line = QuoteLine(quote_id=quote.id, category_type='labor', description='Sveising',
                         quantity=2, unit='time', unit_price=50, line_markup=0)
        assert line.recalculate() == 100
        line.quantity = 5
        line.recalculate()
        assert line.line_total == 250

    def test_deleting_quote_deletes_lines(self, session, user):
        quote = Quote(owner_id=user.id, quote_number='T2026-0001', customer_name='A', project_name='P')
        session.add(quote)
        session.flush()
        line = QuoteLine(quote_id=quote.id, category_type='labor', description='Sveising',
                         quantity=1, unit='time', unit_price=100, line_markup=0)
        line.recalculate()
        session.add(line)
        session.commit()
        quote_id = quote.id

        session.delete(quote)
        session.commit()
        assert session.query(QuoteLine).filter_by(quote_id=quote_id).count() == 0

    def test_deleting_cost_item_keeps_line_values(self, session, user, labor_item):
        quote = Quote(owner_id=user.id, quote_number='T2026-0001', customer_name='A', project_name='P')
        session.add(quote)
        session.flush()
        line = QuoteLine(quote_id=quote.id, cost_item_id=labor_item.id, category_type='labor',
                         description='Sveiser', quantity=2, unit='time', unit_price=650, line_markup=0)
        line.recalculate()
        session.add(line)
        session.commit()
        line_id = line.id

        session.delete(labor_item)
        session.commit()

        kept = session.query(QuoteLine).filter_by(id=line_id).one()
        assert kept.cost_item_id is None
        assert kept.unit_price == 650
        assert kept.line_total == 1300
        assert kept.to_dict()['item_name'] is None


class TestCatalogModels:

    def test_deleting_category_deletes_items(self, session, labor_item):
        category = labor_item.category
        session.delete(category)
        session.commit()
        assert session.query(CostItem).count() == 0

    def test_cost_item_to_dict(self, labor_item):
        data = labor_item.to_dict()
        assert data['category_type'] == 'labor'
        assert data['category_name'] == 'Arbeid'
        assert data['unit_price'] == 650


class TestSettingsAndCalculations:

    def test_settings_defaults(self, session, user):
        settings = CompanySettings(owner_id=user.id)
        session.add(settings)
        session.commit()
        assert settings.vat_percent == 25
        assert settings.default_validity_days == 30

    def test_calculation_defaults_and_lines(self, session, user):
        calculation = Calculation(owner_id=user.id, name='Trapp')
        session.add(calculation)
        session.flush()
        session.add(CalculationLine(calculation_id=calculation.id, description='Stål',
                                    quantity=10, unit='kg', unit_cost=30))
        session.commit()

        assert calculation.target_margin_percent == 15
        assert len(calculation.lines) == 1

        session.delete(calculation)
        session.commit()
        assert session.query(CalculationLine).count() == 0
