"""Models package - exports all SQLAlchemy models."""
# Accounts
from kalkyle.models.app_user import AppUser, UserRole
from kalkyle.models.company_settings import CompanySettings

# Catalog
from kalkyle.models.category import Category, CategoryType, CATEGORY_TYPES, CATEGORY_LABELS
from kalkyle.models.cost_item import CostItem, NDT_METHODS, NDT_LEVELS

# Quotes
from kalkyle.models.quote import Quote, QuoteStatus, QUOTE_STATUSES
from kalkyle.models.quote_line import QuoteLine
from kalkyle.models.quote_sequence import QuoteSequence

# Calculations
from kalkyle.models.calculation import Calculation
from kalkyle.models.calculation_line import CalculationLine

__all__ = [
    'AppUser', 'UserRole', 'CompanySettings',
    'Category', 'CategoryType', 'CATEGORY_TYPES', 'CATEGORY_LABELS',
    'CostItem', 'NDT_METHODS', 'NDT_LEVELS',
    'Quote', 'QuoteStatus', 'QUOTE_STATUSES', 'QuoteLine', 'QuoteSequence',
    'Calculation', 'CalculationLine',
]
