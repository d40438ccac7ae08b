"""Category model - global cost categories."""
import enum
from sqlalchemy import Column, String, Integer, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from kalkyle.database import Base, BigIntPK
from kalkyle.utils.formatters import iso


class CategoryType(enum.Enum):
    """Category types. Drive grouping and labels, never pricing."""
    LABOR = 'labor'
    MATERIAL = 'material'
    CONSUMABLE = 'consumable'
    TRANSPORT = 'transport'
    NDT = 'ndt'


CATEGORY_TYPES = [t.value for t in CategoryType]

CATEGORY_LABELS = {
    'labor': 'Arbeid',
    'material': 'Materialer',
    'consumable': 'Forbruksmateriell',
    'transport': 'Transport/Rigg',
    'ndt': 'NDT-tjenester',
}


class Category(Base):
    """Cost category (Kostnadskategori), shared by all users."""

    __tablename__ = 'cost_category'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    type = Column(String(20), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    cost_items = relationship('CostItem', back_populates='category', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'sort_order': self.sort_order,
            'created_at': iso(self.created_at),
        }

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}', type='{self.type}')>"
