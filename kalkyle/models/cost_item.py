"""CostItem model - price list entries."""
from sqlalchemy import Column, BigInteger, String, Text, Integer, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from kalkyle.database import Base, BigIntPK
from kalkyle.utils.formatters import iso

NDT_METHODS = ['RT', 'UT', 'MT', 'PT', 'VT']
NDT_LEVELS = ['Level I', 'Level II', 'Level III']


class CostItem(Base):
    """
    Cost item (Kostnadspost).

    unit_price changes never reach existing quote lines: lines copy the price
    when they are added.
    """

    __tablename__ = 'cost_item'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    category_id = Column(BigInteger, ForeignKey('cost_category.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    unit = Column(String(32), nullable=False)
    unit_price = Column(Float, nullable=False)
    ndt_method = Column(String(4), nullable=True)
    ndt_level = Column(String(16), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    category = relationship('Category', back_populates='cost_items')

    def to_dict(self):
        category = self.category
        return {
            'id': self.id,
            'category_id': self.category_id,
            'name': self.name,
            'description': self.description,
            'unit': self.unit,
            'unit_price': self.unit_price,
            'ndt_method': self.ndt_method,
            'ndt_level': self.ndt_level,
            'category_name': category.name if category else '',
            'category_type': category.type if category else '',
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at),
        }

    def __repr__(self):
        return f"<CostItem(id={self.id}, name='{self.name}', price={self.unit_price})>"
