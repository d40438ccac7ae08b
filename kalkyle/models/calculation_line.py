"""CalculationLine model."""
from sqlalchemy import Column, BigInteger, String, Integer, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from kalkyle.database import Base, BigIntPK
from kalkyle.utils.formatters import iso


class CalculationLine(Base):
    """Cost line of a calculation. Line cost is quantity * unit_cost."""

    __tablename__ = 'calculation_line'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    calculation_id = Column(BigInteger, ForeignKey('calculation.id', ondelete='CASCADE'), nullable=False, index=True)
    cost_item_id = Column(BigInteger, ForeignKey('cost_item.id', ondelete='SET NULL'), nullable=True)
    description = Column(String(500), nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(32), nullable=False)
    unit_cost = Column(Float, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    calculation = relationship('Calculation', back_populates='lines')
    cost_item = relationship('CostItem', foreign_keys=[cost_item_id])

    def to_dict(self):
        return {
            'id': self.id,
            'calculation_id': self.calculation_id,
            'cost_item_id': self.cost_item_id,
            'cost_item_name': self.cost_item.name if self.cost_item else '',
            'description': self.description,
            'quantity': self.quantity,
            'unit': self.unit,
            'unit_cost': self.unit_cost,
            'sort_order': self.sort_order,
            'created_at': iso(self.created_at),
        }

    def __repr__(self):
        return f"<CalculationLine(id={self.id}, calculation_id={self.calculation_id}, qty={self.quantity})>"
