"""QuoteLine model for quote line items."""
from sqlalchemy import Column, BigInteger, String, Integer, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from kalkyle.database import Base, BigIntPK
from kalkyle.services.pricing import compute_line_total
from kalkyle.utils.formatters import iso


class QuoteLine(Base):
    """
    Quote Line (Tilbudslinje).

    Stores a copy of description, unit and price so later price list changes
    leave the quote untouched. line_total is denormalized and must always
    equal quantity * unit_price * (1 + line_markup / 100).
    """

    __tablename__ = 'quote_line'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    quote_id = Column(BigInteger, ForeignKey('quote.id', ondelete='CASCADE'), nullable=False, index=True)
    cost_item_id = Column(BigInteger, ForeignKey('cost_item.id', ondelete='SET NULL'), nullable=True)
    category_type = Column(String(20), nullable=False)
    description = Column(String(500), nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(32), nullable=False)
    unit_price = Column(Float, nullable=False)
    line_markup = Column(Float, nullable=False, default=0)
    line_total = Column(Float, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    quote = relationship('Quote', back_populates='lines')
    cost_item = relationship('CostItem', foreign_keys=[cost_item_id])

    def recalculate(self):
        """Recompute line_total from the line's current fields."""
        self.line_total = compute_line_total(self.quantity, self.unit_price, self.line_markup or 0)
        return self.line_total

    def to_dict(self):
        return {
            'id': self.id,
            'quote_id': self.quote_id,
            'cost_item_id': self.cost_item_id,
            'item_name': self.cost_item.name if self.cost_item else None,
            'category_type': self.category_type,
            'description': self.description,
            'quantity': self.quantity,
            'unit': self.unit,
            'unit_price': self.unit_price,
            'line_markup': self.line_markup,
            'line_total': self.line_total,
            'sort_order': self.sort_order,
            'created_at': iso(self.created_at),
        }

    def __repr__(self):
        return f"<QuoteLine(id={self.id}, quote_id={self.quote_id}, qty={self.quantity}, total={self.line_total})>"
