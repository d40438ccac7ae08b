"""Calculation model - margin-target cost calculator (kalkyle)."""
from sqlalchemy import Column, BigInteger, String, Text, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from kalkyle.database import Base, BigIntPK
from kalkyle.utils.formatters import iso


class Calculation(Base):
    """
    Calculation (Kalkyle).

    Sale price is derived from the total cost and a target margin (DG).
    """

    __tablename__ = 'calculation'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    owner_id = Column(BigInteger, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    target_margin_percent = Column(Float, nullable=False, default=15)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    lines = relationship('CalculationLine', back_populates='calculation', cascade='all, delete-orphan',
                         order_by='CalculationLine.sort_order')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.owner_id,
            'name': self.name,
            'description': self.description,
            'target_margin_percent': self.target_margin_percent,
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Calculation(id={self.id}, name='{self.name}', dg={self.target_margin_percent})>"
