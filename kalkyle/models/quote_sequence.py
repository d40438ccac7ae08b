"""QuoteSequence model - per owner and year quote number counter."""
from sqlalchemy import Column, BigInteger, Integer, ForeignKey, UniqueConstraint
from kalkyle.database import Base, BigIntPK


class QuoteSequence(Base):
    """Last allocated quote sequence value for (owner, year)."""

    __tablename__ = 'quote_sequence'
    __table_args__ = (
        UniqueConstraint('owner_id', 'year', name='uq_quote_sequence_owner_year'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    owner_id = Column(BigInteger, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False)
    year = Column(Integer, nullable=False)
    last_value = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<QuoteSequence(owner_id={self.owner_id}, year={self.year}, last={self.last_value})>"
