"""Quote model for tilbud."""
import enum
from sqlalchemy import Column, BigInteger, String, Float, DateTime, Date, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from kalkyle.database import Base, BigIntPK
from kalkyle.utils.formatters import iso


class QuoteStatus(enum.Enum):
    """Quote status enum. Any status may be set at any time."""
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


QUOTE_STATUSES = [s.value for s in QuoteStatus]


class Quote(Base):
    """
    Quote (Tilbud).

    Owned by exactly one user. quote_number is assigned at creation and never
    changes. Lines are deleted together with the quote.
    """

    __tablename__ = 'quote'
    __table_args__ = (
        UniqueConstraint('owner_id', 'quote_number', name='uq_quote_owner_number'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    owner_id = Column(BigInteger, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    quote_number = Column(String(32), nullable=False)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=True)
    customer_address = Column(Text, nullable=True)
    project_name = Column(String(255), nullable=False)
    project_description = Column(Text, nullable=True)
    reference = Column(String(255), nullable=True)
    valid_until = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=QuoteStatus.DRAFT.value)
    markup_percent = Column(Float, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    terms = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship('AppUser')
    lines = relationship('QuoteLine', back_populates='quote', cascade='all, delete-orphan',
                         order_by='QuoteLine.sort_order')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.owner_id,
            'quote_number': self.quote_number,
            'customer_name': self.customer_name,
            'customer_email': self.customer_email,
            'customer_address': self.customer_address,
            'project_name': self.project_name,
            'project_description': self.project_description,
            'reference': self.reference,
            'valid_until': iso(self.valid_until),
            'status': self.status,
            'markup_percent': self.markup_percent,
            'notes': self.notes,
            'terms': self.terms,
            'created_at': iso(self.created_at),
            'updated_at': iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Quote(id={self.id}, number='{self.quote_number}', status='{self.status}')>"
