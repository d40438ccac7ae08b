"""CompanySettings model - per-user company profile and quote defaults."""
from sqlalchemy import Column, BigInteger, String, Text, Integer, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from kalkyle.database import Base, BigIntPK
from kalkyle.utils.formatters import iso

DEFAULT_VAT_PERCENT = 25.0
DEFAULT_VALIDITY_DAYS = 30


class CompanySettings(Base):
    """
    Company settings (Bedriftsinnstillinger).

    One-to-one with AppUser, created at registration. vat_percent feeds every
    quote summary; default_terms and default_validity_days are copied into a
    quote only when it is created.
    """

    __tablename__ = 'company_settings'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    owner_id = Column(BigInteger, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, unique=True)
    company_name = Column(String(200), nullable=True)
    org_number = Column(String(50), nullable=True)
    address = Column(String(255), nullable=True)
    postal_code = Column(String(20), nullable=True)
    city = Column(String(120), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(255), nullable=True)
    logo_url = Column(String(500), nullable=True)
    default_terms = Column(Text, nullable=True)
    default_validity_days = Column(Integer, nullable=False, default=DEFAULT_VALIDITY_DAYS)
    vat_percent = Column(Float, nullable=False, default=DEFAULT_VAT_PERCENT)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    owner = relationship('AppUser', back_populates='settings')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.owner_id,
            'company_name': self.company_name,
            'org_number': self.org_number,
            'address': self.address,
            'postal_code': self.postal_code,
            'city': self.city,
            'phone': self.phone,
            'email': self.email,
            'website': self.website,
            'logo_url': self.logo_url,
            'default_terms': self.default_terms,
            'default_validity_days': self.default_validity_days,
            'vat_percent': self.vat_percent,
            'created_at': iso(self.created_at),
        }

    def __repr__(self):
        return f"<CompanySettings(owner_id={self.owner_id}, vat={self.vat_percent})>"
