"""Company settings service (per-user defaults for quotes)."""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from kalkyle.models import CompanySettings
from kalkyle.models.company_settings import DEFAULT_VAT_PERCENT, DEFAULT_VALIDITY_DAYS
from kalkyle.exceptions import NotFoundError

logger = logging.getLogger(__name__)

# Columns a user may change through PUT /settings
EDITABLE_FIELDS = (
    'company_name', 'org_number', 'address', 'postal_code', 'city', 'phone',
    'email', 'website', 'logo_url', 'default_terms', 'default_validity_days', 'vat_percent',
)


def create_default_settings(session: Session, owner_id: int, company_name: Optional[str] = None,
                            vat_percent: float = DEFAULT_VAT_PERCENT,
                            validity_days: int = DEFAULT_VALIDITY_DAYS) -> CompanySettings:
    """Create the settings row that accompanies every new user. Caller commits."""
    settings = CompanySettings(
        owner_id=owner_id,
        company_name=company_name,
        vat_percent=vat_percent,
        default_validity_days=validity_days
    )
    session.add(settings)
    return settings


def find_settings(session: Session, owner_id: int) -> Optional[CompanySettings]:
    return session.query(CompanySettings).filter(CompanySettings.owner_id == owner_id).first()


def get_settings(session: Session, owner_id: int) -> CompanySettings:
    """Settings of the owner or NotFoundError."""
    settings = find_settings(session, owner_id)
    if not settings:
        raise NotFoundError('Innstillinger ikke funnet')
    return settings


def get_vat_percent(session: Session, owner_id: int) -> float:
    """VAT used in summaries. A stored 0 is honored; 25 applies only without settings."""
    settings = find_settings(session, owner_id)
    if settings is None or settings.vat_percent is None:
        return DEFAULT_VAT_PERCENT
    return settings.vat_percent


def update_settings(session: Session, owner_id: int, fields: Dict[str, Any]) -> CompanySettings:
    """Apply already-validated fields (only keys present are changed)."""
    settings = get_settings(session, owner_id)
    try:
        for key, value in fields.items():
            if key in EDITABLE_FIELDS:
                setattr(settings, key, value)
        session.commit()
        logger.info(f"Settings updated for owner {owner_id}: {sorted(fields)}")
        return settings
    except Exception:
        session.rollback()
        raise
