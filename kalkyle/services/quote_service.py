"""Quote service: owner-scoped quotes, their lines and summaries."""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from kalkyle.models import Quote, QuoteLine, CostItem
from kalkyle.models.company_settings import DEFAULT_VALIDITY_DAYS
from kalkyle.exceptions import NotFoundError, ValidationError
from kalkyle.services.pricing import QuoteSummary, summarize
from kalkyle.services.quote_numbering import next_quote_number
from kalkyle.services.settings_service import find_settings, get_vat_percent

logger = logging.getLogger(__name__)

QUOTE_FIELDS = (
    'customer_name', 'customer_email', 'customer_address', 'project_name',
    'project_description', 'reference', 'valid_until', 'status', 'markup_percent',
    'notes', 'terms',
)
LINE_FIELDS = ('category_type', 'description', 'quantity', 'unit', 'unit_price', 'line_markup', 'sort_order')


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_quote(session: Session, quote_id: int, owner_id: int) -> Quote:
    """Quote owned by owner_id. Other owners' quotes are reported as missing."""
    quote = session.query(Quote).filter(Quote.id == quote_id, Quote.owner_id == owner_id).first()
    if not quote:
        raise NotFoundError('Tilbud ikke funnet')
    return quote


def get_quote_lines(session: Session, quote_id: int) -> List[QuoteLine]:
    return session.query(QuoteLine).filter(
        QuoteLine.quote_id == quote_id
    ).order_by(QuoteLine.sort_order, QuoteLine.created_at, QuoteLine.id).all()


def get_quote_with_lines(session: Session, quote_id: int, owner_id: int) -> Tuple[Quote, List[QuoteLine]]:
    quote = get_quote(session, quote_id, owner_id)
    return quote, get_quote_lines(session, quote.id)


def list_quotes(session: Session, owner_id: int, status: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    List the owner's quotes, newest first.

    total_cost and line_count are computed from the lines at query time and
    never stored on the quote.
    """
    line_totals = session.query(
        QuoteLine.quote_id.label('quote_id'),
        func.sum(QuoteLine.line_total).label('total_cost'),
        func.count(QuoteLine.id).label('line_count')
    ).group_by(QuoteLine.quote_id).subquery()

    query = session.query(
        Quote,
        func.coalesce(line_totals.c.total_cost, 0),
        func.coalesce(line_totals.c.line_count, 0)
    ).outerjoin(
        line_totals, line_totals.c.quote_id == Quote.id
    ).filter(Quote.owner_id == owner_id)

    if status:
        query = query.filter(Quote.status == status)

    rows = query.order_by(Quote.created_at.desc(), Quote.id.desc()).all()

    quotes = []
    for quote, total_cost, line_count in rows:
        data = quote.to_dict()
        data['total_cost'] = float(total_cost or 0)
        data['line_count'] = int(line_count or 0)
        quotes.append(data)
    return quotes


def create_quote(session: Session, owner_id: int, fields: Dict[str, Any],
                 today: Optional[date] = None) -> Quote:
    """
    Create a quote header (no lines).

    Missing terms and valid_until are filled from the owner's settings once,
    here; later settings changes do not touch existing quotes.
    """
    if not fields.get('customer_name') or not fields.get('project_name'):
        raise ValidationError('Kundenavn og prosjektnavn er påkrevd')

    today = today or date.today()
    settings = find_settings(session, owner_id)

    terms = fields.get('terms')
    if not terms:
        terms = settings.default_terms if settings else None

    valid_until = fields.get('valid_until')
    if not valid_until:
        days = settings.default_validity_days if settings and settings.default_validity_days else DEFAULT_VALIDITY_DAYS
        valid_until = today + timedelta(days=days)

    # A concurrent create can still collide on the unique (owner, number) pair;
    # the second attempt sees the committed counter.
    for attempt in (1, 2):
        try:
            quote = Quote(
                owner_id=owner_id,
                quote_number=next_quote_number(session, owner_id, today.year),
                customer_name=fields['customer_name'],
                customer_email=fields.get('customer_email'),
                customer_address=fields.get('customer_address'),
                project_name=fields['project_name'],
                project_description=fields.get('project_description'),
                reference=fields.get('reference'),
                valid_until=valid_until,
                status=fields.get('status') or 'draft',
                markup_percent=fields.get('markup_percent') or 0,
                notes=fields.get('notes'),
                terms=terms
            )
            session.add(quote)
            session.commit()
            logger.info(f"Quote {quote.quote_number} created for owner {owner_id}")
            return quote
        except IntegrityError:
            session.rollback()
            if attempt == 2:
                raise
            logger.warning(f"Quote number conflict for owner {owner_id}, retrying")
        except Exception:
            session.rollback()
            raise


def update_quote(session: Session, quote_id: int, owner_id: int, fields: Dict[str, Any]) -> Quote:
    """
    Partial header update. Only keys present in fields are written.

    Status may move between any two values; accepted and rejected quotes stay
    editable. quote_number is never changed.
    """
    quote = get_quote(session, quote_id, owner_id)
    try:
        for key in QUOTE_FIELDS:
            if key in fields:
                setattr(quote, key, fields[key])
        quote.updated_at = _utcnow()
        session.commit()
        return quote
    except Exception:
        session.rollback()
        raise


def delete_quote(session: Session, quote_id: int, owner_id: int) -> None:
    """Delete a quote together with all of its lines."""
    quote = get_quote(session, quote_id, owner_id)
    try:
        session.delete(quote)
        session.commit()
        logger.info(f"Quote {quote_id} deleted by owner {owner_id}")
    except Exception:
        session.rollback()
        raise


def _next_sort_order(session: Session, quote_id: int) -> int:
    max_order = session.query(func.coalesce(func.max(QuoteLine.sort_order), 0)).filter(
        QuoteLine.quote_id == quote_id
    ).scalar()
    return int(max_order or 0) + 1


def add_line(session: Session, quote_id: int, owner_id: int, fields: Dict[str, Any]) -> QuoteLine:
    """
    Add a line to the owner's quote.

    With a cost_item_id, missing description, unit, unit_price and
    category_type are copied from the cost item at this moment. line_total is
    always computed here; a client-supplied total is never used.
    """
    quote = get_quote(session, quote_id, owner_id)

    cost_item = None
    if fields.get('cost_item_id') is not None:
        cost_item = session.query(CostItem).filter(CostItem.id == fields['cost_item_id']).first()
        if not cost_item:
            raise NotFoundError('Kostnadspost ikke funnet')

    values = dict(fields)
    if cost_item:
        copied = {
            'category_type': cost_item.category.type if cost_item.category else None,
            'description': cost_item.name,
            'unit': cost_item.unit,
            'unit_price': cost_item.unit_price,
        }
        for key, value in copied.items():
            if values.get(key) is None:
                values[key] = value

    required = ('category_type', 'description', 'quantity', 'unit', 'unit_price')
    if any(values.get(key) is None for key in required):
        raise ValidationError('Type, beskrivelse, antall, enhet og pris er påkrevd')

    try:
        line = QuoteLine(
            quote_id=quote.id,
            cost_item_id=cost_item.id if cost_item else None,
            category_type=values['category_type'],
            description=values['description'],
            quantity=values['quantity'],
            unit=values['unit'],
            unit_price=values['unit_price'],
            line_markup=values.get('line_markup') or 0,
            sort_order=_next_sort_order(session, quote.id)
        )
        line.recalculate()
        session.add(line)
        quote.updated_at = _utcnow()
        session.commit()
        return line
    except Exception:
        session.rollback()
        raise


def _get_line(session: Session, quote_id: int, line_id: int, owner_id: int) -> Tuple[Quote, QuoteLine]:
    line = session.query(QuoteLine).join(Quote, QuoteLine.quote_id == Quote.id).filter(
        QuoteLine.id == line_id,
        Quote.id == quote_id,
        Quote.owner_id == owner_id
    ).first()
    if not line:
        raise NotFoundError('Tilbudslinje ikke funnet')
    return line.quote, line


def update_line(session: Session, quote_id: int, line_id: int, owner_id: int,
                fields: Dict[str, Any]) -> QuoteLine:
    """Partial line update; line_total is recomputed from the resulting fields."""
    quote, line = _get_line(session, quote_id, line_id, owner_id)
    try:
        for key in LINE_FIELDS:
            if key in fields and fields[key] is not None:
                setattr(line, key, fields[key])
        line.recalculate()
        quote.updated_at = _utcnow()
        session.commit()
        return line
    except Exception:
        session.rollback()
        raise


def delete_line(session: Session, quote_id: int, line_id: int, owner_id: int) -> None:
    quote, line = _get_line(session, quote_id, line_id, owner_id)
    try:
        session.delete(line)
        quote.updated_at = _utcnow()
        session.commit()
    except Exception:
        session.rollback()
        raise


def get_quote_summary(session: Session, quote_id: int, owner_id: int) -> QuoteSummary:
    """Summary computed fresh from the quote's lines and the owner's VAT."""
    quote, lines = get_quote_with_lines(session, quote_id, owner_id)
    return summarize(lines, quote.markup_percent or 0, get_vat_percent(session, owner_id))
