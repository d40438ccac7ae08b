"""Quote numbering: human-readable T{year}-{seq} numbers per owner and year."""
import logging
import re
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from kalkyle.models import Quote, QuoteSequence

logger = logging.getLogger(__name__)

QUOTE_NUMBER_PATTERN = re.compile(r'^T(\d{4})-(\d+)$')


def format_quote_number(year: int, seq: int) -> str:
    """T2026-0001. The counter is zero-padded to at least four digits."""
    return f"T{year}-{str(seq).zfill(4)}"


def _highest_existing_sequence(session: Session, owner_id: int, year: int) -> int:
    """Highest sequence already used by the owner's quotes for the year."""
    numbers = session.query(Quote.quote_number).filter(
        Quote.owner_id == owner_id,
        Quote.quote_number.like(f"T{year}-%")
    ).all()

    highest = 0
    for (number,) in numbers:
        match = QUOTE_NUMBER_PATTERN.match(number or '')
        if match and int(match.group(1)) == year:
            highest = max(highest, int(match.group(2)))
    return highest


def next_quote_number(session: Session, owner_id: int, year: Optional[int] = None) -> str:
    """
    Allocate the next quote number for (owner_id, year).

    The counter row is locked for the rest of the transaction, so two
    concurrent allocations for the same owner serialize instead of both
    counting the same existing quotes. A missing counter row is seeded from the
    owner's existing numbers for that year. The caller commits.
    """
    if year is None:
        year = date.today().year

    sequence = session.query(QuoteSequence).filter(
        QuoteSequence.owner_id == owner_id,
        QuoteSequence.year == year
    ).with_for_update().first()

    if sequence is None:
        sequence = QuoteSequence(
            owner_id=owner_id,
            year=year,
            last_value=_highest_existing_sequence(session, owner_id, year)
        )
        session.add(sequence)

    sequence.last_value += 1
    # Flush now so a concurrent insert of the same counter row fails here
    session.flush()

    number = format_quote_number(year, sequence.last_value)
    logger.debug(f"Allocated quote number {number} for owner {owner_id}")
    return number
