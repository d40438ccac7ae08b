"""
Request value parsing for the API boundary.

Every parser raises ValidationError naming the offending field; the pricing
engine only ever sees values that passed through here.
"""
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from kalkyle.exceptions import ValidationError

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def is_valid_email(email: str) -> bool:
    """Validate email format."""
    return EMAIL_PATTERN.match(email or '') is not None


def get_json_body(request) -> dict:
    """Return the JSON object of the request, or an empty dict."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Ugyldig forespørsel: forventet et JSON-objekt')
    return data


def parse_string(value: Any, field: str, required: bool = False, max_length: Optional[int] = None) -> Optional[str]:
    """Strip a string value; empty strings become None (or fail when required)."""
    if value is None:
        cleaned = ''
    elif isinstance(value, str):
        cleaned = value.strip()
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        cleaned = str(value)
    else:
        raise ValidationError(f'{field} må være tekst', field=field)

    if not cleaned:
        if required:
            raise ValidationError(f'{field} er påkrevd', field=field)
        return None

    if max_length and len(cleaned) > max_length:
        raise ValidationError(f'{field} kan ha maks {max_length} tegn', field=field)
    return cleaned


def parse_password(value: Any, field: str, required: bool = False) -> Optional[str]:
    """Return a password as sent; unlike parse_string it is never stripped or coerced."""
    if value is None or value == '':
        if required:
            raise ValidationError(f'{field} er påkrevd', field=field)
        return None
    if not isinstance(value, str):
        raise ValidationError(f'{field} må være tekst', field=field)
    return value


def parse_number(value: Any, field: str, required: bool = True, minimum: Optional[float] = None,
                 exclusive_minimum: bool = False, default: Optional[float] = None) -> Optional[float]:
    """
    Parse a JSON number or a numeric string to float.

    Strings accept both comma and dot as decimal separator ("12,5" == 12.5)
    and spaces as thousands separator ("1 250,50").
    """
    if value is None or value == '':
        if required:
            raise ValidationError(f'{field} er påkrevd', field=field)
        return default

    if isinstance(value, bool):
        raise ValidationError(f'{field} må være et tall', field=field)

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        normalized = value.strip().replace(' ', '').replace('\u00a0', '').replace(',', '.')
        try:
            number = float(Decimal(normalized))
        except (InvalidOperation, ValueError):
            raise ValidationError(f'{field} må være et tall', field=field)
    else:
        raise ValidationError(f'{field} må være et tall', field=field)

    if number != number or number in (float('inf'), float('-inf')):
        raise ValidationError(f'{field} må være et tall', field=field)

    if minimum is not None:
        if exclusive_minimum and number <= minimum:
            raise ValidationError(f'{field} må være større enn {minimum:g}', field=field)
        if not exclusive_minimum and number < minimum:
            raise ValidationError(f'{field} kan ikke være mindre enn {minimum:g}', field=field)

    return number


def parse_int(value: Any, field: str, required: bool = True, minimum: Optional[int] = None,
              default: Optional[int] = None) -> Optional[int]:
    """Parse a whole number."""
    number = parse_number(value, field, required=required, default=None)
    if number is None:
        return default
    if not float(number).is_integer():
        raise ValidationError(f'{field} må være et heltall', field=field)
    result = int(number)
    if minimum is not None and result < minimum:
        raise ValidationError(f'{field} må være minst {minimum}', field=field)
    return result


def parse_date(value: Any, field: str, required: bool = False) -> Optional[date]:
    """Parse YYYY-MM-DD (a full ISO timestamp is cut to its date)."""
    if value is None or value == '':
        if required:
            raise ValidationError(f'{field} er påkrevd', field=field)
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f'{field} må være en dato (ÅÅÅÅ-MM-DD)', field=field)
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise ValidationError(f'{field} må være en dato (ÅÅÅÅ-MM-DD)', field=field)


def parse_choice(value: Any, field: str, choices: Iterable[str], required: bool = False) -> Optional[str]:
    """Validate an enum value."""
    if value is None or value == '':
        if required:
            raise ValidationError(f'{field} er påkrevd', field=field)
        return None
    choices = list(choices)
    if value not in choices:
        raise ValidationError(f'Ugyldig {field}: {value}. Gyldige verdier: {", ".join(choices)}', field=field)
    return value


def parse_id(value: Any, field: str, required: bool = False) -> Optional[int]:
    """Parse an entity id from JSON (int or numeric string)."""
    if value is None or value == '':
        if required:
            raise ValidationError(f'{field} er påkrevd', field=field)
        return None
    if isinstance(value, bool):
        raise ValidationError(f'Ugyldig {field}', field=field)
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f'Ugyldig {field}', field=field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Ugyldig {field}', field=field)
