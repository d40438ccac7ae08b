"""Calculation service: margin-target cost calculations (kalkyler)."""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from kalkyle.models import Calculation, CalculationLine, CostItem
from kalkyle.exceptions import NotFoundError, ValidationError
from kalkyle.services.pricing import CalculationSummary, summarize_calculation

logger = logging.getLogger(__name__)

LINE_FIELDS = ('description', 'quantity', 'unit', 'unit_cost', 'sort_order')


def get_calculation(session: Session, calculation_id: int, owner_id: int) -> Calculation:
    calculation = session.query(Calculation).filter(
        Calculation.id == calculation_id,
        Calculation.owner_id == owner_id
    ).first()
    if not calculation:
        raise NotFoundError('Kalkyle ikke funnet')
    return calculation


def get_calculation_lines(session: Session, calculation_id: int) -> List[CalculationLine]:
    return session.query(CalculationLine).filter(
        CalculationLine.calculation_id == calculation_id
    ).order_by(CalculationLine.sort_order, CalculationLine.created_at, CalculationLine.id).all()


def list_calculations(session: Session, owner_id: int) -> List[Dict[str, Any]]:
    """Owner's calculations, newest first, each with its computed totals."""
    calculations = session.query(Calculation).filter(
        Calculation.owner_id == owner_id
    ).order_by(Calculation.created_at.desc(), Calculation.id.desc()).all()

    result = []
    for calculation in calculations:
        data = calculation.to_dict()
        summary = summarize_calculation(calculation.lines, calculation.target_margin_percent)
        data.update(summary.to_dict())
        data['line_count'] = len(calculation.lines)
        result.append(data)
    return result


def get_calculation_detail(session: Session, calculation_id: int,
                           owner_id: int) -> Tuple[Calculation, List[CalculationLine], CalculationSummary]:
    calculation = get_calculation(session, calculation_id, owner_id)
    lines = get_calculation_lines(session, calculation.id)
    return calculation, lines, summarize_calculation(lines, calculation.target_margin_percent)


def create_calculation(session: Session, owner_id: int, name: str, description=None,
                       target_margin_percent: float = 15) -> Calculation:
    try:
        calculation = Calculation(
            owner_id=owner_id,
            name=name,
            description=description,
            target_margin_percent=target_margin_percent
        )
        session.add(calculation)
        session.commit()
        logger.info(f"Calculation '{name}' created for owner {owner_id}")
        return calculation
    except Exception:
        session.rollback()
        raise


def update_calculation(session: Session, calculation_id: int, owner_id: int,
                       fields: Dict[str, Any]) -> Calculation:
    calculation = get_calculation(session, calculation_id, owner_id)
    try:
        for key in ('name', 'description', 'target_margin_percent'):
            if key in fields:
                setattr(calculation, key, fields[key])
        calculation.updated_at = datetime.now(timezone.utc)
        session.commit()
        return calculation
    except Exception:
        session.rollback()
        raise


def delete_calculation(session: Session, calculation_id: int, owner_id: int) -> None:
    calculation = get_calculation(session, calculation_id, owner_id)
    try:
        session.delete(calculation)
        session.commit()
    except Exception:
        session.rollback()
        raise


def add_line(session: Session, calculation_id: int, owner_id: int, fields: Dict[str, Any]) -> CalculationLine:
    """Add a cost line. With cost_item_id, missing values come from the price list."""
    calculation = get_calculation(session, calculation_id, owner_id)

    values = dict(fields)
    cost_item = None
    if values.get('cost_item_id') is not None:
        cost_item = session.query(CostItem).filter(CostItem.id == values['cost_item_id']).first()
        if not cost_item:
            raise NotFoundError('Kostnadspost ikke funnet')
        copied = {'description': cost_item.name, 'unit': cost_item.unit, 'unit_cost': cost_item.unit_price}
        for key, value in copied.items():
            if values.get(key) is None:
                values[key] = value

    if any(values.get(key) is None for key in ('description', 'quantity', 'unit', 'unit_cost')):
        raise ValidationError('Beskrivelse, antall, enhet og kostpris er påkrevd')

    max_order = session.query(func.coalesce(func.max(CalculationLine.sort_order), 0)).filter(
        CalculationLine.calculation_id == calculation.id
    ).scalar()

    try:
        line = CalculationLine(
            calculation_id=calculation.id,
            cost_item_id=cost_item.id if cost_item else None,
            description=values['description'],
            quantity=values['quantity'],
            unit=values['unit'],
            unit_cost=values['unit_cost'],
            sort_order=int(max_order or 0) + 1
        )
        session.add(line)
        calculation.updated_at = datetime.now(timezone.utc)
        session.commit()
        return line
    except Exception:
        session.rollback()
        raise


def _get_line(session: Session, calculation_id: int, line_id: int, owner_id: int) -> CalculationLine:
    line = session.query(CalculationLine).join(
        Calculation, CalculationLine.calculation_id == Calculation.id
    ).filter(
        CalculationLine.id == line_id,
        Calculation.id == calculation_id,
        Calculation.owner_id == owner_id
    ).first()
    if not line:
        raise NotFoundError('Kalkylelinje ikke funnet')
    return line


def update_line(session: Session, calculation_id: int, line_id: int, owner_id: int,
                fields: Dict[str, Any]) -> CalculationLine:
    line = _get_line(session, calculation_id, line_id, owner_id)
    try:
        for key in LINE_FIELDS:
            if key in fields and fields[key] is not None:
                setattr(line, key, fields[key])
        line.calculation.updated_at = datetime.now(timezone.utc)
        session.commit()
        return line
    except Exception:
        session.rollback()
        raise


def delete_line(session: Session, calculation_id: int, line_id: int, owner_id: int) -> None:
    line = _get_line(session, calculation_id, line_id, owner_id)
    try:
        line.calculation.updated_at = datetime.now(timezone.utc)
        session.delete(line)
        session.commit()
    except Exception:
        session.rollback()
        raise
