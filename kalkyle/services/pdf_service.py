"""Quote PDF rendering (reportlab)."""
import logging
from datetime import datetime
from io import BytesIO
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from sqlalchemy.orm import Session

from kalkyle.models import Quote, QuoteLine, CompanySettings, CATEGORY_LABELS
from kalkyle.services.pricing import QuoteSummary, summarize
from kalkyle.services.quote_service import get_quote_with_lines
from kalkyle.services.settings_service import find_settings, get_vat_percent
from kalkyle.utils.formatters import money_nok, num_no, percent_no, date_no

logger = logging.getLogger(__name__)

HEADER_BLUE = colors.HexColor('#2C3E50')
MUTED_GREY = colors.HexColor('#7F8C8D')
GRID_GREY = colors.HexColor('#BDC3C7')
ROW_ALT = colors.HexColor('#ECF0F1')


def _text(value) -> str:
    """Escape user text for reportlab paragraph markup."""
    return escape(str(value)).replace('\n', '<br/>')


def _category_label(category_type: str) -> str:
    return CATEGORY_LABELS.get(category_type, category_type)


def _company_block(settings: Optional[CompanySettings], style) -> List:
    if not settings or not settings.company_name:
        return []

    elements = [Paragraph(f"<b>{_text(settings.company_name)}</b>", style)]
    if settings.address:
        elements.append(Paragraph(_text(settings.address), style))
    postal = f"{settings.postal_code or ''} {settings.city or ''}".strip()
    if postal:
        elements.append(Paragraph(_text(postal), style))

    contact_parts = []
    if settings.phone:
        contact_parts.append(f"Tlf: {settings.phone}")
    if settings.email:
        contact_parts.append(settings.email)
    if settings.org_number:
        contact_parts.append(f"Org.nr: {settings.org_number}")
    if contact_parts:
        elements.append(Paragraph(_text(" | ".join(contact_parts)), style))
    return elements


def _meta_table(quote: Quote, body_style) -> Table:
    """Quote metadata on the left, customer on the right."""
    issued = quote.created_at or datetime.now()
    left = [
        f"<b>Tilbudsnr:</b> {_text(quote.quote_number)}",
        f"<b>Dato:</b> {date_no(issued)}",
        f"<b>Gyldig til:</b> {date_no(quote.valid_until) if quote.valid_until else 'Ikke angitt'}",
    ]
    if quote.reference:
        left.append(f"<b>Referanse:</b> {_text(quote.reference)}")

    right = [f"<b>Kunde:</b> {_text(quote.customer_name)}"]
    if quote.customer_address:
        right.append(_text(quote.customer_address))
    if quote.customer_email:
        right.append(_text(quote.customer_email))

    table = Table(
        [[Paragraph('<br/>'.join(left), body_style), Paragraph('<br/>'.join(right), body_style)]],
        colWidths=[3.4*inch, 3.4*inch]
    )
    table.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('LEFTPADDING', (0, 0), (-1, -1), 0),
    ]))
    return table


def _detailed_table(lines: List[QuoteLine], summary: QuoteSummary, body_style) -> Table:
    """Every line, grouped under its category label, with a subtotal per category."""
    table_data = [['Beskrivelse', 'Antall', 'Enhet', 'Pris', 'Sum']]
    style_commands = [
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_BLUE),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
        ('ALIGN', (1, 1), (1, -1), 'RIGHT'),
        ('ALIGN', (3, 1), (4, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('GRID', (0, 0), (-1, -1), 0.5, GRID_GREY),
    ]

    for category_type, subtotal in summary.category_totals.items():
        row = len(table_data)
        table_data.append([_category_label(category_type), '', '', '', ''])
        style_commands += [
            ('SPAN', (0, row), (-1, row)),
            ('FONTNAME', (0, row), (-1, row), 'Helvetica-Bold'),
            ('BACKGROUND', (0, row), (-1, row), ROW_ALT),
        ]
        for line in lines:
            if line.category_type != category_type:
                continue
            table_data.append([
                Paragraph(_text(line.description), body_style),
                num_no(line.quantity),
                line.unit,
                money_nok(line.unit_price),
                money_nok(line.line_total),
            ])
        row = len(table_data)
        table_data.append([f"Sum {_category_label(category_type).lower()}", '', '', '', money_nok(subtotal)])
        style_commands += [
            ('SPAN', (0, row), (3, row)),
            ('ALIGN', (0, row), (0, row), 'RIGHT'),
            ('FONTNAME', (0, row), (-1, row), 'Helvetica-Oblique'),
        ]

    table = Table(table_data, colWidths=[2.9*inch, 0.8*inch, 0.7*inch, 1.2*inch, 1.2*inch], repeatRows=1)
    table.setStyle(TableStyle(style_commands))
    return table


def _category_table(summary: QuoteSummary) -> Table:
    """Category subtotals only."""
    table_data = [['Kategori', 'Sum']]
    for category_type, subtotal in summary.category_totals.items():
        table_data.append([_category_label(category_type), money_nok(subtotal)])

    table = Table(table_data, colWidths=[4.6*inch, 2.2*inch])
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_BLUE),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, GRID_GREY),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, ROW_ALT]),
    ]))
    return table


def _totals_table(summary: QuoteSummary) -> Table:
    rows = [['Sum kostnad:', money_nok(summary.total_cost)]]
    if summary.markup_percent > 0:
        rows.append([f"Påslag ({percent_no(summary.markup_percent)}%):", money_nok(summary.markup)])
    rows.append(['Sum eks. mva:', money_nok(summary.total_ex_vat)])
    rows.append([f"MVA ({percent_no(summary.vat_percent)}%):", money_nok(summary.vat)])
    rows.append(['TOTALT INKL. MVA:', money_nok(summary.total_inc_vat)])

    last = len(rows) - 1
    table = Table(rows, colWidths=[4.6*inch, 2.2*inch])
    table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('FONTNAME', (0, last - 2), (-1, last - 2), 'Helvetica-Bold'),
        ('FONTNAME', (0, last), (-1, last), 'Helvetica-Bold'),
        ('FONTSIZE', (0, last), (-1, last), 12),
        ('LINEABOVE', (0, last), (-1, last), 1, HEADER_BLUE),
    ]))
    return table


def render_quote_pdf(quote: Quote, lines: List[QuoteLine], settings: Optional[CompanySettings],
                     summary: QuoteSummary, detailed: bool = False) -> BytesIO:
    """
    Render a quote document.

    Detailed mode lists every line grouped by category; otherwise only the
    category subtotals are shown. Both use the same summary for totals.
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.7*inch,
        leftMargin=0.7*inch,
        topMargin=0.7*inch,
        bottomMargin=0.7*inch,
        title=f"Tilbud {quote.quote_number}"
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'QuoteTitle',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=HEADER_BLUE,
        spaceAfter=12,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )
    company_style = ParagraphStyle(
        'Company',
        parent=styles['Normal'],
        fontSize=10,
        textColor=MUTED_GREY,
        alignment=TA_RIGHT,
    )
    body_style = ParagraphStyle('Body', parent=styles['Normal'], fontSize=10, leading=13)
    section_style = ParagraphStyle('Section', parent=styles['Heading3'], textColor=HEADER_BLUE, spaceAfter=4)

    # 1. Title and company header
    elements.append(Paragraph("TILBUD", title_style))
    elements.extend(_company_block(settings, company_style))
    elements.append(Spacer(1, 0.3*inch))

    # 2. Quote metadata and customer
    elements.append(_meta_table(quote, body_style))
    elements.append(Spacer(1, 0.25*inch))

    # 3. Project
    elements.append(Paragraph(f"Prosjekt: {_text(quote.project_name)}", section_style))
    if quote.project_description:
        elements.append(Paragraph(_text(quote.project_description), body_style))
    elements.append(Spacer(1, 0.2*inch))

    # 4. Lines or category subtotals
    if detailed:
        elements.append(_detailed_table(lines, summary, body_style))
    else:
        elements.append(_category_table(summary))
    elements.append(Spacer(1, 0.25*inch))

    # 5. Totals
    elements.append(_totals_table(summary))
    elements.append(Spacer(1, 0.3*inch))

    # 6. Notes and terms
    if quote.notes:
        elements.append(Paragraph("Merknader:", section_style))
        elements.append(Paragraph(_text(quote.notes), body_style))
        elements.append(Spacer(1, 0.15*inch))
    if quote.terms:
        elements.append(Paragraph("Vilkår:", section_style))
        elements.append(Paragraph(_text(quote.terms), body_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer


def generate_quote_pdf_from_db(session: Session, quote_id: int, owner_id: int,
                               detailed: bool = False) -> tuple:
    """Load an owned quote and render it. Returns (buffer, filename)."""
    quote, lines = get_quote_with_lines(session, quote_id, owner_id)
    settings = find_settings(session, owner_id)
    summary = summarize(lines, quote.markup_percent or 0, get_vat_percent(session, owner_id))

    buffer = render_quote_pdf(quote, lines, settings, summary, detailed=detailed)
    logger.info(f"Rendered PDF for quote {quote.quote_number} (detailed={detailed})")
    return buffer, f"Tilbud-{quote.quote_number}.pdf"
