"""
PDF transaction report.
Totals block followed by one table row per transaction.
"""
from io import BytesIO
from xml.sax.saxutils import escape
from datetime import datetime
from typing import Optional, Sequence

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import inch
from reportlab.lib import colors
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER

from khatabook.services.query_service import LedgerSnapshot, summarize
from khatabook.utils.format import capitalize_first, format_currency, format_datetime


def generate_report_pdf(
    transactions: Sequence,
    snapshot: LedgerSnapshot,
    shop_name: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> BytesIO:
    """
    Render a transaction report.

    Args:
        transactions: Already filtered, in display order
        snapshot: Source of customer names
        shop_name: Printed under the title when set

    Returns:
        BytesIO buffer containing PDF data
    """
    stats = summarize(transactions)

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4, topMargin=0.5*inch, bottomMargin=0.5*inch,
        title="Transaction Report",
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'ReportTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=colors.HexColor('#1a56db'),
        alignment=TA_CENTER,
        spaceAfter=12
    )

    normal_style = ParagraphStyle(
        'ReportNormal',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#374151')
    )

    elements.append(Paragraph("Transaction Report", title_style))
    if shop_name:
        elements.append(Paragraph(escape(shop_name), ParagraphStyle('Shop', parent=normal_style, alignment=TA_CENTER)))
    elements.append(Spacer(1, 0.3*inch))

    # Rs. instead of the rupee sign: the built-in Helvetica has no glyph for it
    totals_data = [
        ["Total Transactions:", str(stats["total_transactions"])],
        ["Total Credit:", format_currency(stats["total_credit"], symbol="Rs. ")],
        ["Total Debit:", format_currency(stats["total_debit"], symbol="Rs. ")],
    ]
    totals_table = Table(totals_data, colWidths=[1.8*inch, 2*inch], hAlign="LEFT")
    totals_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('TOPPADDING', (0, 0), (-1, -1), 3),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 3),
    ]))
    elements.append(totals_table)
    elements.append(Spacer(1, 0.3*inch))

    rows = [["Date", "Customer", "Type", "Amount", "Payment", "Item"]]
    for t in transactions:
        rows.append([
            format_datetime(t.created_at),
            Paragraph(escape(snapshot.customer_name(t.customer_id)), normal_style),
            capitalize_first(t.type),
            format_currency(t.amount, symbol="Rs. "),
            t.payment_method.upper(),
            Paragraph(escape(t.item or "-"), normal_style),
        ])

    table = Table(
        rows,
        colWidths=[1.2*inch, 1.6*inch, 0.7*inch, 1.1*inch, 0.8*inch, 1.4*inch],
        repeatRows=1,
    )
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f3f4f6')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.HexColor('#1f2937')),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('ALIGN', (3, 0), (3, -1), 'RIGHT'),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#fafafa')]),
        ('TOPPADDING', (0, 0), (-1, -1), 4),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ]))
    elements.append(table)

    footer_style = ParagraphStyle(
        'Footer',
        parent=styles['Normal'],
        fontSize=8,
        textColor=colors.grey,
        alignment=TA_CENTER
    )
    elements.append(Spacer(1, 0.5*inch))
    stamp = generated_at or datetime.now()
    elements.append(Paragraph(f"Report generated on {stamp.strftime('%d %b %Y at %I:%M %p')}", footer_style))

    doc.build(elements)

    buffer.seek(0)
    return buffer
