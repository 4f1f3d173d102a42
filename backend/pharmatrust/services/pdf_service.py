"""
PDF Invoice Generation Service
Renders a sale as a printable tax invoice with line items and GST breakdown
"""
from io import BytesIO
from datetime import datetime
from decimal import Decimal
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import inch
from reportlab.lib import colors
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER

from sqlalchemy.orm import Session

from pharmatrust.core.config import settings
from pharmatrust.services.sale_service import get_sale

RUPEE = "Rs."


def _amount(value) -> str:
    return f"{RUPEE} {Decimal(value or 0):.2f}"


def generate_sale_invoice_pdf(db: Session, sale_id: int) -> BytesIO:
    """
    Generate PDF for a sale

    Args:
        db: Database session
        sale_id: ID of the sale to render

    Returns:
        BytesIO buffer containing PDF data
    """
    sale = get_sale(db, sale_id)
    customer = sale.customer

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        topMargin=0.5 * inch,
        bottomMargin=0.5 * inch,
        title=sale.invoice_number,
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'InvoiceTitle',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=colors.HexColor('#1a56db'),
        alignment=TA_CENTER,
        spaceAfter=12
    )

    heading_style = ParagraphStyle(
        'InvoiceHeading',
        parent=styles['Heading2'],
        fontSize=14,
        textColor=colors.HexColor('#1f2937'),
        spaceAfter=6
    )

    normal_style = ParagraphStyle(
        'InvoiceNormal',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#374151')
    )

    elements.append(Paragraph("TAX INVOICE", title_style))
    elements.append(Spacer(1, 0.3 * inch))

    seller = sale.sold_by.name if sale.sold_by else "-"
    info_data = [
        [
            Paragraph(f"<b>{settings.PHARMACY_NAME}</b><br/>India", normal_style),
            Paragraph(f"<b>Invoice #:</b> {sale.invoice_number}<br/>"
                      f"<b>Date:</b> {sale.sale_date.strftime('%d %b %Y, %I:%M %p')}<br/>"
                      f"<b>Payment:</b> {sale.payment_method} ({sale.payment_status})<br/>"
                      f"<b>Billed by:</b> {seller}", normal_style)
        ]
    ]

    info_table = Table(info_data, colWidths=[3.5 * inch, 3 * inch])
    info_table.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 0.3 * inch))

    elements.append(Paragraph("<b>Bill To:</b>", heading_style))
    if customer:
        customer_info = f"<b>{customer.name}</b><br/>Phone: {customer.phone}"
    else:
        customer_info = "<b>Walk-in customer</b>"
    if sale.doctor_name:
        customer_info += f"<br/>Prescribed by: Dr. {sale.doctor_name}"
    elements.append(Paragraph(customer_info, normal_style))
    elements.append(Spacer(1, 0.3 * inch))

    items_data = [[
        Paragraph("<b>Medicine</b>", normal_style),
        Paragraph("<b>Qty</b>", normal_style),
        Paragraph("<b>Rate</b>", normal_style),
        Paragraph("<b>Discount</b>", normal_style),
        Paragraph("<b>Amount</b>", normal_style),
    ]]
    for item in sale.items:
        items_data.append([
            Paragraph(item.medicine_name, normal_style),
            Paragraph(str(item.quantity), normal_style),
            Paragraph(_amount(item.unit_price), normal_style),
            Paragraph(_amount(item.discount), normal_style),
            Paragraph(_amount(item.total_price), normal_style),
        ])

    items_table = Table(items_data, colWidths=[2.5 * inch, 0.7 * inch, 1.1 * inch, 1.1 * inch, 1.1 * inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f3f4f6')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.HexColor('#1f2937')),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, 0), 10),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
        ('TOPPADDING', (0, 0), (-1, 0), 8),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#fafafa')]),
        ('TOPPADDING', (0, 1), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 1), (-1, -1), 6),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2 * inch))

    gst_rate_percent = Decimal(settings.TAX_RATE) * 100  # 0.18 -> 18
    total_data = [
        ['', Paragraph("<b>Subtotal:</b>", normal_style), Paragraph(_amount(sale.subtotal), normal_style)],
        ['', Paragraph("<b>Discount:</b>", normal_style), Paragraph(f"- {_amount(sale.total_discount)}", normal_style)],
        ['', Paragraph(f"<b>GST ({gst_rate_percent:.0f}%):</b>", normal_style), Paragraph(_amount(sale.tax), normal_style)],
        ['', Paragraph("<b>TOTAL:</b>", heading_style), Paragraph(f"<b>{_amount(sale.total_amount)}</b>", heading_style)],
        ['', Paragraph("Paid:", normal_style), Paragraph(_amount(sale.paid_amount), normal_style)],
        ['', Paragraph("Change:", normal_style), Paragraph(_amount(sale.change_amount), normal_style)],
    ]

    total_table = Table(total_data, colWidths=[3.9 * inch, 1.4 * inch, 1.2 * inch])
    total_table.setStyle(TableStyle([
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('LINEABOVE', (1, 3), (-1, 3), 1, colors.black),
        ('TOPPADDING', (0, 0), (-1, -1), 4),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ]))
    elements.append(total_table)

    if sale.notes:
        elements.append(Spacer(1, 0.3 * inch))
        elements.append(Paragraph("<b>Notes:</b>", heading_style))
        elements.append(Paragraph(sale.notes, normal_style))

    footer_style = ParagraphStyle(
        'Footer',
        parent=styles['Normal'],
        fontSize=8,
        textColor=colors.grey,
        alignment=TA_CENTER
    )
    elements.append(Spacer(1, 0.8 * inch))
    elements.append(Paragraph("Get well soon! Medicines once sold are subject to pharmacy return policy.", footer_style))
    elements.append(Paragraph(f"Invoice generated on {datetime.now().strftime('%d %b %Y at %I:%M %p')}", footer_style))

    doc.build(elements)

    buffer.seek(0)
    return buffer
