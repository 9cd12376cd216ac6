"""
Budget request PDF
Downloadable copy of the print page, with approval details when decided
"""
from io import BytesIO
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from xml.sax.saxutils import escape

from stockroom.schemas import Approval, BudgetRequest
from stockroom.services.print_service import STATUS_LABELS


def generate_request_pdf(request: BudgetRequest, approval: Optional[Approval] = None) -> BytesIO:
    """
    Generate PDF for a budget request

    Args:
        request: The budget request to render
        approval: Its approval record, if it has been decided

    Returns:
        BytesIO buffer containing PDF data
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, topMargin=0.5*inch, bottomMargin=0.5*inch,
                            title=f"Budget request {request.request_no}")

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'RequestTitle',
        parent=styles['Heading1'],
        fontSize=22,
        textColor=colors.HexColor('#1a56db'),
        alignment=TA_CENTER,
        spaceAfter=12
    )

    heading_style = ParagraphStyle(
        'RequestHeading',
        parent=styles['Heading2'],
        fontSize=14,
        textColor=colors.HexColor('#1f2937'),
        spaceAfter=6
    )

    normal_style = ParagraphStyle(
        'RequestNormal',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#374151')
    )

    elements.append(Paragraph("BUDGET REQUEST", title_style))
    elements.append(Paragraph(f"Request no: {escape(request.request_no)}", normal_style))
    elements.append(Spacer(1, 0.3*inch))

    # Request details
    info_data = [
        [
            Paragraph(f"<b>Requester:</b> {escape(request.requester)}<br/>"
                      f"<b>Account:</b> {escape(request.account_code)} {escape(request.account_name or '')}", normal_style),
            Paragraph(f"<b>Date:</b> {request.request_date:%d %b %Y}<br/>"
                      f"<b>Status:</b> {STATUS_LABELS[request.status]}<br/>"
                      f"<b>Amount:</b> {request.amount:,.2f}", normal_style)
        ]
    ]
    info_table = Table(info_data, colWidths=[3.5*inch, 3*inch])
    info_table.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 0.2*inch))

    if request.note:
        elements.append(Paragraph(f"<b>Note:</b> {escape(request.note)}", normal_style))
        elements.append(Spacer(1, 0.2*inch))

    # Materials
    elements.append(Paragraph("<b>Materials</b>", heading_style))
    if request.material_list:
        items_data = [[Paragraph("<b>#</b>", normal_style),
                       Paragraph("<b>Item</b>", normal_style),
                       Paragraph("<b>Quantity</b>", normal_style)]]
        for i, m in enumerate(request.material_list, start=1):
            items_data.append([Paragraph(str(i), normal_style),
                               Paragraph(escape(m.item), normal_style),
                               Paragraph(escape(m.quantity), normal_style)])
        items_table = Table(items_data, colWidths=[0.5*inch, 4.5*inch, 1.5*inch])
        items_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f3f4f6')),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#fafafa')]),
            ('TOPPADDING', (0, 0), (-1, -1), 6),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ]))
        elements.append(items_table)
    else:
        elements.append(Paragraph("No materials listed", normal_style))
    elements.append(Spacer(1, 0.3*inch))

    # Approval
    if approval is not None:
        elements.append(Paragraph("<b>Approval</b>", heading_style))
        approval_info = (f"<b>Approver:</b> {escape(approval.approver_name)}<br/>"
                         f"<b>Decision:</b> {STATUS_LABELS[approval.decision]}<br/>"
                         f"<b>Decided at:</b> {approval.created_at:%d %b %Y, %I:%M %p} UTC")
        if approval.remark:
            approval_info += f"<br/><b>Remark:</b> {escape(approval.remark)}"
        elements.append(Paragraph(approval_info, normal_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer
