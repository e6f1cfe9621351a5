"""
Prefactura PDF rendering.

The renderer is an awaitable capability: render() yields either raw PDF
bytes or a base64 string, and render_to_base64() turns both into the base64
string returned by /generate-pdf. ReportLabInvoiceRenderer builds the
classic CFDI-style layout with reportlab's platypus.
"""

import asyncio
import io
import logging
import time
from decimal import Decimal
from typing import Protocol, Union
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import (
    HRFlowable,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from docflow.errors import RenderingFailure
from docflow.schemas.invoices import CanonicalInvoice
from docflow.services.codec import encode, strip_envelope

logger = logging.getLogger(__name__)

PAGE_MARGIN = 40
ITEM_HEADERS = ["Clave ProdServ", "Cantidad", "Unidad", "Descripción", "Precio Unitario", "Importe"]
FOOTER_LEGEND = "Este documento es una representación impresa de un CFDI."


class PdfRenderer(Protocol):
    async def render(self, invoice: CanonicalInvoice) -> Union[bytes, str]:
        ...


def format_money(value: float) -> str:
    """Format an amount as MXN, e.g. 1234.5 -> '$1,234.50'."""
    amount = round(value or 0.0, 2)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_quantity(value: float) -> str:
    """Quantity as written by the client: no exponent, no rounding to 6 digits."""
    if float(value).is_integer():
        return str(int(value))
    return format(Decimal(repr(float(value))), "f")


def invoice_filename() -> str:
    return f"prefactura_{int(time.time() * 1000)}.pdf"


class ReportLabInvoiceRenderer:
    """Renders a CanonicalInvoice to PDF bytes with reportlab."""

    def __init__(self, pagesize=LETTER):
        self.pagesize = pagesize

    async def render(self, invoice: CanonicalInvoice) -> bytes:
        # reportlab is synchronous and CPU bound
        return await asyncio.to_thread(self.build_pdf, invoice)

    def build_pdf(self, invoice: CanonicalInvoice) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=self.pagesize,
            leftMargin=PAGE_MARGIN,
            rightMargin=PAGE_MARGIN,
            topMargin=PAGE_MARGIN,
            bottomMargin=PAGE_MARGIN,
            title="Prefactura",
        )
        width = self.pagesize[0] - 2 * PAGE_MARGIN

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle("Title", parent=styles["Title"], fontSize=16, spaceAfter=12)
        body = ParagraphStyle("Body", parent=styles["BodyText"], fontSize=10, leading=13)
        right = ParagraphStyle("Right", parent=body, alignment=2)
        label = ParagraphStyle("Label", parent=body, fontName="Helvetica-Bold")
        cell = ParagraphStyle("Cell", parent=body, fontSize=9, leading=11)
        footer = ParagraphStyle("Footer", parent=body, fontSize=9, alignment=1,
                                fontName="Helvetica-Oblique")

        def p(text: str, style=body) -> Paragraph:
            return Paragraph(escape(text), style)

        issuer = invoice.issuer
        receiver = invoice.receiver
        meta = invoice.metadata
        totals = invoice.totals.rounded()

        story = [p("PREFACTURA", title_style)]

        issuer_block = [
            p("Emisor:", label),
            p(issuer.name),
            p(issuer.tax_id),
            p(issuer.address),
            p(f"Régimen Fiscal: {issuer.fiscal_regime}"),
        ]
        document_block = [
            p(f"Folio: {meta.folio}", right),
            p(f"Fecha: {meta.date}", right),
            p(f"Lugar de Expedición: {meta.expedition_place}", right),
            p(f"Efecto del comprobante: {meta.effect_label}", right),
        ]
        story.append(Table(
            [[issuer_block, document_block]],
            colWidths=[width / 2, width / 2],
            style=TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP"),
                              ("LEFTPADDING", (0, 0), (-1, -1), 0),
                              ("RIGHTPADDING", (0, 0), (-1, -1), 0)]),
        ))
        story.append(HRFlowable(width="100%", thickness=1, color=colors.black,
                                spaceBefore=8, spaceAfter=8))

        story.extend([
            p("Receptor:", label),
            p(receiver.name),
            p(receiver.tax_id),
            p(f"Uso del CFDI: {receiver.cfdi_use}"),
            p(f"Régimen Fiscal: {receiver.fiscal_regime}"),
            p(f"Código Postal: {receiver.tax_zip_code}"),
            Spacer(1, 12),
        ])

        rows = [[p(header, label) for header in ITEM_HEADERS]]
        for item in invoice.items:
            rows.append([
                p(item.product_code, cell),
                p(format_quantity(item.quantity), cell),
                p(item.unit_code, cell),
                p(item.description, cell),
                p(format_money(item.unit_price), cell),
                p(format_money(item.subtotal_amount), cell),
            ])
        fixed = [80, 50, 50, 80, 80]
        col_widths = fixed[:3] + [width - sum(fixed)] + fixed[3:]
        story.append(Table(
            rows,
            colWidths=col_widths,
            repeatRows=1,
            style=TableStyle([
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LINEBELOW", (0, 0), (-1, 0), 1, colors.black),
                ("LINEBELOW", (0, 1), (-1, -1), 0.5, colors.lightgrey),
            ]),
        ))
        story.append(Spacer(1, 12))

        payment_block = [
            p(f"Forma de Pago: {meta.payment_form}"),
            p(f"Método de Pago: {meta.payment_method}"),
        ]
        totals_block = [
            p(f"Subtotal: {format_money(totals.subtotal)}", right),
            p(f"IVA (16%): {format_money(totals.tax)}", right),
            Paragraph(f"<b>Total: {escape(format_money(totals.total))}</b>", right),
        ]
        story.append(Table(
            [[payment_block, totals_block]],
            colWidths=[width / 2, width / 2],
            style=TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP"),
                              ("LEFTPADDING", (0, 0), (-1, -1), 0),
                              ("RIGHTPADDING", (0, 0), (-1, -1), 0)]),
        ))
        story.append(Spacer(1, 24))
        story.append(p(FOOTER_LEGEND, footer))

        doc.build(story)
        return buffer.getvalue()


async def render_to_base64(renderer: PdfRenderer, invoice: CanonicalInvoice) -> str:
    """
    Run the renderer once and return the document as base64.

    Raises:
        RenderingFailure: If the renderer raises or returns nothing usable.
    """
    try:
        result = await renderer.render(invoice)
    except Exception as e:
        logger.error(f"PDF rendering failed: {e}", exc_info=True)
        raise RenderingFailure("Error generando la prefactura") from e

    if isinstance(result, (bytes, bytearray)) and result:
        return encode(bytes(result))
    if isinstance(result, str) and result.strip():
        return strip_envelope(result)

    logger.error("PDF renderer returned an empty document")
    raise RenderingFailure("Error generando la prefactura")
