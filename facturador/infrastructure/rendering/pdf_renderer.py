# facturador/infrastructure/rendering/pdf_renderer.py
import io
import logging
from typing import Optional

from reportlab.graphics import renderPDF
from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

import config
from facturador.domain.models.invoice import AuthorizationResult, InvoiceDocument, InvoiceRequest
from facturador.domain.ports.document_renderer import DocumentRenderer
from facturador.domain.services.invoice_view import InvoiceView, IssuerInfo, build_invoice_view

MARGIN = 15 * mm
QR_SIZE = 32 * mm


def issuer_from_config() -> IssuerInfo:
    return IssuerInfo(
        cuit=config.AFIP_CUIT,
        name=config.ISSUER_NAME,
        address=config.ISSUER_ADDRESS,
        iva_condition=config.ISSUER_IVA_CONDITION,
        iibb=config.ISSUER_IIBB,
        start_date=config.ISSUER_START_DATE,
    )


class ReportLabInvoiceRenderer(DocumentRenderer):
    """
    Factura de una página A4. El PDF se genera en modo invariante: mismas
    entradas, mismos bytes.
    """

    def __init__(self, issuer: Optional[IssuerInfo] = None, cuit_iva_condition: Optional[int] = None):
        self.issuer = issuer or issuer_from_config()
        self.cuit_iva_condition = cuit_iva_condition or config.AFIP_CUIT_IVA_CONDITION

    def render(self, request: InvoiceRequest, result: AuthorizationResult) -> InvoiceDocument:
        view = build_invoice_view(request, result, self.issuer, self.cuit_iva_condition)
        logging.info(f"[{request.request_id}] Generando {view.filename}...")
        return InvoiceDocument(
            filename=view.filename,
            content=self.render_view(view),
            qr_url=view.qr_url,
            qr_payload=view.qr_payload,
        )

    def render_view(self, view: InvoiceView) -> bytes:
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4, invariant=1)
        pdf.setTitle(view.filename)
        pdf.setAuthor(view.issuer_name)

        width, height = A4
        top = height - MARGIN
        self._draw_header(pdf, view, width, top)
        y = self._draw_receptor(pdf, view, width, top - 62 * mm)
        y = self._draw_items(pdf, view, width, y - 8 * mm)
        self._draw_totals(pdf, view, width, y - 6 * mm)
        self._draw_authorization(pdf, view, width)

        pdf.showPage()
        pdf.save()
        return buffer.getvalue()

    def _draw_header(self, pdf, view: InvoiceView, width, top):
        middle = width / 2
        pdf.rect(MARGIN, top - 55 * mm, width - 2 * MARGIN, 55 * mm)
        pdf.line(middle, top - 55 * mm, middle, top - 16 * mm)

        # Recuadro con la letra del comprobante
        pdf.rect(middle - 8 * mm, top - 16 * mm, 16 * mm, 16 * mm)
        pdf.setFont("Helvetica-Bold", 22)
        pdf.drawCentredString(middle, top - 10 * mm, view.letter)
        pdf.setFont("Helvetica", 7)
        pdf.drawCentredString(middle, top - 14.5 * mm, view.type_code)

        pdf.setFont("Helvetica-Bold", 13)
        pdf.drawString(MARGIN + 4 * mm, top - 24 * mm, view.issuer_name)
        pdf.setFont("Helvetica", 8.5)
        lines = [
            f"Domicilio: {view.issuer_address}",
            f"Condición frente al IVA: {view.issuer_iva_condition}",
        ]
        for i, text in enumerate(lines):
            pdf.drawString(MARGIN + 4 * mm, top - (32 + 5 * i) * mm, text)

        x = middle + 6 * mm
        pdf.setFont("Helvetica-Bold", 14)
        pdf.drawString(x, top - 24 * mm, "FACTURA")
        pdf.setFont("Helvetica", 8.5)
        lines = [
            f"Punto de Venta: {view.sales_point}    Comp. Nro: {view.voucher_number}",
            f"Fecha de Emisión: {view.issue_date}",
            f"CUIT: {view.issuer_cuit}",
            f"Ingresos Brutos: {view.issuer_iibb}",
            f"Inicio de Actividades: {view.issuer_start_date}",
        ]
        for i, text in enumerate(lines):
            pdf.drawString(x, top - (31 + 5 * i) * mm, text)

    def _draw_receptor(self, pdf, view: InvoiceView, width, top):
        lines = [
            f"Apellido y Nombre / Razón Social: {view.receptor_name}",
            f"Documento: {view.receptor_doc}",
            f"Condición frente al IVA: {view.receptor_iva_condition}",
            f"Concepto: {view.concept}",
        ]
        if view.service_period:
            lines.append(f"Período facturado: {view.service_period}    Vto. para el pago: {view.payment_due}")

        box_height = (len(lines) * 5 + 4) * mm
        pdf.rect(MARGIN, top - box_height, width - 2 * MARGIN, box_height)
        pdf.setFont("Helvetica", 8.5)
        for i, text in enumerate(lines):
            pdf.drawString(MARGIN + 4 * mm, top - (6 + 5 * i) * mm, text)
        return top - box_height

    def _draw_items(self, pdf, view: InvoiceView, width, top):
        columns = [
            ("Descripción", MARGIN + 2 * mm, "left"),
            ("Cantidad", MARGIN + 105 * mm, "right"),
            ("U. medida", MARGIN + 130 * mm, "right"),
            ("Precio Unit.", MARGIN + 155 * mm, "right"),
            ("Subtotal", width - MARGIN - 2 * mm, "right"),
        ]
        pdf.setFillGray(0.85)
        pdf.rect(MARGIN, top - 7 * mm, width - 2 * MARGIN, 7 * mm, fill=1, stroke=1)
        pdf.setFillGray(0)
        pdf.setFont("Helvetica-Bold", 8.5)
        for title, x, align in columns:
            draw = pdf.drawString if align == "left" else pdf.drawRightString
            draw(x, top - 5 * mm, title)

        y = top - 13 * mm
        pdf.setFont("Helvetica", 8.5)
        for line in view.lines:
            values = [line.description[:60], line.quantity, line.unit, line.unit_price, line.subtotal]
            for (_, x, align), value in zip(columns, values):
                draw = pdf.drawString if align == "left" else pdf.drawRightString
                draw(x, y, value)
            y -= 6 * mm
        return y

    def _draw_totals(self, pdf, view: InvoiceView, width, top):
        pdf.line(MARGIN, top, width - MARGIN, top)
        pdf.setFont("Helvetica-Bold", 11)
        pdf.drawRightString(width - MARGIN - 40 * mm, top - 8 * mm, "Importe Total: $")
        pdf.drawRightString(width - MARGIN - 2 * mm, top - 8 * mm, view.total)

    def _draw_authorization(self, pdf, view: InvoiceView, width):
        bottom = MARGIN
        widget = QrCodeWidget(view.qr_url)
        x1, y1, x2, y2 = widget.getBounds()
        drawing = Drawing(QR_SIZE, QR_SIZE, transform=[QR_SIZE / (x2 - x1), 0, 0, QR_SIZE / (y2 - y1), 0, 0])
        drawing.add(widget)
        renderPDF.draw(drawing, pdf, MARGIN, bottom)

        pdf.setFont("Helvetica-Bold", 9)
        pdf.drawRightString(width - MARGIN, bottom + 20 * mm, f"CAE N°: {view.cae}")
        pdf.drawRightString(width - MARGIN, bottom + 14 * mm, f"Fecha de Vto. de CAE: {view.cae_expiry}")
        pdf.setFont("Helvetica-Oblique", 8)
        pdf.drawString(MARGIN + QR_SIZE + 4 * mm, bottom + 8 * mm, "Comprobante Autorizado")
