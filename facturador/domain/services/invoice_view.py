# facturador/domain/services/invoice_view.py
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from facturador.domain.models.invoice import AuthorizationResult, DocType, InvoiceRequest
from facturador.domain.services.compliance_qr import build_qr_payload, build_qr_url

PLACEHOLDER = "-"
INVOICE_LETTERS = {1: "A", 6: "B", 11: "C", 51: "M"}
CONCEPT_NAMES = {1: "Productos", 2: "Servicios", 3: "Productos y Servicios"}
DOC_LABELS = {DocType.DNI: "DNI", DocType.CUIT: "CUIT", DocType.CONSUMIDOR_FINAL: "Consumidor Final"}
IVA_CONDITION_NAMES = {
    1: "IVA Responsable Inscripto",
    4: "IVA Sujeto Exento",
    5: "Consumidor Final",
    6: "Responsable Monotributo",
}


class IssuerInfo(BaseModel):
    cuit: int
    name: str
    address: str = ""
    iva_condition: str = "Responsable Monotributo"
    iibb: str = ""
    start_date: str = ""


class InvoiceLine(BaseModel):
    description: str
    quantity: str
    unit: str
    unit_price: str
    subtotal: str


class InvoiceView(BaseModel):
    """Todo lo que el PDF muestra, ya formateado. El maquetado no calcula nada."""
    filename: str
    letter: str
    type_code: str
    sales_point: str
    voucher_number: str
    issue_date: str
    issuer_name: str
    issuer_cuit: str
    issuer_address: str
    issuer_iva_condition: str
    issuer_iibb: str
    issuer_start_date: str
    receptor_name: str
    receptor_doc: str
    receptor_iva_condition: str
    concept: str
    service_period: Optional[str] = None
    payment_due: Optional[str] = None
    lines: List[InvoiceLine]
    total: str
    cae: str
    cae_expiry: str
    qr_payload: dict
    qr_url: str


def format_amount(value: Decimal) -> str:
    """5000.5 -> '5.000,50'"""
    text = f"{Decimal(value):,.2f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_quantity(value: Decimal) -> str:
    value = Decimal(value)
    if value == value.to_integral_value():
        return str(int(value))
    return format_amount(value)


def format_cuit(value) -> str:
    digits = str(value)
    if len(digits) != 11:
        return digits
    return f"{digits[:2]}-{digits[2:10]}-{digits[10]}"


def _or_placeholder(value) -> str:
    text = str(value).strip() if value is not None else ""
    return text or PLACEHOLDER


def document_filename(sales_point: int, voucher_number: int) -> str:
    return f"factura_{sales_point:05d}-{voucher_number:08d}.pdf"


def build_invoice_view(
    request: InvoiceRequest,
    result: AuthorizationResult,
    issuer: IssuerInfo,
    cuit_iva_condition: int = 1,
) -> InvoiceView:
    qr_payload = build_qr_payload(request, result, issuer.cuit)

    if request.doc_type == DocType.CONSUMIDOR_FINAL:
        receptor_doc = DOC_LABELS[DocType.CONSUMIDOR_FINAL]
    elif request.doc_type == DocType.CUIT:
        receptor_doc = f"CUIT {format_cuit(request.doc_number)}"
    else:
        receptor_doc = f"DNI {_or_placeholder(request.doc_number)}"

    service_period = None
    payment_due = None
    if request.includes_services:
        service_period = f"{request.service_from.strftime('%d/%m/%Y')} al {request.service_to.strftime('%d/%m/%Y')}"
        payment_due = request.payment_due.strftime("%d/%m/%Y")

    # Una sola línea: el subtotal es el total autorizado, no se recalcula
    line = InvoiceLine(
        description=_or_placeholder(request.description),
        quantity=format_quantity(request.quantity),
        unit=_or_placeholder(request.unit),
        unit_price=format_amount(request.effective_unit_price),
        subtotal=format_amount(request.total),
    )

    return InvoiceView(
        filename=document_filename(request.sales_point, result.voucher_number),
        letter=INVOICE_LETTERS.get(request.invoice_type, "X"),
        type_code=f"COD. {request.invoice_type:03d}",
        sales_point=f"{request.sales_point:05d}",
        voucher_number=f"{result.voucher_number:08d}",
        issue_date=request.issue_date.strftime("%d/%m/%Y"),
        issuer_name=_or_placeholder(issuer.name),
        issuer_cuit=format_cuit(issuer.cuit),
        issuer_address=_or_placeholder(issuer.address),
        issuer_iva_condition=_or_placeholder(issuer.iva_condition),
        issuer_iibb=_or_placeholder(issuer.iibb),
        issuer_start_date=_or_placeholder(issuer.start_date),
        receptor_name=_or_placeholder(request.payer_name),
        receptor_doc=receptor_doc,
        receptor_iva_condition=IVA_CONDITION_NAMES.get(
            cuit_iva_condition if request.doc_type == DocType.CUIT else 5, PLACEHOLDER
        ),
        concept=CONCEPT_NAMES.get(request.concept, str(request.concept)),
        service_period=service_period,
        payment_due=payment_due,
        lines=[line],
        total=format_amount(request.total),
        cae=result.cae,
        cae_expiry=result.cae_expiry.strftime("%d/%m/%Y"),
        qr_payload=dict(qr_payload),
        qr_url=build_qr_url(qr_payload),
    )
