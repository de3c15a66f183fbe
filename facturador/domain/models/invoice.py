# facturador/domain/models/invoice.py
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DocType(str, Enum):
    """Categoría del identificador del receptor."""
    DNI = "DNI"
    CUIT = "CUIT"
    CONSUMIDOR_FINAL = "CF"

    @property
    def afip_code(self) -> int:
        return {DocType.CUIT: 80, DocType.DNI: 96}.get(self, 99)


class InvoiceStatus(str, Enum):
    PENDIENTE = "PENDIENTE"
    EMITIDO = "EMITIDO"
    ERROR = "ERROR"


# Conceptos AFIP: 1 Productos, 2 Servicios, 3 Productos y Servicios
CONCEPTOS_CON_SERVICIOS = (2, 3)


class InvoiceRequest(BaseModel):
    """
    Pedido de factura armado a partir de un mensaje de chat. Es la única
    fuente de los importes: el PDF y el QR se construyen desde aquí.
    """
    request_id: str
    issue_date: date
    payer_name: str = ""
    doc_type: DocType = DocType.DNI
    doc_number: str = ""
    description: str
    total: Decimal = Field(ge=0)
    sales_point: int = Field(gt=0)
    invoice_type: int
    concept: int = 2

    # --- Campos opcionales / derivados ---
    quantity: Decimal = Decimal("1")
    unit_price: Optional[Decimal] = None
    unit: Optional[str] = None
    service_from: Optional[date] = None
    service_to: Optional[date] = None
    payment_due: Optional[date] = None

    @model_validator(mode="after")
    def _default_service_dates(self):
        if self.includes_services:
            for name in ("service_from", "service_to", "payment_due"):
                if getattr(self, name) is None:
                    setattr(self, name, self.issue_date)
        return self

    @property
    def includes_services(self) -> bool:
        return self.concept in CONCEPTOS_CON_SERVICIOS

    @property
    def effective_unit_price(self) -> Decimal:
        if self.unit_price is not None:
            return self.unit_price
        if not self.quantity:
            return self.total
        return (self.total / self.quantity).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class ReceptorInfo(BaseModel):
    """Datos de un receptor conocido (padrón de pacientes/clientes)."""
    doc_number: str
    name: str


class AuthorizationResult(BaseModel):
    cae: str
    cae_expiry: date
    voucher_number: int

    model_config = ConfigDict(frozen=True)


class InvoiceDocument(BaseModel):
    filename: str
    content: bytes
    qr_url: str
    qr_payload: dict
    mime_type: str = "application/pdf"


class IssuanceState(str, Enum):
    RECEIVED = "RECEIVED"
    PARSED = "PARSED"
    PARSE_FAILED = "PARSE_FAILED"
    LOGGED = "LOGGED"
    LEDGER_FAILED = "LEDGER_FAILED"
    AUTHORIZING = "AUTHORIZING"
    AUTHORIZED = "AUTHORIZED"
    AUTH_FAILED = "AUTH_FAILED"
    RENDERED = "RENDERED"
    ARCHIVED = "ARCHIVED"
    RECONCILED = "RECONCILED"
    RECONCILE_FAILED = "RECONCILE_FAILED"
    FAILED = "FAILED"


class IssuanceOutcome(BaseModel):
    """Resultado de procesar un mensaje de punta a punta."""
    request_id: str
    state: IssuanceState = IssuanceState.RECEIVED
    request: Optional[InvoiceRequest] = None
    authorization: Optional[AuthorizationResult] = None
    document_link: Optional[str] = None
    row_number: Optional[int] = None
    warnings: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def issued(self) -> bool:
        return self.authorization is not None
