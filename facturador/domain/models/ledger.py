# facturador/domain/models/ledger.py
from datetime import date
from typing import List, Optional

from facturador.domain.models.invoice import AuthorizationResult, InvoiceRequest, InvoiceStatus

# Columnas de la planilla (A..P). La fila 1 es el encabezado.
LEDGER_COLUMNS = [
    "fecha",            # A
    "cliente_nombre",   # B
    "doc_tipo",         # C
    "doc_nro",          # D
    "concepto",         # E
    "detalle",          # F
    "total",            # G
    "pto_vta",          # H
    "cbte_tipo",        # I
    "estado",           # J
    "cae",              # K
    "cae_vto",          # L
    "nro_comprobante",  # M
    "mensaje",          # N
    "link_pdf",         # O
    "request_id",       # P
]

STATUS_COLUMN = LEDGER_COLUMNS.index("estado")
REQUEST_ID_COLUMN = LEDGER_COLUMNS.index("request_id")
# El resultado se escribe de 'estado' a 'link_pdf' (J..O)
RESULT_FIRST_COLUMN = STATUS_COLUMN
RESULT_LAST_COLUMN = LEDGER_COLUMNS.index("link_pdf")
HEADER_ROWS = 1


def column_letter(index: int) -> str:
    """0 -> 'A', 25 -> 'Z', 26 -> 'AA'."""
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def pending_row(request: InvoiceRequest) -> List[str]:
    """Fila a insertar, siempre en estado PENDIENTE."""
    return [
        request.issue_date.isoformat(),
        request.payer_name,
        request.doc_type.value,
        request.doc_number,
        str(request.concept),
        request.description,
        f"{request.total:.2f}",
        str(request.sales_point),
        str(request.invoice_type),
        InvoiceStatus.PENDIENTE.value,
        "", "", "", "", "",
        request.request_id,
    ]


def emitted_values(result: AuthorizationResult, document_link: Optional[str] = None) -> List[str]:
    return [
        InvoiceStatus.EMITIDO.value,
        result.cae,
        result.cae_expiry.isoformat() if isinstance(result.cae_expiry, date) else str(result.cae_expiry),
        str(result.voucher_number),
        "",
        document_link or "",
    ]


def error_values(message: str) -> List[str]:
    return [InvoiceStatus.ERROR.value, "", "", "", message, ""]


def cell(row: List[str], index: int) -> str:
    # La API de Sheets omite las celdas vacías al final de cada fila
    return str(row[index]).strip() if index < len(row) else ""
