# facturador/application/ledger_bookkeeper.py
"""
Ciclo de vida de las filas del libro: alta en PENDIENTE y una única
actualización a EMITIDO o ERROR.

Para encontrar la fila a actualizar hay dos estrategias:

  * ``request_id`` (por defecto): busca la fila cuya columna P coincide con
    el identificador generado al parsear el mensaje. Es segura con pedidos
    concurrentes.
  * ``last_pending``: busca, de abajo hacia arriba, la última fila en estado
    PENDIENTE. Es el comportamiento histórico de la planilla y con dos
    pedidos en curso puede escribir el resultado de uno en la fila del otro.
"""
import logging
from typing import List, Optional

from facturador.domain.models.invoice import AuthorizationResult, InvoiceRequest, InvoiceStatus
from facturador.domain.models.ledger import (
    HEADER_ROWS,
    REQUEST_ID_COLUMN,
    RESULT_FIRST_COLUMN,
    STATUS_COLUMN,
    cell,
    emitted_values,
    error_values,
    pending_row,
)
from facturador.domain.ports.invoice_ledger import InvoiceLedger

MATCH_BY_REQUEST_ID = "request_id"
MATCH_LAST_PENDING = "last_pending"
MATCH_STRATEGIES = (MATCH_BY_REQUEST_ID, MATCH_LAST_PENDING)


def find_row_by_request_id(rows: List[List[str]], request_id: str) -> Optional[int]:
    """Número de fila (1-based) de la fila PENDIENTE con ese request_id."""
    for i in range(len(rows) - 1, HEADER_ROWS - 1, -1):
        row = rows[i]
        if cell(row, REQUEST_ID_COLUMN) == request_id and cell(row, STATUS_COLUMN) == InvoiceStatus.PENDIENTE.value:
            return i + 1
    return None


def find_last_pending_row(rows: List[List[str]]) -> Optional[int]:
    for i in range(len(rows) - 1, HEADER_ROWS - 1, -1):
        if cell(rows[i], STATUS_COLUMN) == InvoiceStatus.PENDIENTE.value:
            return i + 1
    return None


class LedgerBookkeeper:
    def __init__(self, ledger: InvoiceLedger, match_strategy: str = MATCH_BY_REQUEST_ID):
        if match_strategy not in MATCH_STRATEGIES:
            raise ValueError(f"Estrategia de búsqueda desconocida: {match_strategy}")
        self.ledger = ledger
        self.match_strategy = match_strategy

    def append_pending(self, request: InvoiceRequest) -> None:
        self.ledger.append_row(pending_row(request))

    def locate(self, request_id: str) -> Optional[int]:
        rows = self.ledger.read_rows()
        if self.match_strategy == MATCH_LAST_PENDING:
            return find_last_pending_row(rows)
        return find_row_by_request_id(rows, request_id)

    def _write_result(self, request_id: str, values: List[str]) -> Optional[int]:
        row_number = self.locate(request_id)
        if row_number is None:
            logging.warning(f"[{request_id}] No se encontró la fila PENDIENTE ({self.match_strategy}).")
            return None
        self.ledger.update_row(row_number, RESULT_FIRST_COLUMN, values)
        return row_number

    def mark_emitted(self, request_id: str, result: AuthorizationResult, document_link: Optional[str] = None) -> Optional[int]:
        """Retorna el número de fila actualizada, o None si no se encontró."""
        return self._write_result(request_id, emitted_values(result, document_link))

    def mark_error(self, request_id: str, message: str) -> Optional[int]:
        return self._write_result(request_id, error_values(message))
