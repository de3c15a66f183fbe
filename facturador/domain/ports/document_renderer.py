# facturador/domain/ports/document_renderer.py
from abc import ABC, abstractmethod

from facturador.domain.models.invoice import AuthorizationResult, InvoiceDocument, InvoiceRequest


class DocumentRenderer(ABC):
    @abstractmethod
    def render(self, request: InvoiceRequest, result: AuthorizationResult) -> InvoiceDocument:
        """Genera el PDF de la factura autorizada con su QR."""
        pass
