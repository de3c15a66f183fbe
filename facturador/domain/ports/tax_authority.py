# facturador/domain/ports/tax_authority.py
from abc import ABC, abstractmethod

from facturador.domain.models.invoice import AuthorizationResult, InvoiceRequest


class TaxAuthority(ABC):
    """Puerto para la autorización de comprobantes electrónicos (AFIP)."""

    @abstractmethod
    def authorize(self, request: InvoiceRequest) -> AuthorizationResult:
        """
        Solicita el CAE para el siguiente comprobante disponible.
        No es idempotente: nunca debe reintentarse una vez enviada.
        """
        pass
