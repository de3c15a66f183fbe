# facturador/domain/ports/file_storage.py
from abc import ABC, abstractmethod

from facturador.domain.models.invoice import InvoiceDocument


class FileStorage(ABC):
    """Puerto para el almacenamiento de archivos en la nube."""
    @abstractmethod
    def upload_document(self, document: InvoiceDocument) -> str:
        """
        Sube el comprobante y retorna un enlace para compartirlo.
        """
        pass
