# facturador/domain/ports/receptor_directory.py
from abc import ABC, abstractmethod
from typing import Optional

from facturador.domain.models.invoice import ReceptorInfo


class ReceptorDirectory(ABC):
    """Puerto opcional para completar datos del receptor (padrón de pacientes)."""
    @abstractmethod
    def lookup(self, doc_number: str) -> Optional[ReceptorInfo]:
        """Busca por número de documento. Retorna None si no existe."""
        pass
