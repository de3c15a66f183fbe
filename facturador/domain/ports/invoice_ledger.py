# facturador/domain/ports/invoice_ledger.py
from abc import ABC, abstractmethod
from typing import List


class InvoiceLedger(ABC):
    """
    Puerto para el libro de facturas (planilla). Es un almacén sin lógica:
    quién escribe qué fila lo decide la capa de aplicación.
    """

    @abstractmethod
    def append_row(self, values: List[str]) -> None:
        """Agrega una fila al final del libro."""
        pass

    @abstractmethod
    def read_rows(self) -> List[List[str]]:
        """
        Devuelve todas las filas, encabezado incluido, en orden.
        Las celdas vacías al final de una fila pueden no estar presentes.
        """
        pass

    @abstractmethod
    def update_row(self, row_number: int, first_column: int, values: List[str]) -> None:
        """
        Sobrescribe `values` en la fila `row_number` (1-based, como en la
        planilla) a partir de la columna `first_column` (0-based).
        """
        pass
