# facturador/infrastructure/external/google_sheets_adapter.py
import logging
from typing import List, Optional

from googleapiclient.discovery import build

import config
from facturador.domain.models.invoice import ReceptorInfo
from facturador.domain.models.ledger import column_letter
from facturador.domain.ports.invoice_ledger import InvoiceLedger
from facturador.domain.ports.receptor_directory import ReceptorDirectory
from facturador.domain.services.normalizers import only_digits
from .google_auth import get_google_credentials


def build_sheets_service():
    return build('sheets', 'v4', credentials=get_google_credentials(), cache_discovery=False)


class GoogleSheetsLedger(InvoiceLedger):
    """Libro de facturas sobre una pestaña de Google Sheets (columnas A:P)."""

    def __init__(self, sheet_id: Optional[str] = None, sheet_name: Optional[str] = None, service=None):
        self.sheet_id = sheet_id or config.SHEET_ID
        self.sheet_name = sheet_name or config.SHEET_NAME
        if not self.sheet_id:
            raise ValueError("Falta SHEET_ID para el libro de facturas")
        self.service = service or build_sheets_service()

    def _range(self, a1: str) -> str:
        return f"'{self.sheet_name}'!{a1}"

    def append_row(self, values: List[str]) -> None:
        response = self.service.spreadsheets().values().append(
            spreadsheetId=self.sheet_id,
            range=self._range("A:Z"),
            valueInputOption='RAW',
            insertDataOption='INSERT_ROWS',
            body={'values': [values]},
        ).execute()
        logging.info(f"Fila agregada en {response.get('updates', {}).get('updatedRange')}")

    def read_rows(self) -> List[List[str]]:
        response = self.service.spreadsheets().values().get(
            spreadsheetId=self.sheet_id,
            range=self._range("A:Z"),
        ).execute()
        return response.get('values', [])

    def update_row(self, row_number: int, first_column: int, values: List[str]) -> None:
        first = column_letter(first_column)
        last = column_letter(first_column + len(values) - 1)
        self.service.spreadsheets().values().update(
            spreadsheetId=self.sheet_id,
            range=self._range(f"{first}{row_number}:{last}{row_number}"),
            valueInputOption='RAW',
            body={'values': [values]},
        ).execute()


class GoogleSheetsReceptorDirectory(ReceptorDirectory):
    """
    Padrón de pacientes en otra pestaña de la misma planilla.
    Columnas esperadas: A documento, B nombre. La fila 1 es el encabezado.
    """

    def __init__(self, sheet_id: Optional[str] = None, sheet_name: Optional[str] = None, service=None):
        self.sheet_id = sheet_id or config.SHEET_ID
        self.sheet_name = sheet_name or config.PACIENTES_SHEET_NAME
        if not self.sheet_id or not self.sheet_name:
            raise ValueError("Faltan SHEET_ID o PACIENTES_SHEET_NAME para el padrón")
        self.service = service or build_sheets_service()

    def lookup(self, doc_number: str) -> Optional[ReceptorInfo]:
        wanted = only_digits(doc_number)
        response = self.service.spreadsheets().values().get(
            spreadsheetId=self.sheet_id,
            range=f"'{self.sheet_name}'!A:B",
        ).execute()
        for row in response.get('values', [])[1:]:
            if len(row) >= 2 and only_digits(row[0]) == wanted and row[1].strip():
                return ReceptorInfo(doc_number=wanted, name=row[1].strip())
        return None
