import time
from datetime import date
from decimal import Decimal
from typing import List, Optional

import pytest

from facturador.application.ledger_bookkeeper import LedgerBookkeeper
from facturador.application.step_runner import StepRunner
from facturador.application.use_cases.issue_invoice import IssuanceTimeouts, IssueInvoiceUseCase
from facturador.domain.models.invoice import (
    AuthorizationResult,
    DocType,
    InvoiceDocument,
    InvoiceRequest,
    ReceptorInfo,
)
from facturador.domain.models.ledger import LEDGER_COLUMNS
from facturador.domain.ports.document_renderer import DocumentRenderer
from facturador.domain.ports.file_storage import FileStorage
from facturador.domain.ports.invoice_ledger import InvoiceLedger
from facturador.domain.ports.notification import Notification
from facturador.domain.ports.receptor_directory import ReceptorDirectory
from facturador.domain.ports.tax_authority import TaxAuthority

TODAY = date(2025, 3, 10)
CHAT_ID = 424242


class FakeLedger(InvoiceLedger):
    def __init__(self, rows: Optional[List[List[str]]] = None, fail_append: Optional[Exception] = None):
        self.rows = [list(LEDGER_COLUMNS)] + [list(r) for r in (rows or [])]
        self.fail_append = fail_append
        self.fail_update: Optional[Exception] = None
        self.updates = []

    def append_row(self, values):
        if self.fail_append:
            raise self.fail_append
        self.rows.append(list(values))

    def read_rows(self):
        # La API no devuelve las celdas vacías del final
        result = []
        for row in self.rows:
            trimmed = list(row)
            while trimmed and trimmed[-1] == "":
                trimmed.pop()
            result.append(trimmed)
        return result

    def update_row(self, row_number, first_column, values):
        if self.fail_update:
            raise self.fail_update
        self.updates.append((row_number, first_column, list(values)))
        row = self.rows[row_number - 1]
        row.extend([""] * (first_column + len(values) - len(row)))
        row[first_column:first_column + len(values)] = values

    def row(self, row_number):
        return self.rows[row_number - 1]


class FakeTaxAuthority(TaxAuthority):
    def __init__(self, result=None, error: Optional[Exception] = None, delay: float = 0, on_call=None):
        self.result = result or AuthorizationResult(
            cae="75123456789012", cae_expiry=date(2025, 3, 20), voucher_number=154
        )
        self.error = error
        self.delay = delay
        self.on_call = on_call
        self.requests = []

    def authorize(self, request):
        self.requests.append(request)
        if self.on_call:
            self.on_call(request)
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


class FakeRenderer(DocumentRenderer):
    def __init__(self, error: Optional[Exception] = None, delay: float = 0):
        self.error = error
        self.delay = delay
        self.calls = 0

    def render(self, request, result):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return InvoiceDocument(
            filename=f"factura_{request.sales_point:05d}-{result.voucher_number:08d}.pdf",
            content=b"%PDF-1.4 fake",
            qr_url="https://www.afip.gob.ar/fe/qr/?p=abc",
            qr_payload={},
        )


class FakeStorage(FileStorage):
    def __init__(self, error: Optional[Exception] = None, link="https://drive.google.com/file/d/abc/view", delay: float = 0):
        self.error = error
        self.delay = delay
        self.link = link
        self.uploaded = []

    def upload_document(self, document):
        self.uploaded.append(document)
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.link


class FakeNotification(Notification):
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.messages = []
        self.documents = []

    def send_text(self, chat_id, text):
        if self.error:
            raise self.error
        self.messages.append((chat_id, text))
        return {"ok": True}

    def send_document(self, chat_id, filename, content, caption=None):
        if self.error:
            raise self.error
        self.documents.append((chat_id, filename, content, caption))
        return {"ok": True}

    @property
    def texts(self):
        return [text for _, text in self.messages]


class FakeDirectory(ReceptorDirectory):
    def __init__(self, known=None, error: Optional[Exception] = None):
        self.known = known or {}
        self.error = error

    def lookup(self, doc_number):
        if self.error:
            raise self.error
        name = self.known.get(doc_number)
        return ReceptorInfo(doc_number=doc_number, name=name) if name else None


@pytest.fixture
def step_runner():
    runner = StepRunner(max_workers=4)
    yield runner
    runner.shutdown()


@pytest.fixture
def make_use_case(step_runner):
    def factory(
        ledger=None,
        tax_authority=None,
        notification=None,
        renderer=None,
        storage=None,
        directory=None,
        match_strategy="request_id",
        timeouts=None,
    ):
        return IssueInvoiceUseCase(
            bookkeeper=LedgerBookkeeper(ledger if ledger is not None else FakeLedger(), match_strategy),
            tax_authority=tax_authority or FakeTaxAuthority(),
            notification_service=notification or FakeNotification(),
            renderer=renderer,
            file_storage=storage,
            receptor_directory=directory,
            step_runner=step_runner,
            timeouts=timeouts or IssuanceTimeouts(watchdog=None),
            today=lambda: TODAY,
        )
    return factory


@pytest.fixture
def sample_request():
    return InvoiceRequest(
        request_id="req000000001",
        issue_date=TODAY,
        payer_name="Juan Perez",
        doc_type=DocType.DNI,
        doc_number="12345678",
        description="Servicio de diseño",
        total=Decimal("5000.00"),
        sales_point=1,
        invoice_type=11,
        concept=2,
    )


@pytest.fixture
def sample_result():
    return AuthorizationResult(cae="75123456789012", cae_expiry=date(2025, 3, 20), voucher_number=154)
