# facturador/application/use_cases/issue_invoice.py
import logging
from datetime import date
from typing import Callable, Optional

from pydantic import BaseModel

from facturador.application.ledger_bookkeeper import LedgerBookkeeper
from facturador.application.step_runner import StepRunner, Watchdog
from facturador.domain.models.errors import (
    ArchiveFailure,
    AuthorizationFailure,
    LedgerWriteFailure,
    MalformedCommand,
    ReconciliationFailure,
    RenderFailure,
    summarize_error,
)
from facturador.domain.models.invoice import (
    AuthorizationResult,
    InvoiceDocument,
    InvoiceRequest,
    IssuanceOutcome,
    IssuanceState,
)
from facturador.domain.ports.document_renderer import DocumentRenderer
from facturador.domain.ports.file_storage import FileStorage
from facturador.domain.ports.notification import Notification
from facturador.domain.ports.receptor_directory import ReceptorDirectory
from facturador.domain.ports.tax_authority import TaxAuthority
from facturador.domain.services.command_parser import USAGE, ParserDefaults, new_request_id, parse_command
from facturador.domain.services.invoice_view import format_amount
from facturador.domain.services.normalizers import CONSUMIDOR_FINAL_NRO, normalize_receptor

MSG_FORMAT_ERROR = "❌ Formato incorrecto. {error}\n\n" + USAGE
MSG_RECEIVED = "⏳ Recibido: factura para {name} por $ {total}. Registrando en la planilla..."
MSG_LEDGER_ERROR = "❌ No pude registrar la factura en la planilla: {error}"
MSG_SUBMITTING = "📨 Solicitando CAE a AFIP..."
MSG_AUTH_ERROR = "❌ AFIP no autorizó la factura: {error}"
MSG_AUTHORIZED = "✅ CAE {cae} obtenido. Generando el comprobante..."
MSG_RENDER_ERROR = "⚠️ La factura está emitida pero no pude generar el PDF: {error}"
MSG_ARCHIVING = "☁️ Guardando una copia en Drive..."
MSG_ARCHIVE_ERROR = "⚠️ No pude guardar la copia en Drive: {error}"
MSG_SUCCESS = "✅ Factura emitida\nCAE: {cae}\nVence: {expiry}\nNro: {sales_point:05d}-{voucher:08d}\nTotal: $ {total}"
MSG_LINK = "\nPDF: {link}"
MSG_STILL_WORKING = "⌛ Sigo trabajando en tu factura, AFIP está demorando. Te aviso apenas termine."
MSG_GENERIC_ERROR = "❌ No se pudo emitir. Revisá los datos y probá de nuevo."
MSG_ISSUED_WITH_ERROR = (
    "⚠️ La factura fue emitida (CAE {cae}) pero hubo un error al terminar el proceso. "
    "Revisá la planilla antes de volver a enviarla."
)

PRE_LEDGER_STATES = (
    IssuanceState.RECEIVED,
    IssuanceState.PARSED,
    IssuanceState.PARSE_FAILED,
    IssuanceState.LEDGER_FAILED,
)


class IssuanceTimeouts(BaseModel):
    """Tiempo máximo por paso, en segundos. None = sin límite."""
    ledger: Optional[float] = None
    authorization: Optional[float] = 20
    render: Optional[float] = 12
    archive: Optional[float] = 15
    notify: Optional[float] = 12
    watchdog: Optional[float] = 35


class IssueInvoiceUseCase:
    """
    Orquesta la emisión de una factura a partir de un mensaje:
    parseo -> fila PENDIENTE -> CAE -> PDF -> Drive -> fila EMITIDO -> aviso.

    Una vez obtenido el CAE la factura existe legalmente: nada de lo que
    falle después la revierte ni marca la fila como ERROR.
    """

    def __init__(
        self,
        bookkeeper: LedgerBookkeeper,
        tax_authority: TaxAuthority,
        notification_service: Notification,
        renderer: Optional[DocumentRenderer] = None,
        file_storage: Optional[FileStorage] = None,
        receptor_directory: Optional[ReceptorDirectory] = None,
        step_runner: Optional[StepRunner] = None,
        parser_defaults: Optional[ParserDefaults] = None,
        timeouts: Optional[IssuanceTimeouts] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.bookkeeper = bookkeeper
        self.tax_authority = tax_authority
        self.notification_service = notification_service
        self.renderer = renderer
        self.file_storage = file_storage
        self.receptor_directory = receptor_directory
        self.step_runner = step_runner or StepRunner()
        self.parser_defaults = parser_defaults or ParserDefaults()
        self.timeouts = timeouts or IssuanceTimeouts()
        self.today = today or date.today

    # --- avisos: nunca alteran el resultado del proceso ---

    def _notify(self, chat_id: int, text: str, request_id: str) -> None:
        try:
            self.step_runner.run(
                "notificación", self.notification_service.send_text, chat_id, text,
                timeout=self.timeouts.notify,
            )
        except Exception as e:
            logging.warning(f"[{request_id}] No se pudo avisar por Telegram: {summarize_error(e)}")

    def _send_document(self, chat_id: int, document: InvoiceDocument, caption: str, request_id: str) -> bool:
        try:
            self.step_runner.run(
                "envío de PDF", self.notification_service.send_document,
                chat_id, document.filename, document.content, caption,
                timeout=self.timeouts.notify,
            )
            return True
        except Exception as e:
            logging.warning(f"[{request_id}] No se pudo enviar el PDF por Telegram: {summarize_error(e)}")
            return False

    # --- pasos ---

    def _enrich(self, request: InvoiceRequest) -> InvoiceRequest:
        if self.receptor_directory is None or request.doc_number == CONSUMIDOR_FINAL_NRO:
            return request
        try:
            info = self.step_runner.run(
                "padrón", self.receptor_directory.lookup, request.doc_number,
                timeout=self.timeouts.ledger,
            )
        except Exception as e:
            logging.warning(f"[{request.request_id}] Falló la búsqueda en el padrón: {summarize_error(e)}")
            return request
        if info is None:
            logging.info(f"[{request.request_id}] Documento {request.doc_number} no figura en el padrón.")
            return request
        if not request.payer_name:
            return request.model_copy(update={"payer_name": info.name})
        return request

    def _append_pending(self, request: InvoiceRequest) -> None:
        try:
            self.step_runner.run(
                "planilla (alta)", self.bookkeeper.append_pending, request,
                timeout=self.timeouts.ledger,
            )
        except Exception as e:
            raise LedgerWriteFailure(summarize_error(e), request.request_id) from e

    def _authorize(self, request: InvoiceRequest) -> AuthorizationResult:
        # Sin reintentos: AFIP no garantiza que reenviar sea idempotente.
        # Hilo propio: un pedido encolado detrás de llamadas colgadas vencería
        # y luego llegaría a AFIP con la fila ya marcada ERROR.
        try:
            return self.step_runner.run(
                "AFIP", self.tax_authority.authorize, request,
                timeout=self.timeouts.authorization,
                isolated=True,
            )
        except Exception as e:
            raise AuthorizationFailure(summarize_error(e), request.request_id) from e

    def _render(self, request: InvoiceRequest, result: AuthorizationResult) -> InvoiceDocument:
        try:
            return self.step_runner.run(
                "PDF", self.renderer.render, request, result,
                timeout=self.timeouts.render,
            )
        except Exception as e:
            raise RenderFailure(summarize_error(e), request.request_id) from e

    def _archive(self, document: InvoiceDocument, request_id: str) -> str:
        try:
            return self.step_runner.run(
                "Drive", self.file_storage.upload_document, document,
                timeout=self.timeouts.archive,
            )
        except Exception as e:
            raise ArchiveFailure(summarize_error(e), request_id) from e

    def _reconcile(self, request_id: str, result: AuthorizationResult, link: Optional[str]) -> int:
        try:
            row_number = self.step_runner.run(
                "planilla (resultado)", self.bookkeeper.mark_emitted, request_id, result, link,
                timeout=self.timeouts.ledger,
            )
        except Exception as e:
            raise ReconciliationFailure(summarize_error(e), request_id) from e
        if row_number is None:
            raise ReconciliationFailure("No se encontró la fila PENDIENTE a actualizar.", request_id)
        return row_number

    def _mark_error(self, request_id: str, message: str) -> None:
        try:
            self.step_runner.run(
                "planilla (error)", self.bookkeeper.mark_error, request_id, message,
                timeout=self.timeouts.ledger,
            )
        except Exception as e:
            logging.error(f"[{request_id}] No se pudo marcar la fila como ERROR: {summarize_error(e)}")

    # --- flujo principal ---

    def execute(self, chat_id: int, text: str) -> IssuanceOutcome:
        request_id = new_request_id()
        outcome = IssuanceOutcome(request_id=request_id)
        logging.info(f"[{request_id}] >>> Mensaje recibido del chat {chat_id}.")

        with Watchdog(self.timeouts.watchdog, lambda: self._notify(chat_id, MSG_STILL_WORKING, request_id)):
            try:
                self._run(chat_id, text, outcome)
            except Exception as e:
                logging.error(f"[{request_id}] Error inesperado en el proceso.", exc_info=True)
                outcome.error = summarize_error(e)
                if outcome.state not in PRE_LEDGER_STATES and not outcome.issued:
                    self._mark_error(request_id, outcome.error)
                if outcome.issued:
                    outcome.warnings.append(outcome.error)
                    self._notify(
                        chat_id, MSG_ISSUED_WITH_ERROR.format(cae=outcome.authorization.cae), request_id
                    )
                else:
                    outcome.state = IssuanceState.FAILED
                    self._notify(chat_id, MSG_GENERIC_ERROR, request_id)

        logging.info(f"[{request_id}] <<< Fin del proceso: {outcome.state.value}.")
        return outcome

    def _run(self, chat_id: int, text: str, outcome: IssuanceOutcome) -> None:
        request_id = outcome.request_id

        # 1. Parseo
        try:
            request = parse_command(text, self.parser_defaults, today=self.today(), request_id=request_id)
        except MalformedCommand as e:
            outcome.state = IssuanceState.PARSE_FAILED
            outcome.error = str(e)
            logging.info(f"[{request_id}] Mensaje con formato inválido: {e}")
            self._notify(chat_id, MSG_FORMAT_ERROR.format(error=e), request_id)
            return
        outcome.state = IssuanceState.PARSED

        # 2. Receptor y fila PENDIENTE
        request = self._enrich(normalize_receptor(request))
        outcome.request = request
        self._notify(
            chat_id,
            MSG_RECEIVED.format(name=request.payer_name or "Consumidor Final", total=format_amount(request.total)),
            request_id,
        )
        try:
            self._append_pending(request)
        except LedgerWriteFailure as e:
            outcome.state = IssuanceState.LEDGER_FAILED
            outcome.error = str(e)
            logging.error(f"[{request_id}] No se pudo registrar la fila PENDIENTE: {e}")
            self._notify(chat_id, MSG_LEDGER_ERROR.format(error=e), request_id)
            return
        outcome.state = IssuanceState.LOGGED
        logging.info(f"[{request_id}] Fila PENDIENTE registrada.")

        # 3. CAE
        outcome.state = IssuanceState.AUTHORIZING
        self._notify(chat_id, MSG_SUBMITTING, request_id)
        try:
            result = self._authorize(request)
        except AuthorizationFailure as e:
            outcome.state = IssuanceState.AUTH_FAILED
            outcome.error = str(e)
            logging.error(f"[{request_id}] AFIP no autorizó el comprobante: {e}")
            self._mark_error(request_id, outcome.error)
            self._notify(chat_id, MSG_AUTH_ERROR.format(error=e), request_id)
            return
        outcome.authorization = result
        outcome.state = IssuanceState.AUTHORIZED
        logging.info(f"[{request_id}] CAE {result.cae} para el comprobante {result.voucher_number}.")
        self._notify(chat_id, MSG_AUTHORIZED.format(cae=result.cae), request_id)

        # 4. PDF (no bloquea)
        document = None
        if self.renderer is not None:
            try:
                document = self._render(request, result)
                outcome.state = IssuanceState.RENDERED
            except RenderFailure as e:
                outcome.warnings.append(str(e))
                logging.warning(f"[{request_id}] No se pudo generar el PDF: {e}")
                self._notify(chat_id, MSG_RENDER_ERROR.format(error=e), request_id)

        # 5. Drive (opcional, no bloquea)
        if document is not None and self.file_storage is not None:
            self._notify(chat_id, MSG_ARCHIVING, request_id)
            try:
                outcome.document_link = self._archive(document, request_id)
                outcome.state = IssuanceState.ARCHIVED
            except ArchiveFailure as e:
                outcome.warnings.append(str(e))
                logging.warning(f"[{request_id}] No se pudo archivar en Drive: {e}")
                self._notify(chat_id, MSG_ARCHIVE_ERROR.format(error=e), request_id)

        # 6. Planilla: PENDIENTE -> EMITIDO
        try:
            outcome.row_number = self._reconcile(request_id, result, outcome.document_link)
            outcome.state = IssuanceState.RECONCILED
            logging.info(f"[{request_id}] Fila {outcome.row_number} actualizada a EMITIDO.")
        except ReconciliationFailure as e:
            outcome.state = IssuanceState.RECONCILE_FAILED
            outcome.warnings.append(str(e))
            logging.error(f"[{request_id}] Factura emitida pero la planilla quedó sin actualizar: {e}")

        # 7. Aviso final: la factura existe aunque la planilla no se haya actualizado
        message = MSG_SUCCESS.format(
            cae=result.cae,
            expiry=result.cae_expiry.strftime("%d/%m/%Y"),
            sales_point=request.sales_point,
            voucher=result.voucher_number,
            total=format_amount(request.total),
        )
        if outcome.document_link:
            message += MSG_LINK.format(link=outcome.document_link)
        self._notify(chat_id, message, request_id)
        if document is not None:
            self._send_document(chat_id, document, f"Factura {request.sales_point:05d}-{result.voucher_number:08d}", request_id)
