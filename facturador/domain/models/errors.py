# facturador/domain/models/errors.py
import re
from typing import Optional

MAX_ERROR_LENGTH = 500


def summarize_error(error, limit: int = MAX_ERROR_LENGTH) -> str:
    """
    Reduce cualquier error externo (excepción, respuesta de API, texto) a un
    mensaje legible de longitud acotada, apto para la planilla y el chat.
    """
    if isinstance(error, BaseException):
        text = str(error).strip() or error.__class__.__name__
    else:
        text = str(error or "").strip()
    text = re.sub(r"\s+", " ", text)
    if len(text) > limit:
        text = text[: limit - 1].rstrip() + "…"
    return text


class FacturadorError(Exception):
    """Error base del proceso de facturación."""

    def __init__(self, message: str, request_id: Optional[str] = None):
        super().__init__(summarize_error(message))
        self.request_id = request_id


class MalformedCommand(FacturadorError):
    """El mensaje del usuario no respeta ninguno de los formatos aceptados."""


class LedgerWriteFailure(FacturadorError):
    """No se pudo registrar la fila PENDIENTE; no se solicita CAE."""


class AuthorizationFailure(FacturadorError):
    """AFIP rechazó el comprobante o no respondió a tiempo."""


class RenderFailure(FacturadorError):
    pass


class ArchiveFailure(FacturadorError):
    pass


class ReconciliationFailure(FacturadorError):
    """La factura fue emitida pero no se pudo actualizar su fila en la planilla."""


class StepTimeout(TimeoutError):
    """
    Un paso externo superó su tiempo máximo. Si la llamada ya había empezado
    sigue en curso (started=True); si seguía en cola se canceló y nunca se envió.
    """

    def __init__(self, step: str, timeout: float, started: bool = True):
        detail = "la llamada sigue en curso" if started else "la llamada se canceló sin enviarse"
        super().__init__(f"Tiempo de espera agotado en '{step}' ({timeout:g}s); {detail}")
        self.step = step
        self.timeout = timeout
        self.started = started
