# facturador/domain/services/normalizers.py
import logging
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from facturador.domain.models.invoice import DocType, InvoiceRequest

CUIT_WEIGHTS = [5, 4, 3, 2, 7, 6, 5, 4, 3, 2]
DNI_LENGTHS = (7, 8)
CONSUMIDOR_FINAL_NRO = "0"
_CENTS = Decimal("0.01")


def only_digits(value) -> str:
    return re.sub(r"\D", "", str(value or ""))


def parse_locale_amount(text) -> Decimal:
    """
    Convierte un importe escrito a mano en un Decimal.

    - '.' y ',' presentes: el separador que aparece último es el decimal
      ("5.000,50" y "5,000.50" dan 5000.50).
    - solo ',': la coma es decimal y los puntos no existen ("5000,50").
    - solo '.' o ninguno: se descarta todo lo que no sea dígito o punto; si
      queda más de un punto son separadores de miles ("1.234.567").

    Lanza ValueError si no queda ningún dígito.
    """
    raw = str(text or "").strip()
    if "." in raw and "," in raw:
        if raw.rfind(",") > raw.rfind("."):
            raw = raw.replace(".", "").replace(",", ".")
        else:
            raw = raw.replace(",", "")
    elif "," in raw:
        raw = raw.replace(",", ".")

    cleaned = re.sub(r"[^\d.]", "", raw)
    if cleaned.count(".") > 1:
        cleaned = cleaned.replace(".", "")
    if not re.search(r"\d", cleaned):
        raise ValueError(f"Importe inválido: {text!r}")
    try:
        return Decimal(cleaned)
    except InvalidOperation as e:
        raise ValueError(f"Importe inválido: {text!r}") from e


def round2(value) -> Decimal:
    """
    Redondeo comercial (mitad hacia arriba) a 2 decimales. Los float pasan por
    su representación más corta, de modo que 1.005 redondea a 1.01 y no a 1.00.
    """
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    else:
        amount = Decimal(str(value))
    return amount.quantize(_CENTS, rounding=ROUND_HALF_UP)


def validate_cuit(value) -> bool:
    """Dígito verificador módulo 11 de un CUIT/CUIL."""
    digits = only_digits(value)
    if len(digits) != 11:
        return False
    total = sum(int(d) * w for d, w in zip(digits[:10], CUIT_WEIGHTS))
    check = 11 - (total % 11)
    if check == 11:
        check = 0
    elif check == 10:
        check = 9
    return check == int(digits[10])


def is_valid_dni(value) -> bool:
    return len(only_digits(value)) in DNI_LENGTHS


def normalize_receptor(request: InvoiceRequest) -> InvoiceRequest:
    """
    Garantiza que el par (tipo, número) de documento sea aceptable para AFIP.
    Nunca falla: ante cualquier inconsistencia factura a Consumidor Final.
    """
    doc_number = only_digits(request.doc_number)
    if request.doc_type == DocType.CUIT and validate_cuit(doc_number):
        return request.model_copy(update={"doc_number": doc_number})
    if request.doc_type == DocType.DNI and is_valid_dni(doc_number):
        return request.model_copy(update={"doc_number": doc_number})

    if request.doc_type != DocType.CONSUMIDOR_FINAL or request.doc_number != CONSUMIDOR_FINAL_NRO:
        logging.warning(
            f"[{request.request_id}] Documento {request.doc_type.value} '{request.doc_number}' "
            f"inválido. Se factura a Consumidor Final."
        )
    return request.model_copy(update={
        "doc_type": DocType.CONSUMIDOR_FINAL,
        "doc_number": CONSUMIDOR_FINAL_NRO,
    })
