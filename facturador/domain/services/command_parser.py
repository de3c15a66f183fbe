# facturador/domain/services/command_parser.py
"""
Convierte el texto de un mensaje de chat en un InvoiceRequest.

Se aceptan dos formatos, elegidos según la forma del mensaje:

  * Delimitado:  ``Nombre | DNI 12345678 | Detalle | Total``
  * Por palabras clave:
    ``dni 30111222 cantidad 4 precio 12.500,00 unidad sesiones
    detalle Kinesiología desde 2025-02-01 hasta 20250228``
"""
import re
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel

from facturador.domain.models.errors import MalformedCommand
from facturador.domain.models.invoice import DocType, InvoiceRequest
from facturador.domain.services.normalizers import only_digits, parse_locale_amount, round2

DELIMITER = "|"
MIN_FIELDS = 4

USAGE = (
    "Enviame: Nombre | DNI o CUIT | Detalle | Total\n"
    "Ejemplo:\n"
    "Juan Perez | DNI 12345678 | Servicio de diseño | 5000\n\n"
    "También: dni 12345678 cantidad 2 precio 2500 detalle Sesión "
    "fecha 2025-03-01 desde 2025-02-01 hasta 2025-02-28"
)

_DOC_FIELD_RE = re.compile(r"(DNI|CUIT)\s*:?\s*(\d[\d.\-]*)", re.IGNORECASE)

# Orden importante: las variantes largas antes que sus prefijos
_KEYWORDS = {
    "dni": "dni",
    "cuit": "cuit",
    "nombre": "nombre",
    "cantidad": "cantidad",
    "cant": "cantidad",
    "precio": "precio",
    "unidad": "unidad",
    "detalle": "detalle",
    "descripción": "detalle",
    "descripcion": "detalle",
    "desc": "detalle",
    "fecha": "fecha",
    "desde": "desde",
    "hasta": "hasta",
}
_KEYWORD_RE = re.compile(
    r"(?<!\w)(" + "|".join(re.escape(k) for k in _KEYWORDS) + r")(?!\w)\s*[:=]?\s*",
    re.IGNORECASE,
)


class ParserDefaults(BaseModel):
    """Valores que el mensaje no trae y salen de la configuración."""
    sales_point: int = 1
    invoice_type: int = 11
    concept: int = 2
    default_description: str = "Servicios profesionales"


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def parse_date(value: str) -> date:
    """Acepta YYYY-MM-DD o YYYYMMDD."""
    token = value.strip()
    for fmt in ("%Y-%m-%d", "%Y%m%d"):
        try:
            return datetime.strptime(token, fmt).date()
        except ValueError:
            continue
    raise MalformedCommand(f"Fecha inválida: '{value}'. Usá AAAA-MM-DD o AAAAMMDD.")


def is_delimited(text: str) -> bool:
    return DELIMITER in text


def parse_command(
    text: str,
    defaults: Optional[ParserDefaults] = None,
    today: Optional[date] = None,
    request_id: Optional[str] = None,
) -> InvoiceRequest:
    """Elige la estrategia según la forma del mensaje."""
    defaults = defaults or ParserDefaults()
    today = today or date.today()
    request_id = request_id or new_request_id()
    text = (text or "").strip()
    if not text:
        raise MalformedCommand("Mensaje vacío.", request_id)
    if is_delimited(text):
        return parse_delimited(text, defaults, today, request_id)
    return parse_keywords(text, defaults, today, request_id)


def _parse_doc_field(field: str):
    match = _DOC_FIELD_RE.search(field)
    if match:
        return DocType(match.group(1).upper()), only_digits(match.group(2))
    # Sin prefijo se asume DNI
    return DocType.DNI, only_digits(field)


def _parse_amount(value: str, label: str, request_id: str) -> Decimal:
    try:
        amount = parse_locale_amount(value)
    except ValueError:
        raise MalformedCommand(f"{label} inválido: '{value}'.", request_id) from None
    if amount <= 0:
        raise MalformedCommand(f"{label} debe ser mayor a cero.", request_id)
    return amount


def parse_delimited(text: str, defaults: ParserDefaults, today: date, request_id: str) -> InvoiceRequest:
    parts = [p.strip() for p in text.split(DELIMITER)]
    if len(parts) < MIN_FIELDS or not all(parts[:MIN_FIELDS]):
        raise MalformedCommand(
            f"Se necesitan {MIN_FIELDS} campos separados por '{DELIMITER}'.", request_id
        )
    nombre, doc_field, detalle, total_str = parts[:MIN_FIELDS]
    doc_type, doc_number = _parse_doc_field(doc_field)
    total = round2(_parse_amount(total_str, "Total", request_id))

    return InvoiceRequest(
        request_id=request_id,
        issue_date=today,
        payer_name=nombre,
        doc_type=doc_type,
        doc_number=doc_number,
        description=detalle,
        total=total,
        sales_point=defaults.sales_point,
        invoice_type=defaults.invoice_type,
        concept=defaults.concept,
    )


def split_keywords(text: str) -> Dict[str, str]:
    """
    Devuelve {palabra_clave_canónica: valor}. Cada valor corre hasta la
    siguiente palabra clave reconocida; si una clave se repite, gana la última.
    """
    matches = list(_KEYWORD_RE.finditer(text))
    values: Dict[str, str] = {}
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        key = _KEYWORDS[match.group(1).lower()]
        values[key] = text[match.end():end].strip()
    return values


def _first_token(value: str) -> str:
    tokens = value.split()
    return tokens[0] if tokens else ""


def parse_keywords(text: str, defaults: ParserDefaults, today: date, request_id: str) -> InvoiceRequest:
    values = split_keywords(text)

    doc_type = None
    doc_number = ""
    for key, kind in (("cuit", DocType.CUIT), ("dni", DocType.DNI)):
        if key in values:
            match = re.match(r"\d[\d.\-]*", values[key])
            if match:
                doc_type, doc_number = kind, only_digits(match.group(0))
                break
    if doc_type is None:
        raise MalformedCommand(
            "Falta el documento. Indicá 'dni 12345678' o 'cuit 20123456786'.", request_id
        )

    if "precio" not in values:
        raise MalformedCommand("Falta el precio. Indicá 'precio 5000'.", request_id)
    unit_price = round2(_parse_amount(_first_token(values["precio"]), "Precio", request_id))

    quantity = Decimal("1")
    if "cantidad" in values:
        quantity = _parse_amount(_first_token(values["cantidad"]), "Cantidad", request_id)

    issue_date = parse_date(_first_token(values["fecha"])) if values.get("fecha") else today
    service_from = parse_date(_first_token(values["desde"])) if values.get("desde") else None
    service_to = parse_date(_first_token(values["hasta"])) if values.get("hasta") else None
    if service_from and service_to and service_from > service_to:
        raise MalformedCommand("La fecha 'desde' es posterior a 'hasta'.", request_id)

    unit = _first_token(values.get("unidad", "")) or None
    description = values.get("detalle") or defaults.default_description

    return InvoiceRequest(
        request_id=request_id,
        issue_date=issue_date,
        payer_name=values.get("nombre", ""),
        doc_type=doc_type,
        doc_number=doc_number,
        description=description,
        total=round2(quantity * unit_price),
        sales_point=defaults.sales_point,
        invoice_type=defaults.invoice_type,
        concept=defaults.concept,
        quantity=quantity,
        unit_price=unit_price,
        unit=unit,
        service_from=service_from,
        service_to=service_to,
    )
