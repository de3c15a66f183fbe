# facturador/domain/services/compliance_qr.py
import base64
import json
from collections import OrderedDict

from facturador.domain.models.invoice import AuthorizationResult, InvoiceRequest

AFIP_QR_URL = "https://www.afip.gob.ar/fe/qr/?p="


def _numeric_or_text(value: str):
    return int(value) if str(value).isdigit() else str(value)


def build_qr_payload(request: InvoiceRequest, result: AuthorizationResult, issuer_cuit: int) -> "OrderedDict[str, object]":
    """
    Datos del QR de comprobantes electrónicos (RG 4291). Solo depende del
    comprobante autorizado: no incluye ninguna marca de tiempo de generación.
    """
    return OrderedDict([
        ("ver", 1),
        ("fecha", request.issue_date.isoformat()),
        ("cuit", int(issuer_cuit)),
        ("ptoVta", int(request.sales_point)),
        ("tipoCmp", int(request.invoice_type)),
        ("nroCmp", int(result.voucher_number)),
        ("importe", float(request.total)),
        ("moneda", "PES"),
        ("ctz", 1),
        ("tipoDocRec", request.doc_type.afip_code),
        ("nroDocRec", int(request.doc_number or 0)),
        ("tipoCodAut", "E"),
        ("codAut", _numeric_or_text(result.cae)),
    ])


def encode_qr_payload(payload) -> str:
    raw = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def build_qr_url(payload) -> str:
    return AFIP_QR_URL + encode_qr_payload(payload)
