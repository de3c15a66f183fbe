# facturador/domain/services/authorization_payload.py
from datetime import date
from typing import Any, Dict

from facturador.domain.models.invoice import DocType, InvoiceRequest

# Condición frente al IVA del receptor (RG 5616)
IVA_CONSUMIDOR_FINAL = 5


def afip_date(value: date) -> int:
    return int(value.strftime("%Y%m%d"))


def build_voucher_payload(request: InvoiceRequest, cuit_iva_condition: int = 1) -> Dict[str, Any]:
    """
    Arma el comprobante para FECAESolicitar. El tipo soportado (Factura C) es
    exento de IVA: el neto es el total y no se informa alícuota.
    """
    total = float(request.total)
    iva_condition = cuit_iva_condition if request.doc_type == DocType.CUIT else IVA_CONSUMIDOR_FINAL

    data = {
        "CantReg": 1,
        "PtoVta": int(request.sales_point),
        "CbteTipo": int(request.invoice_type),
        "Concepto": int(request.concept),
        "DocTipo": request.doc_type.afip_code,
        "DocNro": int(request.doc_number or 0),
        "CbteFch": afip_date(request.issue_date),
        "ImpTotal": total,
        "ImpTotConc": 0,
        "ImpNeto": total,
        "ImpOpEx": 0,
        "ImpIVA": 0,
        "ImpTrib": 0,
        "MonId": "PES",
        "MonCotiz": 1,
        "CondicionIVAReceptorId": iva_condition,
    }
    if request.includes_services:
        data["FchServDesde"] = afip_date(request.service_from or request.issue_date)
        data["FchServHasta"] = afip_date(request.service_to or request.issue_date)
        data["FchVtoPago"] = afip_date(request.payment_due or request.issue_date)
    return data
