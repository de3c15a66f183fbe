# facturador/infrastructure/external/afip_adapter.py
import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from afip import Afip

import config
from facturador.domain.models.invoice import AuthorizationResult, InvoiceRequest
from facturador.domain.ports.tax_authority import TaxAuthority
from facturador.domain.services.authorization_payload import build_voucher_payload


def parse_cae_expiry(value) -> date:
    """AFIP informa el vencimiento como YYYYMMDD; el SDK lo devuelve como YYYY-MM-DD."""
    if isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in ("%Y-%m-%d", "%Y%m%d"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Vencimiento de CAE inválido: {value!r}")


class AfipAdapter(TaxAuthority):
    """
    Adaptador del servicio WSFE de AFIP a través de Afip SDK. Sin certificado
    ni clave trabaja en homologación con el CUIT de prueba.
    """

    def __init__(
        self,
        cuit: Optional[int] = None,
        production: Optional[bool] = None,
        cert: Optional[str] = None,
        key: Optional[str] = None,
        access_token: Optional[str] = None,
        cuit_iva_condition: Optional[int] = None,
        client=None,
    ):
        self.cuit = cuit or config.AFIP_CUIT
        self.production = config.AFIP_PROD if production is None else production
        self.cuit_iva_condition = cuit_iva_condition or config.AFIP_CUIT_IVA_CONDITION

        if client is None:
            options: Dict[str, Any] = {"CUIT": self.cuit, "production": self.production}
            cert = cert or config.AFIP_CERT
            key = key or config.AFIP_KEY
            access_token = access_token or config.AFIP_SDK_ACCESS_TOKEN
            if cert and key:
                options["cert"] = cert
                options["key"] = key
            if access_token:
                options["access_token"] = access_token
            client = Afip(options)
        self.afip = client

    def authorize(self, request: InvoiceRequest) -> AuthorizationResult:
        data = build_voucher_payload(request, self.cuit_iva_condition)
        entorno = "producción" if self.production else "homologación"
        logging.info(
            f"[{request.request_id}] Solicitando CAE en {entorno}: "
            f"PtoVta {data['PtoVta']} CbteTipo {data['CbteTipo']} ImpTotal {data['ImpTotal']}"
        )

        # Crea el siguiente comprobante disponible
        res = self.afip.ElectronicBilling.createNextVoucher(data)
        if not res or not res.get("CAE"):
            raise ValueError(f"Respuesta de AFIP sin CAE: {res}")

        return AuthorizationResult(
            cae=str(res["CAE"]),
            cae_expiry=parse_cae_expiry(res["CAEFchVto"]),
            voucher_number=int(res["voucher_number"]),
        )
