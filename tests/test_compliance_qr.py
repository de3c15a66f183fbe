import base64
import json
from datetime import date
from decimal import Decimal

from facturador.domain.models.invoice import DocType
from facturador.domain.services.authorization_payload import build_voucher_payload
from facturador.domain.services.compliance_qr import AFIP_QR_URL, build_qr_payload, build_qr_url


def decode(url):
    encoded = url[len(AFIP_QR_URL):]
    padded = encoded + "=" * (-len(encoded) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8")


def test_qr_payload_fields_and_order(sample_request, sample_result):
    payload = build_qr_payload(sample_request, sample_result, 20409378472)
    assert list(payload) == [
        "ver", "fecha", "cuit", "ptoVta", "tipoCmp", "nroCmp", "importe",
        "moneda", "ctz", "tipoDocRec", "nroDocRec", "tipoCodAut", "codAut",
    ]
    assert payload["fecha"] == "2025-03-10"
    assert payload["nroCmp"] == 154
    assert payload["importe"] == 5000.0
    assert payload["tipoDocRec"] == 96
    assert payload["nroDocRec"] == 12345678
    assert payload["codAut"] == 75123456789012


def test_qr_url_is_unpadded_base64url_of_compact_json(sample_request, sample_result):
    url = build_qr_url(build_qr_payload(sample_request, sample_result, 20409378472))
    assert url.startswith(AFIP_QR_URL)
    assert "=" not in url[len(AFIP_QR_URL):]
    raw = decode(url)
    assert raw.startswith('{"ver":1,"fecha":"2025-03-10","cuit":20409378472,')
    assert json.loads(raw)["moneda"] == "PES"


def test_qr_is_deterministic(sample_request, sample_result):
    first = build_qr_url(build_qr_payload(sample_request, sample_result, 20409378472))
    second = build_qr_url(build_qr_payload(sample_request, sample_result, 20409378472))
    assert first == second


def test_consumidor_final_qr_receptor(sample_request, sample_result):
    request = sample_request.model_copy(update={"doc_type": DocType.CONSUMIDOR_FINAL, "doc_number": "0"})
    payload = build_qr_payload(request, sample_result, 20409378472)
    assert payload["tipoDocRec"] == 99
    assert payload["nroDocRec"] == 0


def test_voucher_payload_for_services(sample_request):
    data = build_voucher_payload(sample_request)
    assert data["CantReg"] == 1
    assert data["PtoVta"] == 1
    assert data["CbteTipo"] == 11
    assert data["Concepto"] == 2
    assert data["DocTipo"] == 96
    assert data["DocNro"] == 12345678
    assert data["CbteFch"] == 20250310
    assert data["ImpTotal"] == 5000.0
    assert data["ImpNeto"] == 5000.0
    assert data["ImpIVA"] == 0
    assert data["ImpTrib"] == 0
    assert data["MonId"] == "PES"
    assert data["MonCotiz"] == 1
    assert data["CondicionIVAReceptorId"] == 5
    assert data["FchServDesde"] == 20250310
    assert data["FchServHasta"] == 20250310
    assert data["FchVtoPago"] == 20250310


def test_voucher_payload_for_goods_has_no_service_dates(sample_request):
    request = sample_request.model_copy(update={"concept": 1, "service_from": None, "service_to": None, "payment_due": None})
    data = build_voucher_payload(request)
    assert "FchServDesde" not in data
    assert "FchVtoPago" not in data


def test_voucher_payload_for_cuit(sample_request):
    request = sample_request.model_copy(update={
        "doc_type": DocType.CUIT,
        "doc_number": "20409378472",
        "total": Decimal("1234.56"),
        "service_from": date(2025, 2, 1),
    })
    data = build_voucher_payload(request, cuit_iva_condition=6)
    assert data["DocTipo"] == 80
    assert data["DocNro"] == 20409378472
    assert data["ImpTotal"] == 1234.56
    assert data["CondicionIVAReceptorId"] == 6
    assert data["FchServDesde"] == 20250201
