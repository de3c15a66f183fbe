from facturador.domain.services.invoice_view import IssuerInfo
from facturador.infrastructure.rendering.pdf_renderer import ReportLabInvoiceRenderer

ISSUER = IssuerInfo(cuit=20409378472, name="Estudio Ejemplo", address="Av. Siempre Viva 742")


def test_render_produces_pdf_with_qr(sample_request, sample_result):
    document = ReportLabInvoiceRenderer(issuer=ISSUER).render(sample_request, sample_result)

    assert document.filename == "factura_00001-00000154.pdf"
    assert document.content.startswith(b"%PDF")
    assert document.qr_payload["nroCmp"] == 154
    assert document.qr_url.startswith("https://www.afip.gob.ar/fe/qr/?p=")


def test_render_is_byte_identical_for_same_input(sample_request, sample_result):
    renderer = ReportLabInvoiceRenderer(issuer=ISSUER)
    first = renderer.render(sample_request, sample_result)
    second = renderer.render(sample_request, sample_result)
    assert first.qr_url == second.qr_url
    assert first.content == second.content


def test_render_tolerates_missing_receptor_fields(sample_request, sample_result):
    request = sample_request.model_copy(update={"payer_name": "", "description": ""})
    document = ReportLabInvoiceRenderer(issuer=IssuerInfo(cuit=20409378472, name="")).render(request, sample_result)
    assert document.content.startswith(b"%PDF")
