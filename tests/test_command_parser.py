from datetime import date
from decimal import Decimal

import pytest

from facturador.domain.models.errors import MalformedCommand
from facturador.domain.models.invoice import DocType
from facturador.domain.services.command_parser import ParserDefaults, parse_command, split_keywords

TODAY = date(2025, 3, 10)


def parse(text, **kwargs):
    return parse_command(text, ParserDefaults(sales_point=3, invoice_type=11, concept=2), today=TODAY, **kwargs)


def test_delimited_message():
    request = parse("Juan Perez | DNI 12345678 | Servicio de diseño | 5000")
    assert request.payer_name == "Juan Perez"
    assert request.doc_type == DocType.DNI
    assert request.doc_number == "12345678"
    assert request.description == "Servicio de diseño"
    assert request.total == 5000
    assert request.quantity == 1
    assert request.effective_unit_price == Decimal("5000.00")
    assert request.sales_point == 3
    assert request.issue_date == TODAY


def test_delimited_with_three_fields_is_malformed():
    with pytest.raises(MalformedCommand):
        parse("Juan Perez | DNI 12345678 | 5000")


def test_delimited_with_empty_required_field_is_malformed():
    with pytest.raises(MalformedCommand):
        parse("Juan Perez | DNI 12345678 |  | 5000")


@pytest.mark.parametrize("total", ["gratis", "0", "0,00"])
def test_delimited_with_bad_total_is_malformed(total):
    with pytest.raises(MalformedCommand):
        parse(f"Juan Perez | DNI 12345678 | Diseño | {total}")


def test_cuit_keyword_is_case_insensitive_and_accepts_dashes():
    request = parse("ACME SA | cuit 20-40937847-2 | Consultoría | 12.500,50")
    assert request.doc_type == DocType.CUIT
    assert request.doc_number == "20409378472"
    assert request.total == Decimal("12500.50")


def test_document_without_keyword_defaults_to_dni():
    request = parse("Ana | 30.111.222 | Clase | 2000")
    assert request.doc_type == DocType.DNI
    assert request.doc_number == "30111222"


def test_services_concept_defaults_period_to_issue_date():
    request = parse("Juan Perez | DNI 12345678 | Servicio | 5000")
    assert request.service_from == TODAY
    assert request.service_to == TODAY
    assert request.payment_due == TODAY


def test_request_id_is_generated_or_kept():
    assert len(parse("A | DNI 12345678 | B | 1").request_id) == 12
    assert parse("A | DNI 12345678 | B | 1", request_id="fixed").request_id == "fixed"


def test_keyword_message():
    request = parse(
        "dni 30111222 cantidad 4 precio 12.500,00 unidad sesiones "
        "detalle Sesión de kinesiología fecha 2025-03-01 desde 20250201 hasta 2025-02-28"
    )
    assert request.doc_type == DocType.DNI
    assert request.doc_number == "30111222"
    assert request.quantity == Decimal("4")
    assert request.unit_price == Decimal("12500.00")
    assert request.total == Decimal("50000.00")
    assert request.unit == "sesiones"
    assert request.description == "Sesión de kinesiología"
    assert request.issue_date == date(2025, 3, 1)
    assert request.service_from == date(2025, 2, 1)
    assert request.service_to == date(2025, 2, 28)
    assert request.payment_due == date(2025, 3, 1)
    assert request.payer_name == ""


def test_keyword_message_defaults():
    request = parse("CUIT 20409378472 precio 1500 nombre ACME SA")
    assert request.doc_type == DocType.CUIT
    assert request.quantity == 1
    assert request.total == Decimal("1500.00")
    assert request.payer_name == "ACME SA"
    assert request.description == "Servicios profesionales"
    assert request.issue_date == TODAY


def test_keyword_description_stops_at_next_keyword():
    values = split_keywords("detalle Consulta inicial precio 100 Desc: otra cosa")
    assert values["detalle"] == "otra cosa"
    assert values["precio"] == "100"


@pytest.mark.parametrize(
    "text",
    [
        "hola",
        "precio 1000 cantidad 2",
        "dni 30111222 cantidad 2",
        "dni 30111222 precio 1000 fecha 01/03/2025",
        "dni 30111222 precio 1000 desde 2025-03-01 hasta 2025-02-01",
        "dni abc precio 1000",
    ],
)
def test_keyword_message_errors(text):
    with pytest.raises(MalformedCommand):
        parse(text)


def test_empty_message_is_malformed():
    with pytest.raises(MalformedCommand):
        parse("   ")
