from datetime import date
from unittest import mock

import pytest

from facturador.domain.models.invoice import InvoiceDocument
from facturador.infrastructure.external.afip_adapter import AfipAdapter, parse_cae_expiry
from facturador.infrastructure.external.google_drive_adapter import GoogleDriveAdapter
from facturador.infrastructure.external.google_sheets_adapter import (
    GoogleSheetsLedger,
    GoogleSheetsReceptorDirectory,
)
from facturador.infrastructure.external.telegram_adapter import (
    TelegramAdapter,
    extract_chat_id,
    extract_message,
)


def test_parse_cae_expiry_formats():
    assert parse_cae_expiry("20250320") == date(2025, 3, 20)
    assert parse_cae_expiry("2025-03-20") == date(2025, 3, 20)
    with pytest.raises(ValueError):
        parse_cae_expiry("20/03/2025")


def test_afip_adapter_builds_result_from_sdk_response(sample_request):
    client = mock.Mock()
    client.ElectronicBilling.createNextVoucher.return_value = {
        "CAE": "75123456789012",
        "CAEFchVto": "2025-03-20",
        "voucher_number": 154,
    }
    adapter = AfipAdapter(cuit=20409378472, production=False, client=client)

    result = adapter.authorize(sample_request)

    assert result.cae == "75123456789012"
    assert result.cae_expiry == date(2025, 3, 20)
    assert result.voucher_number == 154
    sent = client.ElectronicBilling.createNextVoucher.call_args[0][0]
    assert sent["DocTipo"] == 96
    assert sent["ImpTotal"] == 5000.0


def test_afip_adapter_rejects_response_without_cae(sample_request):
    client = mock.Mock()
    client.ElectronicBilling.createNextVoucher.return_value = {"CAE": ""}
    adapter = AfipAdapter(cuit=20409378472, production=False, client=client)
    with pytest.raises(ValueError):
        adapter.authorize(sample_request)


def test_sheets_ledger_calls():
    service = mock.MagicMock()
    values = service.spreadsheets.return_value.values.return_value
    values.get.return_value.execute.return_value = {"values": [["fecha"], ["2025-03-10"]]}
    ledger = GoogleSheetsLedger(sheet_id="sheet123", sheet_name="Hoja 1", service=service)

    ledger.append_row(["a", "b"])
    assert ledger.read_rows() == [["fecha"], ["2025-03-10"]]
    ledger.update_row(7, 9, ["EMITIDO", "1", "2", "3", "", "link"])

    append_kwargs = values.append.call_args.kwargs
    assert append_kwargs["spreadsheetId"] == "sheet123"
    assert append_kwargs["range"] == "'Hoja 1'!A:Z"
    assert append_kwargs["valueInputOption"] == "RAW"
    assert append_kwargs["body"] == {"values": [["a", "b"]]}
    update_kwargs = values.update.call_args.kwargs
    assert update_kwargs["range"] == "'Hoja 1'!J7:O7"
    assert update_kwargs["body"] == {"values": [["EMITIDO", "1", "2", "3", "", "link"]]}


def test_sheets_receptor_directory_lookup():
    service = mock.MagicMock()
    values = service.spreadsheets.return_value.values.return_value
    values.get.return_value.execute.return_value = {
        "values": [["DNI", "Nombre"], ["30.111.222", "María Gómez"], ["12345678", ""]]
    }
    directory = GoogleSheetsReceptorDirectory(sheet_id="s", sheet_name="Pacientes", service=service)

    assert directory.lookup("30111222").name == "María Gómez"
    assert directory.lookup("12345678") is None
    assert directory.lookup("99999999") is None


def test_drive_upload_shares_and_returns_link():
    service = mock.MagicMock()
    service.files.return_value.create.return_value.execute.return_value = {
        "id": "file1", "webViewLink": "https://drive.google.com/file/d/file1/view",
    }
    adapter = GoogleDriveAdapter(parent_folder_id="folder", share_public=True, service=service)
    document = InvoiceDocument(filename="f.pdf", content=b"%PDF", qr_url="u", qr_payload={})

    assert adapter.upload_document(document) == "https://drive.google.com/file/d/file1/view"
    assert service.files.return_value.create.call_args.kwargs["body"] == {"name": "f.pdf", "parents": ["folder"]}
    permission = service.permissions.return_value.create.call_args.kwargs
    assert permission["fileId"] == "file1"
    assert permission["body"] == {"type": "anyone", "role": "reader"}


def test_drive_requires_folder():
    with pytest.raises(ValueError):
        GoogleDriveAdapter(parent_folder_id="", service=mock.MagicMock())


def test_extract_chat_id_from_different_updates():
    assert extract_chat_id({"message": {"chat": {"id": 1}}}) == 1
    assert extract_chat_id({"edited_message": {"chat": {"id": 2}}}) == 2
    assert extract_chat_id({"callback_query": {"message": {"chat": {"id": 3}}}}) == 3
    assert extract_chat_id({"my_chat_member": {"chat": {"id": 4}}}) == 4
    assert extract_chat_id({"update_id": 5}) is None
    assert extract_chat_id(None) is None


def test_extract_message_text():
    assert extract_message({"message": {"chat": {"id": 1}, "text": " hola "}}) == (1, "hola")
    assert extract_message({"message": {"chat": {"id": 1}, "photo": []}}) == (1, "")


def test_telegram_adapter_posts_to_bot_api():
    session = mock.Mock()
    session.post.return_value.json.return_value = {"ok": True}
    adapter = TelegramAdapter(token="123:abc", api_base="https://api.telegram.org", session=session)

    adapter.send_text(10, "hola")
    url = session.post.call_args.args[0]
    assert url == "https://api.telegram.org/bot123:abc/sendMessage"
    assert session.post.call_args.kwargs["json"] == {"chat_id": 10, "text": "hola"}

    adapter.send_document(10, "f.pdf", b"%PDF", caption="Factura")
    kwargs = session.post.call_args.kwargs
    assert session.post.call_args.args[0].endswith("/sendDocument")
    assert kwargs["data"] == {"chat_id": "10", "caption": "Factura"}
    assert kwargs["files"]["document"][0] == "f.pdf"


def test_telegram_adapter_requires_token(monkeypatch):
    import config

    monkeypatch.setattr(config, "TELEGRAM_TOKEN", None)
    with pytest.raises(ValueError):
        TelegramAdapter()
