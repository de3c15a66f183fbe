from unittest import mock

from facturador.infrastructure.celery import worker

from conftest import FakeNotification


class StubContainer:
    def __init__(self):
        self.telegram = FakeNotification()
        self.issue_invoice = mock.Mock()
        self.issue_invoice.execute.return_value = None


def test_start_command_sends_usage():
    container = StubContainer()
    worker.handle_update({"message": {"chat": {"id": 5}, "text": "/start"}}, container)
    assert "Nombre | DNI o CUIT | Detalle | Total" in container.telegram.texts[0]
    container.issue_invoice.execute.assert_not_called()


def test_bot_mention_in_command_is_ignored():
    container = StubContainer()
    worker.handle_update({"message": {"chat": {"id": 5}, "text": "/ayuda@facturador_bot"}}, container)
    assert len(container.telegram.messages) == 1


def test_text_message_runs_the_use_case():
    container = StubContainer()
    text = "Juan Perez | DNI 12345678 | Servicio de diseño | 5000"
    worker.handle_update({"edited_message": {"chat": {"id": 5}, "text": text}}, container)
    container.issue_invoice.execute.assert_called_once_with(5, text)


def test_updates_without_chat_or_text_are_dropped():
    container = StubContainer()
    assert worker.handle_update({"update_id": 1}, container) is None
    assert worker.handle_update({"message": {"chat": {"id": 5}, "sticker": {}}}, container) is None
    container.issue_invoice.execute.assert_not_called()


def test_task_never_raises(monkeypatch):
    container = StubContainer()
    container.issue_invoice.execute.side_effect = RuntimeError("boom")
    monkeypatch.setattr(worker, "get_container", lambda: container)

    worker.process_telegram_update.run({"update_id": 3, "message": {"chat": {"id": 5}, "text": "hola"}})

    container.issue_invoice.execute.assert_called_once()
