# facturador/infrastructure/external/telegram_adapter.py
import json
import logging
from typing import Any, Dict, Optional, Tuple

import requests

import config
from facturador.domain.ports.notification import Notification

# Telegram corta los mensajes a 4096 caracteres
MAX_MESSAGE_LENGTH = 4096
MAX_CAPTION_LENGTH = 1024

_CHAT_CONTAINERS = ("message", "edited_message", "channel_post", "edited_channel_post")


def extract_chat_id(update: Dict[str, Any]) -> Optional[int]:
    """chat_id de cualquier tipo de update conocido, o None."""
    update = update or {}
    for key in _CHAT_CONTAINERS + ("my_chat_member", "chat_member"):
        chat_id = ((update.get(key) or {}).get("chat") or {}).get("id")
        if chat_id is not None:
            return chat_id
    callback_message = (update.get("callback_query") or {}).get("message") or {}
    return (callback_message.get("chat") or {}).get("id")


def extract_message(update: Dict[str, Any]) -> Tuple[Optional[int], str]:
    """(chat_id, texto) del update; el texto es '' si no hay mensaje de texto."""
    chat_id = extract_chat_id(update)
    for key in _CHAT_CONTAINERS:
        message = (update or {}).get(key)
        if message:
            return chat_id, (message.get("text") or "").strip()
    return chat_id, ""


class TelegramAdapter(Notification):
    def __init__(self, token: Optional[str] = None, api_base: Optional[str] = None, timeout: float = 15, session=None):
        self.token = token or config.TELEGRAM_TOKEN
        if not self.token:
            raise ValueError("Falta TELEGRAM_BOT_TOKEN (o TELEGRAM_TOKEN)")
        self.api = f"{(api_base or config.TELEGRAM_API_BASE).rstrip('/')}/bot{self.token}"
        self.timeout = timeout
        self.session = session or requests.Session()

    def _call(self, method: str, **kwargs) -> dict:
        try:
            response = self.session.post(f"{self.api}/{method}", timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            error_text = e.response.text
            logging.error(f"Error HTTP de Telegram en {method}: {error_text}")
            raise ValueError(f"Error de Telegram: {error_text}") from e
        except json.JSONDecodeError:
            raise ValueError(f"Respuesta inválida de Telegram: {response.text}")

    def send_text(self, chat_id: int, text: str) -> dict:
        return self._call("sendMessage", json={"chat_id": chat_id, "text": text[:MAX_MESSAGE_LENGTH]})

    def send_document(self, chat_id: int, filename: str, content: bytes, caption: Optional[str] = None) -> dict:
        data = {"chat_id": str(chat_id)}
        if caption:
            data["caption"] = caption[:MAX_CAPTION_LENGTH]
        files = {"document": (filename, content, "application/pdf")}
        return self._call("sendDocument", data=data, files=files)

    def set_webhook(self, url: str, secret_token: Optional[str] = None) -> dict:
        payload = {"url": url}
        if secret_token:
            payload["secret_token"] = secret_token
        return self._call("setWebhook", json=payload)

    def close(self):
        self.session.close()
