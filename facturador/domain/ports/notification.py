# facturador/domain/ports/notification.py
from abc import ABC, abstractmethod
from typing import Optional


class Notification(ABC):
    """Puerto para los avisos al usuario (Telegram)."""
    @abstractmethod
    def send_text(self, chat_id: int, text: str) -> dict:
        pass

    @abstractmethod
    def send_document(self, chat_id: int, filename: str, content: bytes, caption: Optional[str] = None) -> dict:
        """
        Envía un archivo adjunto. `content` son los bytes del PDF.
        """
        pass
