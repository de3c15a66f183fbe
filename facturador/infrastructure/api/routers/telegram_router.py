# facturador/infrastructure/api/routers/telegram_router.py
import logging
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

import config
# Importamos la instancia de Celery, no la tarea específica
from facturador.infrastructure.celery.worker import celery_app
from facturador.infrastructure.external.telegram_adapter import extract_chat_id

router = APIRouter(prefix="/telegram", tags=["Telegram"])


def get_telegram(request: Request):
    telegram = getattr(request.app.state, "telegram", None)
    if telegram is None:
        raise HTTPException(status_code=503, detail="Telegram no está configurado (TELEGRAM_BOT_TOKEN).")
    return telegram


@router.post("/webhook", summary="Recibe updates de Telegram")
async def telegram_webhook(
    request: Request,
    x_telegram_bot_api_secret_token: Optional[str] = Header(default=None),
):
    """
    Encola el update para procesarlo en segundo plano y responde 200 de
    inmediato, sin importar cómo termine la emisión.
    """
    if config.TELEGRAM_WEBHOOK_SECRET and x_telegram_bot_api_secret_token != config.TELEGRAM_WEBHOOK_SECRET:
        raise HTTPException(status_code=403, detail="Token secreto inválido.")

    try:
        update = await request.json()
    except ValueError:
        logging.warning("Webhook de Telegram con cuerpo no JSON; se ignora.")
        return {"ok": True}

    chat_id = extract_chat_id(update)
    if chat_id is None:
        # Telegram necesita 200 aunque no sepamos el chat
        logging.warning(f"No encontré chat_id en el update: {str(update)[:400]}")
        return {"ok": True}

    try:
        # send_task bloquea hasta que el broker confirma
        await run_in_threadpool(celery_app.send_task, 'tasks.process_telegram_update', args=[update])
        logging.info(f"Update {update.get('update_id')} del chat {chat_id} encolado.")
    except Exception:
        logging.error(f"No se pudo encolar el update {update.get('update_id')}.", exc_info=True)
    return {"ok": True}


@router.get("/set-webhook", summary="Registra el webhook en Telegram")
def set_webhook(request: Request):
    telegram = get_telegram(request)
    base = (config.WEBHOOK_URL or str(request.base_url)).rstrip('/')
    url = f"{base}/telegram/webhook"
    try:
        result = telegram.set_webhook(url, config.TELEGRAM_WEBHOOK_SECRET)
    except Exception as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"setWebhook": result, "url": url}


@router.get("/test/{chat_id}", summary="Envía un mensaje de prueba")
def send_test_message(chat_id: int, request: Request):
    telegram = get_telegram(request)
    try:
        telegram.send_text(chat_id, "Prueba desde el servidor ✅")
    except Exception as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"status": "ok"}
