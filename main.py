# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

import config
# Importamos los routers de la capa de infraestructura
from facturador.infrastructure.api.routers import diagnostics_router, telegram_router
from facturador.infrastructure.external.telegram_adapter import TelegramAdapter


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.telegram = TelegramAdapter() if config.TELEGRAM_TOKEN else None
    if app.state.telegram is None:
        logging.warning("Falta TELEGRAM_BOT_TOKEN (o TELEGRAM_TOKEN): los endpoints de Telegram quedan deshabilitados.")
    yield
    if app.state.telegram is not None:
        app.state.telegram.close()


app = FastAPI(
    title="Facturador AFIP por Telegram",
    description="Recibe pedidos de factura por Telegram, los registra en Google Sheets y emite el CAE en AFIP de forma asíncrona.",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(diagnostics_router.router)
app.include_router(telegram_router.router)
