# facturador/infrastructure/api/routers/diagnostics_router.py
from fastapi import APIRouter, Request

import config

router = APIRouter(tags=["Health Check"])


@router.get("/")
def read_root():
    return {"status": "ok", "message": "Facturador AFIP por Telegram"}


@router.get("/diagnostics", summary="Qué integraciones están configuradas (sin secretos)")
def diagnostics(request: Request):
    return {
        "telegram": {
            "configured": bool(config.TELEGRAM_TOKEN),
            "client_ready": getattr(request.app.state, "telegram", None) is not None,
            "webhook_url": config.WEBHOOK_URL or None,
            "secret_token": bool(config.TELEGRAM_WEBHOOK_SECRET),
        },
        "sheets": {
            "configured": bool(config.SHEET_ID),
            "sheet_name": config.SHEET_NAME,
            "pacientes_sheet": config.PACIENTES_SHEET_NAME,
            "match_strategy": config.LEDGER_MATCH_STRATEGY,
        },
        "google_credentials": "service_account" if config.GOOGLE_SA_JSON else "oauth_token_file",
        "drive": {
            "configured": bool(config.DRIVE_PARENT_FOLDER_ID),
            "share_public": config.DRIVE_SHARE_PUBLIC,
        },
        "afip": {
            "cuit": config.AFIP_CUIT,
            "production": config.AFIP_PROD,
            "pto_vta": config.AFIP_PTO_VTA,
            "cbte_tipo": config.AFIP_CBTE_TIPO,
            "concepto": config.AFIP_CONCEPTO,
            "certificate": bool(config.AFIP_CERT and config.AFIP_KEY),
            "access_token": bool(config.AFIP_SDK_ACCESS_TOKEN),
        },
        "timeouts": {
            "ledger": config.LEDGER_TIMEOUT,
            "afip": config.AFIP_TIMEOUT,
            "render": config.RENDER_TIMEOUT,
            "archive": config.ARCHIVE_TIMEOUT,
            "notify": config.NOTIFY_TIMEOUT,
            "watchdog": config.WATCHDOG_SECONDS,
        },
    }
