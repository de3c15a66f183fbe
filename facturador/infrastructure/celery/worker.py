import logging
from typing import Any, Dict, Optional

from celery import Celery
from celery.signals import worker_process_init, worker_process_shutdown

import config

# --- CONFIGURACIÓN DE CELERY SOBRE GOOGLE CLOUD PUB/SUB ---
celery_app = Celery(
    'tasks',
    broker=config.CELERY_BROKER_URL,
    backend=None  # Pub/Sub no funciona como backend de resultados.
)

celery_app.conf.update(
    broker_transport_options={
        # Una factura tarda a lo sumo ~1 minuto; Pub/Sub no debe reentregarla antes
        'visibility_timeout': 300,
        'topic': config.CELERY_PUBSUB_TOPIC,
        'subscription_name_prefix': 'facturador-worker-sub'
    },
    task_ignore_result=True,
    # Un mensaje no se reprocesa si el worker muere: reenviar podría pedir dos CAE
    task_acks_late=False,
)

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - [%(funcName)s] - %(message)s')

from facturador.domain.services.command_parser import USAGE
from facturador.infrastructure.container import Container
from facturador.infrastructure.external.telegram_adapter import extract_message

WELCOME = "¡Hola! " + USAGE
HELP_COMMANDS = ('/start', '/ayuda', '/help')

_container: Optional[Container] = None


@worker_process_init.connect
def init_container(**kwargs):
    global _container
    _container = Container()


@worker_process_shutdown.connect
def close_container(**kwargs):
    global _container
    if _container is not None:
        _container.close()
        _container = None


def get_container() -> Container:
    global _container
    if _container is None:
        # Modo eager o worker sin prefork: se crea a demanda
        _container = Container()
    return _container


def handle_update(update: Dict[str, Any], container: Container):
    chat_id, text = extract_message(update)
    if chat_id is None:
        logging.warning(f"Update sin chat_id, se descarta: {str(update)[:400]}")
        return None
    if not text:
        logging.info(f"Update del chat {chat_id} sin texto, se ignora.")
        return None

    command = text.split()[0].split('@')[0].lower()
    if command in HELP_COMMANDS:
        try:
            container.telegram.send_text(chat_id, WELCOME)
        except Exception:
            logging.warning(f"No se pudo enviar la bienvenida al chat {chat_id}.", exc_info=True)
        return None

    return container.issue_invoice.execute(chat_id, text)


@celery_app.task(name="tasks.process_telegram_update")
def process_telegram_update(update: Dict[str, Any]):
    update_id = (update or {}).get('update_id')
    logging.info(f"[update {update_id}] >>> INICIO DE LA TAREA.")
    try:
        outcome = handle_update(update, get_container())
        if outcome is not None:
            logging.info(f"[update {update_id}] Resultado {outcome.state.value} (request {outcome.request_id}).")
    except Exception:
        # Nunca se relanza: un reintento de Celery podría duplicar el pedido de CAE
        logging.error(f"[update {update_id}] ¡ERROR! Falló el procesamiento del update.", exc_info=True)
    finally:
        logging.info(f"[update {update_id}] <<< FIN DE LA TAREA.")
