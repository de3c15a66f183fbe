# config.py
import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = 'false') -> bool:
    return str(os.getenv(name, default)).strip().lower() in ('1', 'true', 'yes', 'si')


def _env_float(name: str, default: str):
    value = os.getenv(name, default)
    if value is None or str(value).strip() in ('', 'none', 'None'):
        return None
    return float(value)


def _env_multiline(name: str):
    # Los certificados llegan por variable de entorno con saltos de línea escapados
    value = os.getenv(name)
    return value.replace('\\n', '\n') if value else None


# --- CONFIGURACIÓN DE GOOGLE ---
# Planilla que funciona como libro de facturas
SHEET_ID = os.getenv('SHEET_ID')
SHEET_NAME = os.getenv('SHEET_NAME', 'Hoja 1')
# Pestaña opcional con el padrón de pacientes / clientes frecuentes
PACIENTES_SHEET_NAME = os.getenv('PACIENTES_SHEET_NAME')

# ID de la carpeta de Google Drive donde se archivan los PDF (opcional)
DRIVE_PARENT_FOLDER_ID = os.getenv('DRIVE_PARENT_FOLDER_ID')
DRIVE_SHARE_PUBLIC = _env_bool('DRIVE_SHARE_PUBLIC', 'true')

# Alcances requeridos por las APIs de Google
SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.file",
]

# Cuenta de servicio (JSON completo) o, en su defecto, token OAuth de usuario
GOOGLE_SA_JSON = os.getenv('GOOGLE_SA_JSON')
TOKEN_FILE = os.getenv('GOOGLE_TOKEN_FILE', 'token.json')

# --- CONFIGURACIÓN DE TELEGRAM ---
TELEGRAM_TOKEN = os.getenv('TELEGRAM_BOT_TOKEN') or os.getenv('TELEGRAM_TOKEN')
TELEGRAM_API_BASE = os.getenv('TELEGRAM_API_BASE', 'https://api.telegram.org')
WEBHOOK_URL = os.getenv('WEBHOOK_URL', '')
TELEGRAM_WEBHOOK_SECRET = os.getenv('TELEGRAM_WEBHOOK_SECRET')

# --- CONFIGURACIÓN DE AFIP ---
# Por defecto homologación con el CUIT de prueba del SDK
AFIP_CUIT = int(os.getenv('AFIP_CUIT', '20409378472'))
AFIP_PROD = _env_bool('AFIP_PROD', 'false')
AFIP_PTO_VTA = int(os.getenv('AFIP_PTO_VTA', '1'))
AFIP_CBTE_TIPO = int(os.getenv('AFIP_CBTE_TIPO', '11'))  # 11 = Factura C
AFIP_CONCEPTO = int(os.getenv('AFIP_CONCEPTO', '2'))  # 1 Productos, 2 Servicios, 3 Ambos
AFIP_CERT = _env_multiline('AFIP_CERT')
AFIP_KEY = _env_multiline('AFIP_KEY')
AFIP_SDK_ACCESS_TOKEN = os.getenv('AFIP_SDK_ACCESS_TOKEN')
# Condición frente al IVA del receptor cuando factura a un CUIT (1 = Responsable Inscripto)
AFIP_CUIT_IVA_CONDITION = int(os.getenv('AFIP_CUIT_IVA_CONDITION', '1'))

# --- DATOS DEL EMISOR (encabezado del PDF) ---
ISSUER_NAME = os.getenv('ISSUER_NAME', 'Emisor de prueba')
ISSUER_ADDRESS = os.getenv('ISSUER_ADDRESS', '')
ISSUER_IVA_CONDITION = os.getenv('ISSUER_IVA_CONDITION', 'Responsable Monotributo')
ISSUER_IIBB = os.getenv('ISSUER_IIBB', '')
ISSUER_START_DATE = os.getenv('ISSUER_START_DATE', '')

# --- TIEMPOS MÁXIMOS POR PASO (segundos) ---
LEDGER_TIMEOUT = _env_float('LEDGER_TIMEOUT', 'none')
AFIP_TIMEOUT = _env_float('AFIP_TIMEOUT', '20')
RENDER_TIMEOUT = _env_float('RENDER_TIMEOUT', '12')
ARCHIVE_TIMEOUT = _env_float('ARCHIVE_TIMEOUT', '15')
NOTIFY_TIMEOUT = _env_float('NOTIFY_TIMEOUT', '12')
WATCHDOG_SECONDS = _env_float('WATCHDOG_SECONDS', '35')

# Cómo se encuentra la fila a actualizar: 'request_id' o 'last_pending'
LEDGER_MATCH_STRATEGY = os.getenv('LEDGER_MATCH_STRATEGY', 'request_id')

# Zona horaria para la fecha de emisión
TIMEZONE = os.getenv('TZ_FACTURACION', 'America/Argentina/Buenos_Aires')

# --- CONFIGURACIÓN DE CELERY ---
CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', 'pubsub://')
CELERY_PUBSUB_TOPIC = os.getenv('CELERY_PUBSUB_TOPIC', 'facturador-telegram-updates')
