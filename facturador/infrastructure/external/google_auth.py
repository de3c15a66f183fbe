# facturador/infrastructure/external/google_auth.py
import json
import os
from typing import List, Optional

from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials

import config  # Usamos el config.py del root


def get_google_credentials(scopes: Optional[List[str]] = None):
    """
    Credenciales para Sheets y Drive. Prioriza la cuenta de servicio
    (GOOGLE_SA_JSON); si no está, carga el token OAuth de usuario desde
    TOKEN_FILE y lo refresca si venció.
    """
    scopes = scopes or config.SCOPES

    if config.GOOGLE_SA_JSON:
        info = json.loads(config.GOOGLE_SA_JSON)
        return service_account.Credentials.from_service_account_info(info, scopes=scopes)

    if not os.path.exists(config.TOKEN_FILE):
        raise FileNotFoundError(
            f"No hay GOOGLE_SA_JSON y el archivo '{config.TOKEN_FILE}' no se encontró."
        )

    creds = Credentials.from_authorized_user_file(config.TOKEN_FILE, scopes)

    if creds and creds.expired and creds.refresh_token:
        creds.refresh(Request())

    return creds
