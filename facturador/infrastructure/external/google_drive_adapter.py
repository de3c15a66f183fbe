# facturador/infrastructure/external/google_drive_adapter.py
import io
import logging
from typing import Optional

from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload

import config
from facturador.domain.models.invoice import InvoiceDocument
from facturador.domain.ports.file_storage import FileStorage
from .google_auth import get_google_credentials


class GoogleDriveAdapter(FileStorage):
    """
    Sube cada PDF emitido a una carpeta de Google Drive y, si se pide,
    lo comparte como "cualquiera con el enlace puede ver".
    """
    def __init__(self, parent_folder_id: Optional[str] = None, share_public: Optional[bool] = None, service=None):
        self.parent_folder_id = parent_folder_id or config.DRIVE_PARENT_FOLDER_ID
        self.share_public = config.DRIVE_SHARE_PUBLIC if share_public is None else share_public
        if not self.parent_folder_id:
            raise ValueError("Falta DRIVE_PARENT_FOLDER_ID para archivar en Drive")
        self.service = service or build('drive', 'v3', credentials=get_google_credentials(), cache_discovery=False)

    def upload_document(self, document: InvoiceDocument) -> str:
        logging.info(f"Subiendo {document.filename} a Google Drive...")
        file_metadata = {'name': document.filename, 'parents': [self.parent_folder_id]}
        media = MediaIoBaseUpload(io.BytesIO(document.content), mimetype=document.mime_type, resumable=False)

        created = self.service.files().create(
            body=file_metadata,
            media_body=media,
            fields='id, webViewLink',
            supportsAllDrives=True,
        ).execute()
        file_id = created.get('id')

        if self.share_public:
            self.service.permissions().create(
                fileId=file_id,
                body={'type': 'anyone', 'role': 'reader'},
                supportsAllDrives=True,
            ).execute()

        link = created.get('webViewLink') or f"https://drive.google.com/file/d/{file_id}/view"
        logging.info(f"Archivo {document.filename} subido. ID: {file_id}")
        return link
