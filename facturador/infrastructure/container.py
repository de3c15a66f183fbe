# facturador/infrastructure/container.py
import logging
from datetime import datetime
from zoneinfo import ZoneInfo

import config
from facturador.application.ledger_bookkeeper import LedgerBookkeeper
from facturador.application.step_runner import StepRunner
from facturador.application.use_cases.issue_invoice import IssuanceTimeouts, IssueInvoiceUseCase
from facturador.domain.services.command_parser import ParserDefaults
from facturador.infrastructure.external.afip_adapter import AfipAdapter
from facturador.infrastructure.external.google_drive_adapter import GoogleDriveAdapter
from facturador.infrastructure.external.google_sheets_adapter import (
    GoogleSheetsLedger,
    GoogleSheetsReceptorDirectory,
)
from facturador.infrastructure.external.telegram_adapter import TelegramAdapter
from facturador.infrastructure.rendering.pdf_renderer import ReportLabInvoiceRenderer


def today_in_timezone():
    return datetime.now(ZoneInfo(config.TIMEZONE)).date()


def timeouts_from_config() -> IssuanceTimeouts:
    return IssuanceTimeouts(
        ledger=config.LEDGER_TIMEOUT,
        authorization=config.AFIP_TIMEOUT,
        render=config.RENDER_TIMEOUT,
        archive=config.ARCHIVE_TIMEOUT,
        notify=config.NOTIFY_TIMEOUT,
        watchdog=config.WATCHDOG_SECONDS,
    )


class Container:
    """
    Clientes de larga vida (Sheets, AFIP, Drive, Telegram) creados una vez por
    proceso y cerrados al apagarlo. Drive y el padrón son opcionales.
    """

    def __init__(self):
        logging.info("Inicializando clientes externos...")
        self.telegram = TelegramAdapter()
        self.ledger = GoogleSheetsLedger()
        self.tax_authority = AfipAdapter()
        self.renderer = ReportLabInvoiceRenderer()
        self.file_storage = GoogleDriveAdapter() if config.DRIVE_PARENT_FOLDER_ID else None
        self.receptor_directory = GoogleSheetsReceptorDirectory() if config.PACIENTES_SHEET_NAME else None
        self.step_runner = StepRunner()

        self.issue_invoice = IssueInvoiceUseCase(
            bookkeeper=LedgerBookkeeper(self.ledger, config.LEDGER_MATCH_STRATEGY),
            tax_authority=self.tax_authority,
            notification_service=self.telegram,
            renderer=self.renderer,
            file_storage=self.file_storage,
            receptor_directory=self.receptor_directory,
            step_runner=self.step_runner,
            parser_defaults=ParserDefaults(
                sales_point=config.AFIP_PTO_VTA,
                invoice_type=config.AFIP_CBTE_TIPO,
                concept=config.AFIP_CONCEPTO,
            ),
            timeouts=timeouts_from_config(),
            today=today_in_timezone,
        )
        logging.info(
            f"Clientes listos. Drive: {'sí' if self.file_storage else 'no'}, "
            f"padrón: {'sí' if self.receptor_directory else 'no'}."
        )

    def close(self):
        self.step_runner.shutdown()
        self.telegram.close()
        logging.info("Clientes externos cerrados.")
