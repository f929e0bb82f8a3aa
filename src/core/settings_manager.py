from __future__ import annotations
import logging
from typing import Optional

from PySide6.QtCore import QSettings

from backend.models import DEFAULT_IMPORT_MODE, ImportMode, ImportOptions

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class SettingsManager:
    def __init__(self, organization="CollectionImporter", application="CollectionImporter", settings: Optional[QSettings] = None):
        self.settings = settings if settings is not None else QSettings(organization, application)

    # --- Import -------------------------------------------------------------
    def get_import_mode(self) -> ImportMode:
        value = self.settings.value("import_mode", DEFAULT_IMPORT_MODE.value)
        try:
            return ImportMode(str(value))
        except ValueError:
            return DEFAULT_IMPORT_MODE

    def set_import_mode(self, mode: ImportMode) -> None:
        self.settings.setValue("import_mode", ImportMode(mode).value)

    def get_csv_delimiter(self) -> Optional[str]:
        value = self.settings.value("csv_delimiter", "")
        return str(value) if value else None

    def set_csv_delimiter(self, delimiter: Optional[str]) -> None:
        self.settings.setValue("csv_delimiter", delimiter or "")

    def get_csv_decimal(self) -> Optional[str]:
        value = self.settings.value("csv_decimal", "")
        return str(value) if value in {".", ","} else None

    def set_csv_decimal(self, decimal: Optional[str]) -> None:
        self.settings.setValue("csv_decimal", decimal if decimal in {".", ","} else "")

    def import_options(self) -> ImportOptions:
        return ImportOptions(
            csv_delimiter=self.get_csv_delimiter(),
            csv_decimal=self.get_csv_decimal(),
        )

    # --- Logging -----------------------------------------------------------
    def get_log_level(self) -> int:
        value = str(self.settings.value("log_level", "INFO") or "INFO").upper()
        return getattr(logging, value) if value in _LOG_LEVELS else logging.INFO

    def set_log_level(self, level: str) -> None:
        name = str(level or "INFO").upper()
        self.settings.setValue("log_level", name if name in _LOG_LEVELS else "INFO")
