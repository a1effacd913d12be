import asyncio
import logging
import threading
from typing import Any

import gspread
from google.oauth2.service_account import Credentials
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.core.exceptions import ConfigurationError, RecordWriteFailed
from app.core.settings import Settings

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


class SheetsClient:
    """Запись заявок в Google Sheets (система учёта)."""

    def __init__(self, settings: Settings) -> None:
        """Инициализация клиента Google Sheets."""
        self.spreadsheet_id = settings.GOOGLE_SHEET_ID
        self.worksheet_name = settings.GOOGLE_SHEET_TAB or "Sheet1"
        self.timeout = settings.SHEETS_TIMEOUT
        self.attempts = settings.SHEETS_APPEND_ATTEMPTS
        self._sa_email = settings.GOOGLE_SA_EMAIL
        self._sa_private_key = settings.GOOGLE_SA_PRIVATE_KEY
        self._sa_file = settings.GOOGLE_SERVICE_ACCOUNT_JSON
        self._client: gspread.Client | None = None
        self._worksheet: gspread.Worksheet | None = None
        self._init_lock = threading.Lock()

    def check_config(self) -> None:
        """
        Проверка, что задана таблица и учётные данные.

        Raises:
            ConfigurationError: не хватает GOOGLE_SHEET_ID или ключей сервисного аккаунта
        """
        if not self.spreadsheet_id:
            raise ConfigurationError("Не задан GOOGLE_SHEET_ID")
        if not self._sa_file and not (self._sa_email and self._sa_private_key):
            raise ConfigurationError(
                "Не заданы GOOGLE_SA_EMAIL/GOOGLE_SA_PRIVATE_KEY или GOOGLE_SERVICE_ACCOUNT_JSON"
            )

    def _get_credentials(self) -> Credentials:
        """
        Получение credentials сервисного аккаунта.

        Email + ключ из окружения имеют приоритет над JSON-файлом.

        Returns:
            Credentials: Google OAuth2 credentials
        """
        if self._sa_email and self._sa_private_key:
            info = {
                "type": "service_account",
                "client_email": self._sa_email,
                "private_key": self._sa_private_key,
                "token_uri": TOKEN_URI,
            }
            return Credentials.from_service_account_info(info, scopes=SCOPES)

        return Credentials.from_service_account_file(self._sa_file, scopes=SCOPES)

    def _get_worksheet(self) -> gspread.Worksheet:
        """
        Получение worksheet объекта.

        Returns:
            gspread.Worksheet: Объект листа таблицы
        """
        if self._worksheet is None:
            with self._init_lock:
                if self._worksheet is None:
                    if self._client is None:
                        credentials = self._get_credentials()
                        self._client = gspread.authorize(credentials)
                        self._client.set_timeout(self.timeout)

                    spreadsheet = self._client.open_by_key(self.spreadsheet_id)
                    self._worksheet = spreadsheet.worksheet(self.worksheet_name)
                    logger.info("Открыт лист '%s' таблицы %s", self.worksheet_name, self.spreadsheet_id)

        return self._worksheet

    def _reset(self) -> None:
        with self._init_lock:
            self._client = None
            self._worksheet = None

    async def append_row(self, values: list[Any]) -> None:
        """
        Добавление одной строки в конец листа.

        Args:
            values: Значения колонок в порядке листа

        Raises:
            ConfigurationError: не хватает настроек
            RecordWriteFailed: сетевая ошибка, ошибка авторизации или таблица не найдена
        """
        self.check_config()

        def append_row_sync() -> None:
            try:
                worksheet = self._get_worksheet()
                worksheet.append_row(values, value_input_option="RAW", table_range="A1")
            except Exception:
                # _reset берёт _init_lock: вызывать только из рабочего потока
                self._reset()
                raise

        async def append_once() -> None:
            try:
                await asyncio.to_thread(append_row_sync)
            except Exception as e:
                logger.error("Ошибка записи строки в Google Sheets: %s", e)
                raise RecordWriteFailed(f"Google Sheets append failed: {e}") from e

        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(RecordWriteFailed),
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            reraise=True,
        ):
            with attempt:
                await append_once()

        logger.info("Добавлена строка в лист '%s' (%s колонок)", self.worksheet_name, len(values))
