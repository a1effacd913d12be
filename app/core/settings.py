import logging
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

load_dotenv()

BASE_DIR = Path(__file__).parent.parent.parent


class Settings(BaseSettings):

    GOOGLE_SA_EMAIL: str | None = Field(
        default=None,
        description="Email сервисного аккаунта Google Cloud",
    )
    GOOGLE_SA_PRIVATE_KEY: str | None = Field(
        default=None,
        description="Приватный ключ сервисного аккаунта (PEM, допускаются экранированные \\n)",
    )
    GOOGLE_SERVICE_ACCOUNT_JSON: str | None = Field(
        default=None,
        description="Путь до JSON-файла сервисного аккаунта (альтернатива email + ключ)",
    )
    GOOGLE_SHEET_ID: str | None = Field(
        default=None,
        description="ID Google-таблицы (из URL)",
    )
    GOOGLE_SHEET_TAB: str = Field(
        default="Sheet1",
        description="Название листа, в который добавляются заявки",
    )
    SHEETS_TIMEOUT: float = Field(default=20.0, gt=0, description="Таймаут запроса к Google Sheets, сек")
    SHEETS_APPEND_ATTEMPTS: int = Field(
        default=1,
        ge=1,
        description="Количество попыток записи строки (1 - без повторов)",
    )

    BITRIX_WEBHOOK_URL: str | None = Field(
        default=None,
        description="Базовый URL входящего вебхука Bitrix24 (https://<portal>/rest/<user>/<token>/)",
    )
    BITRIX_TIMEOUT: float = Field(default=12.0, gt=0, description="Таймаут одной попытки отправки в Bitrix24, сек")

    SANITY_PROJECT_ID: str | None = Field(default=None, description="ID проекта Sanity")
    SANITY_DATASET: str = Field(default="production", description="Датасет Sanity")
    SANITY_API_VERSION: str = Field(default="2025-01-01", description="Версия API Sanity")
    SANITY_USE_CDN: bool = Field(default=True, description="Читать опубликованный контент через CDN")
    SANITY_TIMEOUT: float = Field(default=10.0, gt=0, description="Таймаут запроса к Sanity, сек")

    APP_HOST: str = Field(default="0.0.0.0", description="Хост FastAPI-приложения")
    APP_PORT: int = Field(default=8080, description="Порт приложения")
    LOG_LEVEL: str = Field(default="INFO", description="Уровень логирования")
    CORS_ORIGINS: list[str] = Field(
        default_factory=list,
        description="Разрешённые источники для браузерных запросов формы",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("GOOGLE_SA_PRIVATE_KEY")
    @classmethod
    def unescape_private_key(cls, value: str | None) -> str | None:
        """Ключ из env обычно хранится в одну строку с литеральными \\n."""
        if value is None:
            return None
        return value.replace("\\n", "\n")

    @field_validator("GOOGLE_SERVICE_ACCOUNT_JSON")
    @classmethod
    def resolve_service_account_path(cls, value: str | None) -> str | None:
        if not value:
            return None
        if not Path(value).is_absolute():
            return str(BASE_DIR / value)
        return value

    @property
    def log_level_value(self) -> int:
        """Возвращает числовой уровень логирования для logging.basicConfig."""
        return getattr(logging, self.LOG_LEVEL.upper(), logging.INFO)


@lru_cache
def get_settings() -> Settings:
    """Настройки процесса, создаются один раз при первом обращении."""
    return Settings()
