import json
import logging
from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.core.exceptions import ConfigurationError, ContentSourceError
from app.core.settings import Settings
from app.core.utils import truncate

logger = logging.getLogger(__name__)


class SanityClient:
    """Клиент HTTP Query API Sanity (только чтение опубликованного контента)."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        """Инициализация клиента Sanity."""
        self.project_id = settings.SANITY_PROJECT_ID
        self.dataset = settings.SANITY_DATASET
        self.api_version = settings.SANITY_API_VERSION.lstrip("v")
        self.use_cdn = settings.SANITY_USE_CDN
        self.timeout = settings.SANITY_TIMEOUT
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient()

    @property
    def query_url(self) -> str:
        """
        URL эндпоинта GROQ-запросов.

        Raises:
            ConfigurationError: SANITY_PROJECT_ID не задан
        """
        if not self.project_id:
            raise ConfigurationError("Не задан SANITY_PROJECT_ID")
        host = "apicdn" if self.use_cdn else "api"
        return f"https://{self.project_id}.{host}.sanity.io/v{self.api_version}/data/query/{self.dataset}"

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        reraise=True,
    )
    async def _get(self, url: str, params: dict[str, str]) -> httpx.Response:
        return await self._client.get(url, params=params, timeout=self.timeout)

    async def fetch(self, query: str, params: dict[str, Any] | None = None) -> Any:
        """
        Выполнение GROQ-запроса.

        Args:
            query: GROQ-запрос
            params: Параметры запроса ($name), значения кодируются в JSON

        Returns:
            Any: Поле result ответа Sanity

        Raises:
            ConfigurationError: не задан проект
            ContentSourceError: сетевая ошибка или ошибка запроса
        """
        url = self.query_url
        query_params = {"query": query}
        for name, value in (params or {}).items():
            query_params[f"${name}"] = json.dumps(value)

        try:
            response = await self._get(url, query_params)
        except httpx.HTTPError as e:
            logger.error("Ошибка запроса к Sanity: %s", e)
            raise ContentSourceError(f"Sanity request failed: {e}") from e

        if response.status_code >= 400:
            logger.error("Sanity вернул %s: %s", response.status_code, truncate(response.text))
            raise ContentSourceError(f"Sanity HTTP {response.status_code} {truncate(response.text)}")

        try:
            data = response.json()
        except ValueError as e:
            raise ContentSourceError(f"Sanity returned non-JSON: {truncate(response.text)}") from e

        if not isinstance(data, dict) or "result" not in data:
            raise ContentSourceError("Sanity response has no result")

        logger.debug("Sanity: запрос выполнен за %s мс", data.get("ms"))
        return data["result"]

    async def close(self) -> None:
        """Закрыть HTTP-клиент, если он создан здесь."""
        if self._owns_client:
            await self._client.aclose()
