import json
import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode

import httpx

from app.core.exceptions import ConfigurationError, CrmForwardFailed
from app.core.settings import Settings
from app.core.utils import flatten_form, truncate

logger = logging.getLogger(__name__)

LEAD_ADD_METHOD = "crm.lead.add.json"

Encoder = Callable[[dict[str, Any]], tuple[bytes, str]]


def encode_json(payload: dict[str, Any]) -> tuple[bytes, str]:
    return json.dumps(payload, ensure_ascii=False).encode("utf-8"), "application/json"


def encode_form(payload: dict[str, Any]) -> tuple[bytes, str]:
    return urlencode(flatten_form(payload)).encode("ascii"), "application/x-www-form-urlencoded"


# Порядок важен: первая успешная кодировка выигрывает
ENCODINGS: list[tuple[str, Encoder]] = [
    ("json", encode_json),
    ("form", encode_form),
]


def parse_json(text: str) -> Any | None:
    """Разбор тела ответа, None если это не JSON."""
    try:
        return json.loads(text)
    except ValueError:
        return None


def is_success(status_code: int, data: Any) -> bool:
    """
    Bitrix24 вернул созданный лид: 2xx и числовое поле result.

    Args:
        status_code: HTTP статус ответа
        data: Разобранное тело ответа или None

    Returns:
        bool: True если лид создан
    """
    if not 200 <= status_code < 300 or not isinstance(data, dict):
        return False
    result = data.get("result")
    return isinstance(result, (int, float)) and not isinstance(result, bool)


def error_message(status_code: int, text: str, data: Any) -> str:
    if isinstance(data, dict):
        for key in ("error_description", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {status_code} {truncate(text)}".strip()


class BitrixClient:
    """Клиент входящего вебхука Bitrix24 (crm.lead.add)."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        encodings: list[tuple[str, Encoder]] | None = None,
    ) -> None:
        """Инициализация клиента Bitrix24."""
        self.webhook_url = settings.BITRIX_WEBHOOK_URL
        self.timeout = settings.BITRIX_TIMEOUT
        self.encodings = encodings or ENCODINGS
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient()

    @property
    def lead_add_url(self) -> str:
        """
        URL метода crm.lead.add.

        Raises:
            ConfigurationError: BITRIX_WEBHOOK_URL не задан
        """
        if not self.webhook_url:
            raise ConfigurationError("Не задан BITRIX_WEBHOOK_URL")
        base = self.webhook_url if self.webhook_url.endswith("/") else f"{self.webhook_url}/"
        return f"{base}{LEAD_ADD_METHOD}"

    async def add_lead(self, fields: dict[str, Any]) -> int:
        """
        Создание лида. Кодировки перебираются по порядку, у каждой попытки свой таймаут.

        Args:
            fields: Поля лида для crm.lead.add

        Returns:
            int: ID созданного лида

        Raises:
            ConfigurationError: не задан URL вебхука
            CrmForwardFailed: ни одна попытка не удалась
        """
        url = self.lead_add_url
        payload = {"fields": fields}
        last_error = "no encodings configured"

        for index, (name, encode) in enumerate(self.encodings):
            is_last = index == len(self.encodings) - 1
            body, content_type = encode(payload)

            try:
                response = await self._client.post(
                    url,
                    content=body,
                    headers={"Content-Type": content_type},
                    timeout=self.timeout,
                )
            except httpx.HTTPError as e:
                last_error = f"{name} request failed: {type(e).__name__} {e}".strip()
                logger.warning("Bitrix24: попытка '%s' не удалась: %s", name, last_error)
                if is_last:
                    raise CrmForwardFailed(last_error) from e
                continue

            data = parse_json(response.text)
            if is_success(response.status_code, data):
                lead_id = int(data["result"])
                logger.info("Bitrix24: создан лид id=%s (кодировка '%s')", lead_id, name)
                return lead_id

            last_error = error_message(response.status_code, response.text, data)
            logger.warning(
                "Bitrix24: попытка '%s' отклонена, status=%s: %s",
                name,
                response.status_code,
                last_error,
            )

        raise CrmForwardFailed(last_error)

    async def close(self) -> None:
        """Закрыть HTTP-клиент, если он создан здесь."""
        if self._owns_client:
            await self._client.aclose()
