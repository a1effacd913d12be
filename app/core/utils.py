import re
from typing import Any

_PHONE_JUNK = re.compile(r"[^\d+]")


def normalize_phone(dial_code: str, phone: str) -> str:
    """
    Склейка кода страны и номера в один телефон.

    Из номера удаляется всё, кроме цифр и '+'. Код страны только обрезается.

    Args:
        dial_code: Код страны, например "+971"
        phone: Номер в произвольном формате

    Returns:
        str: Телефон вида "+971 501234567"
    """
    clean_dial = dial_code.strip()
    clean_phone = _PHONE_JUNK.sub("", phone).strip()
    return f"{clean_dial} {clean_phone}".strip()


def flatten_form(body: dict[str, Any]) -> list[tuple[str, str]]:
    """
    Разворачивание вложенной структуры в пары для x-www-form-urlencoded.

    Вложенность кодируется скобками: fields[PHONE][0][VALUE]=...
    None пропускается, bool передаётся как "true"/"false".

    Args:
        body: Словарь с вложенными словарями и списками

    Returns:
        list[tuple[str, str]]: Пары ключ-значение в порядке обхода
    """
    pairs: list[tuple[str, str]] = []

    def walk(prefix: str, value: Any) -> None:
        if isinstance(value, (list, tuple)):
            for i, item in enumerate(value):
                walk(f"{prefix}[{i}]", item)
        elif isinstance(value, dict):
            for key, item in value.items():
                walk(f"{prefix}[{key}]", item)
        elif isinstance(value, bool):
            pairs.append((prefix, "true" if value else "false"))
        elif value is not None:
            pairs.append((prefix, str(value)))

    for key, value in body.items():
        walk(key, value)

    return pairs


def truncate(text: str, limit: int = 200) -> str:
    """Обрезка текста ответа для сообщений об ошибках и логов."""
    return text[:limit]
