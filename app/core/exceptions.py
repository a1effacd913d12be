class LeadError(Exception):
    """Базовая ошибка сервиса.

    public_message - короткое сообщение, которое можно отдать клиенту.
    Подробности (str(exc)) остаются только в логах.
    """

    public_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)


class ValidationFailed(LeadError):
    """Ошибка входных данных заявки (HTTP 400, без повторов)."""


class InvalidPayload(ValidationFailed):
    public_message = "Invalid request body"


class MissingField(ValidationFailed):
    public_message = "Missing required fields"

    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(f"Не заполнены поля: {', '.join(fields)}")


class ConsentRequired(ValidationFailed):
    public_message = "Consent required"


class InvalidEmail(ValidationFailed):
    public_message = "Invalid email"


class ConfigurationError(LeadError):
    """Не хватает настроек развертывания (ключи, ID таблицы, URL вебхука)."""

    public_message = "Service is not configured"


class RecordWriteFailed(LeadError):
    """Не удалось записать строку в Google Sheets."""

    public_message = "Failed to save lead"


class CrmForwardFailed(LeadError):
    """Bitrix24 не принял лид ни в одной из кодировок."""

    public_message = "CRM push failed"


class ContentSourceError(LeadError):
    """Ошибка запроса к Sanity."""

    public_message = "Content source unavailable"
