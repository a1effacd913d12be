import re
from typing import Any

from pydantic import ValidationError

from app.core.exceptions import ConsentRequired, InvalidEmail, InvalidPayload, MissingField
from app.models.lead import LeadSubmission

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

REQUIRED_FIELDS = ("first_name", "last_name", "dial_code", "phone", "email")


def parse_submission(raw: Any) -> LeadSubmission:
    """
    Разбор тела запроса в LeadSubmission.

    Raises:
        InvalidPayload: тело не объект или поле неверного типа
    """
    if not isinstance(raw, dict):
        raise InvalidPayload("Тело запроса должно быть JSON-объектом")
    try:
        return LeadSubmission.model_validate(raw)
    except ValidationError as e:
        raise InvalidPayload(str(e)) from e


def validate_submission(submission: LeadSubmission) -> None:
    """
    Проверка обязательных полей, согласия и email. Без побочных эффектов.

    Raises:
        MissingField: пустое обязательное поле
        ConsentRequired: consent не равен True
        InvalidEmail: email не похож на local@domain.tld
    """
    missing = [name for name in REQUIRED_FIELDS if not (getattr(submission, name) or "").strip()]
    if missing:
        raise MissingField(missing)

    if submission.consent is not True:
        raise ConsentRequired()

    if not EMAIL_RE.fullmatch(submission.email or ""):
        raise InvalidEmail(f"Некорректный email: {submission.email!r}")
