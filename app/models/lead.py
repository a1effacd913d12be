from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.utils import normalize_phone

BITRIX_SOURCE_ID = "WEB"


class LeadSubmission(BaseModel):
    """Заявка с формы сайта (живёт только в рамках одного запроса)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    first_name: str | None = Field(None, description="Имя")
    last_name: str | None = Field(None, description="Фамилия")
    dial_code: str | None = Field(None, description="Код страны, например +971")
    phone: str | None = Field(None, description="Номер телефона в свободном формате")
    email: str | None = Field(None, description="Email")
    language: str | None = Field(None, description="Предпочитаемый язык общения")
    golden_visa: Any = Field(default=False, description="Интерес к Golden Visa (учитывается истинность)")
    consent: Any = Field(default=False, description="Согласие: принимается только true")
    path: str | None = Field(None, description="Страница, с которой отправлена форма")
    timestamp: str | None = Field(None, description="Время отправки (перезаписывается сервером)")


class NormalizedLead(BaseModel):
    """Проверенная заявка с серверным временем и нормализованным телефоном."""

    model_config = ConfigDict(frozen=True)

    submission: LeadSubmission
    timestamp: str
    full_phone: str

    @classmethod
    def from_submission(cls, submission: LeadSubmission, timestamp: str) -> "NormalizedLead":
        return cls(
            submission=submission.model_copy(update={"timestamp": timestamp}),
            timestamp=timestamp,
            full_phone=normalize_phone(submission.dial_code or "", submission.phone or ""),
        )

    def as_sheet_row(self) -> list[str]:
        """
        Строка для Google Sheets в фиксированном порядке колонок.

        Returns:
            list[str]: timestamp, имя, фамилия, код, телефон, полный телефон,
                email, язык, golden visa, согласие, путь
        """
        s = self.submission
        return [
            self.timestamp,
            s.first_name or "",
            s.last_name or "",
            s.dial_code or "",
            s.phone or "",
            self.full_phone,
            s.email or "",
            s.language or "",
            "TRUE" if s.golden_visa else "FALSE",
            "TRUE" if s.consent else "FALSE",
            s.path or "",
        ]

    @property
    def title(self) -> str:
        s = self.submission
        return f"Website Lead – {s.first_name} {s.last_name}".strip()

    def as_bitrix_fields(self) -> dict[str, Any]:
        """Поля для crm.lead.add."""
        s = self.submission
        comments = "\n".join(
            [
                f"Source Path: {s.path or ''}",
                f"Preferred Language: {s.language or ''}",
                f"Golden Visa: {'Yes' if s.golden_visa else 'No'}",
                f"Consent: {'Yes' if s.consent else 'No'}",
                f"Submitted At: {self.timestamp}",
            ]
        )
        return {
            "TITLE": self.title,
            "NAME": s.first_name,
            "LAST_NAME": s.last_name,
            "PHONE": [{"VALUE": self.full_phone, "VALUE_TYPE": "WORK"}],
            "EMAIL": [{"VALUE": s.email, "VALUE_TYPE": "WORK"}],
            "SOURCE_ID": BITRIX_SOURCE_ID,
            "COMMENTS": comments,
        }


class CrmOutcome(BaseModel):
    """Результат отправки в CRM: значение вместо исключения."""

    ok: bool
    lead_id: int | None = None
    error: str | None = None


class DeliveryOutcome(BaseModel):
    """Ответ клиенту после успешной записи в таблицу."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    crm_ok: bool = Field(False, alias="bitrixOk")
    crm_lead_id: int | None = Field(None, alias="bitrixLeadId")
