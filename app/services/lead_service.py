import logging
from datetime import datetime, timezone

from app.core.bitrix_client import BitrixClient
from app.core.exceptions import LeadError
from app.core.sheets_client import SheetsClient
from app.models.lead import CrmOutcome, DeliveryOutcome, LeadSubmission, NormalizedLead
from app.services.validation import validate_submission

logger = logging.getLogger(__name__)


def iso_timestamp(now: datetime | None = None) -> str:
    """Время в формате 2025-01-31T12:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def forward_lead(bitrix: BitrixClient, lead: NormalizedLead) -> CrmOutcome:
    """
    Отправка лида в Bitrix24 без исключений наружу.

    Любая ошибка CRM превращается в CrmOutcome(ok=False) и пишется в лог:
    строка уже сохранена в таблице и может быть сверена вручную.
    """
    try:
        lead_id = await bitrix.add_lead(lead.as_bitrix_fields())
    except LeadError as e:
        logger.error("Ошибка отправки лида в Bitrix24: %s", e)
        return CrmOutcome(ok=False, error=str(e))
    except Exception as e:
        logger.error("Непредвиденная ошибка отправки в Bitrix24: %s", e, exc_info=True)
        return CrmOutcome(ok=False, error=str(e))

    return CrmOutcome(ok=True, lead_id=lead_id)


async def submit_lead(
    submission: LeadSubmission,
    sheets: SheetsClient,
    bitrix: BitrixClient,
    now: datetime | None = None,
) -> DeliveryOutcome:
    """
    Обработка заявки: проверка, запись в таблицу, затем отправка в CRM.

    Args:
        submission: Заявка с формы
        sheets: Клиент Google Sheets (обязательная запись)
        bitrix: Клиент Bitrix24 (best-effort)
        now: Время обработки, по умолчанию текущее

    Returns:
        DeliveryOutcome: ok=True и результат CRM

    Raises:
        ValidationFailed: заявка отклонена, внешние вызовы не выполнялись
        ConfigurationError: не настроена таблица
        RecordWriteFailed: строка не записана, CRM не вызывается
    """
    validate_submission(submission)

    lead = NormalizedLead.from_submission(submission, iso_timestamp(now))
    logger.info(
        "Получена заявка: path=%s, phone=%s, email=%s",
        submission.path,
        lead.full_phone,
        submission.email,
    )

    await sheets.append_row(lead.as_sheet_row())

    crm = await forward_lead(bitrix, lead)
    if not crm.ok:
        logger.warning("Заявка сохранена в таблицу, но не передана в Bitrix24: %s", crm.error)

    return DeliveryOutcome(ok=True, crm_ok=crm.ok, crm_lead_id=crm.lead_id)
