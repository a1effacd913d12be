import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.api.deps import get_bitrix_client, get_sheets_client
from app.core.bitrix_client import BitrixClient
from app.core.exceptions import ConfigurationError, InvalidPayload, RecordWriteFailed, ValidationFailed
from app.core.sheets_client import SheetsClient
from app.services.lead_service import submit_lead
from app.services.validation import parse_submission

logger = logging.getLogger(__name__)

router = APIRouter(tags=["lead"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


@router.post("/api/lead")
async def create_lead(
    request: Request,
    sheets: SheetsClient = Depends(get_sheets_client),
    bitrix: BitrixClient = Depends(get_bitrix_client),
) -> JSONResponse:
    """Приём заявки с формы сайта."""
    try:
        raw: Any = await request.json()
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, InvalidPayload.public_message)

    try:
        submission = parse_submission(raw)
        outcome = await submit_lead(submission, sheets, bitrix)
    except ValidationFailed as e:
        logger.info("Заявка отклонена: %s", e)
        return _error(status.HTTP_400_BAD_REQUEST, e.public_message)
    except (ConfigurationError, RecordWriteFailed) as e:
        logger.error("Заявка не сохранена: %s", e)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, e.public_message)
    except Exception as e:
        logger.error("Ошибка обработки заявки: %s", e, exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    return JSONResponse(status_code=status.HTTP_200_OK, content=outcome.model_dump(by_alias=True))
