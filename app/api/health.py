from fastapi import APIRouter, Depends

from app.api.deps import get_app_settings
from app.core.settings import Settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(settings: Settings = Depends(get_app_settings)) -> dict[str, str]:
    """Проверка статуса приложения и заполненности настроек интеграций."""
    sheets_ready = bool(settings.GOOGLE_SHEET_ID) and bool(
        settings.GOOGLE_SERVICE_ACCOUNT_JSON or (settings.GOOGLE_SA_EMAIL and settings.GOOGLE_SA_PRIVATE_KEY)
    )
    return {
        "status": "ok",
        "sheets": "configured" if sheets_ready else "missing",
        "bitrix": "configured" if settings.BITRIX_WEBHOOK_URL else "missing",
        "sanity": "configured" if settings.SANITY_PROJECT_ID else "missing",
    }
