import logging

from fastapi import FastAPI  # type: ignore[import-not-found, import-untyped] # pylint: disable=import-error
from fastapi.middleware.cors import CORSMiddleware

from app.api import health, lead, projects
from app.core.bitrix_client import BitrixClient
from app.core.exceptions import ConfigurationError
from app.core.sanity_client import SanityClient
from app.core.settings import Settings, get_settings
from app.core.sheets_client import SheetsClient

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Сборка приложения с клиентами, созданными один раз на процесс.

    Args:
        settings: Настройки; по умолчанию читаются из окружения

    Returns:
        FastAPI: Приложение
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=settings.log_level_value,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    application = FastAPI(title="Lead Intake")
    application.state.settings = settings
    application.state.sheets_client = SheetsClient(settings)
    application.state.bitrix_client = BitrixClient(settings)
    application.state.sanity_client = SanityClient(settings)

    if settings.CORS_ORIGINS:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type"],
        )

    application.include_router(health.router)
    application.include_router(lead.router)
    application.include_router(projects.router)

    @application.on_event("startup")
    async def on_startup() -> None:
        """Предупреждение о незаполненных настройках при старте."""
        try:
            application.state.sheets_client.check_config()
        except ConfigurationError as e:
            logger.warning("Google Sheets не настроен, заявки будут отклоняться: %s", e)
        if not settings.BITRIX_WEBHOOK_URL:
            logger.warning("BITRIX_WEBHOOK_URL не задан, заявки не будут передаваться в CRM")

    @application.on_event("shutdown")
    async def on_shutdown() -> None:
        """Закрытие HTTP-соединений при остановке приложения."""
        logger.info("Закрытие HTTP-клиентов...")
        await application.state.bitrix_client.close()
        await application.state.sanity_client.close()

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=app.state.settings.APP_HOST, port=app.state.settings.APP_PORT)
