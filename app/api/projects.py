import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import get_sanity_client
from app.core.exceptions import ConfigurationError, ContentSourceError
from app.core.sanity_client import SanityClient
from app.models.project import TILE_SLOTS, Project, TileAvailability
from app.services import project_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])


def _content_error(e: Exception) -> HTTPException:
    if isinstance(e, ConfigurationError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.public_message)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=ContentSourceError.public_message)


@router.get("", response_model=list[Project])
async def list_projects(sanity: SanityClient = Depends(get_sanity_client)) -> list[Project]:
    """Каталог проектов."""
    try:
        return await project_service.list_projects(sanity)
    except (ConfigurationError, ContentSourceError) as e:
        logger.error("Не удалось загрузить проекты: %s", e)
        raise _content_error(e) from e


@router.get("/top-tiles", response_model=dict[int, Project | None])
async def top_tiles(sanity: SanityClient = Depends(get_sanity_client)) -> dict[int, Project | None]:
    """Проекты для плиток главной страницы."""
    try:
        return await project_service.get_top_tiles(sanity)
    except (ConfigurationError, ContentSourceError) as e:
        logger.error("Не удалось загрузить плитки: %s", e)
        raise _content_error(e) from e


@router.get("/tiles/{tile}/availability", response_model=TileAvailability)
async def tile_availability(
    tile: int,
    document_id: str | None = Query(None, description="ID документа, который занимает плитку"),
    sanity: SanityClient = Depends(get_sanity_client),
) -> TileAvailability:
    """Свободна ли плитка для документа."""
    if tile not in TILE_SLOTS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tile must be between 1 and 4")
    try:
        return await project_service.check_tile_availability(sanity, tile, document_id)
    except (ConfigurationError, ContentSourceError) as e:
        logger.error("Не удалось проверить плитку %s: %s", tile, e)
        raise _content_error(e) from e


@router.get("/{slug}", response_model=Project)
async def get_project(slug: str, sanity: SanityClient = Depends(get_sanity_client)) -> Project:
    """Карточка проекта."""
    try:
        project = await project_service.get_project(sanity, slug)
    except (ConfigurationError, ContentSourceError) as e:
        logger.error("Не удалось загрузить проект %s: %s", slug, e)
        raise _content_error(e) from e

    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project
