import logging
from typing import Any

from pydantic import ValidationError

from app.core.sanity_client import SanityClient
from app.models.project import TILE_SLOTS, Project, TileAvailability

logger = logging.getLogger(__name__)

PROJECT_FIELDS = """
  "slug": slug.current,
  "name": projectName,
  location,
  propertyType,
  bedrooms,
  developer,
  startingPriceAED,
  "sizeRange": sizeRangeFt2,
  description,
  "listingUrl": listingURL,
  topTile,
  "imageUrl": coalesce(
    image1.asset->url,
    image2.asset->url,
    image3.asset->url,
    image4.asset->url,
    image5.asset->url
  ),
  "images": [
    {"url": image1.asset->url, "alt": image1Alt},
    {"url": image2.asset->url, "alt": image2Alt},
    {"url": image3.asset->url, "alt": image3Alt},
    {"url": image4.asset->url, "alt": image4Alt},
    {"url": image5.asset->url, "alt": image5Alt}
  ]
"""

PROJECTS_QUERY = f'*[_type == "project" && defined(slug.current)] | order(projectName asc) {{{PROJECT_FIELDS}}}'

PROJECT_BY_SLUG_QUERY = f'*[_type == "project" && slug.current == $slug][0] {{{PROJECT_FIELDS}}}'

# При дублях плитки показывается последний изменённый документ
TOP_TILES_QUERY = (
    "{"
    + ",".join(
        f'"tile{n}": *[_type == "project" && topTile == {n}] | order(_updatedAt desc)[0] {{{PROJECT_FIELDS}}}'
        for n in TILE_SLOTS
    )
    + "}"
)

TILE_CONFLICTS_QUERY = """count(*[
  _type == "project" &&
  defined(topTile) &&
  topTile == $tile &&
  !(_id in [$id, replace($id, "drafts.", ""), "drafts." + $id])
])"""


def _to_project(raw: Any) -> Project | None:
    if not isinstance(raw, dict) or not raw.get("slug") or not raw.get("name"):
        return None
    try:
        return Project.model_validate(raw)
    except ValidationError as e:
        logger.warning("Некорректный документ проекта %s: %s", raw.get("slug"), e)
        return None


async def list_projects(sanity: SanityClient) -> list[Project]:
    """Все проекты, отсортированные по названию."""
    rows = await sanity.fetch(PROJECTS_QUERY) or []

    projects = []
    for row in rows:
        project = _to_project(row)
        if project is None:
            logger.warning("Пропущен проект: %s", row.get("slug") if isinstance(row, dict) else row)
            continue
        projects.append(project)

    logger.info("Загружено %s проектов из Sanity", len(projects))
    return projects


async def get_project(sanity: SanityClient, slug: str) -> Project | None:
    """
    Поиск проекта по slug.

    Args:
        sanity: Клиент Sanity
        slug: slug проекта

    Returns:
        Project | None: Проект или None если не найден
    """
    raw = await sanity.fetch(PROJECT_BY_SLUG_QUERY, {"slug": slug})
    project = _to_project(raw)
    if project is None:
        logger.info("Проект со slug=%s не найден", slug)
    return project


async def get_top_tiles(sanity: SanityClient) -> dict[int, Project | None]:
    """Проекты для плиток 1-4 главной страницы (пустая плитка - None)."""
    data = await sanity.fetch(TOP_TILES_QUERY) or {}
    return {n: _to_project(data.get(f"tile{n}")) for n in TILE_SLOTS}


async def check_tile_availability(
    sanity: SanityClient,
    tile: int,
    document_id: str | None = None,
) -> TileAvailability:
    """
    Проверка, свободна ли плитка для документа.

    Считает другие проекты с той же плиткой, не учитывая сам документ
    и его черновик/опубликованную версию.

    Args:
        sanity: Клиент Sanity
        tile: Номер плитки 1-4
        document_id: ID документа (опубликованный или drafts.*)

    Returns:
        TileAvailability: Свободна ли плитка и сколько конфликтов
    """
    if tile not in TILE_SLOTS:
        raise ValueError(f"tile должен быть от 1 до 4, получено {tile}")

    conflicts = await sanity.fetch(TILE_CONFLICTS_QUERY, {"tile": tile, "id": document_id or ""})
    conflicts = int(conflicts or 0)
    if conflicts:
        logger.info("Плитка %s уже занята (%s документов)", tile, conflicts)
    return TileAvailability(tile=tile, available=conflicts == 0, conflicts=conflicts)
