import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.exceptions import ConfigurationError, ContentSourceError
from app.core.sanity_client import SanityClient
from app.core.settings import Settings
from app.main import create_app
from app.services import project_service

ROYAL = {
    "slug": "the-royal-atlantis",
    "name": "The Royal Atlantis",
    "location": "United Arab Emirates, Dubai",
    "propertyType": "Residential",
    "bedrooms": 3,
    "developer": "Kerzner",
    "startingPriceAED": 12500000,
    "sizeRange": "1,800 - 4,200",
    "description": "Iconic beachfront residences.",
    "listingUrl": "https://example.com/royal",
    "topTile": 1,
    "imageUrl": "https://cdn.sanity.io/images/abc/production/royal-1.jpg",
    "images": [
        {"url": "https://cdn.sanity.io/images/abc/production/royal-1.jpg", "alt": "Facade"},
        {"url": None, "alt": None},
        {"url": "https://cdn.sanity.io/images/abc/production/royal-3.jpg", "alt": None},
    ],
}

SKYLINE = {"slug": "skyline-tower", "name": "Skyline Tower", "images": None}


def sanity_handler(result: Any, seen: list[httpx.Request] | None = None) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(200, json={"ms": 3, "query": request.url.params["query"], "result": result})

    return handler


def make_sanity(settings: Settings, handler: Callable[[httpx.Request], httpx.Response]) -> SanityClient:
    return SanityClient(settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestSanityClient:
    """Тесты клиента Sanity."""

    @pytest.mark.asyncio
    async def test_fetch_with_params(self, settings: Settings) -> None:
        """Тест URL и параметров GROQ."""
        seen: list[httpx.Request] = []
        client = make_sanity(settings, sanity_handler({"ok": 1}, seen))

        assert await client.fetch("*[slug.current == $slug][0]", {"slug": "royal"}) == {"ok": 1}

        request = seen[0]
        assert request.url.host == "abc123.apicdn.sanity.io"
        assert request.url.path == "/v2025-01-01/data/query/production"
        assert request.url.params["$slug"] == json.dumps("royal")

    @pytest.mark.asyncio
    async def test_fetch_without_cdn(self, settings: Settings) -> None:
        """Тест API без CDN."""
        seen: list[httpx.Request] = []
        client = make_sanity(settings.model_copy(update={"SANITY_USE_CDN": False}), sanity_handler([], seen))

        await client.fetch("*")

        assert seen[0].url.host == "abc123.api.sanity.io"

    @pytest.mark.asyncio
    async def test_missing_project_id(self, settings: Settings) -> None:
        """Тест без SANITY_PROJECT_ID."""
        client = make_sanity(settings.model_copy(update={"SANITY_PROJECT_ID": None}), sanity_handler([]))

        with pytest.raises(ConfigurationError):
            await client.fetch("*")

    @pytest.mark.asyncio
    async def test_error_status(self, settings: Settings) -> None:
        """Тест ошибки запроса."""
        client = make_sanity(settings, lambda request: httpx.Response(400, json={"error": {"description": "bad"}}))

        with pytest.raises(ContentSourceError):
            await client.fetch("*[")


class TestProjectService:
    """Тесты чтения проектов."""

    @pytest.mark.asyncio
    async def test_list_projects(self, settings: Settings) -> None:
        """Тест каталога: проекты без slug пропускаются."""
        client = make_sanity(settings, sanity_handler([ROYAL, SKYLINE, {"slug": None, "name": "Draft"}]))

        projects = await project_service.list_projects(client)

        assert [p.slug for p in projects] == ["the-royal-atlantis", "skyline-tower"]
        royal = projects[0]
        assert royal.bedrooms == "3"
        assert royal.starting_price_aed == 12500000
        assert royal.top_tile == 1
        assert [image.url for image in royal.images] == [
            "https://cdn.sanity.io/images/abc/production/royal-1.jpg",
            "https://cdn.sanity.io/images/abc/production/royal-3.jpg",
        ]
        assert projects[1].images == []

    @pytest.mark.asyncio
    async def test_get_project_not_found(self, settings: Settings) -> None:
        """Тест: проект не найден."""
        client = make_sanity(settings, sanity_handler(None))

        assert await project_service.get_project(client, "missing") is None

    @pytest.mark.asyncio
    async def test_top_tiles(self, settings: Settings) -> None:
        """Тест плиток: пустые плитки - None."""
        client = make_sanity(settings, sanity_handler({"tile1": ROYAL, "tile2": None, "tile3": SKYLINE}))

        tiles = await project_service.get_top_tiles(client)

        assert tiles[1].slug == "the-royal-atlantis"
        assert tiles[2] is None
        assert tiles[3].slug == "skyline-tower"
        assert tiles[4] is None

    @pytest.mark.asyncio
    async def test_tile_availability(self, settings: Settings) -> None:
        """Тест проверки занятости плитки."""
        seen: list[httpx.Request] = []
        client = make_sanity(settings, sanity_handler(1, seen))

        result = await project_service.check_tile_availability(client, 2, "drafts.abc")

        assert result.available is False
        assert result.conflicts == 1
        assert seen[0].url.params["$tile"] == "2"
        assert seen[0].url.params["$id"] == json.dumps("drafts.abc")

    @pytest.mark.asyncio
    async def test_tile_out_of_range(self, settings: Settings) -> None:
        """Тест номера плитки вне 1-4."""
        client = make_sanity(settings, sanity_handler(0))

        with pytest.raises(ValueError):
            await project_service.check_tile_availability(client, 5)


class TestProjectsApi:
    """Тесты /api/projects."""

    def _client(self, settings: Settings, handler: Callable[[httpx.Request], httpx.Response]) -> TestClient:
        application = create_app(settings)
        application.state.sanity_client = make_sanity(settings, handler)
        return TestClient(application)

    def test_list(self, settings: Settings) -> None:
        response = self._client(settings, sanity_handler([ROYAL])).get("/api/projects")

        assert response.status_code == 200
        body = response.json()
        assert body[0]["slug"] == "the-royal-atlantis"
        assert body[0]["startingPriceAED"] == 12500000
        assert body[0]["topTile"] == 1

    def test_get_by_slug(self, settings: Settings) -> None:
        response = self._client(settings, sanity_handler(ROYAL)).get("/api/projects/the-royal-atlantis")

        assert response.status_code == 200
        assert response.json()["name"] == "The Royal Atlantis"

    def test_not_found(self, settings: Settings) -> None:
        response = self._client(settings, sanity_handler(None)).get("/api/projects/nope")

        assert response.status_code == 404
        assert response.json() == {"detail": "Project not found"}

    def test_top_tiles(self, settings: Settings) -> None:
        response = self._client(settings, sanity_handler({"tile4": SKYLINE})).get("/api/projects/top-tiles")

        assert response.status_code == 200
        body = response.json()
        assert body["1"] is None
        assert body["4"]["slug"] == "skyline-tower"

    def test_tile_availability(self, settings: Settings) -> None:
        response = self._client(settings, sanity_handler(0)).get(
            "/api/projects/tiles/3/availability", params={"document_id": "abc"}
        )

        assert response.status_code == 200
        assert response.json() == {"tile": 3, "available": True, "conflicts": 0}

    def test_tile_availability_out_of_range(self, settings: Settings) -> None:
        response = self._client(settings, sanity_handler(0)).get("/api/projects/tiles/0/availability")

        assert response.status_code == 400

    def test_content_source_down(self, settings: Settings) -> None:
        response = self._client(settings, lambda request: httpx.Response(500, text="down")).get("/api/projects")

        assert response.status_code == 502

    def test_content_source_not_configured(self, settings: Settings) -> None:
        unconfigured = settings.model_copy(update={"SANITY_PROJECT_ID": None})
        response = self._client(unconfigured, sanity_handler([])).get("/api/projects")

        assert response.status_code == 503
