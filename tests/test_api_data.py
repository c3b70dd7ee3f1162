"""Tests for site data endpoints."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from aiohttp.test_utils import TestClient

from pagestage.config import Config
from pagestage.server import create_app


@pytest.fixture
async def client(
    aiohttp_client: Any,
    test_config: Config,
    write_site: Callable[..., Path],
    sample_site: dict[str, Any],
) -> TestClient:
    write_site(sample_site)
    return await aiohttp_client(create_app(test_config))


class TestGetSiteData:
    """Tests for GET /json."""

    @pytest.mark.asyncio
    async def test__published_site__returns_site_json(self, client: TestClient) -> None:
        response = await client.get("/json")

        assert response.status == 200
        data = await response.json()
        assert set(data["pages"]) == {"home", "account", "login"}
        assert data["components"]["button"]["style"] == {"padding": "4px"}
        assert data["pages"]["login"]["redirectForLogin"] == "/account"

    @pytest.mark.asyncio
    async def test__unknown_domain__returns_404(self, client: TestClient) -> None:
        response = await client.get("/json", headers={"Host": "unknown.org"})

        assert response.status == 404
        assert await response.json() == {"error": "Site data not found"}

    @pytest.mark.asyncio
    async def test__draft__is_not_exposed(
        self,
        client: TestClient,
        write_site: Callable[..., Path],
    ) -> None:
        write_site({"pages": {"draft": {}}}, filename="preview.json")

        data = await (await client.get("/json")).json()

        assert "draft" not in data["pages"]


class TestGetPageData:
    """Tests for GET /page/{page_name}."""

    @pytest.mark.asyncio
    async def test__existing_page__returns_page_json(self, client: TestClient) -> None:
        response = await client.get("/page/home")

        assert response.status == 200
        assert response.content_type == "application/json"
        data = await response.json()
        assert data["head"] == {"elements": [{"type": "title", "text": "Home"}]}
        assert data["body"]["elements"][1] == {"type": "", "text": "Go", "import": "button"}

    @pytest.mark.asyncio
    async def test__missing_page__returns_404(self, client: TestClient) -> None:
        response = await client.get("/page/nope")

        assert response.status == 404
        assert await response.json() == {"error": "Page not found", "page": "nope"}

    @pytest.mark.asyncio
    async def test__page_route__does_not_shadow_html_pages(self, client: TestClient) -> None:
        response = await client.get("/home")

        assert response.content_type == "text/html"
