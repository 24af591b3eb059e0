"""
Integration tests for the search API endpoints.
"""

import pytest
from fastapi import status
from httpx import AsyncClient

from ppdo.domain.search.types import EntityType


@pytest.fixture
async def agency_id(async_client: AsyncClient, admin_headers) -> str:
    """An implementing agency created through the API."""
    response = await async_client.post(
        "/api/v1/agencies",
        json={"code": "DPWH", "full_name": "Public Works and Highways"},
        headers=admin_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["id"]


class TestSearchAuth:
    """Tests for search endpoint authentication."""

    async def test_search_unauthorized(self, async_client: AsyncClient):
        """Test searching without authentication returns 401."""
        response = await async_client.get("/api/v1/search?q=road")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_search_invalid_token(self, async_client: AsyncClient):
        """Test an unknown bearer token returns 401."""
        response = await async_client.get(
            "/api/v1/search?q=road",
            headers={"Authorization": "Bearer nope"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_index_listing_requires_admin(self, async_client: AsyncClient, staff_headers):
        """Test staff cannot read raw index records."""
        response = await async_client.get("/api/v1/search/index/agency", headers=staff_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_reindex_requires_admin(self, async_client: AsyncClient, staff_headers):
        """Test staff cannot trigger a reindex."""
        response = await async_client.post("/api/v1/search/reindex", headers=staff_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestSearchEndpoint:
    """Tests for GET /search."""

    async def test_finds_created_agency(self, async_client: AsyncClient, staff_headers, agency_id):
        """Test a record written through the API is searchable straight away."""
        response = await async_client.get(
            "/api/v1/search", params={"q": "public works"}, headers=staff_headers
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 1
        assert data["available"] is True
        hit = data["results"][0]
        assert hit["entity_id"] == agency_id
        assert hit["entity_type"] == "agency"
        assert hit["match_score"] == 100
        assert hit["source_url"] == f"/dashboard/office?highlight={agency_id}"
        assert hit["page_depth_text"] == "Found in 1st page"

    async def test_unknown_entity_type(self, async_client: AsyncClient, staff_headers, agency_id):
        """Test an unknown type filter answers with an error message, not a failure."""
        response = await async_client.get(
            "/api/v1/search",
            params={"q": "public", "entity_type": "contract"},
            headers=staff_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["results"] == []
        assert "contract" in data["error"]

    async def test_zero_limit_rejected(self, async_client: AsyncClient, staff_headers):
        """Test a non-positive page size is a validation error."""
        response = await async_client.get(
            "/api/v1/search", params={"q": "road", "limit": 0}, headers=staff_headers
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_empty_query(self, async_client: AsyncClient, staff_headers, agency_id):
        """Test an empty query returns an empty page."""
        response = await async_client.get("/api/v1/search", headers=staff_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["results"] == []


class TestCategoriesAndSuggestions:
    """Tests for the sidebar counts and type-ahead endpoints."""

    async def test_categories_cover_every_type(
        self, async_client: AsyncClient, staff_headers, agency_id
    ):
        """Test counts are returned for every entity type."""
        response = await async_client.get(
            "/api/v1/search/categories", params={"q": "public"}, headers=staff_headers
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert set(data["counts"]) == set(EntityType.values())
        assert data["counts"]["agency"] == 1
        assert data["total"] == 1

    async def test_suggestions(self, async_client: AsyncClient, staff_headers, agency_id):
        """Test a word prefix suggests the matching title."""
        response = await async_client.get(
            "/api/v1/search/suggestions", params={"q": "pub"}, headers=staff_headers
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == [
            {
                "text": "Public Works and Highways",
                "entity_type": "agency",
                "entity_id": agency_id,
                "slug": f"public-works-and-highways-{agency_id}",
            }
        ]


class TestAccessEndpoint:
    """Tests for POST /search/access."""

    async def test_records_access(self, async_client: AsyncClient, staff_headers, agency_id):
        """Test opening a result bumps its access count."""
        response = await async_client.post(
            "/api/v1/search/access",
            json={"entity_type": "agency", "entity_id": agency_id},
            headers=staff_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"updated": True}

    async def test_unknown_type_rejected(self, async_client: AsyncClient, staff_headers):
        """Test an unknown entity type is a validation error."""
        response = await async_client.post(
            "/api/v1/search/access",
            json={"entity_type": "contract", "entity_id": "c1"},
            headers=staff_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"] == "validation_error"


class TestIndexAdministration:
    """Tests for the admin verification and reindex endpoints."""

    async def test_list_indexed(self, async_client: AsyncClient, admin_headers, agency_id):
        """Test admins can read raw index records."""
        response = await async_client.get("/api/v1/search/index/agency", headers=admin_headers)

        assert response.status_code == status.HTTP_200_OK
        [record] = response.json()
        assert record["entity_id"] == agency_id
        assert record["tokens"] == ["public", "works", "highways", "dpwh"]

    async def test_index_stats(self, async_client: AsyncClient, admin_headers, agency_id):
        """Test coverage is reported for every entity type."""
        response = await async_client.get("/api/v1/search/index-stats", headers=admin_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert len(data["types"]) == len(EntityType)
        agencies = next(t for t in data["types"] if t["entity_type"] == "agency")
        assert agencies["source_count"] == 1
        assert agencies["indexed_count"] == 1

    async def test_reindex_one_type(self, async_client: AsyncClient, admin_headers, agency_id):
        """Test reindexing a single entity type."""
        response = await async_client.post(
            "/api/v1/search/reindex",
            json={"entity_type": "agency"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [s["entity_type"] for s in data["stats"]] == ["agency"]
        assert data["indexed"] == 1
        assert data["errors"] == 0

    async def test_reindex_everything(self, async_client: AsyncClient, admin_headers, agency_id):
        """Test reindexing without a body covers every entity type."""
        response = await async_client.post("/api/v1/search/reindex", headers=admin_headers)

        assert response.status_code == status.HTTP_200_OK
        assert len(response.json()["stats"]) == len(EntityType)

    async def test_reindex_unknown_type(self, async_client: AsyncClient, admin_headers):
        """Test reindexing an unknown type is a validation error."""
        response = await async_client.post(
            "/api/v1/search/reindex",
            json={"entity_type": "contract"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_clear_requires_admin(self, async_client: AsyncClient, staff_headers):
        """Test staff cannot wipe the index."""
        response = await async_client.delete("/api/v1/search/index", headers=staff_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_clear_one_type(self, async_client: AsyncClient, admin_headers, agency_id):
        """Test admins can wipe the records of one entity type."""
        response = await async_client.delete(
            "/api/v1/search/index", params={"entity_type": "agency"}, headers=admin_headers
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"deleted": 1}
        listed = await async_client.get("/api/v1/search/index/agency", headers=admin_headers)
        assert listed.json() == []
