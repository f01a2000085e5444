"""
Integration Tests for the Public Notes API.

Anonymous access by public id, gated on is_public.
"""

import pytest
from httpx import AsyncClient


class TestPublicNote:
    """Tests for GET /api/v1/public/notes/{public_id}."""

    @pytest.mark.asyncio
    async def test_private_then_public(self, client: AsyncClient, api, auth_headers):
        created = (await client.post(
            "/api/v1/notes",
            json={"title": "Shared", "content": "hello", "encrypt": True},
            headers=auth_headers,
        )).json()["data"]
        public_url = f"/api/v1/public/notes/{created['public_id']}"

        response = await client.get(public_url)
        api.assert_error(response, 404, "RES_NOT_FOUND")

        updated = (await client.put(
            f"/api/v1/notes/{created['id']}",
            json={"title": "Shared", "content": "hello", "is_public": True},
            headers=auth_headers,
        )).json()["data"]
        assert updated["public_id"] == created["public_id"]
        assert updated["share_path"] == f"/public/{created['public_id']}"

        response = await client.get(public_url)
        data = api.assert_success(response)["data"]
        assert data["title"] == "Shared"
        assert data["content"] == "hello"
        assert "owner_id" not in data

    @pytest.mark.asyncio
    async def test_made_private_again(self, client: AsyncClient, api, auth_headers):
        created = (await client.post(
            "/api/v1/notes",
            json={"title": "Temp", "is_public": True},
            headers=auth_headers,
        )).json()["data"]
        public_url = f"/api/v1/public/notes/{created['public_id']}"
        api.assert_success(await client.get(public_url))

        await client.put(
            f"/api/v1/notes/{created['id']}",
            json={"title": "Temp", "content": "", "is_public": False},
            headers=auth_headers,
        )

        api.assert_error(await client.get(public_url), 404)

    @pytest.mark.asyncio
    async def test_unknown_public_id(self, client: AsyncClient, api):
        api.assert_error(await client.get("/api/v1/public/notes/nope"), 404)
