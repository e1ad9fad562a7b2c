"""
RecipeBox Backend - Recipe API Endpoint Tests
===============================================

What:  HTTP-level tests for /recipes and /health.
How:   httpx AsyncClient over ASGITransport; the repository built on the
       in-memory fakes is injected through dependency_overrides.

Status mapping under test:
    200 success │ 400 bad input │ 404 unknown id │ 500 store failure
"""

import uuid

import pytest


class TestListAndRead:

    @pytest.mark.asyncio
    async def test_list_recipes(self, test_client, sample_recipes, fake_store):
        response = await test_client.get("/recipes")

        assert response.status_code == 200
        body = response.json()
        assert [r["id"] for r in body] == [str(r.id) for r in sample_recipes]
        assert "publishedAt" in body[0]
        assert fake_store.call_count("find") == 1

    @pytest.mark.asyncio
    async def test_second_list_served_from_cache(self, test_client, fake_store):
        first = await test_client.get("/recipes")
        second = await test_client.get("/recipes")

        assert first.json() == second.json()
        assert fake_store.call_count("find") == 1

    @pytest.mark.asyncio
    async def test_get_recipe(self, test_client, sample_recipes):
        target = sample_recipes[1]
        response = await test_client.get(f"/recipes/{target.id}")

        assert response.status_code == 200
        assert response.json()["name"] == "Chickpea Curry"

    @pytest.mark.asyncio
    async def test_get_unknown_recipe_is_404(self, test_client):
        response = await test_client.get(f"/recipes/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_malformed_id_is_400(self, test_client):
        response = await test_client.get("/recipes/not-a-uuid")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_store_failure_is_500(self, test_client, fake_store):
        fake_store.fail_on.add("find")

        response = await test_client.get("/recipes")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "request_id" in body

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/recipes", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"


class TestSearch:

    @pytest.mark.asyncio
    async def test_search_by_tag(self, test_client, sample_recipes):
        response = await test_client.get("/recipes/search", params={"tag": "vegetarian"})

        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [
            str(sample_recipes[0].id),
            str(sample_recipes[2].id),
        ]

    @pytest.mark.asyncio
    async def test_search_without_tag_is_400(self, test_client):
        response = await test_client.get("/recipes/search")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_search_blank_tag_is_400(self, test_client):
        response = await test_client.get("/recipes/search", params={"tag": "  "})

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "tag"


class TestMutations:

    @pytest.mark.asyncio
    async def test_create_recipe(self, test_client, fake_cache):
        await test_client.get("/recipes")
        assert "recipes" in fake_cache.data

        response = await test_client.post(
            "/recipes",
            json={"name": "Soup", "tags": ["vegan"], "ingredients": ["water"], "instructions": ["Boil."]},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "New Recipe added"
        assert body["recipe"]["id"] == body["id"]
        assert body["recipe"]["name"] == "Soup"
        assert "recipes" not in fake_cache.data

        listed = await test_client.get("/recipes")
        assert body["id"] in [r["id"] for r in listed.json()]

    @pytest.mark.asyncio
    async def test_create_ignores_client_id(self, test_client):
        client_id = str(uuid.uuid4())
        response = await test_client.post("/recipes", json={"id": client_id, "name": "Soup"})

        assert response.status_code == 200
        assert response.json()["id"] != client_id

    @pytest.mark.asyncio
    async def test_create_without_name_is_400(self, test_client, fake_store):
        response = await test_client.post("/recipes", json={"tags": ["vegan"]})

        assert response.status_code == 400
        assert fake_store.call_count("insert_one") == 0

    @pytest.mark.asyncio
    async def test_create_blank_name_is_400(self, test_client):
        response = await test_client.post("/recipes", json={"name": "   "})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_unparsable_json_is_400(self, test_client):
        response = await test_client.post(
            "/recipes",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_recipe(self, test_client, sample_recipes, fake_cache):
        target = sample_recipes[0]
        await test_client.get("/recipes")

        response = await test_client.put(f"/recipes/{target.id}", json={"tags": ["vegan"]})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Recipe has been updated"
        assert body["recipe"]["tags"] == ["vegan"]
        assert body["recipe"]["name"] == target.name
        assert "recipes" not in fake_cache.data

    @pytest.mark.asyncio
    async def test_update_empty_body_is_400(self, test_client, sample_recipes):
        response = await test_client.put(f"/recipes/{sample_recipes[0].id}", json={})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_unknown_recipe_is_404(self, test_client, fake_cache):
        await test_client.get("/recipes")

        response = await test_client.put(f"/recipes/{uuid.uuid4()}", json={"name": "Ghost"})

        assert response.status_code == 404
        assert "recipes" in fake_cache.data

    @pytest.mark.asyncio
    async def test_delete_recipe(self, test_client, sample_recipes, fake_cache):
        target = sample_recipes[1]
        await test_client.get("/recipes")

        response = await test_client.delete(f"/recipes/{target.id}")

        assert response.status_code == 200
        assert response.json() == {
            "message": f"Successfully removed record: {target.id}",
            "count": 1,
        }
        assert "recipes" not in fake_cache.data

    @pytest.mark.asyncio
    async def test_delete_unknown_recipe_is_404(self, test_client):
        response = await test_client.delete(f"/recipes/{uuid.uuid4()}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_store_failure_is_500(self, test_client, sample_recipes, fake_store, fake_cache):
        await test_client.get("/recipes")
        fake_store.fail_on.add("delete_one")

        response = await test_client.delete(f"/recipes/{sample_recipes[0].id}")

        assert response.status_code == 500
        assert "recipes" in fake_cache.data

    @pytest.mark.asyncio
    async def test_cache_outage_does_not_fail_writes(self, test_client, fake_cache):
        fake_cache.fail_on.update({"get", "set", "delete"})

        created = await test_client.post("/recipes", json={"name": "Soup"})
        listed = await test_client.get("/recipes")

        assert created.status_code == 200
        assert listed.status_code == 200
        assert created.json()["id"] in [r["id"] for r in listed.json()]


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["cache"] == "available"
        assert body["cache_stats"]["pending_invalidation"] is False

    @pytest.mark.asyncio
    async def test_cache_down_is_degraded(self, test_client, fake_cache):
        fake_cache.reachable = False

        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["cache"] == "unavailable"

    @pytest.mark.asyncio
    async def test_store_down_is_unhealthy(self, test_client, fake_store):
        fake_store.reachable = False

        response = await test_client.get("/health")

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"

    @pytest.mark.asyncio
    async def test_counters_reported(self, test_client, fake_cache):
        await test_client.get("/recipes")
        await test_client.get("/recipes")
        fake_cache.fail_on.add("get")
        await test_client.get("/recipes")

        stats = (await test_client.get("/health")).json()["cache_stats"]
        assert stats["misses"] == 1
        assert stats["hits"] == 1
        assert stats["degraded_reads"] == 1
