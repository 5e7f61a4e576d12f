from __future__ import annotations

import httpx
import pytest
from conftest import ALICE

from src.app.deps import get_grocery_client
from src.app.main import app
from src.services.grocery import GroceryClient


# ── POST /aimock ─────────────────────────────────────────────────────────


class TestStartEnrichment:
    def test_acknowledges_and_schedules_delayed_job(self, client, scheduler_stub) -> None:
        resp = client.post("/aimock", json={"video_id": "abc", "recipe_id": 42})

        assert resp.status_code == 200
        assert resp.json() == {"message": "Processing started", "video_id": "abc", "recipe_id": 42}
        [job] = scheduler_stub.jobs
        assert job.recipe_id == 42
        assert job.video_id == "abc"
        assert job.delay_seconds == 10

    @pytest.mark.parametrize("body", [{"recipe_id": 42}, {"video_id": "", "recipe_id": 42}, {"video_id": 123}])
    def test_invalid_video_id(self, client, scheduler_stub, body) -> None:
        resp = client.post("/aimock", json=body)

        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid video_id"
        assert scheduler_stub.jobs == []

    def test_invalid_body(self, client) -> None:
        resp = client.post("/aimock", content=b"{not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400

    def test_only_post(self, client) -> None:
        resp = client.get("/aimock")
        assert resp.status_code == 405
        assert resp.json() == {"error": "Method Not Allowed"}


# ── GET /ingredient ──────────────────────────────────────────────────────


@pytest.fixture
def upstream_calls():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        items = [
            {"no": n, "name": f"두부 {n}", "listImageUrl": f"https://img.test/{n}.jpg", "salesPrice": 2000, "discountedPrice": 1500 if n == 1 else None}
            for n in range(1, 8)
        ]
        return httpx.Response(200, json={"data": {"listSections": [{"data": {"items": items}}]}})

    app.dependency_overrides[get_grocery_client] = lambda: GroceryClient(
        "https://api.kurly.test/search",
        transport=httpx.MockTransport(handler),
    )
    return calls


class TestIngredientSearch:
    def test_empty_keyword(self, client, upstream_calls) -> None:
        assert client.get("/ingredient").json() == []
        assert client.get("/ingredient?keyword=").json() == []
        assert upstream_calls == []

    def test_reshapes_top_five(self, client, upstream_calls) -> None:
        resp = client.get("/ingredient", params={"keyword": "두부"})

        assert resp.status_code == 200
        products = resp.json()
        assert len(products) == 5
        assert products[0] == {"id": "1", "name": "두부 1", "price": "1500", "imageUrl": "https://img.test/1.jpg"}
        assert products[1]["price"] == "2000"
        assert len(upstream_calls) == 1

    def test_upstream_failure_is_empty_list(self, client) -> None:
        app.dependency_overrides[get_grocery_client] = lambda: GroceryClient(
            "https://api.kurly.test/search",
            transport=httpx.MockTransport(lambda request: httpx.Response(502)),
        )
        resp = client.get("/ingredient", params={"keyword": "tofu"})
        assert resp.status_code == 200
        assert resp.json() == []

    def test_only_get(self, client, upstream_calls) -> None:
        assert client.post("/ingredient").status_code == 405


# ── GET /recommend/{id} ──────────────────────────────────────────────────


class TestRecommendEndpoint:
    def test_requires_token(self, client) -> None:
        assert client.get("/recommend/1").status_code == 401

    def test_unknown_recipe(self, client) -> None:
        resp = client.get("/recommend/999", headers=ALICE)
        assert resp.status_code == 404
        assert resp.json()["error"] == "Recipe not found"

    def test_returns_both_lists(self, client, store) -> None:
        target = store.add_recipe(title="Kimchi Stew", name="jjigae", ingredients=[{"name": "kimchi", "amount": "1"}])
        for i in range(5):
            store.add_recipe(title=f"Dish {i}", name="other", ingredients=[{"name": "rice", "amount": "1"}])
        match = store.add_recipe(title="Kimchi fried rice", name="bokkeumbap", ingredients=[{"name": "aged kimchi", "amount": "1"}])

        resp = client.get(f"/recommend/{target['id']}", headers=ALICE)

        assert resp.status_code == 200
        recommends = resp.json()["recommends"]
        assert len(recommends["by_menu"]) == 5
        assert len(recommends["by_ingredients"]) == 5
        assert recommends["by_menu"][0]["id"] == match["id"]
        assert recommends["by_ingredients"][0]["id"] == match["id"]
        assert "matchScore" not in recommends["by_ingredients"][0]

    def test_target_lookup_failure(self, client, store) -> None:
        store.fail_on.add("get_recipe")
        assert client.get("/recommend/1", headers=ALICE).status_code == 500
