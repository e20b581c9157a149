"""
Integration tests for the metered AI endpoints.
"""
import json
from datetime import timedelta

from mogumogu_api.core.plan_limits import AI_CONSULTATION, RECIPE_GENERATION, RECIPE_SEARCH
from mogumogu_api.core.security import create_access_token
from mogumogu_api.core.timeutil import utcnow
from mogumogu_api.db.models.cached_recipe import CachedRecipe
from mogumogu_api.db.models.usage import UsageEvent
from mogumogu_api.db.models.user import User
from mogumogu_api.llm.provider import LLMProviderError
from mogumogu_api.services.recipe_cache import cache_recipes, normalize_recipe


def recipes_reply(*titles):
    return json.dumps({"recipes": [
        {
            "title": title,
            "emoji": "🥕",
            "stage": "モグモグ期",
            "time": 10,
            "difficulty": 1,
            "ingredients": ["にんじん 30g"],
            "steps": ["茹でる", "つぶす"],
            "nutrition": {"kcal": 30, "protein": 0.5, "iron": 0.1, "vitA": "◎", "vitC": "○"},
            "tip": "レンジでもOK",
            "tags": ["にんじん"],
        }
        for title in titles
    ]}, ensure_ascii=False)


def add_events(db, user_id, feature, count):
    for _ in range(count):
        db.add(UsageEvent(user_id=user_id, feature=feature, created_at=utcnow()))
    db.commit()


def usage_rows(db, feature=None):
    query = db.query(UsageEvent)
    if feature:
        query = query.filter(UsageEvent.feature == feature)
    return query.count()


# ============================================
# Authentication
# ============================================

def test_generate_recipe_without_token_writes_nothing(client, db, llm):
    response = client.post("/api/generate-recipe", json={"baby_month": 7})

    assert response.status_code == 401
    assert response.json() == {"error": "Authorization header missing"}
    assert usage_rows(db) == 0
    assert db.query(User).count() == 0
    assert llm.calls == []


def test_invalid_token_is_rejected(client, llm):
    response = client.post(
        "/api/ai-consultation",
        json={"message": "質問です"},
        headers={"Authorization": "Bearer not-a-real-token"},
    )
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid or expired token"
    assert llm.calls == []


def test_expired_token_is_rejected(client):
    token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(minutes=-5))
    response = client.post(
        "/api/ai-consultation",
        json={"message": "質問です"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 401


def test_signed_out_user_is_rejected(client, db, llm, identity, auth_headers):
    """A validly signed token is refused once the identity service no longer knows it."""
    identity.signed_out.add("user-1")
    response = client.post("/api/ai-consultation", json={"message": "質問です"}, headers=auth_headers())
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid or expired token"
    assert identity.calls == 1
    assert usage_rows(db) == 0
    assert llm.calls == []


# ============================================
# Consultation
# ============================================

def test_consultation_counts_usage_until_limit(client, db, llm, auth_headers):
    llm.replies = ["回答1", "回答2", "回答3", "回答4"]
    headers = auth_headers()

    for expected_used in (1, 2, 3):
        response = client.post("/api/ai-consultation", json={"message": "離乳食の相談"}, headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["reply"] == f"回答{expected_used}"
        assert body["usage"] == {"used": expected_used, "limit": 3}

    response = client.post("/api/ai-consultation", json={"message": "離乳食の相談"}, headers=headers)

    assert response.status_code == 429
    body = response.json()
    assert body["limit"] == 3
    assert body["used"] == 3
    assert "error" in body
    assert len(llm.calls) == 3
    assert usage_rows(db, AI_CONSULTATION) == 3


def test_consultation_premium_is_unlimited(client, db, llm, auth_headers):
    db.add(User(id="user-1", is_premium=True))
    db.commit()
    add_events(db, "user-1", AI_CONSULTATION, 10)

    response = client.post("/api/ai-consultation", json={"message": "相談"}, headers=auth_headers())

    assert response.status_code == 200
    assert response.json()["usage"] == {"used": 11, "limit": None}


def test_consultation_sends_fixed_settings(client, llm, auth_headers):
    client.post(
        "/api/ai-consultation",
        json={"message": "卵はいつから？", "baby_month": 8, "allergens": ["乳"]},
        headers=auth_headers(),
    )

    call = llm.calls[0]
    assert call["temperature"] == 0.7
    assert call["max_tokens"] == 1000
    assert "8ヶ月" in call["messages"][0]["content"]
    assert call["messages"][-1] == {"role": "user", "content": "卵はいつから？"}


def test_consultation_blank_message(client, llm, auth_headers):
    response = client.post("/api/ai-consultation", json={"message": "   "}, headers=auth_headers())
    assert response.status_code == 400
    assert "error" in response.json()
    assert llm.calls == []


def test_consultation_upstream_failure(client, db, llm, auth_headers):
    llm.error = LLMProviderError("OpenAI returned 500", status_code=500, body="upstream exploded")

    response = client.post("/api/ai-consultation", json={"message": "相談"}, headers=auth_headers())

    assert response.status_code == 502
    assert "upstream exploded" not in response.text
    assert usage_rows(db) == 0


def test_consultation_empty_completion(client, db, llm, auth_headers):
    llm.replies = ["   "]

    response = client.post("/api/ai-consultation", json={"message": "相談"}, headers=auth_headers())

    assert response.status_code == 502
    assert response.json() == {"error": "AI returned an empty response"}
    assert usage_rows(db) == 0


# ============================================
# Recipe generation
# ============================================

def test_generate_recipe_success(client, db, llm, auth_headers):
    llm.replies = ["```json\n" + recipes_reply("にんじんがゆ", "にんじんペースト") + "\n```"]

    response = client.post(
        "/api/generate-recipe",
        json={"baby_month": 7, "count": 2, "preference": "甘め"},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    body = response.json()
    assert [r["title"] for r in body["recipes"]] == ["にんじんがゆ", "にんじんペースト"]
    assert body["usage"] == {"used": 1, "limit": 1}
    assert llm.calls[0]["temperature"] == 0.8
    assert llm.calls[0]["max_tokens"] == 3000


def test_generate_recipe_malformed_completion(client, db, llm, auth_headers):
    llm.replies = ["Here are some recipes you might like!"]

    response = client.post("/api/generate-recipe", json={"baby_month": 7}, headers=auth_headers())

    assert response.status_code == 502
    assert response.json() == {"error": "Could not parse AI response"}
    assert usage_rows(db, RECIPE_GENERATION) == 0


def test_generate_recipe_invalid_month(client, llm, auth_headers):
    response = client.post("/api/generate-recipe", json={"baby_month": 4}, headers=auth_headers())
    assert response.status_code == 400
    assert llm.calls == []


# ============================================
# Ingredient search
# ============================================

def seed_cache(db, *titles, month=7):
    recipes = [normalize_recipe({"title": t, "ingredients": ["にんじん 30g"]}, month) for t in titles]
    cache_recipes(db, recipes, month)


def test_search_recipe_quota_exhausted(client, db, llm, auth_headers):
    add_events(db, "user-1", RECIPE_SEARCH, 3)

    response = client.post(
        "/api/search-recipe",
        json={"ingredients": ["にんじん"], "baby_month": 7},
        headers=auth_headers(),
    )

    assert response.status_code == 429
    body = response.json()
    assert body["limit"] == 3
    assert body["used"] == 3
    assert llm.calls == []


def test_search_recipe_full_cache_hit_is_free(client, db, llm, auth_headers):
    seed_cache(db, "にんじんがゆ", "にんじんスープ")

    response = client.post(
        "/api/search-recipe",
        json={"ingredients": ["にんじん"], "baby_month": 7, "count": 2},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["from_cache"] is True
    assert body["has_more"] is True
    assert len(body["recipes"]) == 2
    assert "usage" not in body
    assert llm.calls == []
    assert usage_rows(db) == 0


def test_search_recipe_generates_shortfall(client, db, llm, auth_headers):
    seed_cache(db, "にんじんがゆ")
    llm.replies = [recipes_reply("にんじん蒸しパン", "にんじんおやき")]

    response = client.post(
        "/api/search-recipe",
        json={"ingredients": ["にんじん"], "baby_month": 7, "count": 3},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    body = response.json()
    titles = [r["title"] for r in body["recipes"]]
    assert titles == ["にんじんがゆ", "にんじん蒸しパン", "にんじんおやき"]
    assert body["from_cache"] is False
    assert body["usage"] == {"used": 1, "limit": 3}
    assert all(r["id"].startswith("ai_") for r in body["recipes"][1:])

    # Only the shortfall is requested and cached titles are excluded
    user_message = llm.calls[0]["messages"][-1]["content"]
    assert "2品" in user_message
    assert "にんじんがゆ" in user_message
    assert llm.calls[0]["temperature"] == 0.85
    assert db.query(CachedRecipe).count() == 3


def test_search_recipe_partial_cache_when_quota_exhausted(client, db, llm, auth_headers):
    seed_cache(db, "にんじんがゆ")
    add_events(db, "user-1", RECIPE_SEARCH, 3)

    response = client.post(
        "/api/search-recipe",
        json={"ingredients": ["にんじん"], "baby_month": 7, "count": 3},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    body = response.json()
    assert [r["title"] for r in body["recipes"]] == ["にんじんがゆ"]
    assert body["from_cache"] is True
    assert body["has_more"] is False
    assert body["usage"] == {"used": 3, "limit": 3}
    assert llm.calls == []


def test_search_recipe_requires_ingredients(client, llm, auth_headers):
    response = client.post(
        "/api/search-recipe",
        json={"ingredients": [], "baby_month": 7},
        headers=auth_headers(),
    )
    assert response.status_code == 400
    assert llm.calls == []
