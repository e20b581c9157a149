"""
Tests for seeding the community feed from the recipe ranking API.
"""
import random

import pytest

from mogumogu_api.api import deps
from mogumogu_api.core.errors import InternalError
from mogumogu_api.db.models.share_post import SharePost
from mogumogu_api.main import app
from mogumogu_api.services.rakuten_collector import (
    CATEGORIES,
    SOURCE_NAME,
    collect_rakuten_recipes,
    convert_to_post,
)


class FakeRakuten:
    def __init__(self, per_category=3):
        self.per_category = per_category
        self.requested = []

    def category_ranking(self, category_id):
        self.requested.append(category_id)
        return [
            {
                "recipeTitle": f"{category_id} レシピ{i}",
                "recipeDescription": "やわらかく煮るだけ",
                "recipeMaterial": ["にんじん", "じゃがいも", "だし"],
                "foodImageUrl": f"https://img.example/{category_id}/{i}.jpg",
                "recipeUrl": f"https://recipe.example/{category_id}/{i}",
            }
            for i in range(self.per_category)
        ]


def test_convert_to_post():
    post = convert_to_post(
        {
            "recipeTitle": "にんじんがゆ",
            "recipeDescription": "初めての一品に",
            "recipeMaterial": ["にんじん", "米"],
            "mediumImageUrl": "https://img.example/m.jpg",
            "recipeUrl": "https://recipe.example/1",
        },
        "初期",
        random.Random(0),
    )

    assert post.title == "にんじんがゆ"
    assert post.content == "【材料】にんじん、米\n\n初めての一品に"
    assert post.image_url == "https://img.example/m.jpg"
    assert post.source_name == SOURCE_NAME
    assert post.tags == ["初期", SOURCE_NAME, "にんじん", "米"]
    assert 50 <= post.likes_count < 350
    assert 5 <= post.comments_count < 45


def test_collect_inserts_every_category(db):
    rakuten = FakeRakuten()

    result = collect_rakuten_recipes(db, rakuten, rng=random.Random(0), sleep=lambda s: None)

    assert result["success"] is True
    assert result["count"] == 3 * len(CATEGORIES)
    assert rakuten.requested == [c["id"] for c in CATEGORIES]
    assert db.query(SharePost).count() == 3 * len(CATEGORIES)


def test_collect_skips_when_already_seeded(db):
    collect_rakuten_recipes(db, FakeRakuten(), sleep=lambda s: None)
    rakuten = FakeRakuten()

    result = collect_rakuten_recipes(db, rakuten, sleep=lambda s: None)

    assert result == {"skipped": True, "count": 3 * len(CATEGORIES)}
    assert rakuten.requested == []


def test_collect_refresh_replaces_rows(db):
    db.add(SharePost(title="ユーザー投稿", source_name=None))
    db.commit()
    collect_rakuten_recipes(db, FakeRakuten(), sleep=lambda s: None)

    result = collect_rakuten_recipes(db, FakeRakuten(per_category=1), refresh=True, sleep=lambda s: None)

    assert result["count"] == len(CATEGORIES)
    assert db.query(SharePost).filter(SharePost.source_name == SOURCE_NAME).count() == len(CATEGORIES)
    assert db.query(SharePost).filter(SharePost.title == "ユーザー投稿").count() == 1


def test_collect_twice_without_refresh_keeps_one_row_per_recipe(db):
    collect_rakuten_recipes(db, FakeRakuten(per_category=1), sleep=lambda s: None)

    result = collect_rakuten_recipes(db, FakeRakuten(per_category=1), sleep=lambda s: None)

    urls = [row.source_url for row in db.query(SharePost).all()]
    assert len(urls) == len(set(urls)) == len(CATEGORIES)
    assert result["count"] == len(CATEGORIES)
    assert result["created"] == 0


def test_collect_rerun_refreshes_content_and_keeps_counts(db):
    collect_rakuten_recipes(db, FakeRakuten(per_category=1), sleep=lambda s: None)
    post = db.query(SharePost).filter(SharePost.source_url == "https://recipe.example/41-554/0").one()
    post.likes_count = 999
    post.title = "古いタイトル"
    db.commit()

    collect_rakuten_recipes(db, FakeRakuten(per_category=1), sleep=lambda s: None)

    db.refresh(post)
    assert post.title == "41-554 レシピ0"
    assert post.likes_count == 999


def test_collect_same_recipe_in_two_categories(db):
    class SharedRanking(FakeRakuten):
        def category_ranking(self, category_id):
            return [{"recipeTitle": "かぼちゃペースト", "recipeUrl": "https://recipe.example/shared"}]

    result = collect_rakuten_recipes(db, SharedRanking(), sleep=lambda s: None)

    assert result["count"] == 1
    assert db.query(SharePost).count() == 1


def test_collect_nothing_fetched(db):
    with pytest.raises(InternalError):
        collect_rakuten_recipes(db, FakeRakuten(per_category=0), sleep=lambda s: None)


def test_collect_endpoint(client, db):
    app.dependency_overrides[deps.get_rakuten_client] = lambda: FakeRakuten(per_category=1)

    response = client.get("/api/collect-rakuten-recipes")

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == len(CATEGORIES)
    assert len(body["categories"]) == len(CATEGORIES)
