"""
Tests for the video collection and cleanup jobs.
"""
import random

import httpx
import pytest

from mogumogu_api.api import deps
from mogumogu_api.clients.youtube_client import SearchItem, VideoDetail
from mogumogu_api.core.errors import InternalError
from mogumogu_api.db.models.video import Video
from mogumogu_api.main import app
from mogumogu_api.services.video_collector import (
    cleanup_videos,
    collect_videos,
    guess_stage,
    parse_duration,
)


def no_sleep(seconds):
    return None


class FakeYouTube:
    """Returns the same search page for every keyword."""

    def __init__(self, items=None, details=None, configured=True, failing_queries=0):
        self.items = items or []
        self.details = details or {}
        self.configured = configured
        self.failing_queries = failing_queries
        self.queries = []
        self.detail_calls = []

    def search_shorts(self, query, max_results=25):
        self.queries.append(query)
        if len(self.queries) <= self.failing_queries:
            raise httpx.ConnectError("connection refused")
        return list(self.items)

    def video_details(self, video_ids, parts="contentDetails,status"):
        self.detail_calls.append((list(video_ids), parts))
        return {vid: self.details[vid] for vid in video_ids if vid in self.details}


def snippet(title, description=""):
    return {
        "title": title,
        "description": description,
        "channelTitle": "もぐもぐキッチン",
        "thumbnails": {"high": {"url": f"https://img.example/{title}.jpg"}},
    }


def sample_youtube(title="離乳食 にんじんペースト 初期"):
    items = [
        SearchItem("v_ok", snippet(title)),
        SearchItem("v_private", snippet("離乳食 10倍がゆ")),
        SearchItem("v_long", snippet("離乳食 中期 まとめ")),
        SearchItem("v_cat", snippet("Funny cat compilation")),
    ]
    details = {
        "v_ok": VideoDetail("v_ok", True, "PT45S"),
        "v_private": VideoDetail("v_private", False, "PT30S"),
        "v_long": VideoDetail("v_long", True, "PT3M10S"),
        "v_cat": VideoDetail("v_cat", True, "PT20S"),
    }
    return FakeYouTube(items, details)


def test_parse_duration():
    assert parse_duration("PT45S") == 45
    assert parse_duration("PT1M5S") == 65
    assert parse_duration("PT1H") == 3600
    assert parse_duration("") == 0
    assert parse_duration("garbage") == 0


def test_guess_stage():
    assert guess_stage("離乳食中期のおかゆ", "") == "モグモグ期"
    assert guess_stage("かんたんレシピ", "手づかみ食べにおすすめ") == "カミカミ期"
    assert guess_stage("離乳食 初期 ペースト", "") == "ゴックン期"
    assert guess_stage("今日のごはん", "") is None


def test_collect_videos_filters_and_stores(db):
    youtube = sample_youtube()

    result = collect_videos(db, youtube, rng=random.Random(1), sleep=no_sleep)

    assert result["collected"] == 1
    assert result["total_searched"] == 8
    assert len(result["keywords"]) == 2
    assert len(youtube.queries) == 2

    video = db.query(Video).one()
    assert video.youtube_id == "v_ok"
    assert video.source == "youtube"
    assert video.baby_month_stage == "ゴックン期"
    assert video.channel_name == "もぐもぐキッチン"
    assert video.thumbnail_url.endswith(".jpg")


def test_collect_videos_refresh_then_upsert(db):
    db.add(Video(youtube_id="old_one", source="youtube", title="古い動画"))
    db.add(Video(youtube_id="manual_one", source="manual", title="手動登録"))
    db.commit()

    collect_videos(db, sample_youtube(), refresh=True, rng=random.Random(1), sleep=no_sleep)

    ids = {v.youtube_id for v in db.query(Video).all()}
    assert ids == {"v_ok", "manual_one"}

    renamed = sample_youtube(title="離乳食 にんじんペースト 改良版")
    collect_videos(db, renamed, refresh=False, rng=random.Random(2), sleep=no_sleep)

    db.expire_all()
    rows = db.query(Video).filter(Video.youtube_id == "v_ok").all()
    assert len(rows) == 1
    assert rows[0].title == "離乳食 にんじんペースト 改良版"
    assert db.query(Video).count() == 2


def test_collect_videos_skips_failed_search_page(db):
    youtube = sample_youtube()
    youtube.failing_queries = 1

    result = collect_videos(db, youtube, rng=random.Random(1), sleep=no_sleep)

    assert result["collected"] == 1
    assert result["total_searched"] == 4


def test_collect_videos_requires_api_key(db):
    with pytest.raises(InternalError):
        collect_videos(db, FakeYouTube(configured=False), sleep=no_sleep)


def test_cleanup_videos_removes_broken(db):
    for youtube_id in ("v_ok", "v_private", "v_gone"):
        db.add(Video(youtube_id=youtube_id, source="youtube", title=youtube_id))
    db.commit()
    youtube = FakeYouTube(details={
        "v_ok": VideoDetail("v_ok", True, "PT0S"),
        "v_private": VideoDetail("v_private", False, "PT0S"),
    })

    result = cleanup_videos(db, youtube, sleep=no_sleep)

    assert result == {"success": True, "checked": 3, "removed": 2}
    assert youtube.detail_calls[0][1] == "status"
    db.expire_all()
    assert [v.youtube_id for v in db.query(Video).all()] == ["v_ok"]


def test_cleanup_videos_empty_table(db):
    assert cleanup_videos(db, FakeYouTube(), sleep=no_sleep) == {"success": True, "checked": 0, "removed": 0}


def test_collect_videos_endpoint(client, db):
    youtube = sample_youtube()
    app.dependency_overrides[deps.get_youtube_client] = lambda: youtube

    response = client.get("/api/collect-videos?refresh=true")

    assert response.status_code == 200
    assert response.json()["collected"] == 1
    assert db.query(Video).count() == 1


def test_collect_videos_endpoint_without_key(client):
    app.dependency_overrides[deps.get_youtube_client] = lambda: FakeYouTube(configured=False)

    response = client.get("/api/collect-videos")

    assert response.status_code == 500
    assert response.json() == {"error": "YOUTUBE_API_KEY is not set"}
