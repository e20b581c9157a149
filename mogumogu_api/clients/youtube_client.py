"""
YouTube Data API v3 client.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx

from mogumogu_api.core.config import YOUTUBE_API_KEY

logger = logging.getLogger(__name__)

BASE_URL = "https://www.googleapis.com/youtube/v3"
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class SearchItem:
    video_id: str
    snippet: dict


@dataclass(frozen=True)
class VideoDetail:
    video_id: str
    embeddable: bool
    duration: str  # ISO-8601, e.g. "PT45S"


class YouTubeClient:
    """Thin wrapper over search.list and videos.list."""

    def __init__(self, api_key: Optional[str] = None, http: Optional[httpx.Client] = None):
        self.api_key = api_key or YOUTUBE_API_KEY
        self._http = http or httpx.Client(base_url=BASE_URL, timeout=DEFAULT_TIMEOUT)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get(self, path: str, params: dict) -> dict:
        resp = self._http.get(path, params={**params, "key": self.api_key})
        resp.raise_for_status()
        return resp.json()

    def search_shorts(self, query: str, max_results: int = 25) -> List[SearchItem]:
        """
        One page of short Japanese videos for a query.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status
        """
        data = self._get("/search", {
            "part": "snippet",
            "type": "video",
            "videoDuration": "short",
            "maxResults": str(max_results),
            "order": "relevance",
            "regionCode": "JP",
            "relevanceLanguage": "ja",
            "q": query,
        })
        items = []
        for item in data.get("items") or []:
            video_id = (item.get("id") or {}).get("videoId")
            if video_id:
                items.append(SearchItem(video_id=video_id, snippet=item.get("snippet") or {}))
        return items

    def video_details(self, video_ids: List[str], parts: str = "contentDetails,status") -> Dict[str, VideoDetail]:
        """
        Embeddability and duration keyed by video id.

        Ids unknown to the API are absent from the result.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status
        """
        if not video_ids:
            return {}
        data = self._get("/videos", {"part": parts, "id": ",".join(video_ids)})
        details = {}
        for item in data.get("items") or []:
            details[item["id"]] = VideoDetail(
                video_id=item["id"],
                embeddable=(item.get("status") or {}).get("embeddable") is True,
                duration=(item.get("contentDetails") or {}).get("duration") or "PT0S",
            )
        return details

    def close(self) -> None:
        self._http.close()
