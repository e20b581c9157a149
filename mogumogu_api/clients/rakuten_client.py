"""
Rakuten Recipe category-ranking client.
"""
import logging
from typing import List, Optional

import httpx

from mogumogu_api.core.config import RAKUTEN_APP_ID

logger = logging.getLogger(__name__)

RANKING_URL = "https://app.rakuten.co.jp/services/api/Recipe/CategoryRanking/20170426"
DEFAULT_TIMEOUT = 10.0


class RakutenRecipeClient:
    def __init__(self, app_id: Optional[str] = None, http: Optional[httpx.Client] = None):
        self.app_id = app_id or RAKUTEN_APP_ID
        self._http = http or httpx.Client(timeout=DEFAULT_TIMEOUT)

    @property
    def configured(self) -> bool:
        return bool(self.app_id)

    def category_ranking(self, category_id: str) -> List[dict]:
        """
        Top recipes of one category.

        Failures are logged and yield an empty list.
        """
        if not self.app_id:
            return []
        try:
            resp = self._http.get(
                RANKING_URL,
                params={"applicationId": self.app_id, "categoryId": category_id},
            )
            resp.raise_for_status()
            return resp.json().get("result") or []
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Rakuten ranking fetch failed for category={category_id}: {e}")
            return []

    def close(self) -> None:
        self._http.close()
