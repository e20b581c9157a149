"""
Identity service (Supabase Auth) client: exchanges an access token for its user.
"""
import logging
from typing import Optional

import httpx

from mogumogu_api.core.config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY

logger = logging.getLogger(__name__)

USER_PATH = "/auth/v1/user"
DEFAULT_TIMEOUT = 10.0


class IdentityClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        http: Optional[httpx.Client] = None,
    ):
        self.base_url = (base_url or SUPABASE_URL or "").rstrip("/")
        self.api_key = api_key or SUPABASE_SERVICE_ROLE_KEY
        self._http = http or httpx.Client(timeout=DEFAULT_TIMEOUT)

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    def get_user(self, token: str) -> Optional[dict]:
        """
        Look up the user a token belongs to.

        Returns None when the service rejects the token (signed out, deleted
        account, expired or foreign signature).

        Raises:
            httpx.HTTPError: On transport failure
        """
        resp = self._http.get(
            f"{self.base_url}{USER_PATH}",
            headers={
                "apikey": self.api_key,
                "Authorization": f"Bearer {token}",
            },
        )
        if resp.status_code != 200:
            logger.info(f"Identity service rejected token: status={resp.status_code}")
            return None

        user = resp.json()
        if not isinstance(user, dict) or not user.get("id"):
            return None
        return user

    def close(self) -> None:
        self._http.close()
