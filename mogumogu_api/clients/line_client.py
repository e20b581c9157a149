"""
LINE Messaging API reply client.
"""
import logging
from typing import Optional

import httpx

from mogumogu_api.core.config import LINE_MESSAGING_CHANNEL_TOKEN

logger = logging.getLogger(__name__)

REPLY_URL = "https://api.line.me/v2/bot/message/reply"
DEFAULT_TIMEOUT = 10.0


class LineClient:
    def __init__(self, channel_token: Optional[str] = None, http: Optional[httpx.Client] = None):
        self.channel_token = channel_token or LINE_MESSAGING_CHANNEL_TOKEN
        self._http = http or httpx.Client(timeout=DEFAULT_TIMEOUT)

    @property
    def configured(self) -> bool:
        return bool(self.channel_token)

    def reply_text(self, reply_token: str, text: str) -> None:
        """
        Send one text reply.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status
        """
        resp = self._http.post(
            REPLY_URL,
            headers={"Authorization": f"Bearer {self.channel_token}"},
            json={
                "replyToken": reply_token,
                "messages": [{"type": "text", "text": text}],
            },
        )
        resp.raise_for_status()

    def close(self) -> None:
        self._http.close()
