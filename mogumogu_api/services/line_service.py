"""
LINE Messaging webhook handling.

The platform expects 200 for every delivery, so signature mismatches and
reply failures are logged and never surfaced as errors.
"""
import base64
import hashlib
import hmac
import logging
from typing import List, Optional

import httpx

from mogumogu_api.clients.line_client import LineClient
from mogumogu_api.core.config import APP_URL

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "MoguMogu 🍼 へようこそ！\n\n"
    "離乳食のレシピや育児情報をお届けします。\n\n"
    f"アプリはこちら👇\n{APP_URL}"
)
RECIPE_REPLY = f"🍳 離乳食レシピはアプリで検索できます！\n{APP_URL}"
CONSULTATION_REPLY = f"🤖 AI相談はアプリから！\n{APP_URL}"
DEFAULT_REPLY = f"メッセージありがとうございます😊\n\nアプリでレシピ検索やAI相談ができます👇\n{APP_URL}"


def verify_signature(body: bytes, signature: Optional[str], channel_secret: str) -> bool:
    """Compare base64(HMAC-SHA256(body)) with the X-Line-Signature header."""
    if not signature:
        return False
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("utf-8")
    return hmac.compare_digest(expected, signature)


def classify_reply(text: str) -> str:
    if "レシピ" in text:
        return RECIPE_REPLY
    if "相談" in text:
        return CONSULTATION_REPLY
    return DEFAULT_REPLY


def reply_for_event(event: dict) -> Optional[str]:
    """Reply text for one webhook event, or None when no reply is due."""
    event_type = event.get("type")
    if event_type == "follow":
        return WELCOME_MESSAGE
    if event_type == "message":
        message = event.get("message") or {}
        if message.get("type") == "text":
            return classify_reply(message.get("text") or "")
    return None


def handle_events(events: List[dict], client: LineClient) -> int:
    """
    Reply to follow and text-message events.

    Returns:
        Number of replies sent
    """
    if not client.configured:
        logger.warning("LINE_MESSAGING_CHANNEL_TOKEN not configured - skipping replies")
        return 0

    sent = 0
    for event in events:
        reply_token = event.get("replyToken")
        text = reply_for_event(event)
        if not reply_token or not text:
            continue
        try:
            client.reply_text(reply_token, text)
            sent += 1
        except httpx.HTTPError as e:
            logger.error(f"LINE reply failed for event type={event.get('type')}: {e}")
    return sent
