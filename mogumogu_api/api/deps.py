"""
Dependencies for the construct-once clients held on ``app.state``.
"""
from fastapi import Request

from mogumogu_api.clients.identity_client import IdentityClient
from mogumogu_api.clients.line_client import LineClient
from mogumogu_api.clients.rakuten_client import RakutenRecipeClient
from mogumogu_api.clients.youtube_client import YouTubeClient
from mogumogu_api.db.session import SessionLocal
from mogumogu_api.llm.provider import LLMProvider


def get_identity_client(request: Request) -> IdentityClient:
    return request.app.state.identity_client


def get_llm_provider(request: Request) -> LLMProvider:
    return request.app.state.llm_provider


def get_youtube_client(request: Request) -> YouTubeClient:
    return request.app.state.youtube_client


def get_rakuten_client(request: Request) -> RakutenRecipeClient:
    return request.app.state.rakuten_client


def get_line_client(request: Request) -> LineClient:
    return request.app.state.line_client


def get_session_factory():
    """Session factory for work that outlives the request (background tasks)."""
    return SessionLocal
