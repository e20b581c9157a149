import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

# ✅ Import All API Routes
from mogumogu_api.api.routes import ai, billing, blog, collectors, content, health, line_webhook, stripe_webhook

# ✅ Core
from mogumogu_api.clients.identity_client import IdentityClient
from mogumogu_api.clients.line_client import LineClient
from mogumogu_api.clients.rakuten_client import RakutenRecipeClient
from mogumogu_api.clients.youtube_client import YouTubeClient
from mogumogu_api.core import config
from mogumogu_api.core.config import LOG_DIR, LOG_LEVEL, RUN_MIGRATIONS
from mogumogu_api.core.error_handlers import register_error_handlers
from mogumogu_api.core.logging_config import sanitize_log_data, setup_logging
from mogumogu_api.db.migrate import run_migrations
from mogumogu_api.llm.openai_provider import build_default_provider

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


logger = logging.getLogger(__name__)


def describe_config() -> dict:
    """Settings snapshot for the startup log, secrets redacted."""
    settings = {
        name.lower(): getattr(config, name)
        for name in dir(config)
        if name.isupper()
    }
    return sanitize_log_data(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    for name in ("identity_client", "youtube_client", "rakuten_client", "line_client"):
        client = getattr(app.state, name, None)
        if client is not None:
            client.close()


def create_app() -> FastAPI:
    setup_logging(LOG_LEVEL, LOG_DIR)
    logger.info(f"Starting MoguMogu API with config: {describe_config()}")

    if RUN_MIGRATIONS:
        run_migrations()

    # ============================================
    # ✅ FASTAPI APP INIT
    # ============================================

    app = FastAPI(title="MoguMogu API", lifespan=lifespan)

    # ✅ Clients are built once per process and shared by all requests
    app.state.identity_client = IdentityClient()
    app.state.llm_provider = build_default_provider()
    app.state.youtube_client = YouTubeClient()
    app.state.rakuten_client = RakutenRecipeClient()
    app.state.line_client = LineClient()

    # ✅ CORS: the web client and cron callers come from anywhere
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # ✅ Any OPTIONS request gets an empty 200 (outermost, before CORS)
    @app.middleware("http")
    async def options_ok(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)
        return await call_next(request)

    register_error_handlers(app)

    # ============================================
    # ✅ REGISTER ALL ROUTERS
    # ============================================

    app.include_router(ai.router)
    app.include_router(billing.router)
    app.include_router(stripe_webhook.router)
    app.include_router(line_webhook.router)
    app.include_router(collectors.router)
    app.include_router(content.router)
    app.include_router(blog.router)
    app.include_router(health.router)

    return app


app = create_app()

# ✅ Serverless handler (one deployment can serve every route)
handler = Mangum(app)
