from __future__ import annotations

import logging
import secrets
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from . import __version__
from .auth import parse_expires_in
from .auth import router as auth_router
from .config import Settings
from .db import init_db
from .elections import FecClient, FecConfig
from .elections import router as elections_router
from .errors import AuthError, StorageError
from .ingest import Fetcher, NewsIngestor
from .news_feed import FeedConfig, NewsFeedClient
from .news_store import NewsStore
from .scheduler import NewsScheduler
from .votes import router as votes_router

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_API_PREFIX = "/api"


def health():
    return {"ok": True}


def news(request: Request):
    """All stored news, newest first."""
    store: NewsStore = request.app.state.store
    try:
        records = store.list_news()
    except StorageError as e:
        logger.exception("news listing failed: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to load news."})
    return [r.model_dump(mode="json") for r in records]


def news_refresh(request: Request):
    """Run one ingestion tick now, unless one is already running."""
    ingestor: NewsIngestor = request.app.state.ingestor
    report = ingestor.run_if_idle()
    if report is None:
        raise HTTPException(status_code=409, detail="news ingestion is already running")
    return {"ok": report.ok, "report": report.to_dict()}


def news_ingest_status(request: Request):
    ingestor: NewsIngestor = request.app.state.ingestor
    scheduler: Optional[NewsScheduler] = request.app.state.scheduler
    last = ingestor.last_report
    try:
        stored = request.app.state.store.count()
    except StorageError as e:
        logger.warning("news count failed: %s", e)
        stored = None
    return {
        "ok": True,
        "running": ingestor.busy,
        "scheduler_running": bool(scheduler and scheduler.running),
        "stored": stored,
        "last_report": last.to_dict() if last else None,
    }


def _register_routes(app: FastAPI, prefix: str = "") -> None:
    app.add_api_route(f"{prefix}/health", health, methods=["GET"])
    app.add_api_route(f"{prefix}/news", news, methods=["GET"])
    app.add_api_route(f"{prefix}/news/refresh", news_refresh, methods=["POST"])
    app.add_api_route(f"{prefix}/news/ingest/status", news_ingest_status, methods=["GET"])


def create_app(
    settings: Optional[Settings] = None,
    fetcher: Optional[Fetcher] = None,
    fec_client: Optional[FecClient] = None,
) -> FastAPI:
    app = FastAPI(title="Civicwatch API", version=__version__)
    app.include_router(auth_router)
    app.include_router(votes_router)
    app.include_router(elections_router)
    _register_routes(app)
    # Same API under /api for clients behind a reverse proxy that reserves "/".
    _register_routes(app, _API_PREFIX)

    @app.exception_handler(AuthError)
    async def auth_error(request: Request, exc: AuthError):
        return JSONResponse(status_code=401, content={"message": str(exc)})

    @app.on_event("startup")
    def startup():
        cfg = settings or Settings()
        logging.basicConfig(level=cfg.log_level.upper(), format=LOG_FORMAT)

        db_path = cfg.require_storage()
        parse_expires_in(cfg.jwt_expires_in)
        if not cfg.jwt_secret:
            logger.warning("JWT_SECRET is not set; using a random per-process secret, tokens will not survive a restart")
            cfg.jwt_secret = secrets.token_urlsafe(32)
        init_db(db_path)

        store = NewsStore(db_path)
        ingestor = NewsIngestor(
            fetcher or NewsFeedClient(FeedConfig.from_settings(cfg)),
            store,
            commit_every=cfg.db_commit_every,
        )
        app.state.settings = cfg
        app.state.store = store
        app.state.ingestor = ingestor
        app.state.fec_client = fec_client or FecClient(FecConfig.from_settings(cfg))
        app.state.scheduler = None

        if cfg.scheduler_enabled:
            scheduler = NewsScheduler(
                timezone=cfg.scheduler_tz,
                hour=cfg.ingest_cron_hour,
                run_on_start=cfg.run_on_start,
            )
            scheduler.start(ingestor.run_if_idle)
            app.state.scheduler = scheduler

        logger.info(
            "started db=%s scheduler=%s tz=%s category=%s country=%s",
            db_path, cfg.scheduler_enabled, cfg.scheduler_tz or "local", cfg.news_category, cfg.news_country,
        )

    @app.on_event("shutdown")
    def shutdown():
        scheduler: Optional[NewsScheduler] = getattr(app.state, "scheduler", None)
        if scheduler is not None:
            scheduler.stop()

    return app


app = create_app()
