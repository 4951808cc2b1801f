# vibecheck/main.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pathlib import Path
from sqlalchemy.engine import Engine
from typing import Optional
import logging
import time

from .config import Settings, settings
from .database import build_engine
from .errors import RateLimitExceeded, VibeCheckError
from .logging_config import setup_logging
from .services.completion_client import CompletionClient
from .services.movie_catalog import MovieCatalog
from .services.rate_limiter import RateLimiter
from .services.retention import RetentionSweeper
from .services.session_machine import SessionStateMachine
from .services.session_store import SessionStore
from .services.synthesizer import RecommendationSynthesizer
from .websocket.manager import ConnectionManager
from .api.dependencies import client_key

logger = logging.getLogger(__name__)

DESCRIPTION = """
## Vibe Check Movies

Multiplayer swipe quiz that turns a group's movie votes into shared recommendations.

### Workflow:
1. Host creates a session and shares the link
2. Friends join from the link
3. Host starts the quiz; everyone swipes love / like / pass / haven't seen
4. When the last person submits (or the host closes voting), recommendations are generated

### Realtime:
Connect to `/ws` and send `{"type": "join_session", "sessionId": "..."}` to receive
`participant_joined`, `questions_ready`, `answer_submitted` and `results_ready` events.
"""


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(VibeCheckError)
    async def domain_error_handler(request: Request, exc: VibeCheckError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        field = ".".join(str(p) for p in errors[0]["loc"][1:]) if errors else ""
        message = f"Invalid request: {field}" if field else "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def mount_client(app: FastAPI, static_dir: str):
    """Serve the built client, falling back to index.html for client-side routes"""
    root = Path(static_dir).resolve()
    index = root / "index.html"
    if not index.is_file():
        logger.info(f"No client bundle at {root}, static serving disabled")
        return

    @app.get("/{full_path:path}", include_in_schema=False)
    async def client_app(full_path: str):
        if full_path.startswith("api"):
            return JSONResponse(status_code=404, content={"error": "Not found"})
        candidate = (root / full_path).resolve()
        if full_path and candidate.is_file() and root in candidate.parents:
            return FileResponse(candidate)
        return FileResponse(index)


def create_app(
    app_settings: Settings = settings,
    engine: Optional[Engine] = None,
    completion_client=None,
    movie_catalog: Optional[MovieCatalog] = None,
) -> FastAPI:
    """
    Build the application and its collaborators

    Tests pass their own engine and fake clients; the process-level app
    below uses the configured ones.
    """
    app = FastAPI(
        title=app_settings.APP_NAME,
        version=app_settings.APP_VERSION,
        description=DESCRIPTION,
        debug=app_settings.DEBUG,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "sessions", "description": "Create, join, run and close party sessions"},
            {"name": "movies", "description": "Quiz movie cards from the curated pool"},
            {"name": "realtime", "description": "WebSocket session events"},
            {"name": "system", "description": "Health checks"},
        ]
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.ALLOWED_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Collaborators, built once per process
    store = SessionStore(engine if engine is not None else build_engine(app_settings.DATABASE_URL))
    if completion_client is None:
        completion_client = CompletionClient(
            api_key=app_settings.SYNTHETIC_API_KEY,
            model=app_settings.AI_MODEL,
            base_url=app_settings.COMPLETION_API_BASE,
            temperature=app_settings.COMPLETION_TEMPERATURE,
            timeout=app_settings.COMPLETION_TIMEOUT_SECONDS,
        )
    notifier = ConnectionManager()

    app.state.settings = app_settings
    app.state.store = store
    app.state.notifier = notifier
    app.state.session_machine = SessionStateMachine(
        store=store,
        synthesizer=RecommendationSynthesizer(completion_client, max_tokens=app_settings.COMPLETION_MAX_TOKENS),
        notifier=notifier,
    )
    app.state.movie_catalog = movie_catalog or MovieCatalog(
        api_key=app_settings.TMDB_API_KEY,
        base_url=app_settings.TMDB_BASE_URL,
        image_base=app_settings.TMDB_IMAGE_BASE,
        timeout=app_settings.TMDB_TIMEOUT_SECONDS,
    )
    app.state.sweeper = RetentionSweeper(
        store,
        ttl_seconds=app_settings.SESSION_TTL_SECONDS,
        interval_seconds=app_settings.CLEANUP_INTERVAL_SECONDS,
    )
    app.state.api_limiter = RateLimiter(
        app_settings.RATE_LIMIT_MAX_REQUESTS,
        app_settings.RATE_LIMIT_WINDOW_SECONDS,
    )
    app.state.create_session_limiter = RateLimiter(
        app_settings.CREATE_SESSION_MAX_REQUESTS,
        app_settings.CREATE_SESSION_WINDOW_SECONDS,
        message="Too many sessions created, please try again later.",
    )

    @app.middleware("http")
    async def api_rate_limit(request: Request, call_next):
        if request.url.path.startswith("/api/"):
            try:
                request.app.state.api_limiter.check(client_key(request))
            except RateLimitExceeded as e:
                return JSONResponse(status_code=e.status_code, content={"error": e.message})
        return await call_next(request)

    register_exception_handlers(app)

    # Startup event
    @app.on_event("startup")
    async def startup_event():
        """Initialize logging and database, then start the retention sweep"""
        startup_logger = setup_logging(app_settings.LOG_DIR)
        startup_logger.info(f"Starting {app_settings.APP_NAME} v{app_settings.APP_VERSION}")

        store.init_schema()
        startup_logger.info("Database initialized successfully")

        if not app_settings.TMDB_API_KEY:
            startup_logger.warning("TMDB_API_KEY not set, quiz movies unavailable")
        if not app_settings.SYNTHETIC_API_KEY:
            startup_logger.warning("SYNTHETIC_API_KEY not set, results will use fallback text")

        app.state.sweeper.start()

    # Shutdown event
    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info(f"Shutting down {app_settings.APP_NAME}...")
        await app.state.sweeper.stop()

    # Health check endpoint
    @app.get("/health", tags=["system"])
    async def health_check():
        """
        System Health Check

        Used by monitoring systems and load balancers.
        """
        return {
            "status": "ok",
            "timestamp": int(time.time() * 1000),
            "app": app_settings.APP_NAME,
            "version": app_settings.APP_VERSION
        }

    # Include API routers
    from .api import movies, sessions, websocket

    app.include_router(sessions.router, prefix="/api/session", tags=["sessions"])
    app.include_router(movies.router, prefix="/api/movies", tags=["movies"])
    app.include_router(websocket.router, tags=["realtime"])

    # Registered last so API routes win
    mount_client(app, app_settings.STATIC_DIR)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
