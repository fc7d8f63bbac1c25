import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates
from starlette.middleware.sessions import SessionMiddleware
from .config import LOG_LEVEL, SESSION_SECRET, SESSION_COOKIE_NAME, TEMPLATES_DIR
from .db import ensure_tables
from .errors import QRServiceError
from .routes_auth import router as auth_router
from .routes_links import router as links_router
from .routes_redirect import router as redirect_router

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        ensure_tables()
        logger.info("Database tables ready")
    except Exception:
        logger.exception("Database initialization error")
        raise
    yield


app = FastAPI(title="QR Track API", lifespan=lifespan)

# Browser-session cookie (no max_age) holding the per-hour scan markers
app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET,
    session_cookie=SESSION_COOKIE_NAME,
    max_age=None,
    same_site="lax",
)

templates = Jinja2Templates(directory=TEMPLATES_DIR)

app.include_router(auth_router)
app.include_router(links_router)
app.include_router(redirect_router)


@app.exception_handler(QRServiceError)
async def service_error_handler(request: Request, exc: QRServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.get("/")
async def root(request: Request):
    """Home page; error pages of the redirect flow link back here."""
    return templates.TemplateResponse(request, "index.html")
