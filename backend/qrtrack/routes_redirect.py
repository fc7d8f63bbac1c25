from fastapi import APIRouter, Depends, Request
from fastapi.templating import Jinja2Templates
from . import schemas
from .config import REDIRECT_COUNTDOWN_SECONDS, TEMPLATES_DIR
from .store import LinkStore, get_store
from .tracking import track_and_redirect

router = APIRouter(tags=["redirect"])
templates = Jinja2Templates(directory=TEMPLATES_DIR)

STATUS_BY_REASON = {
    "not_found": 404,
    "inactive": 410,
    "expired": 410,
    "error": 500,
}


def _track(short_code: str, request: Request, store: LinkStore) -> schemas.TrackingResult:
    return track_and_redirect(
        store,
        short_code,
        request.session,
        user_agent=request.headers.get("user-agent"),
        referrer=request.headers.get("referer"),
    )


@router.get("/r/{short_code}")
def redirect_page(short_code: str, request: Request, store: LinkStore = Depends(get_store)):
    """Track the scan, then show a countdown page that forwards to the target URL."""
    result = _track(short_code, request, store)
    status_code = 200 if result.success else STATUS_BY_REASON.get(result.reason, 404)
    return templates.TemplateResponse(
        request,
        "redirect.html",
        {"result": result, "countdown": REDIRECT_COUNTDOWN_SECONDS},
        status_code=status_code,
    )


@router.get("/api/resolve/{short_code}", response_model=schemas.TrackingResult)
def resolve(short_code: str, request: Request, store: LinkStore = Depends(get_store)):
    """Same tracking as the redirect page, for clients that navigate themselves."""
    return _track(short_code, request, store)
