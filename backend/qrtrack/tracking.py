"""Short-code resolution and scan tracking for the redirect page."""
import logging
from datetime import datetime
from typing import MutableMapping, Optional

from .errors import StoreError
from .schemas import TrackingResult
from .store import LinkStore
from .user_agent import detect_browser, detect_device_type, detect_os
from .utils import as_utc, utc_now

logger = logging.getLogger(__name__)

NOT_FOUND = "QR code not found"
INACTIVE = "QR code is inactive"
EXPIRED = "QR code has expired"
REDIRECT_ERROR = "An error occurred during redirect"

SCAN_KEY_PREFIX = "scan_"


def _failure(reason: str, error: str) -> TrackingResult:
    return TrackingResult(success=False, error=error, reason=reason)


def _hour_suffix(now: datetime) -> str:
    return as_utc(now).strftime('%Y-%m-%dT%H')


def scan_key(short_code: str, now: datetime) -> str:
    """Session key marking a code as already tracked for the current UTC hour."""
    return f"{SCAN_KEY_PREFIX}{short_code}_{_hour_suffix(now)}"


def prune_scan_markers(session: MutableMapping, now: datetime) -> None:
    """Drop markers from earlier hours; they can never match again."""
    suffix = "_" + _hour_suffix(now)
    stale = [key for key in session
             if key.startswith(SCAN_KEY_PREFIX) and not key.endswith(suffix)]
    for key in stale:
        del session[key]


def _record(store: LinkStore, link, short_code: str, session: MutableMapping,
            user_agent: Optional[str], referrer: Optional[str], now: datetime) -> None:
    key = scan_key(short_code, now)
    if session.get(key):
        logger.info("Duplicate scan prevented for %s within the same hour", short_code)
        return

    try:
        store.record_scan(
            qr_link_id=link.id,
            device_type=detect_device_type(user_agent),
            browser=detect_browser(user_agent),
            os=detect_os(user_agent),
            referrer=referrer or None,
            # no geolocation lookup is performed
            country=None,
            city=None,
            latitude=None,
            longitude=None,
        )
    except Exception:
        logger.exception("Error recording scan for %s", short_code)
        return

    prune_scan_markers(session, now)
    session[key] = True
    logger.info("Recorded scan for %s at %s", short_code, now.isoformat())


def track_and_redirect(store: LinkStore, short_code: str, session: MutableMapping,
                       user_agent: Optional[str] = None, referrer: Optional[str] = None,
                       now: Optional[datetime] = None) -> TrackingResult:
    """Resolve ``short_code`` and record at most one scan per session and hour.

    Never raises; the outcome is reported in the returned result so the
    caller can show an error page instead.
    """
    try:
        now = as_utc(now) if now else utc_now()
        logger.info("Processing redirect for code: %s", short_code)

        try:
            link = store.get_qr_link_by_slug(short_code)
        except StoreError:
            logger.exception("QR code lookup error for %s", short_code)
            return _failure("not_found", NOT_FOUND)

        if link is None:
            logger.info("QR code not found for slug: %s", short_code)
            return _failure("not_found", NOT_FOUND)
        if not link.is_active:
            return _failure("inactive", INACTIVE)
        if link.expires_at and as_utc(link.expires_at) < now:
            return _failure("expired", EXPIRED)

        _record(store, link, short_code, session, user_agent, referrer, now)
        return TrackingResult(success=True, url=link.target_url, name=link.name)
    except Exception:
        logger.exception("Redirect error for %s", short_code)
        return _failure("error", REDIRECT_ERROR)
