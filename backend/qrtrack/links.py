"""QR link CRUD and per-link / per-user statistics."""
import logging
from datetime import date
from typing import List, Optional

from . import schemas
from .config import SLUG_LENGTH
from .errors import NotAuthenticatedError, QRLinkNotFoundError
from .stats import compute_stats
from .store import LinkStore
from .utils import generate_slug

logger = logging.getLogger(__name__)


def _require_user(user_id: Optional[int]) -> int:
    if user_id is None:
        raise NotAuthenticatedError()
    return user_id


def _unused_slug(store: LinkStore) -> str:
    slug = generate_slug(SLUG_LENGTH)
    while store.slug_exists(slug):
        slug = generate_slug(SLUG_LENGTH)
    return slug


def list_links(store: LinkStore, user_id: Optional[int]) -> List[schemas.QRLinkWithScans]:
    user_id = _require_user(user_id)
    links = store.list_links(user_id)
    counts = store.count_scans(link.id for link in links)
    return [
        schemas.QRLinkWithScans(**link.model_dump(), total_scans=counts.get(link.id, 0))
        for link in links
    ]


def get_link(store: LinkStore, user_id: Optional[int], link_id: int) -> schemas.QRLink:
    user_id = _require_user(user_id)
    link = store.get_link(link_id)
    # links of other users are reported as missing
    if link is None or link.user_id != user_id:
        raise QRLinkNotFoundError()
    return link


def create_link(store: LinkStore, user_id: Optional[int], data: schemas.QRLinkCreate) -> schemas.QRLink:
    user_id = _require_user(user_id)
    values = data.model_dump()
    if not values.get("slug"):
        values["slug"] = _unused_slug(store)
    values["user_id"] = user_id
    values["is_active"] = True
    link = store.insert_link(values)
    logger.info("Created QR link %s (slug=%s) for user %s", link.id, link.slug, user_id)
    return link


def update_link(store: LinkStore, user_id: Optional[int], link_id: int,
                data: schemas.QRLinkUpdate) -> schemas.QRLink:
    get_link(store, user_id, link_id)
    changes = data.changes()
    link = store.update_link(link_id, changes)
    if link is None:
        raise QRLinkNotFoundError()
    logger.info("Updated QR link %s: %s", link_id, sorted(changes))
    return link


def delete_link(store: LinkStore, user_id: Optional[int], link_id: int) -> None:
    get_link(store, user_id, link_id)
    if not store.delete_link(link_id):
        raise QRLinkNotFoundError()
    logger.info("Deleted QR link %s", link_id)


def list_scans(store: LinkStore, user_id: Optional[int], link_id: int,
               page: int = 1, limit: int = 50) -> schemas.ScanPage:
    get_link(store, user_id, link_id)
    total = store.count_scans([link_id]).get(link_id, 0)
    scans = store.list_scans(link_id, offset=(page - 1) * limit, limit=limit, newest_first=True)
    return schemas.ScanPage(
        total=total,
        page=page,
        limit=limit,
        pages=(total + limit - 1) // limit if total > 0 else 1,
        scans=scans,
    )


def get_qr_code_stats(store: LinkStore, user_id: Optional[int], link_id: int,
                      today: Optional[date] = None) -> schemas.QRCodeStats:
    get_link(store, user_id, link_id)
    return compute_stats(store.list_scans(link_id), today=today)


def get_user_stats(store: LinkStore, user_id: Optional[int]) -> schemas.UserStats:
    user_id = _require_user(user_id)
    links = store.list_links(user_id)
    total_scans = sum(store.count_scans(link.id for link in links).values())
    return schemas.UserStats(
        total_qr_codes=len(links),
        total_scans=total_scans,
        avg_scans_per_qr=round(total_scans / len(links), 2) if links else 0.0,
    )
