"""Access to the link/scan tables.

Services only talk to :class:`LinkStore`, so a test double can stand in for
the database. :class:`SQLAlchemyStore` is the real implementation.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from fastapi import Depends
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from .db import get_db
from .errors import SlugTakenError, StoreError
from .utils import utc_now

logger = logging.getLogger(__name__)


class LinkStore(ABC):

    @abstractmethod
    def list_links(self, user_id: int) -> List[schemas.QRLink]:
        """Links owned by ``user_id``, newest first."""

    @abstractmethod
    def get_link(self, link_id: int) -> Optional[schemas.QRLink]:
        ...

    @abstractmethod
    def slug_exists(self, slug: str) -> bool:
        ...

    @abstractmethod
    def insert_link(self, values: dict) -> schemas.QRLink:
        """Insert a link. Raises SlugTakenError on a duplicate slug."""

    @abstractmethod
    def update_link(self, link_id: int, values: dict) -> Optional[schemas.QRLink]:
        """Patch a link. Raises SlugTakenError on a duplicate slug."""

    @abstractmethod
    def delete_link(self, link_id: int) -> bool:
        """Delete a link and its scans. Returns False when nothing was deleted."""

    @abstractmethod
    def get_qr_link_by_slug(self, slug: str) -> Optional[schemas.QRLink]:
        ...

    @abstractmethod
    def record_scan(self, qr_link_id: int, device_type: Optional[str], browser: Optional[str],
                    os: Optional[str], referrer: Optional[str], country: Optional[str],
                    city: Optional[str], latitude: Optional[float], longitude: Optional[float]) -> None:
        ...

    @abstractmethod
    def list_scans(self, qr_link_id: int, offset: int = 0, limit: Optional[int] = None,
                   newest_first: bool = False) -> List[schemas.ScanEvent]:
        """Scans of one link, in insertion order unless ``newest_first``."""

    @abstractmethod
    def count_scans(self, qr_link_ids: Iterable[int]) -> Dict[int, int]:
        ...


class SQLAlchemyStore(LinkStore):

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, exc: SQLAlchemyError):
        self.db.rollback()
        logger.error("Database error: %s", exc)
        raise StoreError() from exc

    def _commit(self):
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if "slug" in str(exc.orig).lower():
                raise SlugTakenError() from exc
            logger.error("Integrity error: %s", exc)
            raise StoreError() from exc
        except SQLAlchemyError as exc:
            self._fail(exc)

    def list_links(self, user_id):
        try:
            rows = self.db.query(models.QRLink)\
                .filter(models.QRLink.user_id == user_id)\
                .order_by(models.QRLink.created_at.desc(), models.QRLink.id.desc())\
                .all()
        except SQLAlchemyError as exc:
            self._fail(exc)
        return [schemas.QRLink.model_validate(r) for r in rows]

    def get_link(self, link_id):
        try:
            row = self.db.get(models.QRLink, link_id)
        except SQLAlchemyError as exc:
            self._fail(exc)
        return schemas.QRLink.model_validate(row) if row else None

    def slug_exists(self, slug):
        try:
            return self.db.query(models.QRLink.id).filter(models.QRLink.slug == slug).first() is not None
        except SQLAlchemyError as exc:
            self._fail(exc)

    def insert_link(self, values):
        row = models.QRLink(**values)
        self.db.add(row)
        self._commit()
        self.db.refresh(row)
        return schemas.QRLink.model_validate(row)

    def update_link(self, link_id, values):
        try:
            row = self.db.get(models.QRLink, link_id)
        except SQLAlchemyError as exc:
            self._fail(exc)
        if row is None:
            return None
        for key, value in values.items():
            setattr(row, key, value)
        row.updated_at = utc_now()
        self._commit()
        self.db.refresh(row)
        return schemas.QRLink.model_validate(row)

    def delete_link(self, link_id):
        try:
            row = self.db.get(models.QRLink, link_id)
            if row is None:
                return False
            # Delete associated scans first
            self.db.query(models.Scan).filter(models.Scan.qr_link_id == link_id).delete()
            self.db.delete(row)
        except SQLAlchemyError as exc:
            self._fail(exc)
        self._commit()
        return True

    def get_qr_link_by_slug(self, slug):
        try:
            row = self.db.query(models.QRLink).filter(models.QRLink.slug == slug).first()
        except SQLAlchemyError as exc:
            self._fail(exc)
        return schemas.QRLink.model_validate(row) if row else None

    def record_scan(self, qr_link_id, device_type, browser, os, referrer, country, city, latitude, longitude):
        scan = models.Scan(
            qr_link_id=qr_link_id,
            timestamp=utc_now(),
            device_type=device_type,
            browser=browser,
            os=os,
            referrer=referrer,
            country=country,
            city=city,
            latitude=latitude,
            longitude=longitude,
        )
        self.db.add(scan)
        self._commit()

    def list_scans(self, qr_link_id, offset=0, limit=None, newest_first=False):
        order = models.Scan.id.desc() if newest_first else models.Scan.id.asc()
        try:
            q = self.db.query(models.Scan)\
                .filter(models.Scan.qr_link_id == qr_link_id)\
                .order_by(order)\
                .offset(offset)
            if limit is not None:
                q = q.limit(limit)
            rows = q.all()
        except SQLAlchemyError as exc:
            self._fail(exc)
        return [schemas.ScanEvent.model_validate(r) for r in rows]

    def count_scans(self, qr_link_ids):
        ids = list(qr_link_ids)
        if not ids:
            return {}
        try:
            counts = self.db.query(
                models.Scan.qr_link_id,
                func.count(models.Scan.id).label('count')
            ).filter(models.Scan.qr_link_id.in_(ids)).group_by(models.Scan.qr_link_id).all()
        except SQLAlchemyError as exc:
            self._fail(exc)
        return {c.qr_link_id: c.count for c in counts}


def get_store(db: Session = Depends(get_db)) -> LinkStore:
    """Dependency to provide the store for the current request."""
    return SQLAlchemyStore(db)
