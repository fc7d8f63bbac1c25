from datetime import datetime, timezone

from backend.qrtrack import schemas
from backend.qrtrack.errors import SlugTakenError, StoreError
from backend.qrtrack.store import LinkStore


class InMemoryStore(LinkStore):
    """LinkStore test double keeping rows in lists."""

    def __init__(self):
        self.links = {}
        self.scans = []
        self.fail_lookup = False
        self.fail_record = False
        self._next_link_id = 1
        self._next_scan_id = 1

    def add_link(self, **values):
        defaults = {
            'user_id': 1,
            'name': 'Test link',
            'target_url': 'https://example.com',
            'color': '#8B5CF6',
            'background_color': '#FFFFFF',
            'is_active': True,
            'expires_at': None,
        }
        defaults.update(values)
        return self.insert_link(defaults)

    def add_scan(self, qr_link_id, timestamp, **values):
        scan = schemas.ScanEvent(id=self._next_scan_id, qr_link_id=qr_link_id, timestamp=timestamp, **values)
        self._next_scan_id += 1
        self.scans.append(scan)
        return scan

    def list_links(self, user_id):
        owned = [link for link in self.links.values() if link.user_id == user_id]
        return sorted(owned, key=lambda link: (link.created_at, link.id), reverse=True)

    def get_link(self, link_id):
        return self.links.get(link_id)

    def slug_exists(self, slug):
        return any(link.slug == slug for link in self.links.values())

    def insert_link(self, values):
        if self.slug_exists(values['slug']):
            raise SlugTakenError()
        now = datetime.now(timezone.utc)
        link = schemas.QRLink(id=self._next_link_id, created_at=now, updated_at=now, **values)
        self._next_link_id += 1
        self.links[link.id] = link
        return link

    def update_link(self, link_id, values):
        link = self.links.get(link_id)
        if link is None:
            return None
        if 'slug' in values and values['slug'] != link.slug and self.slug_exists(values['slug']):
            raise SlugTakenError()
        updated = link.model_copy(update=dict(values, updated_at=datetime.now(timezone.utc)))
        self.links[link_id] = updated
        return updated

    def delete_link(self, link_id):
        if self.links.pop(link_id, None) is None:
            return False
        self.scans = [s for s in self.scans if s.qr_link_id != link_id]
        return True

    def get_qr_link_by_slug(self, slug):
        if self.fail_lookup:
            raise StoreError()
        for link in self.links.values():
            if link.slug == slug:
                return link
        return None

    def record_scan(self, qr_link_id, device_type, browser, os, referrer, country, city, latitude, longitude):
        if self.fail_record:
            raise StoreError()
        self.add_scan(qr_link_id, datetime.now(timezone.utc), device_type=device_type, browser=browser,
                      os=os, referrer=referrer, country=country, city=city,
                      latitude=latitude, longitude=longitude)

    def list_scans(self, qr_link_id, offset=0, limit=None, newest_first=False):
        rows = [s for s in self.scans if s.qr_link_id == qr_link_id]
        if newest_first:
            rows.reverse()
        end = None if limit is None else offset + limit
        return rows[offset:end]

    def count_scans(self, qr_link_ids):
        ids = set(qr_link_ids)
        counts = {}
        for scan in self.scans:
            if scan.qr_link_id in ids:
                counts[scan.qr_link_id] = counts.get(scan.qr_link_id, 0) + 1
        return counts


def signup(client, email="owner@example.com", password="secret-pw"):
    """Register and log in; returns Authorization headers."""
    r = client.post('/auth/register', json={'email': email, 'password': password})
    assert r.status_code == 201
    r = client.post('/auth/login', json={'email': email, 'password': password})
    assert r.status_code == 200
    # keep requests explicit about who is calling
    client.cookies.clear()
    return {'Authorization': f"Bearer {r.json()['access_token']}"}
