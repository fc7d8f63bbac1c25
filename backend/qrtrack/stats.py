from collections import Counter
from datetime import date, timedelta
from typing import Iterable, Optional

from . import schemas
from .config import STATS_DAYS, TOP_LOCATIONS
from .utils import as_utc, utc_now

DEVICE_TYPES = ('mobile', 'desktop', 'tablet', 'unknown')


def compute_stats(scans: Iterable[schemas.ScanEvent], today: Optional[date] = None,
                  days: int = STATS_DAYS, top_n: int = TOP_LOCATIONS) -> schemas.QRCodeStats:
    """Aggregate scan events into totals, a daily histogram, device and country counts.

    Days are UTC calendar days ending with ``today``. Countries tied on count
    keep the order in which they first appear in ``scans``.
    """
    scans = list(scans)
    today = today or utc_now().date()

    window = [today - timedelta(days=i) for i in range(days - 1, -1, -1)]
    per_day = Counter(as_utc(s.timestamp).date() for s in scans)
    daily = [schemas.DailyCount(date=d.isoformat(), count=per_day.get(d, 0)) for d in window]

    devices = dict.fromkeys(DEVICE_TYPES, 0)
    for scan in scans:
        kind = scan.device_type if scan.device_type in devices else 'unknown'
        devices[kind] += 1

    countries = Counter()
    for scan in scans:
        if scan.country:
            countries[scan.country] += 1
    # sorted() is stable and Counter keeps first-seen order
    ranked = sorted(countries.items(), key=lambda item: item[1], reverse=True)[:top_n]

    return schemas.QRCodeStats(
        total_scans=len(scans),
        daily_scans=daily,
        device_breakdown=schemas.DeviceBreakdown(**devices),
        top_locations=[schemas.LocationCount(country=c, count=n) for c, n in ranked],
    )
