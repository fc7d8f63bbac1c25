import re
from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict
from typing import Optional, List
from datetime import datetime
from urllib.parse import urlparse
from .config import DEFAULT_COLOR, DEFAULT_BACKGROUND_COLOR
from .utils import as_utc

# Blocked URL schemes that could be used for phishing or attacks
BLOCKED_SCHEMES = {'javascript', 'data', 'vbscript', 'file'}

# Blocked domains commonly used for phishing (can be extended)
BLOCKED_DOMAINS = set()

HEX_COLOR_RE = re.compile(r'^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$')
SLUG_RE = re.compile(r'^[A-Za-z0-9_-]{3,64}$')


def validate_target_url(url: str) -> str:
    """Validate that the target is an absolute http(s) URL (no javascript:, data:, etc.)"""
    url = url.strip()
    url_lower = url.lower()

    # Check for blocked schemes
    for scheme in BLOCKED_SCHEMES:
        if url_lower.startswith(f"{scheme}:"):
            raise ValueError(f"URL scheme '{scheme}:' is not allowed")

    parsed = urlparse(url)
    if parsed.scheme.lower() not in {'http', 'https'}:
        raise ValueError("Please enter a valid URL. Use http or https.")
    if not parsed.netloc:
        raise ValueError("Please enter a valid URL")

    # Check for blocked domains
    if parsed.netloc.lower() in BLOCKED_DOMAINS:
        raise ValueError("This domain is not allowed")

    return url


def validate_slug(slug: str) -> str:
    if not SLUG_RE.match(slug):
        raise ValueError("Slug must be at least 3 characters of letters, digits, '-' or '_'")
    return slug


def validate_color(color: str) -> str:
    if not HEX_COLOR_RE.match(color):
        raise ValueError("Please enter a valid hex color")
    return color


def normalize_expiry(value: Optional[datetime]) -> Optional[datetime]:
    # naive expiry timestamps are taken as UTC; SQLite keeps no offset, so store UTC
    return as_utc(value)


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class UserOut(BaseModel):
    id: int
    email: EmailStr
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class QRLinkCreate(BaseModel):
    name: str = Field(min_length=1)
    target_url: str
    slug: Optional[str] = None
    color: str = DEFAULT_COLOR
    background_color: str = DEFAULT_BACKGROUND_COLOR
    expires_at: Optional[datetime] = None

    @field_validator('target_url')
    @classmethod
    def check_target_url(cls, v):
        return validate_target_url(v)

    @field_validator('slug')
    @classmethod
    def check_slug(cls, v):
        # an empty slug means "generate one"
        if v is None or not v.strip():
            return None
        return validate_slug(v.strip())

    @field_validator('color', 'background_color')
    @classmethod
    def check_color(cls, v):
        return validate_color(v)

    @field_validator('expires_at')
    @classmethod
    def check_expiry(cls, v):
        return normalize_expiry(v)


class QRLinkUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    target_url: Optional[str] = None
    slug: Optional[str] = None
    color: Optional[str] = None
    background_color: Optional[str] = None
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None

    @field_validator('target_url')
    @classmethod
    def check_target_url(cls, v):
        if v is not None:
            return validate_target_url(v)
        return v

    @field_validator('slug')
    @classmethod
    def check_slug(cls, v):
        if v is not None:
            return validate_slug(v.strip())
        return v

    @field_validator('color', 'background_color')
    @classmethod
    def check_color(cls, v):
        if v is not None:
            return validate_color(v)
        return v

    @field_validator('expires_at')
    @classmethod
    def check_expiry(cls, v):
        return normalize_expiry(v)

    def changes(self) -> dict:
        """Fields explicitly sent by the caller. Only expires_at may be cleared with null."""
        data = self.model_dump(exclude_unset=True)
        return {k: v for k, v in data.items() if v is not None or k == 'expires_at'}


class QRLink(BaseModel):
    id: int
    user_id: int
    name: str
    slug: str
    target_url: str
    color: str
    background_color: str
    is_active: bool
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class QRLinkWithScans(QRLink):
    total_scans: int = 0


class ScanEvent(BaseModel):
    id: int
    qr_link_id: int
    timestamp: datetime
    device_type: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    referrer: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ScanPage(BaseModel):
    total: int
    page: int
    limit: int
    pages: int
    scans: List[ScanEvent]


class DailyCount(BaseModel):
    date: str
    count: int


class DeviceBreakdown(BaseModel):
    mobile: int = 0
    desktop: int = 0
    tablet: int = 0
    unknown: int = 0


class LocationCount(BaseModel):
    country: str
    count: int


class QRCodeStats(BaseModel):
    total_scans: int
    daily_scans: List[DailyCount]
    device_breakdown: DeviceBreakdown
    top_locations: List[LocationCount]


class UserStats(BaseModel):
    total_qr_codes: int
    total_scans: int
    avg_scans_per_qr: float


class TrackingResult(BaseModel):
    success: bool
    url: Optional[str] = None
    name: Optional[str] = None
    error: Optional[str] = None
    # not_found / inactive / expired / error
    reason: Optional[str] = None
