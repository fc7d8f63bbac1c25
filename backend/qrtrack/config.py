import os

from dotenv import load_dotenv

load_dotenv()

SECRET_KEY = os.getenv("SECRET_KEY", "replace-this")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))
SESSION_SECRET = os.getenv("SESSION_SECRET", SECRET_KEY)
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "qrtrack_session")

# Base used when rendering QR images; falls back to the request's base URL
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")
REDIRECT_COUNTDOWN_SECONDS = int(os.getenv("REDIRECT_COUNTDOWN_SECONDS", 3))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")

DEFAULT_COLOR = "#8B5CF6"
DEFAULT_BACKGROUND_COLOR = "#FFFFFF"
SLUG_LENGTH = 8
STATS_DAYS = 30
TOP_LOCATIONS = 5
