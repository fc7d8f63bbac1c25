from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Request
from passlib.context import CryptContext
from .config import SECRET_KEY, ACCESS_TOKEN_EXPIRE_MINUTES
from .errors import NotAuthenticatedError

ALGORITHM = "HS256"
TOKEN_COOKIE = "access_token"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str):
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None


def token_from_request(request: Request) -> Optional[str]:
    """Token from the session cookie, or from an Authorization: Bearer header."""
    token = request.cookies.get(TOKEN_COOKIE)
    if not token:
        auth_header = request.headers.get('Authorization')
        if auth_header and auth_header.startswith('Bearer '):
            token = auth_header.split(' ', 1)[1]
    return token


def current_user_id(request: Request) -> Optional[int]:
    """Dependency returning the signed-in user's id, or None without a valid session."""
    token = token_from_request(request)
    if not token:
        return None
    payload = decode_token(token)
    if not payload or payload.get("type") != "access":
        return None
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None


def require_user_id(request: Request) -> int:
    user_id = current_user_id(request)
    if user_id is None:
        raise NotAuthenticatedError()
    return user_id
