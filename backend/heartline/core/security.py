from passlib.context import CryptContext
import uuid
from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from jose.exceptions import ExpiredSignatureError
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from heartline.core.config import settings
from heartline.db.database import get_db
from heartline.db.models.token import RevokedToken

# 1. Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)

SECRET_KEY = settings.secret_key
ALGORITHM = settings.algorithm
ACCESS_TOKEN_EXPIRE_MINUTES = settings.access_token_expire_minutes

def get_password_hash(password: str) -> str:
    """Hash a password with bcrypt."""
    return pwd_context.hash(password[:72])

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Compare a plain password against its bcrypt hash."""
    return pwd_context.verify(plain_password[:72], hashed_password)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed JWT. Every token carries a unique jti so it can be revoked."""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": now, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

def decode_token(token: str) -> dict:
    """
    Decode a JWT and check that it names a user. Raises 401 otherwise.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise _credentials_exception("Token expired")
    except JWTError:
        raise _credentials_exception()

    if payload.get("sub") is None or payload.get("jti") is None:
        raise _credentials_exception()
    return payload

async def is_token_revoked(db: AsyncSession, jti: str) -> bool:
    result = await db.execute(select(RevokedToken.id).where(RevokedToken.jti == jti))
    return result.scalar_one_or_none() is not None

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/user/signin")

async def get_token_payload(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    FastAPI Dependency: validate the bearer token and reject revoked ones.
    """
    payload = decode_token(token)
    if await is_token_revoked(db, payload["jti"]):
        raise _credentials_exception("Token has been revoked")
    return payload

async def get_current_user_id(payload: dict = Depends(get_token_payload)) -> int:
    """
    FastAPI Dependency: returns the authenticated user's id.
    """
    try:
        return int(payload["sub"])
    except (TypeError, ValueError):
        raise _credentials_exception()

async def verify_websocket_token(db: AsyncSession, token: Optional[str]) -> Optional[int]:
    """
    Validate a token passed as a WebSocket query parameter.
    Returns the user id, or None when the token is missing, invalid or revoked.
    """
    if not token:
        return None
    try:
        payload = decode_token(token)
    except HTTPException:
        return None
    if await is_token_revoked(db, payload["jti"]):
        return None
    return int(payload["sub"])
