from datetime import datetime, timedelta, timezone
import jwt
from typing import Optional
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session
from shared.core import set_request_context
from tracking_service.core_settings import get_settings
from tracking_service.infrastructure.db import get_db
from tracking_service.application.identity import CallerContext
from tracking_service.application.service import TrackingService

settings = get_settings()

BEARER_PREFIX = "Bearer "

def create_access_token(subject: str, expires_minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    minutes = expires_minutes if expires_minutes is not None else settings.JWT_EXPIRES_MINUTES
    payload = {"sub": subject, "iat": now, "exp": now + timedelta(minutes=minutes)}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except jwt.PyJWTError:
        return None

async def get_caller(request: Request) -> CallerContext:
    """Resolve the caller from a bearer token; no Authorization header means anonymous."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return CallerContext.anonymous()
    if not auth_header.startswith(BEARER_PREFIX):
        raise HTTPException(status_code=401, detail="Invalid authorization header")
    token = auth_header.split(" ", 1)[1]
    token_data = decode_access_token(token)
    if not token_data or not token_data.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token")
    identity = str(token_data["sub"])
    set_request_context(user_id=identity)
    return CallerContext(identity=identity)

def get_service(db: Session = Depends(get_db)) -> TrackingService:
    return TrackingService(db)
