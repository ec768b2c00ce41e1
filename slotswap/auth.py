import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt
from sqlalchemy.orm import Session

from .config import JWT_ALGORITHM, SECRET_KEY
from .database import get_db
from .errors import AuthorizationError
from .models import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict:
    """
    Verify and decode a session JWT issued by the authentication service.

    Raises:
        AuthorizationError: If the token is malformed, badly signed or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        logger.info("ℹ️ Expired token presented")
        raise AuthorizationError("Token has expired. Please log in again.", status_code=401) from e
    except JWTError as e:
        logger.warning(f"⚠️ JWT verification failed: {e}")
        raise AuthorizationError("Invalid token", status_code=401) from e


def user_id_from_claims(claims: dict) -> int:
    subject = claims.get("sub") or claims.get("id")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as e:
        logger.error(f"❌ Token missing numeric user id. Available claims: {list(claims.keys())}")
        raise AuthorizationError("Invalid token claims", status_code=401) from e
    if user_id <= 0:
        raise AuthorizationError("Invalid token claims", status_code=401)
    return user_id


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the verified caller identity from the Bearer token"""
    if not credentials or not credentials.credentials:
        raise AuthorizationError("User is not logged in", status_code=401)

    claims = decode_access_token(credentials.credentials)
    user_id = user_id_from_claims(claims)

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"⚠️ Token for unknown user {user_id}")
        raise AuthorizationError("User is not logged in", status_code=401)

    logger.debug(f"✅ User authenticated: {user.id}")
    return user
