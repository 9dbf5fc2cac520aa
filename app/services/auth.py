"""
Password hashing and access tokens.

Passwords are hashed with bcrypt through passlib. Stored values that passlib
does not recognize are legacy plaintext passwords carried over from the old
system: they are checked in constant time and replaced with a hash on the
first successful login.
"""
import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def is_password_hash(value: Optional[str]) -> bool:
    return bool(value) and pwd_context.identify(value) is not None


def verify_password(plain_password: str, stored: Optional[str]) -> bool:
    valid, _ = verify_and_update(plain_password, stored)
    return valid


def verify_and_update(plain_password: str, stored: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Returns (valid, replacement_hash). replacement_hash is set when the stored
    value should be rewritten: legacy plaintext or an outdated hash.
    """
    if not stored or plain_password is None:
        return False, None
    if not is_password_hash(stored):
        if hmac.compare_digest(plain_password.encode("utf-8"), stored.encode("utf-8")):
            logger.warning("Legacy plaintext password matched; upgrading to a hash")
            return True, get_password_hash(plain_password)
        return False, None
    return pwd_context.verify_and_update(plain_password, stored)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire, "type": to_encode.get("type", "access")})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decoded claims, {"error": "TOKEN_EXPIRED"} for an expired token,
    or None when the token is malformed or the signature is wrong.
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except ExpiredSignatureError:
        return {"error": "TOKEN_EXPIRED"}
    except JWTError:
        return None
